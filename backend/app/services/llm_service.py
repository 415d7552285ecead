"""
LLM service for generating completions from a local Ollama server.

Ollama streams ``/api/generate`` as newline-delimited JSON. Each line carries a
``response`` fragment; the last one carries ``done: true``. Lines are folded by
``CompletionAssembler`` so a single corrupt line costs one fragment, not the
whole completion.
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import httpx
from loguru import logger

from app.core.config import settings
from app.core.logging import log_service_call
from app.utils.exceptions import LLMTimeoutError, NetworkError, UpstreamError


@dataclass(frozen=True)
class ChunkError:
    """A stream line that could not be used."""
    line_number: int
    raw: str
    error: str


@dataclass
class Completion:
    model: str
    text: str
    chunk_errors: List[ChunkError] = field(default_factory=list)
    done: bool = False


class CompletionAssembler:
    """Fold NDJSON lines into a single completion text."""

    def __init__(self):
        self._fragments: List[str] = []
        self._line_number = 0
        self.chunk_errors: List[ChunkError] = []
        self.done = False

    def feed(self, line: str) -> None:
        self._line_number += 1
        raw = line.strip()
        if not raw:
            return

        try:
            chunk = json.loads(raw)
        except json.JSONDecodeError as e:
            self._reject(raw, f"invalid JSON: {e}")
            return

        if not isinstance(chunk, dict):
            self._reject(raw, "chunk is not an object")
            return

        if "error" in chunk:
            self._reject(raw, f"server error: {chunk['error']}")
            return

        fragment = chunk.get("response", "")
        if not isinstance(fragment, str):
            self._reject(raw, "response field is not a string")
            return

        self._fragments.append(fragment)
        if chunk.get("done") is True:
            self.done = True

    def _reject(self, raw: str, error: str) -> None:
        logger.debug(f"Skipping stream line {self._line_number}: {error}")
        self.chunk_errors.append(ChunkError(line_number=self._line_number, raw=raw, error=error))

    @property
    def text(self) -> str:
        return "".join(self._fragments)

    def result(self, model: str) -> Completion:
        return Completion(
            model=model,
            text=self.text,
            chunk_errors=list(self.chunk_errors),
            done=self.done,
        )

    @classmethod
    def assemble(cls, model: str, lines: Iterable[str]) -> Completion:
        assembler = cls()
        for line in lines:
            assembler.feed(line)
        return assembler.result(model)


class LLMService:
    """Service for interacting with local LLM (Ollama)."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        completion_timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.OLLAMA_BASE_URL).rstrip("/")
        self.completion_timeout = completion_timeout or settings.OLLAMA_COMPLETION_TIMEOUT
        self._owns_client = client is None
        # The overall bound is enforced with asyncio.wait_for; the client timeout only covers reads
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(self.completion_timeout))

    async def generate_completion(
        self,
        model: str,
        prompt: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> Completion:
        """
        Request one completion and reassemble the streamed fragments.

        Args:
            model: Ollama model name
            prompt: Complete prompt to send
            parameters: Extra fields merged into the request body

        Returns:
            Completion with the concatenated text and any skipped lines

        Raises:
            UpstreamError: Ollama answered with a non-success status
            NetworkError: Ollama could not be reached
            LLMTimeoutError: The whole call exceeded the completion timeout
        """
        payload: Dict[str, Any] = {"model": model, "prompt": prompt}
        payload.update(parameters or {})

        start = time.perf_counter()
        success = False
        try:
            completion = await asyncio.wait_for(
                self._stream_completion(model, payload),
                timeout=self.completion_timeout,
            )
            success = True
            if completion.chunk_errors:
                logger.warning(
                    f"Completion from {model} skipped {len(completion.chunk_errors)} malformed chunk(s)"
                )
            return completion
        except asyncio.TimeoutError:
            logger.error(f"Completion from {model} timed out after {self.completion_timeout}s")
            raise LLMTimeoutError(f"Request to {model} timed out after {self.completion_timeout}s")
        finally:
            log_service_call(
                "LLMService",
                "generate_completion",
                (time.perf_counter() - start) * 1000,
                success=success,
                model=model,
            )

    async def _stream_completion(self, model: str, payload: Dict[str, Any]) -> Completion:
        assembler = CompletionAssembler()
        try:
            async with self.client.stream("POST", f"{self.base_url}/api/generate", json=payload) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    logger.error(f"Ollama API error: {response.status_code} - {body}")
                    raise UpstreamError(response.status_code, detail=body)

                async for line in response.aiter_lines():
                    assembler.feed(line)
        except httpx.TimeoutException:
            logger.error(f"LLM request to {model} timed out")
            raise LLMTimeoutError(f"Request to {model} timed out")
        except httpx.RequestError as e:
            logger.error(f"LLM request error: {e}")
            raise NetworkError(f"Request error: {str(e)}")

        return assembler.result(model)

    async def list_models(self) -> List[Dict[str, Any]]:
        """
        List all available models in Ollama.

        Returns:
            List of model dictionaries, empty when Ollama is unreachable
        """
        try:
            response = await self.client.get(
                f"{self.base_url}/api/tags",
                timeout=settings.OLLAMA_DISCOVERY_TIMEOUT,
            )

            if response.status_code == 200:
                result = response.json()
                return result.get("models", [])
            else:
                logger.error(f"Failed to list models: {response.status_code}")
                return []

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error listing models: {e}")
            return []

    async def health_check(self) -> bool:
        """Check if the Ollama service is healthy."""
        try:
            response = await self.client.get(
                f"{self.base_url}/api/tags",
                timeout=settings.OLLAMA_DISCOVERY_TIMEOUT,
            )
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"Ollama health check failed: {e}")
            return False

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
