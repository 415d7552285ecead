"""
Model Registry Service.

Keeps the ``ai_models`` catalog in step with the models installed on the local
Ollama server. Discovery results live in memory; only a successful discovery
is written back to storage.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.database import AsyncSessionLocal, commit_or_raise
from app.models.model_registry import AIModel, ModelType
from app.utils.exceptions import NotFoundError

ONLINE = "online"
OFFLINE = "offline"
UNKNOWN = "unknown"


@dataclass
class DiscoveredModel:
    name: str
    is_active: bool = True
    status: str = ONLINE


class ModelRegistryService:
    """Discovers local models and reconciles them with the catalog."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        session_factory: Optional[async_sessionmaker] = None,
        base_url: Optional[str] = None,
        interval_seconds: Optional[int] = None,
    ):
        self.ollama_url = (base_url or settings.OLLAMA_BASE_URL).rstrip("/")
        self.interval_seconds = interval_seconds or settings.OLLAMA_DISCOVERY_INTERVAL_SECONDS
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=settings.OLLAMA_DISCOVERY_TIMEOUT)
        self._session_factory = session_factory or AsyncSessionLocal
        self._models: List[DiscoveredModel] = []
        self._task: Optional[asyncio.Task] = None
        self.last_discovery_ok: Optional[bool] = None
        self.last_discovery_at: Optional[datetime] = None

    @property
    def generate_endpoint(self) -> str:
        return f"{self.ollama_url}/api/generate"

    async def discover(self) -> List[DiscoveredModel]:
        """
        Ask Ollama which models are installed.

        On failure every known model is marked offline in memory and the stale
        list is returned. Storage is never touched here.
        """
        try:
            response = await self.client.get(
                f"{self.ollama_url}/api/tags",
                timeout=settings.OLLAMA_DISCOVERY_TIMEOUT,
            )
            response.raise_for_status()
            names = self._parse_tags(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Ollama model discovery failed: {e}")
            for model in self._models:
                model.status = OFFLINE
            self.last_discovery_ok = False
            self.last_discovery_at = datetime.utcnow()
            return list(self._models)

        self._models = [DiscoveredModel(name=name) for name in names]
        self.last_discovery_ok = True
        self.last_discovery_at = datetime.utcnow()
        logger.info(f"Discovered {len(names)} Ollama model(s)")
        return list(self._models)

    @staticmethod
    def _parse_tags(body: Any) -> List[str]:
        if not isinstance(body, dict) or not isinstance(body.get("models"), list):
            raise ValueError("Malformed /api/tags response")

        names = []
        for entry in body["models"]:
            name = entry.get("name") if isinstance(entry, dict) else None
            if not isinstance(name, str) or not name:
                raise ValueError(f"Malformed model entry: {entry!r}")
            if name not in names:
                names.append(name)
        return names

    async def sync(self, db: AsyncSession) -> None:
        """
        Reconcile local catalog rows with the in-memory list.

        New names are inserted active. Active rows that disappeared are
        deactivated. Inactive rows are left alone.
        """
        result = await db.execute(
            select(AIModel).where(AIModel.model_type == ModelType.OLLAMA_LOCAL.value)
        )
        rows = {row.name: row for row in result.scalars().all()}
        discovered = {m.name for m in self._models}

        added = 0
        for name in discovered - rows.keys():
            db.add(AIModel(
                name=name,
                model_type=ModelType.OLLAMA_LOCAL.value,
                endpoint=self.generate_endpoint,
                is_active=True,
                parameters={},
            ))
            added += 1

        deactivated = 0
        for name, row in rows.items():
            if name not in discovered and row.is_active:
                row.is_active = False
                row.updated_at = datetime.utcnow()
                deactivated += 1

        if added or deactivated:
            await commit_or_raise(db)
            logger.info(f"Model catalog synced: {added} added, {deactivated} deactivated")

    async def refresh(self, db: AsyncSession) -> List[DiscoveredModel]:
        """Discover, then sync only if discovery succeeded."""
        models = await self.discover()
        if self.last_discovery_ok:
            await self.sync(db)
        return models

    def get_models(self) -> List[DiscoveredModel]:
        return list(self._models)

    def status_for(self, name: str) -> str:
        for model in self._models:
            if model.name == name:
                return model.status
        return UNKNOWN

    async def list_catalog(self, db: AsyncSession) -> List[Dict[str, Any]]:
        """Catalog rows joined with the last discovery status."""
        result = await db.execute(select(AIModel).order_by(AIModel.model_type, AIModel.name))
        catalog = []
        for row in result.scalars().all():
            status = self.status_for(row.name) if row.model_type == ModelType.OLLAMA_LOCAL.value else UNKNOWN
            catalog.append({
                "id": row.id,
                "name": row.name,
                "model_type": row.model_type,
                "endpoint": row.endpoint,
                "is_active": row.is_active,
                "parameters": row.parameters or {},
                "status": status,
                "created_at": row.created_at,
            })
        return catalog

    async def set_active(self, db: AsyncSession, model_id: UUID, is_active: bool) -> AIModel:
        model = await db.get(AIModel, model_id)
        if model is None:
            raise NotFoundError("AI model", str(model_id))

        model.is_active = is_active
        model.updated_at = datetime.utcnow()
        await commit_or_raise(db)
        logger.info(f"Model {model.name} is_active set to {is_active}")
        return model

    async def _run_loop(self) -> None:
        while True:
            try:
                async with self._session_factory() as db:
                    await self.refresh(db)
            except Exception as e:
                logger.error(f"Model discovery cycle failed: {e}")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Run discovery now and then every interval, in the background."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Model discovery loop started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Model discovery loop stopped")
        if self._owns_client:
            await self.client.aclose()
