"""
AI processing service.

Runs one item through the selected local models, one after another, and
records what happened in the processing log. Every log row is committed as
soon as it is written so a run that dies half way still shows its progress.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import commit_or_raise
from app.models.ai_processing import AIAnalysisResult, AIProcessingLog, LogLevel, ProcessingStrategy
from app.models.item import Item, ItemImportance
from app.models.model_registry import AIModel, ModelType
from app.schemas.ai import (
    ModelErrorDetails,
    ParseFailureDetails,
    ProcessingConfig,
    StartedDetails,
    SucceededDetails,
)
from app.services.llm_service import LLMService
from app.utils.exceptions import LLMServiceError, NoModelsAvailableError

_IMPORTANCE_STRATEGY = {
    ItemImportance.LOW.value: ProcessingStrategy.SINGLE_BASIC,
    ItemImportance.MEDIUM.value: ProcessingStrategy.SINGLE_BEST,
    ItemImportance.HIGH.value: ProcessingStrategy.MULTI_MODEL_SELECTIVE,
    ItemImportance.CRITICAL.value: ProcessingStrategy.ALL_ENCOMPASSING,
}

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n(.*?)\n?\s*```\s*$", re.DOTALL)


def strategy_for_importance(importance: Any) -> ProcessingStrategy:
    """Map an item's importance to a processing strategy (SINGLE_BEST if unknown)."""
    key = importance.value if isinstance(importance, ItemImportance) else importance
    return _IMPORTANCE_STRATEGY.get(key, ProcessingStrategy.SINGLE_BEST)


def build_analysis_prompt(item: Item) -> str:
    """Build the analysis prompt for an item."""
    lines = [
        "Analyze the following item. Provide insights, risks, and actionable steps.",
        "",
        f"Title: {item.title}",
        f"Type: {item.type}",
        f"Status: {item.status}",
        f"Importance: {item.importance}",
    ]
    if item.description:
        lines.append(f"Description: {item.description}")
    if item.tags:
        lines.append(f"Tags: {', '.join(item.tags)}")
    if item.due_date:
        lines.append(f"Due date: {item.due_date.isoformat()}")

    lines.extend([
        "",
        "Respond only with JSON using this structure:",
        "{",
        '  "summary": "brief summary",',
        '  "risks": [{"level": "HIGH/MEDIUM/LOW", "description": "..."}],',
        '  "actionItems": [{"title": "...", "description": "..."}],',
        '  "benefits": ["..."],',
        '  "timeline": [{"phase": "...", "date": "...", "description": "..."}]',
        "}",
        "The benefits and timeline fields are optional.",
    ])
    return "\n".join(lines)


def parse_analysis_response(text: str) -> Dict[str, Any]:
    """
    Parse a model's answer as a JSON object.

    A surrounding Markdown code fence is removed first.

    Raises:
        ValueError: The text is not a JSON object
    """
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1)

    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


@dataclass
class ProcessingResult:
    strategy: ProcessingStrategy
    insights: List[AIAnalysisResult] = field(default_factory=list)
    logs: List[AIProcessingLog] = field(default_factory=list)


class AIProcessingService:
    """Runs items through local models and stores the insights."""

    def __init__(self, llm_service: LLMService):
        self.llm = llm_service

    async def select_models(self, db: AsyncSession, names: Optional[List[str]] = None) -> List[AIModel]:
        """Active local models, narrowed to ``names`` when given."""
        query = select(AIModel).where(
            AIModel.model_type == ModelType.OLLAMA_LOCAL.value,
            AIModel.is_active == True,  # noqa: E712
        )
        if names:
            query = query.where(AIModel.name.in_(names))

        result = await db.execute(query.order_by(AIModel.name))
        return list(result.scalars().all())

    async def process_item(self, db: AsyncSession, item: Item, config: ProcessingConfig) -> ProcessingResult:
        """
        Run an item through every selected model.

        Args:
            db: Database session
            item: Item to analyse
            config: Strategy, optional model names and request parameters

        Returns:
            ProcessingResult with every insight and log row written

        Raises:
            NoModelsAvailableError: Nothing to run; no rows are written
            PersistenceError: A row could not be stored
        """
        models = await self.select_models(db, config.models)
        if not models:
            raise NoModelsAvailableError()

        strategy = config.strategy
        result = ProcessingResult(strategy=strategy)
        prompt = build_analysis_prompt(item)
        logger.info(f"Processing item {item.id} with {len(models)} model(s), strategy {strategy.value}")

        for model in models:
            result.logs.append(await self._write_log(
                db, item, model, LogLevel.INFO,
                f"Started processing with {model.name}",
                StartedDetails(strategy=strategy),
            ))

            parameters = dict(model.parameters or {})
            parameters.update(config.parameters)

            try:
                completion = await self.llm.generate_completion(model.name, prompt, parameters)
            except LLMServiceError as e:
                result.logs.append(await self._model_error(db, item, model, e))
                continue
            except Exception as e:
                logger.exception(f"Unexpected error processing item {item.id} with {model.name}")
                result.logs.append(await self._model_error(db, item, model, e))
                continue

            try:
                parsed = parse_analysis_response(completion.text)
            except ValueError as e:
                logger.warning(f"Unparseable response from {model.name} for item {item.id}: {e}")
                result.logs.append(await self._write_log(
                    db, item, model, LogLevel.CRITICAL,
                    f"Failed to parse response from {model.name}",
                    ParseFailureDetails(
                        error=str(e),
                        raw_response=completion.text,
                        chunk_error_count=len(completion.chunk_errors),
                    ),
                ))
                continue

            insight = AIAnalysisResult(
                item_id=item.id,
                model_id=model.id,
                title=f"Analysis by {model.name}",
                content=parsed,
                processing_strategy=strategy.value,
                is_visible_in_overview=True,
            )
            db.add(insight)
            await commit_or_raise(db)
            result.insights.append(insight)

            summary = parsed.get("summary")
            risks = parsed.get("risks")
            action_items = parsed.get("actionItems", parsed.get("action_items"))
            result.logs.append(await self._write_log(
                db, item, model, LogLevel.IMPORTANT,
                f"Successfully processed with {model.name}",
                SucceededDetails(
                    summary=summary if isinstance(summary, str) else None,
                    risk_count=len(risks) if isinstance(risks, list) else 0,
                    action_item_count=len(action_items) if isinstance(action_items, list) else 0,
                ),
            ))

        logger.info(
            f"Processed item {item.id}: {len(result.insights)} insight(s), {len(result.logs)} log(s)"
        )
        return result

    async def _model_error(self, db: AsyncSession, item: Item, model: AIModel, error: Exception) -> AIProcessingLog:
        logger.error(f"Error processing item {item.id} with {model.name}: {error}")
        return await self._write_log(
            db, item, model, LogLevel.CRITICAL,
            f"Error processing with {model.name}: {error}",
            ModelErrorDetails(error=str(error), error_type=type(error).__name__),
        )

    async def _write_log(
        self,
        db: AsyncSession,
        item: Item,
        model: AIModel,
        level: LogLevel,
        message: str,
        details: BaseModel,
    ) -> AIProcessingLog:
        log = AIProcessingLog(
            item_id=item.id,
            model_id=model.id,
            log_level=level.value,
            message=message,
            details=details.model_dump(mode="json"),
        )
        db.add(log)
        await commit_or_raise(db)
        return log
