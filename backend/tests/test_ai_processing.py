"""
Tests for the item processor.
"""

import json

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.ai_processing import AIAnalysisResult, AIProcessingLog, ProcessingStrategy
from app.models.item import ItemImportance
from app.schemas.ai import ProcessingConfig
from app.services.ai_processing_service import (
    AIProcessingService,
    build_analysis_prompt,
    parse_analysis_response,
    strategy_for_importance,
)
from app.services.llm_service import LLMService
from app.utils.exceptions import NoModelsAvailableError
from tests.factories import create_test_item, create_test_model, ollama_transport

VALID_ANALYSIS = json.dumps({
    "summary": "Ship the release",
    "risks": [{"level": "HIGH", "description": "Tight deadline"}],
    "actionItems": [{"title": "Write notes"}, {"title": "Tag build"}],
})


def _processor(transport: httpx.MockTransport) -> AIProcessingService:
    llm = LLMService(client=httpx.AsyncClient(transport=transport), base_url="http://ollama.test")
    return AIProcessingService(llm)


async def _count(db: AsyncSession, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar()


@pytest.mark.parametrize("importance, strategy", [
    (ItemImportance.LOW, ProcessingStrategy.SINGLE_BASIC),
    ("MEDIUM", ProcessingStrategy.SINGLE_BEST),
    ("HIGH", ProcessingStrategy.MULTI_MODEL_SELECTIVE),
    ("CRITICAL", ProcessingStrategy.ALL_ENCOMPASSING),
    ("SOMETHING_ELSE", ProcessingStrategy.SINGLE_BEST),
])
def test_strategy_for_importance(importance, strategy):
    assert strategy_for_importance(importance) == strategy


def test_parse_analysis_response_strips_code_fence():
    parsed = parse_analysis_response('```json\n{"summary": "fenced"}\n```')

    assert parsed == {"summary": "fenced"}


def test_parse_analysis_response_rejects_non_object():
    with pytest.raises(ValueError):
        parse_analysis_response("[1, 2, 3]")
    with pytest.raises(ValueError):
        parse_analysis_response("Sure! Here is my analysis.")


@pytest.mark.asyncio
async def test_prompt_includes_item_fields(db_session: AsyncSession, test_user):
    item = await create_test_item(
        db_session, test_user, title="Plan trip", description="Book flights", tags=["travel", "summer"]
    )

    prompt = build_analysis_prompt(item)

    assert "Plan trip" in prompt
    assert "Book flights" in prompt
    assert "travel, summer" in prompt
    assert '"actionItems"' in prompt


@pytest.mark.asyncio
async def test_no_active_models_writes_nothing(db_session: AsyncSession, test_user):
    item = await create_test_item(db_session, test_user)
    await create_test_model(db_session, name="llama3", is_active=False)
    processor = _processor(ollama_transport({"llama3": VALID_ANALYSIS}))

    with pytest.raises(NoModelsAvailableError):
        await processor.process_item(db_session, item, ProcessingConfig(strategy=ProcessingStrategy.SINGLE_BEST))

    assert await _count(db_session, AIProcessingLog) == 0
    assert await _count(db_session, AIAnalysisResult) == 0


@pytest.mark.asyncio
async def test_critical_item_with_one_good_and_one_bad_model(db_session: AsyncSession, test_user):
    item = await create_test_item(db_session, test_user, importance="CRITICAL")
    await create_test_model(db_session, name="model-a")
    await create_test_model(db_session, name="model-b")
    processor = _processor(ollama_transport({
        "model-a": VALID_ANALYSIS,
        "model-b": "I am not JSON at all",
    }))
    config = ProcessingConfig(strategy=strategy_for_importance(item.importance))

    result = await processor.process_item(db_session, item, config)

    assert len(result.insights) == 1
    insight = result.insights[0]
    assert insight.title == "Analysis by model-a"
    assert insight.content["summary"] == "Ship the release"
    assert insight.processing_strategy == "ALL_ENCOMPASSING"
    assert insight.is_visible_in_overview is True

    levels = [log.log_level for log in result.logs]
    assert levels == ["INFO", "IMPORTANT", "INFO", "CRITICAL"]
    assert result.logs[1].details == {
        "kind": "succeeded",
        "summary": "Ship the release",
        "risk_count": 1,
        "action_item_count": 2,
    }
    failure = result.logs[3]
    assert failure.message == "Failed to parse response from model-b"
    assert failure.details["kind"] == "parse_failure"
    assert failure.details["raw_response"] == "I am not JSON at all"

    assert await _count(db_session, AIProcessingLog) == 4
    assert await _count(db_session, AIAnalysisResult) == 1


@pytest.mark.asyncio
async def test_model_error_is_logged_and_processing_continues(db_session: AsyncSession, test_user):
    item = await create_test_item(db_session, test_user)
    await create_test_model(db_session, name="broken")
    await create_test_model(db_session, name="healthy")
    processor = _processor(ollama_transport({"broken": "HTTP 500", "healthy": VALID_ANALYSIS}))

    result = await processor.process_item(
        db_session, item, ProcessingConfig(strategy=ProcessingStrategy.SINGLE_BEST)
    )

    assert len(result.insights) == 1
    error_log = result.logs[1]
    assert error_log.log_level == "CRITICAL"
    assert error_log.message.startswith("Error processing with broken")
    assert error_log.details["kind"] == "model_error"
    assert error_log.details["error_type"] == "UpstreamError"
    assert result.logs[0].details == {"kind": "started", "strategy": "SINGLE_BEST"}


@pytest.mark.asyncio
async def test_requested_models_narrow_selection_and_parameters_overlay(db_session: AsyncSession, test_user):
    item = await create_test_item(db_session, test_user, importance="HIGH")
    await create_test_model(db_session, name="llama3", parameters={"temperature": 0.7, "num_ctx": 2048})
    await create_test_model(db_session, name="mistral")
    transport = ollama_transport({"llama3": VALID_ANALYSIS, "mistral": VALID_ANALYSIS})
    processor = _processor(transport)

    result = await processor.process_item(db_session, item, ProcessingConfig(
        strategy=ProcessingStrategy.MULTI_MODEL_SELECTIVE,
        models=["llama3"],
        parameters={"temperature": 0.1},
    ))

    assert [i.title for i in result.insights] == ["Analysis by llama3"]
    assert len(transport.requests) == 1
    body = transport.requests[0]
    assert body["model"] == "llama3"
    assert body["temperature"] == 0.1
    assert body["num_ctx"] == 2048


@pytest.mark.asyncio
async def test_fenced_completion_produces_insight(db_session: AsyncSession, test_user):
    item = await create_test_item(db_session, test_user)
    await create_test_model(db_session, name="llama3")
    processor = _processor(ollama_transport({"llama3": f"```json\n{VALID_ANALYSIS}\n```"}))

    result = await processor.process_item(
        db_session, item, ProcessingConfig(strategy=ProcessingStrategy.SINGLE_BEST)
    )

    assert len(result.insights) == 1
