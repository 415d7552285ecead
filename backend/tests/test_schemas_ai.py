"""
Tests for reading stored analysis content and log details.
"""

from datetime import datetime
from uuid import uuid4

from app.schemas.ai import (
    AIAnalysisResultResponse,
    AIProcessingLogResponse,
    OpaqueDetails,
    ParseFailureDetails,
    parse_analysis_content,
    parse_log_details,
)


def test_known_sections_keep_their_order():
    sections = parse_analysis_content({
        "summary": "Short version",
        "actionItems": ["Call Bob", {"title": "Book room", "description": "Big one"}],
        "risks": [{"level": "LOW", "description": "Bob is busy"}, "Room is taken"],
        "benefits": ["Faster", {"description": "Cheaper"}],
        "timeline": [{"phase": "1", "date": "2024-05-01", "description": "Kickoff"}],
    })

    assert [s.kind for s in sections] == ["summary", "action_items", "risks", "benefits", "timeline"]
    assert [a.title for a in sections[1].items] == ["Call Bob", "Book room"]
    assert sections[2].risks[1].description == "Room is taken"
    assert sections[3].benefits == ["Faster", "Cheaper"]
    assert sections[4].entries[0].phase == "1"


def test_unknown_and_malformed_sections_become_opaque():
    sections = parse_analysis_content({
        "mood": "optimistic",
        "risks": 42,
        "summary": ["not", "text"],
    })

    assert [(s.kind, s.key) for s in sections] == [
        ("opaque", "mood"),
        ("opaque", "risks"),
        ("opaque", "summary"),
    ]
    assert sections[1].value == 42


def test_non_object_content_is_opaque():
    sections = parse_analysis_content(["a", "b"])

    assert len(sections) == 1
    assert sections[0].kind == "opaque"
    assert sections[0].value == ["a", "b"]


def test_log_details_variants():
    parsed = parse_log_details({"kind": "parse_failure", "error": "bad json", "raw_response": "oops"})
    assert isinstance(parsed, ParseFailureDetails)
    assert parsed.chunk_error_count == 0

    for raw in ({"kind": "mystery"}, {"message": "legacy row"}, "plain string", None):
        fallback = parse_log_details(raw)
        assert isinstance(fallback, OpaqueDetails)
        assert fallback.data == raw


def test_response_models_read_stored_json():
    log = AIProcessingLogResponse(
        id=uuid4(),
        item_id=uuid4(),
        log_level="INFO",
        message="Started processing with llama3",
        details={"kind": "started", "strategy": "SINGLE_BEST"},
        timestamp=datetime.utcnow(),
    )
    insight = AIAnalysisResultResponse(
        id=uuid4(),
        item_id=uuid4(),
        title="Analysis by llama3",
        content={"summary": "All good"},
        processing_strategy="SINGLE_BEST",
        is_visible_in_overview=False,
        created_at=datetime.utcnow(),
    )

    assert log.details.kind == "started"
    assert insight.sections[0].kind == "summary"
    assert insight.sections[0].text == "All good"
