"""
AI model, processing log and analysis result schemas.

Analysis content and log details are stored as free-form JSON. On the way out
they are read into tagged unions so clients can switch on ``kind``.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import (
    BaseModel,
    Field,
    StrictBool,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from app.models.ai_processing import LogLevel, ProcessingStrategy
from app.models.model_registry import ModelType


# ---------------------------------------------------------------------------
# Analysis content
# ---------------------------------------------------------------------------

class Risk(BaseModel):
    level: Optional[str] = None
    description: str = ""


class ActionItem(BaseModel):
    title: str = ""
    description: Optional[str] = None


class TimelineEntry(BaseModel):
    phase: Optional[str] = None
    date: Optional[str] = None
    description: str = ""


class SummarySection(BaseModel):
    kind: Literal["summary"] = "summary"
    text: str


class RiskListSection(BaseModel):
    kind: Literal["risks"] = "risks"
    risks: List[Risk]


class ActionListSection(BaseModel):
    kind: Literal["action_items"] = "action_items"
    items: List[ActionItem]


class BenefitListSection(BaseModel):
    kind: Literal["benefits"] = "benefits"
    benefits: List[str]


class TimelineSection(BaseModel):
    kind: Literal["timeline"] = "timeline"
    entries: List[TimelineEntry]


class OpaqueSection(BaseModel):
    """Anything the model returned that does not fit a known shape."""
    kind: Literal["opaque"] = "opaque"
    key: str
    value: Any = None


AnalysisSection = Annotated[
    Union[
        SummarySection,
        RiskListSection,
        ActionListSection,
        BenefitListSection,
        TimelineSection,
        OpaqueSection,
    ],
    Field(discriminator="kind"),
]


def _as_text_entries(values: Any, text_key: str) -> Any:
    """Promote bare strings in a list to ``{text_key: value}`` objects."""
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, list):
        return values
    return [{text_key: v} if isinstance(v, str) else v for v in values]


def _benefit_text(value: Any) -> Any:
    if isinstance(value, dict):
        return value.get("description") or value.get("title") or value.get("text")
    return value


def parse_analysis_content(content: Any) -> List[Union[SummarySection, RiskListSection, ActionListSection, BenefitListSection, TimelineSection, OpaqueSection]]:
    """Split stored analysis content into typed sections, keeping key order."""
    if not isinstance(content, dict):
        return [OpaqueSection(key="content", value=content)]

    sections = []
    for key, value in content.items():
        try:
            if key == "summary" and isinstance(value, str):
                sections.append(SummarySection(text=value))
            elif key == "risks":
                sections.append(RiskListSection(risks=_as_text_entries(value, "description")))
            elif key in ("actionItems", "action_items"):
                sections.append(ActionListSection(items=_as_text_entries(value, "title")))
            elif key == "benefits":
                benefits = value if isinstance(value, list) else [value]
                sections.append(BenefitListSection(benefits=[_benefit_text(b) for b in benefits]))
            elif key == "timeline":
                sections.append(TimelineSection(entries=_as_text_entries(value, "description")))
            else:
                sections.append(OpaqueSection(key=key, value=value))
        except ValidationError:
            sections.append(OpaqueSection(key=key, value=value))
    return sections


# ---------------------------------------------------------------------------
# Log details
# ---------------------------------------------------------------------------

class StartedDetails(BaseModel):
    kind: Literal["started"] = "started"
    strategy: ProcessingStrategy


class SucceededDetails(BaseModel):
    kind: Literal["succeeded"] = "succeeded"
    summary: Optional[str] = None
    risk_count: int = 0
    action_item_count: int = 0


class ParseFailureDetails(BaseModel):
    kind: Literal["parse_failure"] = "parse_failure"
    error: str
    raw_response: str
    chunk_error_count: int = 0


class ModelErrorDetails(BaseModel):
    kind: Literal["model_error"] = "model_error"
    error: str
    error_type: str


class OpaqueDetails(BaseModel):
    kind: Literal["opaque"] = "opaque"
    data: Any = None


LogDetails = Annotated[
    Union[StartedDetails, SucceededDetails, ParseFailureDetails, ModelErrorDetails, OpaqueDetails],
    Field(discriminator="kind"),
]

_log_details_adapter = TypeAdapter(LogDetails)


def parse_log_details(raw: Any) -> Union[StartedDetails, SucceededDetails, ParseFailureDetails, ModelErrorDetails, OpaqueDetails]:
    """Read stored log details, falling back to the opaque variant."""
    try:
        return _log_details_adapter.validate_python(raw)
    except ValidationError:
        return OpaqueDetails(data=raw)


# ---------------------------------------------------------------------------
# Responses and requests
# ---------------------------------------------------------------------------

class AIProcessingLogResponse(BaseModel):
    id: UUID
    item_id: UUID
    model_id: Optional[UUID] = None
    log_level: LogLevel
    message: str
    details: LogDetails
    timestamp: datetime

    class Config:
        from_attributes = True

    @field_validator("details", mode="before")
    @classmethod
    def read_details(cls, v):
        if isinstance(v, BaseModel):
            return v.model_dump()
        return parse_log_details(v).model_dump()


class AIAnalysisResultResponse(BaseModel):
    id: UUID
    item_id: UUID
    model_id: Optional[UUID] = None
    title: str
    content: Any
    sections: List[AnalysisSection] = Field(default_factory=list)
    processing_strategy: ProcessingStrategy
    is_visible_in_overview: bool
    created_at: datetime

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def fill_sections(self):
        if not self.sections:
            self.sections = parse_analysis_content(self.content)
        return self


class ProcessRequest(BaseModel):
    """Body of a processing request. An empty model list means all active models."""
    models: List[str] = Field(default_factory=list)
    parameters: Dict[str, Any] = Field(default_factory=dict)


class ProcessingConfig(BaseModel):
    strategy: ProcessingStrategy
    models: List[str] = Field(default_factory=list)
    parameters: Dict[str, Any] = Field(default_factory=dict)


class ProcessingResultResponse(BaseModel):
    strategy: ProcessingStrategy
    insights: List[AIAnalysisResultResponse]
    logs: List[AIProcessingLogResponse]


class AIModelResponse(BaseModel):
    id: UUID
    name: str
    model_type: ModelType
    endpoint: Optional[str] = None
    is_active: bool
    parameters: Dict[str, Any] = Field(default_factory=dict)
    status: str = "unknown"  # online / offline / unknown, from the last discovery
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AIModelStatusUpdate(BaseModel):
    is_active: StrictBool = Field(..., alias="isActive")


class DiscoveredModelResponse(BaseModel):
    name: str
    is_active: bool
    status: str
