"""Pydantic models for API request/response serialization.

These models mirror the contentguard dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Content models
# ---------------------------------------------------------------------------


class SubmitContentRequest(BaseModel):
    """Body for POST /api/content."""

    type: str = Field(..., description="text, image, video, news, or other")
    content: str
    content_id: str = Field(..., description="Caller-supplied external id")
    user_id: str = "system"
    source: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class ContentItemResponse(BaseModel):
    """Mirrors contentguard.models.ContentItem."""

    id: int
    content_id: str
    type: str
    content: str
    user_id: str = "system"
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: str = ""


class RetryResponse(BaseModel):
    republished: int = 0
    remaining: int = 0


# ---------------------------------------------------------------------------
# Analysis models
# ---------------------------------------------------------------------------


class AnalysisResponse(BaseModel):
    """Mirrors contentguard.models.AnalysisResult, with its content attached."""

    id: int
    content_id: int
    category: str
    confidence: int
    flagged: bool
    status: str
    ai_data: dict[str, Any] = Field(default_factory=dict)
    created_at: str = ""
    content: Optional[ContentItemResponse] = None


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="pending, reviewed, removed, or approved")


# ---------------------------------------------------------------------------
# Rule models
# ---------------------------------------------------------------------------


class RuleResponse(BaseModel):
    """Mirrors contentguard.models.ModerationRule."""

    id: int
    name: str
    description: str = ""
    category: str
    sensitivity: int
    auto_action: str
    active: bool = True
    icon: str = ""
    created_at: str = ""


class CreateRuleRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    category: str
    sensitivity: int = Field(default=50, ge=0, le=100)
    auto_action: str = "flag_for_review"
    active: bool = True
    icon: str = "ri-spam-2-line"


class UpdateRuleRequest(BaseModel):
    """Partial rule update; category and id are fixed once created."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    sensitivity: Optional[int] = Field(default=None, ge=0, le=100)
    auto_action: Optional[str] = None
    active: Optional[bool] = None
    icon: Optional[str] = None


# ---------------------------------------------------------------------------
# Stats models
# ---------------------------------------------------------------------------


class StatsResponse(BaseModel):
    """Mirrors contentguard.models.AggregateStats."""

    id: int
    total_content: int = 0
    flagged_content: int = 0
    ai_confidence: int = 0
    response_time: int = 0
    analyzed_content: int = 0
    date: str = ""


class FetchNewsResponse(BaseModel):
    message: str
