"""Domain models for content items, moderation rules, analyses, and stats."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from contentguard.errors import ValidationError


def utcnow() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ContentType(str, Enum):
    """Kind of submitted content."""

    text = "text"
    image = "image"
    video = "video"
    news = "news"
    other = "other"


class ContentCategory(str, Enum):
    """Classifier output categories."""

    hate_speech = "hate_speech"
    spam = "spam"
    harassment = "harassment"
    explicit = "explicit"
    safe = "safe"


# "safe" is never governed by a rule
RULED_CATEGORIES: tuple[ContentCategory, ...] = tuple(
    c for c in ContentCategory if c is not ContentCategory.safe
)


class ContentStatus(str, Enum):
    """Moderation status of an analysis."""

    pending = "pending"
    reviewed = "reviewed"
    removed = "removed"
    approved = "approved"


class AutoAction(str, Enum):
    """What a triggered rule does with the content."""

    flag_for_review = "flag_for_review"
    auto_remove = "auto_remove"
    none = "none"


def _enum_dict(obj: Any) -> dict[str, Any]:
    return {
        k: (v.value if isinstance(v, Enum) else v)
        for k, v in asdict(obj).items()
    }


def _coerce(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"Invalid {field_name} '{value}'; expected one of: {allowed}"
        ) from None


def _check_percent(value: Any, field_name: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer, got {value!r}")
    if not 0 <= value <= 100:
        raise ValidationError(f"{field_name} must be between 0 and 100, got {value}")
    return value


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


@dataclass
class ContentSubmission:
    """A request to ingest a new piece of content."""

    type: ContentType
    content: str
    content_id: str
    user_id: str = "system"
    source: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        """Raise :class:`ValidationError` if the submission is malformed."""
        self.type = _coerce(ContentType, self.type, "content type")
        if not isinstance(self.content, str) or not self.content.strip():
            raise ValidationError("content must be a non-empty string")
        if not isinstance(self.content_id, str) or not self.content_id.strip():
            raise ValidationError("content_id must be a non-empty string")
        if not isinstance(self.user_id, str) or not self.user_id:
            raise ValidationError("user_id must be a non-empty string")
        if self.metadata is None:
            self.metadata = {}
        if not isinstance(self.metadata, dict):
            raise ValidationError("metadata must be a mapping")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentSubmission:
        """Build a submission from a loosely-typed mapping."""
        try:
            return cls(
                type=data["type"],
                content=data["content"],
                content_id=data["content_id"],
                user_id=data.get("user_id") or "system",
                source=data.get("source") or "",
                metadata=dict(data.get("metadata") or {}),
            )
        except KeyError as exc:
            raise ValidationError(f"Missing required field: {exc.args[0]}") from None


@dataclass(frozen=True)
class ContentItem:
    """A persisted content item. Immutable once created."""

    id: int
    content_id: str
    type: ContentType
    content: str
    user_id: str = "system"
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.type, ContentType):
            object.__setattr__(self, "type", ContentType(self.type))
        if not self.created_at:
            object.__setattr__(self, "created_at", utcnow())

    @property
    def title(self) -> str:
        return str((self.metadata or {}).get("title") or "")

    def to_dict(self) -> dict[str, Any]:
        return _enum_dict(self)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass
class ModerationRule:
    """A per-category moderation rule."""

    name: str = ""
    description: str = ""
    category: ContentCategory = ContentCategory.spam
    sensitivity: int = 50  # minimum confidence that triggers the rule
    auto_action: AutoAction = AutoAction.flag_for_review
    active: bool = True
    icon: str = "ri-spam-2-line"
    id: int = 0
    created_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.category, str) and not isinstance(self.category, ContentCategory):
            self.category = _coerce(ContentCategory, self.category, "category")
        if isinstance(self.auto_action, str) and not isinstance(self.auto_action, AutoAction):
            self.auto_action = _coerce(AutoAction, self.auto_action, "auto_action")

    def validate(self) -> None:
        """Raise :class:`ValidationError` if the rule violates its invariants."""
        self.category = _coerce(ContentCategory, self.category, "category")
        if self.category is ContentCategory.safe:
            raise ValidationError("Rules cannot target the 'safe' category")
        self.auto_action = _coerce(AutoAction, self.auto_action, "auto_action")
        _check_percent(self.sensitivity, "sensitivity")
        if not isinstance(self.active, bool):
            raise ValidationError("active must be a boolean")
        if not self.name:
            raise ValidationError("Rule name is required")

    def to_dict(self) -> dict[str, Any]:
        return _enum_dict(self)


# Fields a moderator may change on an existing rule
MUTABLE_RULE_FIELDS = frozenset(
    {"name", "description", "sensitivity", "auto_action", "active", "icon"}
)


# ---------------------------------------------------------------------------
# Analyses
# ---------------------------------------------------------------------------


@dataclass
class AnalysisResult:
    """Outcome of classifying one content item.

    Only ``status`` changes after creation, and only through a moderator
    action.
    """

    content_id: int = 0  # store id of the ContentItem
    category: ContentCategory = ContentCategory.safe
    confidence: int = 0
    flagged: bool = False
    status: ContentStatus = ContentStatus.pending
    ai_data: dict[str, Any] = field(default_factory=dict)
    id: int = 0
    created_at: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.category, ContentCategory):
            self.category = ContentCategory(self.category)
        if not isinstance(self.status, ContentStatus):
            self.status = ContentStatus(self.status)

    def to_dict(self) -> dict[str, Any]:
        return _enum_dict(self)


def parse_status(value: Any) -> ContentStatus:
    """Return *value* as a :class:`ContentStatus` or raise ValidationError."""
    return _coerce(ContentStatus, value, "status")


def check_confidence(value: Any) -> int:
    return _check_percent(value, "confidence")


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass
class AggregateStats:
    """Running moderation counters; only the latest row is meaningful."""

    total_content: int = 0
    flagged_content: int = 0
    ai_confidence: int = 0  # mean classifier confidence
    response_time: int = 0  # smoothed classification latency (ms)
    analyzed_content: int = 0
    confidence_sum: int = 0
    id: int = 0
    date: str = ""

    def __post_init__(self) -> None:
        if not self.date:
            self.date = utcnow()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
