# ==============================================================================
# Blog Engagement Domain Models
# ==============================================================================
"""
Pydantic models for visitor sessions, promotions and analytics aggregates.

These models are used for:
- Validating the visitor session blob read back from key-value storage
- Parsing promotion rows (and their display_rules JSON) from the remote store
- Carrying analytics aggregates, increments and enriched engagement events

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    Field,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_serializer,
    field_validator,
)


class EntityKind(str, Enum):
    """Trackable entity kinds."""

    POST = "post"
    PROMOTION = "promotion"


class ShowFrequency(str, Enum):
    """How often a promotion may be displayed to the same browser."""

    ONCE = "once"
    SESSION = "session"
    ALWAYS = "always"


class TargetAudience(str, Enum):
    """Which visitors a promotion targets."""

    ALL = "all"
    NEW_VISITORS = "new_visitors"
    RETURNING_VISITORS = "returning_visitors"


class EngagementType(str, Enum):
    """Engagement event types reported to the remote store."""

    VIEW = "view"
    LIKE = "like"
    SHARE = "share"
    COMMENT = "comment"
    CLICK = "click"
    CLOSE = "close"


def as_utc(value: Any) -> Any:
    """Coerce date-only strings and naive datetimes to UTC-aware datetimes."""
    if isinstance(value, str) and len(value) == 10:
        value = date.fromisoformat(value)
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ==============================================================================
# Visitor Session
# ==============================================================================


class VisitorSession(BaseModel):
    """
    Per-browser pseudo-identity with the entities already counted as viewed.

    Serialized with camelCase keys so the stored blob reads
    ``{id, createdAt, viewedPosts[], viewedPromotions[], lastActivity}``.

    Attributes:
        id: Opaque visitor token, regenerated whenever the session expires
        created_at: When the session was created
        viewed_posts: Post ids already counted in this session
        viewed_promotions: Promotion ids already counted in this session
        last_activity: Refreshed on every tracked interaction
    """

    id: str = Field(..., description="Visitor token")
    created_at: datetime = Field(..., alias="createdAt")
    viewed_posts: set[str] = Field(default_factory=set, alias="viewedPosts")
    viewed_promotions: set[str] = Field(default_factory=set, alias="viewedPromotions")
    last_activity: datetime = Field(..., alias="lastActivity")

    model_config = {"populate_by_name": True}

    @field_validator("created_at", "last_activity", mode="wrap")
    @classmethod
    def _utc_timestamps(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        return as_utc(handler(as_utc(value)))

    @field_validator("viewed_posts", "viewed_promotions", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return value if value is not None else set()

    @field_serializer("viewed_posts", "viewed_promotions")
    def _sorted_ids(self, ids: set[str]) -> list[str]:
        return sorted(ids)

    def viewed(self, kind: EntityKind) -> set[str]:
        """Return the view set for an entity kind."""
        if kind == EntityKind.POST:
            return self.viewed_posts
        return self.viewed_promotions

    def is_expired(self, now: datetime, timeout_seconds: float) -> bool:
        """Check whether the inactivity window has elapsed."""
        return (now - self.last_activity).total_seconds() >= timeout_seconds

    def to_storage(self) -> str:
        """Serialize to the JSON blob kept in durable storage."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_storage(cls, raw: str) -> "VisitorSession":
        """Deserialize from the JSON blob kept in durable storage."""
        return cls.model_validate_json(raw)


# ==============================================================================
# Promotions
# ==============================================================================


class DisplayRules(BaseModel):
    """
    Targeting rules stored as JSON on each promotion row.

    Missing keys fall back to the defaults below; ``delay_seconds`` stays None
    so the reveal schedule can apply its configured default.
    """

    pages: list[str] = Field(default_factory=list, description="Page paths or 'all'")
    delay_seconds: int | None = Field(None, description="Reveal delay in seconds")
    show_frequency: ShowFrequency = Field(ShowFrequency.SESSION)
    target_audience: TargetAudience = Field(TargetAudience.ALL)
    start_date: datetime | None = Field(None, description="Not shown before this time")
    end_date: datetime | None = Field(None, description="Not shown after this time")

    @field_validator("pages", mode="before")
    @classmethod
    def _null_pages(cls, value: Any) -> Any:
        return value if value is not None else []

    @field_validator("show_frequency", "target_audience", mode="before")
    @classmethod
    def _null_enum(cls, value: Any, info: ValidationInfo) -> Any:
        if value in (None, ""):
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("start_date", "end_date", mode="wrap")
    @classmethod
    def _utc_dates(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        if value is None or value == "":
            return None
        return as_utc(handler(as_utc(value)))


class Promotion(BaseModel):
    """A promotional popup as stored in the remote ``promotions`` table."""

    id: str | None = None
    title: str
    message: str = ""
    button_text: str = ""
    button_link: str = ""
    is_active: bool = False
    display_rules: DisplayRules = Field(default_factory=DisplayRules)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("display_rules", mode="before")
    @classmethod
    def _null_rules(cls, value: Any) -> Any:
        return value if value is not None else {}

    @field_validator("message", "button_text", "button_link", mode="before")
    @classmethod
    def _null_text(cls, value: Any) -> Any:
        return value if value is not None else ""

    @field_validator("created_at", "updated_at", mode="wrap")
    @classmethod
    def _utc_timestamps(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        return as_utc(handler(as_utc(value)))

    @property
    def show_frequency(self) -> ShowFrequency:
        return self.display_rules.show_frequency

    @classmethod
    def from_db_record(cls, record: dict) -> "Promotion":
        """Build a Promotion from a database row dict."""
        return cls.model_validate(record)

    def to_db_record(self) -> dict:
        """Convert to the column layout of the ``promotions`` table."""
        return {
            "title": self.title,
            "message": self.message,
            "button_text": self.button_text,
            "button_link": self.button_link,
            "is_active": self.is_active,
            "display_rules": self.display_rules.model_dump(mode="json", exclude_none=True),
        }


# ==============================================================================
# Analytics
# ==============================================================================


class PostAnalytics(BaseModel):
    """Remote-owned engagement aggregate for one blog post."""

    post_id: str
    views: int = 0
    unique_views: int = 0
    likes: int = 0
    shares: int = 0
    comments_count: int = 0
    engagement_rate: float = 0.0
    last_viewed: datetime | None = None

    @field_validator("post_id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value


class PromotionAnalytics(BaseModel):
    """Remote-owned engagement aggregate for one promotion."""

    promotion_id: str
    total_views: int = 0
    unique_views: int = 0
    total_clicks: int = 0
    unique_clicks: int = 0
    total_closes: int = 0
    click_through_rate: float = 0.0
    conversion_rate: float = 0.0

    @field_validator("promotion_id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value


class AnalyticsIncrement(BaseModel):
    """Counter deltas produced by a single engagement event."""

    views: int = 0
    unique_views: int = 0
    likes: int = 0
    shares: int = 0
    comments: int = 0
    clicks: int = 0
    unique_clicks: int = 0
    closes: int = 0

    @property
    def is_empty(self) -> bool:
        """True when the increment would not change any counter."""
        return not any(self.model_dump().values())


class EngagementEvent(BaseModel):
    """
    Enriched engagement payload appended to the remote event log.

    The fingerprint is a weak device heuristic used only for analytics.
    """

    entity_kind: EntityKind
    entity_id: str
    event_type: EngagementType
    visitor_id: str
    session_id: str | None = None
    fingerprint: str | None = None
    page: str | None = None
    referrer: str | None = None
    user_agent: str | None = None
    event_data: dict = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_db_record(self) -> dict:
        """Convert to the column layout of the ``engagement_events`` table."""
        return {
            "entity_kind": self.entity_kind.value,
            "entity_id": self.entity_id,
            "event_type": self.event_type.value,
            "visitor_id": self.visitor_id,
            "session_id": self.session_id,
            "fingerprint": self.fingerprint,
            "page": self.page,
            "referrer": self.referrer,
            "user_agent": self.user_agent,
            "event_data": self.event_data,
            "occurred_at": self.occurred_at,
        }


class SessionStart(BaseModel):
    """First contact of a visitor session, written once per session id."""

    session_id: str
    visitor_id: str
    user_agent: str | None = None
    referrer: str | None = None
    landing_page: str | None = None
    fingerprint: str | None = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("started_at", mode="wrap")
    @classmethod
    def _utc_start(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        return as_utc(handler(as_utc(value)))

    def to_db_record(self) -> dict:
        """Convert to the column layout of the ``visitor_sessions`` table."""
        return self.model_dump()


class AnalyticsSummary(BaseModel):
    """Dashboard totals across all post aggregates."""

    total_posts: int = 0
    total_views: int = 0
    total_unique_views: int = 0
    total_likes: int = 0
    total_shares: int = 0
    total_comments: int = 0
    avg_engagement_rate: float = 0.0


class PromotionSummary(BaseModel):
    """Dashboard totals across all promotion aggregates."""

    total_promotions: int = 0
    total_views: int = 0
    total_unique_views: int = 0
    total_clicks: int = 0
    total_unique_clicks: int = 0
    avg_click_through_rate: float = 0.0


class DeviceProfile(BaseModel):
    """Browser characteristics combined into the visitor fingerprint."""

    user_agent: str = ""
    language: str = ""
    screen_width: int = 0
    screen_height: int = 0
    timezone_offset: int = Field(0, description="Minutes behind UTC, as browsers report it")
    canvas_signature: str = Field("", description="Data URL of a rendered text sample")
