from datetime import date, datetime
from typing import Annotated, ClassVar, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for every wire model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PatchModel(ApiModel):
    """Base for PATCH bodies.

    A key missing from the body leaves the column untouched, an explicit
    null clears it (nullable fields only) and a value sets it. Subclasses
    list their nullable fields in NULLABLE; null on any other field is a
    validation error.
    """

    NULLABLE: ClassVar[frozenset] = frozenset()

    @model_validator(mode="after")
    def _reject_null_for_required_columns(self):
        for name in self.model_fields_set:
            if getattr(self, name) is None and name not in self.NULLABLE:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict:
        """Only the fields the caller actually sent, keyed by column name."""
        return self.model_dump(exclude_unset=True)


TrimmedLabel = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
MoodTag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=30)]
BlobKey = Annotated[str, StringConstraints(min_length=1, max_length=1024)]
Dimension = Annotated[int, Field(ge=1, le=20000)]

DATE_ONLY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
HEX_COLOR_PATTERN = r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$"

# ============================================
# Page element enums
# ============================================

StickerKind = Literal[
    "heart", "star", "smile", "sparkle", "flower",
    "sun", "moon", "cloud", "rainbow", "check",
    "music", "coffee", "camera", "balloon", "gift",
    "party", "tape", "thumbsUp", "fire", "leaf",
]
TextFont = Literal["hand", "script", "marker", "print", "justAnotherHand"]
NoteColor = Literal["yellow", "pink", "blue", "purple"]
MediaKind = Literal["photo"]
CouponStatus = Literal["ACTIVE", "REDEEMED", "EXPIRED"]
Provider = Literal["google", "apple"]


# ============================================
# Auth Schemas
# ============================================

class AuthVerifyRequest(ApiModel):
    provider: Provider
    id_token: str = Field(..., min_length=20)


class UserSummary(ApiModel):
    id: str
    email: str


class PushTokenRegister(ApiModel):
    token: Optional[str] = Field(..., min_length=10, max_length=1024)


# ============================================
# Details Schemas (scrapbooks and pages)
# ============================================

class DetailsPatch(PatchModel):
    NULLABLE: ClassVar[frozenset] = frozenset({"date", "place", "place_id", "mood_tags", "review"})

    date: Optional[str] = Field(None, pattern=DATE_ONLY_PATTERN)
    place: Optional[TrimmedLabel] = None
    place_id: Optional[TrimmedLabel] = None
    mood_tags: Optional[Annotated[List[MoodTag], Field(max_length=24)]] = None
    review: Optional[str] = Field(None, max_length=2000)

    @field_validator("date")
    @classmethod
    def _real_calendar_date(cls, value):
        if value is not None:
            date.fromisoformat(value)
        return value

    def column_changes(self) -> dict:
        """Map the patch onto details_* columns.

        Clearing place without mentioning placeId also clears placeId, so a
        stale place id never outlives the place it described.
        """
        changes = self.changes()
        if "place" in changes and changes["place"] is None and "place_id" not in changes:
            changes["place_id"] = None
        return {f"details_{key}": value for key, value in changes.items()}


class DetailsResponse(ApiModel):
    date: Optional[str] = None
    place: Optional[str] = None
    place_id: Optional[str] = None
    mood_tags: Optional[List[str]] = None
    review: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "DetailsResponse":
        raw_date = row.get("details_date")
        return cls(
            date=str(raw_date)[:10] if raw_date else None,
            place=row.get("details_place"),
            place_id=row.get("details_place_id"),
            mood_tags=row.get("details_mood_tags"),
            review=row.get("details_review"),
        )

    @staticmethod
    def row_has_any(row: dict) -> bool:
        return bool(
            row.get("details_date")
            or row.get("details_place")
            or row.get("details_place_id")
            or row.get("details_mood_tags")
            or row.get("details_review")
        )


# ============================================
# Scrapbook Schemas
# ============================================

class ScrapbookCreate(ApiModel):
    relationship_id: str
    title: TrimmedLabel
    cover_blob_key: Optional[BlobKey] = None
    cover_width: Optional[Dimension] = None
    cover_height: Optional[Dimension] = None


class CoverResponse(ApiModel):
    blob_key: str
    width: Optional[int] = None
    height: Optional[int] = None
    url: str
    expires_at: Optional[datetime] = None


class ScrapbookResponse(ApiModel):
    id: str
    relationship_id: str
    title: str
    created_by_user_id: Optional[str] = None
    cover: Optional[CoverResponse] = None
    details: Optional[DetailsResponse] = None
    created_at: datetime
    updated_at: datetime


class ScrapbookCreatedResponse(ApiModel):
    id: str
    relationship_id: str
    title: str
    cover_blob_key: Optional[str] = None
    cover_width: Optional[int] = None
    cover_height: Optional[int] = None
    created_at: datetime
    updated_at: datetime


# ============================================
# Page Schemas
# ============================================

class PageMediaCreate(ApiModel):
    blob_key: BlobKey
    kind: MediaKind
    width: Dimension
    height: Dimension
    x: float = Field(0, ge=0, le=1)
    y: float = Field(0, ge=0, le=1)
    scale: float = Field(1, ge=0.25, le=4)


class PageMediaPatch(PatchModel):
    x: Optional[float] = Field(None, ge=0, le=1)
    y: Optional[float] = Field(None, ge=0, le=1)
    scale: Optional[float] = Field(None, ge=0.25, le=4)


class PageMediaResponse(ApiModel):
    id: str
    page_id: Optional[str] = None
    kind: str
    blob_key: str
    created_by_user_id: str
    url: Optional[str] = None
    expires_at: Optional[datetime] = None
    width: int
    height: int
    x: float
    y: float
    scale: float
    created_at: datetime


class PageResponse(ApiModel):
    id: str
    scrapbook_id: Optional[str] = None
    page_index: int
    details: Optional[DetailsResponse] = None
    media: List[PageMediaResponse] = []
    created_at: datetime
    updated_at: datetime


# ============================================
# Sticker / Text / Note Schemas
# ============================================

class StickerCreate(ApiModel):
    kind: StickerKind
    x: float = Field(0, ge=0, le=1)
    y: float = Field(0, ge=0, le=1)
    scale: float = Field(1, ge=0.25, le=4)
    rotation: float = Field(0, ge=-3600, le=3600)


class StickerPatch(PatchModel):
    kind: Optional[StickerKind] = None
    x: Optional[float] = Field(None, ge=0, le=1)
    y: Optional[float] = Field(None, ge=0, le=1)
    scale: Optional[float] = Field(None, ge=0.25, le=4)
    rotation: Optional[float] = Field(None, ge=-3600, le=3600)


class StickerResponse(ApiModel):
    id: str
    created_by_user_id: str
    kind: str
    x: float
    y: float
    scale: float
    rotation: float
    created_at: datetime
    updated_at: datetime


class TextCreate(ApiModel):
    text: str = Field("Text", max_length=2000)
    font: TextFont = "hand"
    color: str = Field("#2E2A27", pattern=HEX_COLOR_PATTERN)
    x: float = Field(0, ge=-2, le=3)
    y: float = Field(0, ge=-2, le=3)
    scale: float = Field(1, ge=0.25, le=6)
    rotation: float = Field(0, ge=-3600, le=3600)


class TextPatch(PatchModel):
    text: Optional[str] = Field(None, max_length=2000)
    font: Optional[TextFont] = None
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    x: Optional[float] = Field(None, ge=-2, le=3)
    y: Optional[float] = Field(None, ge=-2, le=3)
    scale: Optional[float] = Field(None, ge=0.25, le=6)
    rotation: Optional[float] = Field(None, ge=-3600, le=3600)


class TextResponse(ApiModel):
    id: str
    created_by_user_id: str
    text: str
    font: str
    color: str
    x: float
    y: float
    scale: float
    rotation: float
    created_at: datetime
    updated_at: datetime


class NoteCreate(ApiModel):
    text: str = Field("", max_length=5000)
    color: NoteColor = "yellow"
    x: float = Field(0, ge=0, le=1)
    y: float = Field(0, ge=0, le=1)


class NotePatch(PatchModel):
    text: Optional[str] = Field(None, max_length=5000)
    color: Optional[NoteColor] = None
    x: Optional[float] = Field(None, ge=0, le=1)
    y: Optional[float] = Field(None, ge=0, le=1)


class NoteResponse(ApiModel):
    id: str
    text: str
    color: str
    x: float
    y: float
    created_at: datetime
    updated_at: datetime


# ============================================
# Coupon Schemas
# ============================================

class CouponCreate(ApiModel):
    relationship_id: str
    recipient_user_id: str
    title: Annotated[str, StringConstraints(min_length=1, max_length=200)]
    description: Optional[str] = Field(None, max_length=10000)
    template_id: Annotated[str, StringConstraints(min_length=1, max_length=200)]
    expires_at: Optional[datetime] = None


class CouponResponse(ApiModel):
    id: str
    relationship_id: str
    issuer_user_id: str
    recipient_user_id: str
    title: str
    description: Optional[str] = None
    template_id: str
    expires_at: Optional[datetime] = None
    status: CouponStatus
    redeemed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


# ============================================
# Relationship Schemas
# ============================================

class MemberResponse(ApiModel):
    user_id: str
    email: Optional[str] = None
    role: str
    status: str
    created_at: Optional[datetime] = None


class MyMembership(ApiModel):
    role: str
    status: str


class RelationshipSummary(ApiModel):
    relationship_id: str
    created_at: Optional[datetime] = None
    my_membership: Optional[MyMembership] = None
    members: List[MemberResponse] = []


class InviteCreate(ApiModel):
    relationship_id: Optional[str] = None
    target_user_id: Optional[str] = None
    target_email: Optional[EmailStr] = None


class InviteResponse(ApiModel):
    code: str
    relationship_id: str
    target_user_id: Optional[str] = None
    target_email: Optional[str] = None
    expires_at: datetime
    created_at: Optional[datetime] = None


class JoinRequest(ApiModel):
    code: str = Field(..., min_length=6)


# ============================================
# Quest Schemas
# ============================================

class QuestSummary(ApiModel):
    title: str
    progress: int
    target: int
    completed: bool
    period_end: str


# ============================================
# Media / Entry Schemas
# ============================================

class UploadUrlRequest(ApiModel):
    relationship_id: str
    content_type: Optional[str] = Field(None, max_length=200)


class EntryCreate(ApiModel):
    title: TrimmedLabel
    occurred_at: Optional[datetime] = None
    date: Optional[str] = Field(None, pattern=DATE_ONLY_PATTERN)
    body: Optional[str] = Field(None, max_length=10000)

    @model_validator(mode="after")
    def _needs_a_time(self):
        if self.occurred_at is None and self.date is None:
            raise ValueError("Provide occurredAt or date")
        return self

    def resolved_occurred_at(self) -> datetime:
        if self.occurred_at is not None:
            return self.occurred_at
        return datetime.fromisoformat(f"{self.date}T00:00:00+00:00")


class EntryPatch(PatchModel):
    NULLABLE: ClassVar[frozenset] = frozenset({"body"})

    title: Optional[TrimmedLabel] = None
    occurred_at: Optional[datetime] = None
    date: Optional[str] = Field(None, pattern=DATE_ONLY_PATTERN)
    body: Optional[str] = Field(None, max_length=10000)

    def column_changes(self) -> dict:
        """Entry columns to write; a legacy date only applies without occurredAt."""
        changes = self.changes()
        legacy_date = changes.pop("date", None)
        if legacy_date and "occurred_at" not in changes:
            changes["occurred_at"] = datetime.fromisoformat(f"{legacy_date}T00:00:00+00:00")
        if "occurred_at" in changes:
            changes["occurred_at"] = changes["occurred_at"].isoformat()
        return changes


class EntryResponse(ApiModel):
    id: str
    relationship_id: str
    created_by_user_id: str
    title: str
    occurred_at: datetime
    body: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class EntryMediaCreate(ApiModel):
    blob_key: BlobKey
    kind: MediaKind
    width: Dimension
    height: Dimension


class EntryMediaResponse(ApiModel):
    id: str
    entry_id: str
    blob_key: str
    kind: str
    width: int
    height: int
    created_at: datetime
