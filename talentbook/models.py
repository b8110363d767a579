"""
Record types for local storage

Attributes are snake_case; the persisted JSON uses camelCase keys through
aliases so collections written by older clients load unchanged.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from .clock import ensure_utc
from .constants import (
    Gender, Language, PdfTemplate, ProjectPhase, ProjectStatus,
    SortBy, SortOrder, ThemeColor, ViewMode,
)


def _check_choice(choices, value, field_name):
    if value is not None and not choices.is_valid(value):
        raise ValueError(f"{field_name} must be one of {choices.all()}, got {value!r}")
    return value


class LocalRecord(BaseModel):
    """Base for every locally persisted record"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"

    def to_storage(self) -> dict:
        """JSON-ready dict using the persisted (camelCase) keys"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TimestampedRecord(LocalRecord):
    """Record with UTC creation time"""
    created_at: datetime

    @field_validator("created_at", "updated_at", "last_photo_update", "start_date", "end_date", check_fields=False)
    @classmethod
    def _normalize_datetime(cls, value):
        if isinstance(value, datetime):
            return ensure_utc(value)
        return value


class Category(LocalRecord):
    id: str
    name: str
    name_ar: Optional[str] = None
    order: int = 0


class SocialMedia(LocalRecord):
    instagram: Optional[str] = None
    tiktok: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    youtube: Optional[str] = None
    snapchat: Optional[str] = None
    other: Optional[str] = None


class TalentCustomFields(LocalRecord):
    height: Optional[str] = None  # e.g. "175 cm"
    weight: Optional[str] = None
    age: Optional[int] = None
    hair_color: Optional[str] = None
    eye_color: Optional[str] = None
    languages: Optional[List[str]] = None
    nationality: Optional[str] = None
    location: Optional[str] = None
    experience: Optional[str] = None


class Talent(TimestampedRecord):
    """A model, actor or influencer in the catalog"""
    id: str
    name: str
    category_id: str
    gender: str
    photos: List[str] = Field(default_factory=list)
    profile_photo: str = ""
    phone_numbers: List[str] = Field(default_factory=list)
    social_media: SocialMedia = Field(default_factory=SocialMedia)
    price_per_project: float = Field(default=0, ge=0, allow_inf_nan=False)
    currency: str = "KWD"
    notes: str = ""
    custom_fields: Optional[TalentCustomFields] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    tags: Optional[List[str]] = None
    is_favorite: Optional[bool] = None
    is_archived: Optional[bool] = None
    updated_at: Optional[datetime] = None
    last_photo_update: datetime

    @field_validator("gender")
    @classmethod
    def _check_gender(cls, value):
        return _check_choice(Gender, value, "gender")


class ProjectTalent(LocalRecord):
    """A talent line item inside a project"""
    talent_id: str
    custom_price: Optional[float] = Field(default=None, allow_inf_nan=False)  # overrides the talent's price for this project
    booking_id: Optional[str] = None
    notes: Optional[str] = None


class ProjectPayment(LocalRecord):
    id: str
    amount: float = Field(allow_inf_nan=False)
    date: str
    note: Optional[str] = None


class Project(TimestampedRecord):
    id: str
    name: str
    description: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: str = ProjectStatus.DRAFT
    talents: List[ProjectTalent] = Field(default_factory=list)
    profit_margin_percent: float = Field(default=15, allow_inf_nan=False)
    currency: str = "KWD"
    updated_at: datetime
    pdf_template: Optional[str] = None
    phase: Optional[str] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    payments: Optional[List[ProjectPayment]] = None
    total_paid: Optional[float] = Field(default=None, allow_inf_nan=False)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_date_is_none(cls, value):
        if value == "":
            return None
        if isinstance(value, datetime):
            return ensure_utc(value).isoformat()
        return value

    @field_validator("status")
    @classmethod
    def _check_status(cls, value):
        return _check_choice(ProjectStatus, value, "status")

    @field_validator("pdf_template")
    @classmethod
    def _check_pdf_template(cls, value):
        return _check_choice(PdfTemplate, value, "pdf_template")

    @field_validator("phase")
    @classmethod
    def _check_phase(cls, value):
        return _check_choice(ProjectPhase, value, "phase")


class TalentBooking(TimestampedRecord):
    """A calendar entry owned by one talent"""
    id: str
    talent_id: str
    title: str
    location: Optional[str] = None
    start_date: datetime
    end_date: datetime
    all_day: bool = False
    notes: Optional[str] = None
    project_id: Optional[str] = None


class MessageTemplate(LocalRecord):
    id: str
    name: str
    name_ar: Optional[str] = None
    content: str
    content_ar: Optional[str] = None
    type: str = "custom"


class AppSettings(LocalRecord):
    """Process-wide settings; a single record, not a collection"""
    monthly_reminder_enabled: bool = True
    reminder_day_of_month: int = Field(default=1, ge=1, le=28)
    default_profit_margin: float = Field(default=15, allow_inf_nan=False)
    default_currency: str = "KWD"
    last_reminder_date: Optional[datetime] = None
    view_mode: str = ViewMode.GRID
    sort_by: str = SortBy.NAME
    sort_order: str = SortOrder.ASC
    dark_mode: bool = False
    theme_color: str = ThemeColor.INDIGO
    language: str = Language.ENGLISH
    whatsapp_message: Optional[str] = None
    message_templates: Optional[List[MessageTemplate]] = None

    @field_validator("last_reminder_date")
    @classmethod
    def _normalize_reminder_date(cls, value):
        if isinstance(value, datetime):
            return ensure_utc(value)
        return value

    @field_validator("view_mode")
    @classmethod
    def _check_view_mode(cls, value):
        return _check_choice(ViewMode, value, "view_mode")

    @field_validator("sort_by")
    @classmethod
    def _check_sort_by(cls, value):
        return _check_choice(SortBy, value, "sort_by")

    @field_validator("sort_order")
    @classmethod
    def _check_sort_order(cls, value):
        return _check_choice(SortOrder, value, "sort_order")

    @field_validator("theme_color")
    @classmethod
    def _check_theme_color(cls, value):
        return _check_choice(ThemeColor, value, "theme_color")

    @field_validator("language")
    @classmethod
    def _check_language(cls, value):
        return _check_choice(Language, value, "language")
