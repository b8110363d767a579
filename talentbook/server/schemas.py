"""
Wire schemas for the sync API

Field names are snake_case in Python and camelCase on the wire.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from ..constants import (
    CATEGORY_PLACEHOLDER_ID, TALENT_PLACEHOLDER_ID,
    Gender, Language, PdfTemplate, ProjectPhase, ProjectStatus,
    SortBy, SortOrder, ThemeColor, ViewMode,
)


def _check_choice(choices, value):
    if value is not None and not choices.is_valid(value):
        raise ValueError(f"must be one of {choices.all()}")
    return value


def _parse_date(value):
    """Accept plain YYYY-MM-DD dates where a datetime is expected"""
    if isinstance(value, str) and len(value) == 10:
        return datetime.combine(date.fromisoformat(value), datetime.min.time())
    return value


class WireModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# Push payload

class CategoryIn(WireModel):
    od_id: Optional[str] = None
    name: str
    name_ar: Optional[str] = None
    order: int = 0


class TalentIn(WireModel):
    od_id: str
    category_id: int = CATEGORY_PLACEHOLDER_ID
    category_od_id: Optional[str] = None
    name: str
    gender: str
    profile_photo: Optional[str] = None
    photos: Optional[List[str]] = Field(default_factory=list)
    phone_numbers: Optional[List[str]] = Field(default_factory=list)
    social_media: Optional[Dict[str, Any]] = None
    price_per_project: Decimal = Decimal("0")
    currency: str = "KWD"
    notes: Optional[str] = None
    custom_fields: Optional[Dict[str, Any]] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    tags: Optional[List[str]] = None
    is_favorite: bool = False

    @field_validator("gender")
    @classmethod
    def _check_gender(cls, value):
        return _check_choice(Gender, value)


class ProjectIn(WireModel):
    od_id: str
    name: str
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: str = ProjectStatus.DRAFT
    talents: Optional[List[Dict[str, Any]]] = Field(default_factory=list)
    profit_margin_percent: Decimal = Decimal("15")
    currency: str = "KWD"
    pdf_template: Optional[str] = None
    phase: Optional[str] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    total_paid: Optional[Decimal] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value):
        return _parse_date(value)

    @field_validator("status")
    @classmethod
    def _check_status(cls, value):
        return _check_choice(ProjectStatus, value)

    @field_validator("pdf_template")
    @classmethod
    def _check_pdf_template(cls, value):
        return _check_choice(PdfTemplate, value)

    @field_validator("phase")
    @classmethod
    def _check_phase(cls, value):
        return _check_choice(ProjectPhase, value)


class BookingIn(WireModel):
    od_id: str
    talent_id: int = TALENT_PLACEHOLDER_ID
    talent_od_id: Optional[str] = None
    title: str
    location: Optional[str] = None
    start_date: datetime
    end_date: datetime
    all_day: bool = False
    notes: Optional[str] = None
    project_od_id: Optional[str] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value):
        return _parse_date(value)


class SettingsIn(WireModel):
    monthly_reminder_enabled: Optional[bool] = None
    reminder_day_of_month: Optional[int] = Field(default=None, ge=1, le=28)
    default_profit_margin: Optional[Decimal] = None
    default_currency: Optional[str] = None
    last_reminder_date: Optional[datetime] = None
    view_mode: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None
    dark_mode: Optional[bool] = None
    theme_color: Optional[str] = None
    language: Optional[str] = None
    whatsapp_message: Optional[str] = None

    @field_validator("view_mode")
    @classmethod
    def _check_view_mode(cls, value):
        return _check_choice(ViewMode, value)

    @field_validator("sort_by")
    @classmethod
    def _check_sort_by(cls, value):
        return _check_choice(SortBy, value)

    @field_validator("sort_order")
    @classmethod
    def _check_sort_order(cls, value):
        return _check_choice(SortOrder, value)

    @field_validator("theme_color")
    @classmethod
    def _check_theme_color(cls, value):
        return _check_choice(ThemeColor, value)

    @field_validator("language")
    @classmethod
    def _check_language(cls, value):
        return _check_choice(Language, value)


class SyncPushRequest(WireModel):
    talents: Optional[List[TalentIn]] = None
    projects: Optional[List[ProjectIn]] = None
    categories: Optional[List[CategoryIn]] = None
    bookings: Optional[List[BookingIn]] = None
    settings: Optional[SettingsIn] = None


class SyncPushResponse(WireModel):
    talents: int
    projects: int
    categories: int
    bookings: int
    settings: bool
    last_sync_at: datetime


# Pull / stats responses

class CategoryOut(CategoryIn):
    id: int


class TalentOut(TalentIn):
    id: int
    last_photo_update: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectOut(ProjectIn):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingOut(BookingIn):
    id: int
    project_id: Optional[int] = None


class SettingsOut(SettingsIn):
    updated_at: Optional[datetime] = None


class SyncData(WireModel):
    talents: List[TalentOut]
    projects: List[ProjectOut]
    categories: List[CategoryOut]
    bookings: List[BookingOut]
    settings: Optional[SettingsOut] = None
    last_sync_at: datetime


class CategoryCount(WireModel):
    category_id: int
    category_name: str
    count: int


class GenderCount(WireModel):
    male: int
    female: int


class StatsResponse(WireModel):
    total_talents: int
    total_projects: int
    active_projects: int
    completed_projects: int
    total_revenue: float
    total_profit: float
    talents_by_category: List[CategoryCount]
    talents_by_gender: GenderCount
    average_talent_price: float
    top_rated_talents: List[TalentOut]
    recent_projects: List[ProjectOut]
