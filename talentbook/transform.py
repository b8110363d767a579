"""
Local record -> sync wire shape

Numbers leave as decimal strings so the server never sees binary floats.
Remote numeric ids for a talent's category and a booking's talent are not
known on the device: a placeholder id goes out together with the local id
(`categoryOdId`, `talentOdId`) and the server resolves it while upserting.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional

from .constants import (
    CATEGORY_PLACEHOLDER_ID, TALENT_PLACEHOLDER_ID,
    Gender, Language, PdfTemplate, ProjectPhase, ProjectStatus,
    SortBy, SortOrder, ThemeColor, ViewMode,
)
from .models import AppSettings, Category, Project, Talent, TalentBooking


class WireValidationError(ValueError):
    """A record holds a value the wire format cannot carry"""


def decimal_string(value) -> str:
    """500.0 -> "500", 12.5 -> "12.5", 0.1 -> "0.1" """
    try:
        number = Decimal(str(value))
    except InvalidOperation as e:
        raise WireValidationError(f"Invalid number {value!r}") from e
    if not number.is_finite():
        raise WireValidationError(f"Invalid number {value!r}; must be finite")
    if number == number.to_integral_value():
        return format(number.to_integral_value(), "f")
    return format(number.normalize(), "f")


def _choice(choices, value, field_name: str, nullable: bool = False):
    if value is None and nullable:
        return None
    if not choices.is_valid(value):
        raise WireValidationError(f"Invalid {field_name} {value!r}; expected one of {choices.all()}")
    return value


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def talent_to_wire(talent: Talent) -> Dict[str, Any]:
    return {
        "odId": talent.id,
        "categoryId": CATEGORY_PLACEHOLDER_ID,
        "categoryOdId": talent.category_id,
        "name": talent.name,
        "gender": _choice(Gender, talent.gender, "gender"),
        "profilePhoto": talent.profile_photo or None,
        "photos": list(talent.photos),
        "phoneNumbers": list(talent.phone_numbers),
        "socialMedia": talent.social_media.model_dump(by_alias=True, exclude_none=True),
        "pricePerProject": decimal_string(talent.price_per_project),
        "currency": talent.currency,
        "notes": talent.notes,
        "customFields": (
            talent.custom_fields.model_dump(by_alias=True, exclude_none=True)
            if talent.custom_fields else None
        ),
        "rating": talent.rating or None,
        "tags": list(talent.tags or []),
        "isFavorite": bool(talent.is_favorite),
    }


def project_to_wire(project: Project) -> Dict[str, Any]:
    return {
        "odId": project.id,
        "name": project.name,
        "description": project.description or None,
        "startDate": project.start_date or None,
        "endDate": project.end_date or None,
        "status": _choice(ProjectStatus, project.status, "status"),
        "talents": [pt.model_dump(by_alias=True, exclude_none=True) for pt in project.talents],
        "profitMarginPercent": decimal_string(project.profit_margin_percent),
        "currency": project.currency,
        "pdfTemplate": _choice(PdfTemplate, project.pdf_template, "pdfTemplate", nullable=True),
        "phase": _choice(ProjectPhase, project.phase, "phase", nullable=True),
        "clientName": project.client_name,
        "clientPhone": project.client_phone,
        "totalPaid": decimal_string(project.total_paid) if project.total_paid is not None else None,
    }


def category_to_wire(category: Category) -> Dict[str, Any]:
    return {
        "odId": category.id,
        "name": category.name,
        "nameAr": category.name_ar or None,
        "order": category.order or 0,
    }


def booking_to_wire(booking: TalentBooking) -> Dict[str, Any]:
    return {
        "odId": booking.id,
        "talentId": TALENT_PLACEHOLDER_ID,
        "talentOdId": booking.talent_id,
        "title": booking.title,
        "location": booking.location or None,
        "startDate": _iso(booking.start_date),
        "endDate": _iso(booking.end_date),
        "allDay": bool(booking.all_day),
        "notes": booking.notes or None,
        "projectOdId": booking.project_id or None,
    }


def settings_to_wire(settings: AppSettings) -> Dict[str, Any]:
    return {
        "monthlyReminderEnabled": settings.monthly_reminder_enabled,
        "reminderDayOfMonth": decimal_string(settings.reminder_day_of_month),
        "defaultProfitMargin": decimal_string(settings.default_profit_margin),
        "defaultCurrency": settings.default_currency,
        "lastReminderDate": _iso(settings.last_reminder_date),
        "viewMode": _choice(ViewMode, settings.view_mode, "viewMode"),
        "sortBy": _choice(SortBy, settings.sort_by, "sortBy"),
        "sortOrder": _choice(SortOrder, settings.sort_order, "sortOrder"),
        "darkMode": settings.dark_mode,
        "themeColor": _choice(ThemeColor, settings.theme_color, "themeColor"),
        "language": _choice(Language, settings.language, "language"),
        "whatsappMessage": settings.whatsapp_message,
    }


def build_push_payload(
    talents: Iterable[Talent] = (),
    projects: Iterable[Project] = (),
    categories: Iterable[Category] = (),
    bookings: Iterable[TalentBooking] = (),
    settings: Optional[AppSettings] = None,
) -> Dict[str, Any]:
    """
    One sync batch. Every record is converted before anything is sent, so an
    invalid record aborts the whole batch with WireValidationError.
    """
    payload = {
        "talents": [talent_to_wire(t) for t in talents],
        "projects": [project_to_wire(p) for p in projects],
        "categories": [category_to_wire(c) for c in categories],
        "bookings": [booking_to_wire(b) for b in bookings],
    }
    if settings is not None:
        payload["settings"] = settings_to_wire(settings)
    return payload
