import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..constants import CATEGORY_PLACEHOLDER_ID, TALENT_PLACEHOLDER_ID, Gender, ProjectStatus
from ..costs import costs_from_prices
from . import models, schemas

logger = logging.getLogger(__name__)

# Columns the client may never set through a push
PROTECTED_FIELDS = {"id", "user_id", "od_id", "created_at", "updated_at"}


def update_model_fields(instance, data: Dict[str, Any], exclude_fields: set = None):
    """Copy data onto a row, skipping protected and unknown columns"""
    excluded = PROTECTED_FIELDS | (exclude_fields or set())
    for field, value in data.items():
        if field in excluded or not hasattr(instance, field):
            continue
        setattr(instance, field, value)


# User operations
def create_user(db: Session, api_token: str, name: str = None, email: str = None) -> models.User:
    user = models.User(api_token=api_token, name=name, email=email)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_user_by_token(db: Session, api_token: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.api_token == api_token).first()


def touch_user(db: Session, user: models.User):
    user.last_signed_in = datetime.now(timezone.utc)
    db.commit()


# Lookups by device id
def get_by_od_id(db: Session, model: Type, user_id: int, od_id: str):
    return db.query(model).filter(model.user_id == user_id, model.od_id == od_id).first()


def get_user_rows(db: Session, model: Type, user_id: int) -> List:
    return db.query(model).filter(model.user_id == user_id).order_by(model.id).all()


def upsert_by_od_id(db: Session, model: Type, user_id: int, data: Dict[str, Any]):
    """
    Insert or update the user's row with data["od_id"].

    A concurrent push may insert the same (user_id, od_id) between the lookup
    and the insert; the savepoint lets the unique constraint reject that
    insert and the row is updated instead.
    """
    od_id = data["od_id"]
    existing = get_by_od_id(db, model, user_id, od_id)
    if existing:
        update_model_fields(existing, data)
        return existing

    try:
        with db.begin_nested():
            row = model(user_id=user_id, od_id=od_id)
            update_model_fields(row, data)
            db.add(row)
    except IntegrityError:
        logger.info("%s %s inserted concurrently, updating instead", model.__tablename__, od_id)
        row = get_by_od_id(db, model, user_id, od_id)
        update_model_fields(row, data)
    return row


def replace_categories(db: Session, user_id: int, categories: List[schemas.CategoryIn]) -> Dict[str, int]:
    """Delete all of the user's categories and insert the pushed set; returns od_id -> row id"""
    db.query(models.Category).filter(models.Category.user_id == user_id).delete(synchronize_session=False)
    resolved = {}
    for category in categories:
        row = models.Category(user_id=user_id, **category.model_dump())
        db.add(row)
        db.flush()
        if row.od_id:
            resolved[row.od_id] = row.id
    return resolved


def _category_ids(db: Session, user_id: int) -> Dict[str, int]:
    return {
        row.od_id: row.id
        for row in get_user_rows(db, models.Category, user_id)
        if row.od_id
    }


def _od_id_map(db: Session, model: Type, user_id: int) -> Dict[str, int]:
    return {row.od_id: row.id for row in get_user_rows(db, model, user_id)}


def upsert_settings(db: Session, user_id: int, settings: schemas.SettingsIn) -> models.UserSettings:
    """Apply the pushed settings; an explicit null clears a nullable column"""
    row = db.query(models.UserSettings).filter(models.UserSettings.user_id == user_id).first()
    if row is None:
        row = models.UserSettings(user_id=user_id)
        db.add(row)
    columns = models.UserSettings.__table__.columns
    data = {
        name: value
        for name, value in settings.model_dump(exclude_unset=True).items()
        if value is not None or (name in columns and columns[name].nullable)
    }
    update_model_fields(row, data)
    return row


def sync_user_data(db: Session, user_id: int, push: schemas.SyncPushRequest) -> schemas.SyncPushResponse:
    """
    Apply one pushed batch for a user in a single transaction.

    Order: categories (full replace), talents, projects, bookings, settings.
    Placeholder foreign keys are resolved through the device ids sent along
    with them when the referenced row exists. Any failure rolls back the
    whole batch.
    """
    counts = {"talents": 0, "projects": 0, "categories": 0, "bookings": 0}
    try:
        if push.categories:
            category_ids = replace_categories(db, user_id, push.categories)
            counts["categories"] = len(push.categories)
        else:
            category_ids = _category_ids(db, user_id)

        if push.talents:
            for talent in push.talents:
                data = talent.model_dump()
                data["category_id"] = category_ids.get(talent.category_od_id, talent.category_id or CATEGORY_PLACEHOLDER_ID)
                upsert_by_od_id(db, models.Talent, user_id, data)
            counts["talents"] = len(push.talents)

        if push.projects:
            for project in push.projects:
                upsert_by_od_id(db, models.Project, user_id, project.model_dump())
            counts["projects"] = len(push.projects)

        if push.bookings:
            db.flush()
            talent_ids = _od_id_map(db, models.Talent, user_id)
            project_ids = _od_id_map(db, models.Project, user_id)
            for booking in push.bookings:
                data = booking.model_dump()
                data["talent_id"] = talent_ids.get(booking.talent_od_id, booking.talent_id or TALENT_PLACEHOLDER_ID)
                data["project_id"] = project_ids.get(booking.project_od_id)
                upsert_by_od_id(db, models.Booking, user_id, data)
            counts["bookings"] = len(push.bookings)

        if push.settings is not None:
            upsert_settings(db, user_id, push.settings)

        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Sync for user %s rolled back", user_id)
        raise

    logger.info("Synced user %s: %s", user_id, counts)
    return schemas.SyncPushResponse(
        **counts,
        settings=push.settings is not None,
        last_sync_at=datetime.now(timezone.utc),
    )


def get_all_user_data(db: Session, user_id: int) -> schemas.SyncData:
    settings = db.query(models.UserSettings).filter(models.UserSettings.user_id == user_id).first()
    return schemas.SyncData(
        talents=[schemas.TalentOut.model_validate(t) for t in get_user_rows(db, models.Talent, user_id)],
        projects=[schemas.ProjectOut.model_validate(p) for p in get_user_rows(db, models.Project, user_id)],
        categories=[schemas.CategoryOut.model_validate(c) for c in get_user_rows(db, models.Category, user_id)],
        bookings=[schemas.BookingOut.model_validate(b) for b in get_user_rows(db, models.Booking, user_id)],
        settings=schemas.SettingsOut.model_validate(settings) if settings else None,
        last_sync_at=datetime.now(timezone.utc),
    )


def _number(value) -> float:
    return float(value) if value is not None else 0.0


def get_stats(db: Session, user_id: int) -> schemas.StatsResponse:
    """Dashboard numbers; revenue and profit count completed projects only"""
    talents = get_user_rows(db, models.Talent, user_id)
    projects = get_user_rows(db, models.Project, user_id)
    categories = get_user_rows(db, models.Category, user_id)

    prices = {t.od_id: Decimal(t.price_per_project) for t in talents}
    total_revenue = Decimal(0)
    total_profit = Decimal(0)
    for project in projects:
        if project.status != ProjectStatus.COMPLETED or not project.talents:
            continue
        line_items = [
            {**item, "customPrice": Decimal(str(item["customPrice"]))}
            if item.get("customPrice") is not None else item
            for item in project.talents
        ]
        costs = costs_from_prices(prices, line_items, Decimal(project.profit_margin_percent))
        total_revenue += costs.total
        total_profit += costs.profit

    talents_by_category = [
        schemas.CategoryCount(
            category_id=category.id,
            category_name=category.name,
            count=sum(1 for t in talents if t.category_id == category.id),
        )
        for category in categories
    ]
    average_price = sum(_number(t.price_per_project) for t in talents) / len(talents) if talents else 0.0
    top_rated = sorted((t for t in talents if t.rating), key=lambda t: t.rating, reverse=True)[:5]
    recent = sorted(projects, key=lambda p: (p.created_at, p.id), reverse=True)[:5]

    return schemas.StatsResponse(
        total_talents=len(talents),
        total_projects=len(projects),
        active_projects=sum(1 for p in projects if p.status == ProjectStatus.ACTIVE),
        completed_projects=sum(1 for p in projects if p.status == ProjectStatus.COMPLETED),
        total_revenue=float(total_revenue),
        total_profit=float(total_profit),
        talents_by_category=talents_by_category,
        talents_by_gender=schemas.GenderCount(
            male=sum(1 for t in talents if t.gender == Gender.MALE),
            female=sum(1 for t in talents if t.gender == Gender.FEMALE),
        ),
        average_talent_price=average_price,
        top_rated_talents=[schemas.TalentOut.model_validate(t) for t in top_rated],
        recent_projects=[schemas.ProjectOut.model_validate(p) for p in recent],
    )
