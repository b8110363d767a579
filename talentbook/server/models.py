from sqlalchemy import (
    JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint,
)
from sqlalchemy.sql import func

from .database import Base


class User(Base):
    """Account that owns pushed data; authenticated by its API token"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=True)
    email = Column(String(320), nullable=True)
    api_token = Column(String(128), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_signed_in = Column(DateTime(timezone=True), nullable=True)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    od_id = Column(String(64), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    name_ar = Column(String(255), nullable=True)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index('ix_category_user', 'user_id'),
    )


class Talent(Base):
    __tablename__ = "talents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    od_id = Column(String(64), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Integer, nullable=False)
    category_od_id = Column(String(64), nullable=True)
    name = Column(String(255), nullable=False)
    gender = Column(String(16), nullable=False)
    profile_photo = Column(Text, nullable=True)
    photos = Column(JSON, nullable=True)
    phone_numbers = Column(JSON, nullable=True)
    social_media = Column(JSON, nullable=True)
    price_per_project = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="KWD")
    notes = Column(Text, nullable=True)
    custom_fields = Column(JSON, nullable=True)
    rating = Column(Integer, nullable=True)
    tags = Column(JSON, nullable=True)
    is_favorite = Column(Boolean, nullable=False, default=False)
    last_photo_update = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'od_id', name='uq_talent_user_od_id'),
    )


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    od_id = Column(String(64), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(16), nullable=False, default="draft")
    talents = Column(JSON, nullable=True)
    profit_margin_percent = Column(Numeric(5, 2), nullable=False, default=15)
    currency = Column(String(10), nullable=False, default="KWD")
    pdf_template = Column(String(16), nullable=True, default="client")
    phase = Column(String(16), nullable=True)
    client_name = Column(String(255), nullable=True)
    client_phone = Column(String(64), nullable=True)
    total_paid = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'od_id', name='uq_project_user_od_id'),
        Index('ix_project_user_status', 'user_id', 'status'),
    )


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    od_id = Column(String(64), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    talent_id = Column(Integer, nullable=False)
    talent_od_id = Column(String(64), nullable=True)
    title = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    all_day = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    project_id = Column(Integer, nullable=True)
    project_od_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'od_id', name='uq_booking_user_od_id'),
    )


class UserSettings(Base):
    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    monthly_reminder_enabled = Column(Boolean, nullable=False, default=True)
    reminder_day_of_month = Column(Integer, nullable=False, default=1)
    default_profit_margin = Column(Numeric(5, 2), nullable=False, default=15)
    default_currency = Column(String(10), nullable=False, default="KWD")
    last_reminder_date = Column(DateTime(timezone=True), nullable=True)
    view_mode = Column(String(8), nullable=True, default="grid")
    sort_by = Column(String(8), nullable=True, default="name")
    sort_order = Column(String(4), nullable=True, default="asc")
    dark_mode = Column(Boolean, nullable=False, default=False)
    theme_color = Column(String(16), nullable=True)
    language = Column(String(4), nullable=True)
    whatsapp_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
