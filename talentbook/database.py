"""
Local database for storing data
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Text
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, SQLModel, Session, create_engine

MEMORY = ":memory:"


class KeyValueSlot(SQLModel, table=True):
    """One persisted collection, serialized as a single JSON document"""
    __tablename__ = "kv_slots"

    key: str = Field(primary_key=True)
    value: str = Field(sa_column=Column(Text, nullable=False))
    updated_at: Optional[datetime] = Field(default_factory=lambda: datetime.now(timezone.utc))


class Database:
    def __init__(self, db_path: str):
        if db_path == MEMORY:
            # One shared connection, otherwise every session sees an empty database
            self.engine = create_engine(
                "sqlite:///:memory:",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{db_path}",
                connect_args={"check_same_thread": False},
            )

    def init_db(self):
        """Initialize database tables"""
        SQLModel.metadata.create_all(self.engine)

    def get_session(self):
        """Get a new database session"""
        return Session(self.engine)
