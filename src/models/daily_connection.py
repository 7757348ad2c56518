from datetime import datetime, timezone

from sqlmodel import Field, SQLModel, Column, DateTime, Index


class DailyConnection(SQLModel, table=True):
    """One row per device per UTC day it hit a public GET route."""

    __tablename__: str = "daily_connections"

    day: str = Field(primary_key=True, max_length=10)  # YYYY-MM-DD
    device_hash: str = Field(primary_key=True, max_length=64)
    last_seen: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    __table_args__ = (Index("idx_daily_connections_day", "day"),)
