from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel, Column, DateTime


class News(SQLModel, table=True):
    __tablename__: str = "news"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=80)
    description: str = Field(max_length=800)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
