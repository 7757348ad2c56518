"""Poll and vote models for the council's single active poll."""

import json
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import text
from sqlmodel import Field, SQLModel, Column, DateTime, Index, Text, UniqueConstraint


class Poll(SQLModel, table=True):
    """Poll model. At most one row has active=True."""

    __tablename__: str = "poll"

    id: Optional[int] = Field(default=None, primary_key=True)
    question: str = Field(max_length=140)
    # JSON array of option labels, frozen once created
    options_json: str = Field(sa_column=Column(Text, nullable=False))
    active: bool = Field(default=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    # Enforced by the database so concurrent activations cannot both win
    __table_args__ = (
        Index(
            "uq_poll_single_active",
            "active",
            unique=True,
            sqlite_where=text("active = 1"),
            postgresql_where=text("active"),
        ),
    )

    @property
    def options(self) -> List[str]:
        return json.loads(self.options_json)


class PollVote(SQLModel, table=True):
    """A single device's vote on a poll."""

    __tablename__: str = "poll_votes"

    id: Optional[int] = Field(default=None, primary_key=True)
    poll_id: int = Field(foreign_key="poll.id", ondelete="CASCADE")
    option_index: int
    voter_hash: str = Field(max_length=64)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    __table_args__ = (
        UniqueConstraint("poll_id", "voter_hash", name="uq_poll_votes_poll_voter"),
        Index("idx_poll_votes_poll", "poll_id"),
    )
