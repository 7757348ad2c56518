"""Web Push subscription model."""

import json
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel, Column, DateTime, Index, Text


class PushSubscription(SQLModel, table=True):
    """
    A browser push endpoint with its key material.
    Upserted by endpoint on subscribe, removed when the push service reports it gone.
    """

    __tablename__: str = "push_subscriptions"

    endpoint: str = Field(sa_column=Column(Text, primary_key=True))
    # Full subscription object as sent by the browser: {endpoint, keys: {p256dh, auth}}
    subscription_json: str = Field(sa_column=Column(Text, nullable=False))
    device_hash: str = Field(max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=220)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    __table_args__ = (Index("idx_push_device_hash", "device_hash"),)

    @property
    def subscription_info(self) -> dict:
        return json.loads(self.subscription_json)
