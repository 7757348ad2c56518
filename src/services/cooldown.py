"""Per-device cooldown between idea submissions."""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from errors import RateLimitError
from models import Idea
from utils.dates import as_utc

logger = logging.getLogger(__name__)


class CooldownGate:
    """
    Rejects a new idea when the same device submitted one less than
    `cooldown_sec` ago. Not constraint-backed: two simultaneous submissions
    from one device may both pass.
    """

    def __init__(self, session: AsyncSession, cooldown_sec: int):
        self.session = session
        self.cooldown_sec = cooldown_sec

    async def check(self, device_hash: str, now: Optional[datetime] = None) -> None:
        """
        Raise RateLimitError if the device is still inside its cooldown window.

        Args:
            device_hash: The submitter's device hash.
            now: Current time, for tests.
        """
        q = (
            select(Idea.created_at)
            .where(Idea.device_hash == device_hash)
            .order_by(Idea.id.desc())  # type: ignore[union-attr]
            .limit(1)
        )
        result = await self.session.exec(q)
        last_created_at = result.first()
        if last_created_at is None:
            return

        now = now or datetime.now(timezone.utc)
        elapsed = (now - as_utc(last_created_at)).total_seconds()
        remaining = math.ceil(self.cooldown_sec - elapsed)
        if remaining > 0:
            logger.info(f"Idea cooldown hit for device {device_hash[:12]}, {remaining}s left")
            raise RateLimitError(retry_after_sec=remaining)
