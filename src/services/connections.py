import logging
from datetime import datetime, timezone
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from models import DailyConnection
from models.upsert import upsert

logger = logging.getLogger(__name__)


async def record_daily_connection(
    session: AsyncSession, device_hash: str, now: Optional[datetime] = None
) -> None:
    """Mark the device as seen today. Best effort: failures are logged and dropped."""
    now = now or datetime.now(timezone.utc)
    try:
        await upsert(
            session,
            DailyConnection(day=now.date().isoformat(), device_hash=device_hash, last_seen=now),
        )
    except Exception as e:
        logger.warning(f"Failed to record daily connection: {e}")
        try:
            await session.rollback()
        except Exception as rollback_error:
            logger.warning(f"Rollback after failed connection record also failed: {rollback_error}")
