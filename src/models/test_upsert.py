import json
from datetime import datetime, timezone

import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from models import InfoBlock, PushSubscription
from models.upsert import bulk_upsert, upsert

ENDPOINT = "https://push.example/sub-1"


def subscription(p256dh: str, created_at: datetime) -> PushSubscription:
    return PushSubscription(
        endpoint=ENDPOINT,
        subscription_json=json.dumps({"endpoint": ENDPOINT, "keys": {"p256dh": p256dh, "auth": "a"}}),
        device_hash="device-hash",
        created_at=created_at,
        updated_at=created_at,
    )


async def load(session: AsyncSession) -> PushSubscription:
    session.expire_all()
    return (await session.exec(select(PushSubscription))).one()


class TestUpsert:
    @pytest.mark.asyncio
    async def test_insert_then_update_keeps_created_at(self, session: AsyncSession):
        first = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)
        later = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)

        await upsert(session, subscription("key-1", first), keep_existing=("created_at",))
        await upsert(session, subscription("key-2", later), keep_existing=("created_at",))

        row = await load(session)
        assert row.subscription_info["keys"]["p256dh"] == "key-2"
        assert row.created_at.replace(tzinfo=None) == first.replace(tzinfo=None)
        assert row.updated_at.replace(tzinfo=None) == later.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_bulk_upsert_keeping_every_column_inserts_only_missing(self, session: AsyncSession):
        session.add(InfoBlock(key="jpo", text="JPO le 14 mars", url=None))
        await session.commit()

        await bulk_upsert(
            session,
            [
                InfoBlock(key="jpo", text="Texte par défaut", url=None),
                InfoBlock(key="mini_stages", text="Mini-stages", url=None),
            ],
            keep_existing=("text", "url"),
        )

        session.expire_all()
        rows = {r.key: r.text for r in (await session.exec(select(InfoBlock))).all()}
        assert rows == {"jpo": "JPO le 14 mars", "mini_stages": "Mini-stages"}

    @pytest.mark.asyncio
    async def test_bulk_upsert_empty_is_noop(self, session: AsyncSession):
        await bulk_upsert(session, [])
