"""Tests for poll activation and vote integrity."""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from errors import ConflictError, NotFoundError, ValidationError
from models import Poll, PollVote
from services.votes import VoteStore


async def count_active(session: AsyncSession) -> int:
    q = select(func.count()).select_from(Poll).where(Poll.active == True)  # noqa: E712
    return (await session.exec(q)).one()


async def count_votes(session: AsyncSession) -> int:
    return (await session.exec(select(func.count()).select_from(PollVote))).one()


async def active_ids(session: AsyncSession) -> list[int]:
    q = select(Poll.id).where(Poll.active == True)  # noqa: E712
    return list((await session.exec(q)).all())


class TestActivatePoll:
    @pytest.mark.asyncio
    async def test_no_active_poll_before_first(self, session: AsyncSession):
        assert await count_active(session) == 0

    @pytest.mark.asyncio
    async def test_new_poll_is_the_only_active_one(self, session: AsyncSession):
        store = VoteStore(session)
        first = await store.activate_poll("Sortie de fin d'année ?", ["Parc", "Musée"])
        assert await count_active(session) == 1

        second = await store.activate_poll("Menu à thème ?", ["Oui", "Non", "Peu importe"])
        assert await count_active(session) == 1

        await session.refresh(first)
        assert first.active is False
        assert second.active is True

    @pytest.mark.asyncio
    async def test_options_keep_their_order(self, session: AsyncSession):
        poll = await VoteStore(session).activate_poll("Couleur du sweat ?", ["Bleu", "Vert", "Rouge"])
        stored = await session.get(Poll, poll.id)
        assert stored is not None
        assert stored.options == ["Bleu", "Vert", "Rouge"]

    @pytest.mark.asyncio
    async def test_failed_swap_keeps_previous_poll_active(self, session: AsyncSession):
        store = VoteStore(session)
        first = await store.activate_poll("Sortie de fin d'année ?", ["Parc", "Musée"])
        first_id = first.id

        with patch.object(session, "commit", AsyncMock(side_effect=RuntimeError("disk I/O error"))):
            with pytest.raises(RuntimeError):
                await store.activate_poll("Menu à thème ?", ["Oui", "Non"])

        assert await active_ids(session) == [first_id]
        assert (await session.exec(select(func.count()).select_from(Poll))).one() == 1

    @pytest.mark.asyncio
    async def test_losing_a_concurrent_activation_is_a_conflict(self, session: AsyncSession):
        store = VoteStore(session)
        first = await store.activate_poll("Sortie de fin d'année ?", ["Parc", "Musée"])
        first_id = first.id
        real_exec = session.exec

        async def exec_then_rival_lands(statement, *args, **kwargs):
            result = await real_exec(statement, *args, **kwargs)
            # Another worker's poll shows up after our UPDATE
            session.add(Poll(question="Poll concurrent", options_json='["A", "B"]', active=True))
            await session.flush()
            return result

        with patch.object(session, "exec", side_effect=exec_then_rival_lands):
            with pytest.raises(ConflictError):
                await store.activate_poll("Menu à thème ?", ["Oui", "Non"])

        assert await active_ids(session) == [first_id]

    @pytest.mark.asyncio
    async def test_database_rejects_a_second_active_poll(self, session: AsyncSession):
        session.add(Poll(question="Premier ?", options_json='["A", "B"]', active=True))
        await session.commit()

        session.add(Poll(question="Second ?", options_json='["A", "B"]', active=True))
        with pytest.raises(IntegrityError):
            await session.commit()
        await session.rollback()

        session.add(Poll(question="Archivé ?", options_json='["A", "B"]', active=False))
        await session.commit()
        assert len(await active_ids(session)) == 1


class TestRecordVote:
    @pytest.mark.asyncio
    async def test_records_a_vote(self, session: AsyncSession):
        store = VoteStore(session)
        poll = await store.activate_poll("Sortie de fin d'année ?", ["Parc", "Musée"])

        vote = await store.record_vote(poll.id, 1, "voter-1")

        assert vote.option_index == 1
        assert await count_votes(session) == 1

    @pytest.mark.asyncio
    async def test_second_vote_from_same_device_conflicts(self, session: AsyncSession):
        store = VoteStore(session)
        poll = await store.activate_poll("Sortie de fin d'année ?", ["Parc", "Musée"])
        await store.record_vote(poll.id, 0, "voter-1")

        with pytest.raises(ConflictError) as exc_info:
            await store.record_vote(poll.id, 1, "voter-1")

        assert exc_info.value.status_code == 409
        assert await count_votes(session) == 1

    @pytest.mark.asyncio
    async def test_other_devices_can_vote(self, session: AsyncSession):
        store = VoteStore(session)
        poll = await store.activate_poll("Sortie de fin d'année ?", ["Parc", "Musée"])
        await store.record_vote(poll.id, 0, "voter-1")
        await store.record_vote(poll.id, 0, "voter-2")

        assert await count_votes(session) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("option_index", [-1, 2, 50])
    async def test_out_of_range_option_writes_nothing(self, session: AsyncSession, option_index: int):
        store = VoteStore(session)
        poll = await store.activate_poll("Sortie de fin d'année ?", ["Parc", "Musée"])

        with pytest.raises(ValidationError):
            await store.record_vote(poll.id, option_index, "voter-1")

        assert await count_votes(session) == 0

    @pytest.mark.asyncio
    async def test_unknown_poll_is_not_found(self, session: AsyncSession):
        with pytest.raises(NotFoundError):
            await VoteStore(session).record_vote(999, 0, "voter-1")

    @pytest.mark.asyncio
    async def test_rotated_out_poll_no_longer_accepts_votes(self, session: AsyncSession):
        store = VoteStore(session)
        old = await store.activate_poll("Ancien sondage ?", ["A", "B"])
        new = await store.activate_poll("Nouveau sondage ?", ["C", "D"])

        with pytest.raises(NotFoundError):
            await store.record_vote(old.id, 0, "voter-1")

        # The same device still gets its vote on the new poll
        await store.record_vote(new.id, 0, "voter-1")
        assert await count_votes(session) == 1
