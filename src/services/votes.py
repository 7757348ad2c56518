"""Poll activation and one-vote-per-device enforcement."""

import json
import logging
from typing import List

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from errors import ConflictError, NotFoundError, ValidationError
from models import Poll, PollVote

logger = logging.getLogger(__name__)


class VoteStore:
    """Owns the poll table invariants: one active poll, one vote per device."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def activate_poll(self, question: str, options: List[str]) -> Poll:
        """
        Replace the active poll with a new one in a single transaction.

        Readers never see two active polls, nor zero right after a rotation.
        Any failure rolls the whole swap back, leaving the previous poll active.

        Args:
            question: The poll question, already sanitized.
            options: Ordered option labels. Frozen once stored.

        Returns:
            The newly created active Poll.

        Raises:
            ConflictError: Another activation committed first.
        """
        poll = Poll(question=question, options_json=json.dumps(options), active=True)
        try:
            await self.session.exec(  # type: ignore[call-overload]
                update(Poll).where(Poll.active == True).values(active=False)  # noqa: E712
            )
            self.session.add(poll)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.warning("Concurrent poll activation lost the race, rolled back")
            raise ConflictError("Un autre sondage vient d'être activé")
        except Exception:
            await self.session.rollback()
            raise
        await self.session.refresh(poll)
        logger.info(f"Activated poll {poll.id} with {len(options)} options")
        return poll

    async def record_vote(
        self, poll_id: int, option_index: int, voter_hash: str
    ) -> PollVote:
        """
        Record a device's vote on the active poll.

        The unique (poll_id, voter_hash) constraint is what prevents double
        voting; the insert itself decides, there is no read-before-write.

        Raises:
            NotFoundError: The poll does not exist or is no longer active.
            ValidationError: option_index is outside the poll's options.
            ConflictError: This device already voted on this poll.
        """
        poll = await self.session.get(Poll, poll_id)
        if poll is None or not poll.active:
            raise NotFoundError("Sondage introuvable")

        if option_index < 0 or option_index >= len(poll.options):
            raise ValidationError("Option invalide")

        vote = PollVote(poll_id=poll_id, option_index=option_index, voter_hash=voter_hash)
        self.session.add(vote)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.info(f"Duplicate vote on poll {poll_id} from {voter_hash[:12]}")
            raise ConflictError("Vote déjà enregistré")
        return vote
