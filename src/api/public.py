"""Public student-facing endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlmodel import func, select

from api.deps import (
    DeviceHashDep,
    SessionDep,
    SettingsDep,
    limit_public_requests,
    track_daily_connection,
)
from api.schemas import IdeaCreate, VoteCreate
from errors import ValidationError
from models import Idea, InfoBlock, InfoKey, News, Poll, PollVote
from services.cooldown import CooldownGate
from services.sanitize import clean_text
from services.votes import VoteStore
from utils.dates import as_utc

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/public",
    tags=["public"],
    dependencies=[Depends(limit_public_requests), Depends(track_daily_connection)],
)


def percent(votes: int, total: int) -> int:
    """Share of votes as a whole percentage, halves rounded up."""
    if not total:
        return 0
    return int(votes * 100 / total + 0.5)


@router.get("/stats")
async def public_stats(session: SessionDep) -> dict:
    ideas = (await session.exec(select(func.count()).select_from(Idea))).one()
    votes = (await session.exec(select(func.count()).select_from(PollVote))).one()
    return {"ideas": ideas or 0, "votes": votes or 0}


@router.get("/news")
async def list_news(session: SessionDep) -> list[dict]:
    q = select(News).order_by(News.id.desc()).limit(30)  # type: ignore[union-attr]
    rows = (await session.exec(q)).all()
    return [
        {
            "id": n.id,
            "title": n.title,
            "description": n.description,
            "created_at": as_utc(n.created_at).isoformat(),
        }
        for n in rows
    ]


@router.post("/ideas")
async def submit_idea(
    body: IdeaCreate,
    session: SessionDep,
    settings: SettingsDep,
    device_hash: DeviceHashDep,
) -> dict:
    if (body.hp or "").strip():
        logger.info(f"Honeypot filled by device {device_hash[:12]}, idea rejected")
        raise ValidationError("Requête invalide")

    await CooldownGate(session, settings.idea_cooldown_sec).check(device_hash)

    idea = Idea(
        text=clean_text(body.text, 500),
        category=body.category.value,
        urgency=body.urgency.value,
        device_hash=device_hash,
    )
    session.add(idea)
    await session.commit()
    return {"ok": True}


@router.get("/poll")
async def active_poll(session: SessionDep) -> dict:
    q = (
        select(Poll)
        .where(Poll.active == True)  # noqa: E712
        .order_by(Poll.id.desc())  # type: ignore[union-attr]
        .limit(1)
    )
    poll = (await session.exec(q)).first()
    if not poll:
        return {"active": 0}

    counts_q = (
        select(PollVote.option_index, func.count())
        .where(PollVote.poll_id == poll.id)
        .group_by(PollVote.option_index)
    )
    counts = {idx: n for idx, n in (await session.exec(counts_q)).all()}
    total = sum(counts.values())
    options = poll.options

    return {
        "id": poll.id,
        "question": poll.question,
        "options": options,
        "active": poll.active,
        "created_at": as_utc(poll.created_at).isoformat(),
        "results": [
            {
                "label": label,
                "votes": counts.get(idx, 0),
                "percent": percent(counts.get(idx, 0), total),
            }
            for idx, label in enumerate(options)
        ],
    }


@router.post("/poll/{poll_id}/vote")
async def vote(
    poll_id: int,
    body: VoteCreate,
    session: SessionDep,
    device_hash: DeviceHashDep,
) -> dict:
    await VoteStore(session).record_vote(poll_id, body.option_index, device_hash)
    return {"ok": True}


@router.get("/info")
async def info_blocks(session: SessionDep) -> dict:
    rows = (await session.exec(select(InfoBlock))).all()
    by_key = {r.key: {"text": r.text, "url": r.url} for r in rows}
    return {key.value: by_key.get(key.value) for key in InfoKey}
