"""Admin endpoints: ideas, news, polls, info blocks and dashboard stats."""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from sqlmodel import func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from api.deps import PushCapabilityDep, SessionDep, require_admin
from api.schemas import IdeaStatusUpdate, InfoUpdate, NewsCreate, PollCreate
from errors import NotFoundError
from models import DailyConnection, Idea, InfoBlock, News, Poll, PollVote
from models.upsert import upsert
from services.push import (
    NotificationDispatcher,
    PushCapability,
    PushConfigured,
    PushPayload,
)
from services.sanitize import clean_text
from services.votes import VoteStore
from utils.dates import as_utc

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


async def _auto_push(
    session: AsyncSession, capability: PushCapability, payload: PushPayload
) -> None:
    """Announce new content when push is configured. Never fails the request."""
    if not isinstance(capability, PushConfigured):
        return
    try:
        await NotificationDispatcher(session, capability).dispatch(payload)
    except Exception as e:
        logger.error(f"Auto-push '{payload.tag}' failed: {e}")


@router.get("/api/admin/me")
async def me() -> dict:
    return {"admin": True}


@router.get("/api/admin/ideas")
async def list_ideas(session: SessionDep) -> list[dict]:
    q = select(Idea).order_by(Idea.id.desc()).limit(500)  # type: ignore[union-attr]
    ideas = (await session.exec(q)).all()
    return [
        {
            "id": i.id,
            "text": i.text,
            "category": i.category,
            "category_label": i.category_label,
            "urgency": i.urgency,
            "status": i.status,
            "created_at": as_utc(i.created_at).isoformat(),
        }
        for i in ideas
    ]


@router.patch("/api/admin/ideas/{idea_id}")
async def update_idea_status(
    idea_id: int, body: IdeaStatusUpdate, session: SessionDep
) -> dict:
    idea = await session.get(Idea, idea_id)
    if not idea:
        raise NotFoundError("Idée introuvable")
    idea.status = body.status.value
    session.add(idea)
    await session.commit()
    logger.info(f"Idea {idea_id} moved to status {idea.status}")
    return {"ok": True}


@router.post("/api/admin/news")
async def create_news(
    body: NewsCreate, session: SessionDep, capability: PushCapabilityDep
) -> dict:
    title = clean_text(body.title, 80)
    news = News(title=title, description=clean_text(body.description, 800))
    session.add(news)
    await session.commit()

    await _auto_push(
        session,
        capability,
        PushPayload(title="📰 Nouvelle actualité", body=title, url="/#actualites", tag="news"),
    )
    return {"ok": True}


@router.post("/api/admin/poll")
async def create_poll(
    body: PollCreate, session: SessionDep, capability: PushCapabilityDep
) -> dict:
    question = clean_text(body.question, 140)
    options = [clean_text(o, 60) for o in body.options]
    await VoteStore(session).activate_poll(question, options)

    await _auto_push(
        session,
        capability,
        PushPayload(title="📊 Nouveau sondage", body=question, url="/#sondage", tag="poll"),
    )
    return {"ok": True}


@router.post("/api/admin/info")
async def update_info(body: InfoUpdate, session: SessionDep) -> dict:
    block = InfoBlock(
        key=body.key.value,
        text=clean_text(body.text, 1200),
        url=body.url.strip() if body.url else None,
    )
    await upsert(session, block)
    return {"ok": True}


@router.get("/api/stats")
async def stats(session: SessionDep) -> dict:
    ideas_total = (await session.exec(select(func.count()).select_from(Idea))).one()
    by_status_q = (
        select(Idea.status, func.count().label("n"))
        .group_by(Idea.status)
        .order_by(func.count().desc())
    )
    by_status = (await session.exec(by_status_q)).all()
    votes_total = (await session.exec(select(func.count()).select_from(PollVote))).one()
    news_total = (await session.exec(select(func.count()).select_from(News))).one()

    polls_q = (
        select(Poll.id, Poll.question, Poll.active, Poll.created_at, func.count(PollVote.id))
        .outerjoin(PollVote, PollVote.poll_id == Poll.id)  # type: ignore[arg-type]
        .group_by(Poll.id, Poll.question, Poll.active, Poll.created_at)
        .order_by(Poll.id.desc())  # type: ignore[union-attr]
        .limit(10)
    )
    polls = (await session.exec(polls_q)).all()

    since = (datetime.now(timezone.utc).date() - timedelta(days=13)).isoformat()
    daily_q = (
        select(DailyConnection.day, func.count())
        .where(DailyConnection.day >= since)
        .group_by(DailyConnection.day)
        .order_by(DailyConnection.day)
    )
    daily = (await session.exec(daily_q)).all()

    return {
        "ideas": {
            "total": ideas_total or 0,
            "byStatus": [{"status": s, "count": n} for s, n in by_status],
        },
        "votes": {"total": votes_total or 0},
        "news": {"total": news_total or 0},
        "polls": [
            {
                "id": pid,
                "question": question,
                "active": bool(active),
                "created_at": as_utc(created_at).isoformat(),
                "votes": votes,
            }
            for pid, question, active, created_at, votes in polls
        ],
        "dailyConnections": [{"day": day, "count": n} for day, n in daily],
    }
