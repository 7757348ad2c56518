from .daily_connection import DailyConnection
from .idea import Idea, IdeaCategory, IdeaStatus, IdeaUrgency, CATEGORY_LABELS
from .info_block import InfoBlock, InfoKey, DEFAULT_INFO_BLOCKS
from .news import News
from .poll import Poll, PollVote
from .push_subscription import PushSubscription

__all__ = [
    "DailyConnection",
    "Idea",
    "IdeaCategory",
    "IdeaStatus",
    "IdeaUrgency",
    "CATEGORY_LABELS",
    "InfoBlock",
    "InfoKey",
    "DEFAULT_INFO_BLOCKS",
    "News",
    "Poll",
    "PollVote",
    "PushSubscription",
]
