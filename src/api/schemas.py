"""Request bodies for the HTTP API."""

from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from models import IdeaCategory, IdeaStatus, IdeaUrgency, InfoKey


class IdeaCreate(BaseModel):
    text: str = Field(min_length=10, max_length=500)
    category: IdeaCategory
    urgency: IdeaUrgency
    # Honeypot: hidden in the form, bots fill it in
    hp: Optional[str] = Field(default=None, max_length=5)


class IdeaStatusUpdate(BaseModel):
    status: IdeaStatus


class VoteCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    option_index: int = Field(alias="optionIndex", ge=0, le=50)


class SubscriptionKeys(BaseModel):
    model_config = ConfigDict(extra="allow")

    p256dh: str = Field(min_length=10, max_length=300)
    auth: str = Field(min_length=10, max_length=300)


class Subscription(BaseModel):
    # Browsers also send expirationTime; keep whatever they send
    model_config = ConfigDict(extra="allow")

    endpoint: str = Field(min_length=10, max_length=2000)
    keys: SubscriptionKeys


class SubscribeRequest(BaseModel):
    subscription: Subscription


class PushSendRequest(BaseModel):
    title: str = Field(min_length=1, max_length=60)
    body: str = Field(min_length=1, max_length=180)
    url: Optional[str] = Field(default=None, max_length=300)
    tag: Optional[str] = Field(default=None, max_length=60)


class LoginRequest(BaseModel):
    password: str = Field(min_length=6, max_length=128)


class NewsCreate(BaseModel):
    title: str = Field(min_length=3, max_length=80)
    description: str = Field(min_length=10, max_length=800)


PollOption = Annotated[str, StringConstraints(min_length=1, max_length=60)]


class PollCreate(BaseModel):
    question: str = Field(min_length=5, max_length=140)
    options: List[PollOption] = Field(min_length=2, max_length=8)


class InfoUpdate(BaseModel):
    key: InfoKey
    text: str = Field(min_length=10, max_length=1200)
    url: Optional[str] = Field(default=None, max_length=300)
