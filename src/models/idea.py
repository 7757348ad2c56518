"""Idea model for student suggestions."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel, Column, DateTime, Index, Text


class IdeaCategory(str, Enum):
    vie_scolaire = "vie-scolaire"
    cantine = "cantine"
    ecologie = "ecologie"
    clubs_evenements = "clubs-evenements"
    materiel = "materiel"
    autre = "autre"


CATEGORY_LABELS = {
    IdeaCategory.vie_scolaire: "Vie scolaire",
    IdeaCategory.cantine: "Cantine",
    IdeaCategory.ecologie: "Écologie",
    IdeaCategory.clubs_evenements: "Clubs & événements",
    IdeaCategory.materiel: "Matériel",
    IdeaCategory.autre: "Autre",
}


class IdeaUrgency(str, Enum):
    basse = "basse"
    moyenne = "moyenne"
    haute = "haute"


class IdeaStatus(str, Enum):
    nouveau = "nouveau"
    en_cours = "en-cours"
    realisee = "realisee"
    refusee = "refusee"


class Idea(SQLModel, table=True):
    """
    An idea submitted anonymously by a student.
    Only the status changes after creation.
    """

    __tablename__: str = "ideas"

    id: Optional[int] = Field(default=None, primary_key=True)
    text: str = Field(sa_column=Column(Text, nullable=False))
    category: str = Field(max_length=32)
    urgency: str = Field(max_length=16)
    status: str = Field(default=IdeaStatus.nouveau.value, max_length=16)
    device_hash: str = Field(max_length=64)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    __table_args__ = (Index("idx_ideas_device_hash", "device_hash"),)

    @property
    def category_label(self) -> str:
        try:
            return CATEGORY_LABELS[IdeaCategory(self.category)]
        except ValueError:
            return self.category
