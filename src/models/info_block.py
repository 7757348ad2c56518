"""Editable info blocks shown on the public home page."""

from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel, Column, Text


class InfoKey(str, Enum):
    jpo = "jpo"
    mini_stages = "mini_stages"
    science_weekly = "science_weekly"
    cycle_mauriac = "cycle_mauriac"
    region_aides = "region_aides"


DEFAULT_INFO_BLOCKS = {
    InfoKey.jpo: (
        "Journées Portes Ouvertes (JPO) : informations à confirmer par l'établissement.",
        "https://lyceemauriac.fr/",
    ),
    InfoKey.mini_stages: (
        "Mini-stages en Seconde : découvrir des filières et options.",
        "https://lyceemauriac.fr/",
    ),
    InfoKey.science_weekly: (
        "Information scientifique de la semaine : résumé et lien vers la source.",
        "https://lyceemauriac.fr/",
    ),
    InfoKey.cycle_mauriac: (
        "Cycle Mauriac / expositions : conférences, rencontres, expositions.",
        "https://lyceemauriac.fr/",
    ),
    InfoKey.region_aides: (
        "Aides de la Région Nouvelle-Aquitaine : bourses, équipement, transports.",
        "https://lyceemauriac.fr/",
    ),
}


class InfoBlock(SQLModel, table=True):
    __tablename__: str = "info_blocks"

    key: str = Field(primary_key=True, max_length=32)
    text: str = Field(sa_column=Column(Text, nullable=False))
    url: Optional[str] = Field(default=None, max_length=300)
