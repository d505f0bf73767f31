"""Table des journées : une ligne par date, avec son total et ses métadonnées."""

import datetime as dt

from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime) -> dt.datetime:
    """Horodatage sans fuseau (SQLite, anciens exports) : considéré comme UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)

class Jour(SQLModel, table=True):
    date: dt.date = Field(primary_key=True, description="Jour calendaire (clé)")

    total_visites: int = Field(default=0, ge=0, description="Somme des comptages, ou total saisi si override")
    override_total: bool = Field(default=False, description="Le total saisi remplace la somme des comptages")
    note: str = Field(default="", description="Commentaire libre")
    estimee: bool = Field(default=False, description="Chiffres estimés plutôt que comptés")
    derniere_maj: dt.datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), description="Horodatage de la dernière sauvegarde")
