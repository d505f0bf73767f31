"""
➡️ But : Table de liaison jour ↔ typologie.

Une ligne = nombre de visiteurs d'une typologie pour une date.
Au plus une ligne par (date, typologie) ; supprimée avec son jour ou avec sa typologie.
"""

import datetime as dt
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint


class Comptage(SQLModel, table=True):
    __tablename__ = "comptage"
    __table_args__ = (
        UniqueConstraint("date", "typologie_id", name="uq_comptage_date_typologie"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    date: dt.date = Field(foreign_key="jour.date", index=True)
    typologie_id: str = Field(foreign_key="typologie.id", index=True)
    count: int = Field(default=0, ge=0)
