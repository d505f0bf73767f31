import datetime as dt
from typing import Iterable, Sequence, Tuple

from sqlmodel import select, func
from sqlalchemy import delete

from frequentation.db.repositories.base import BaseRepository
from frequentation.db.models.comptages import Comptage


class ComptageRepository(BaseRepository[Comptage]):
    """Table de liaison jour ↔ typologie. Toujours manipulée en commit=False par le service."""
    model = Comptage

    def list_all(self) -> Sequence[Comptage]:
        statement = select(Comptage).order_by(Comptage.date.asc(), Comptage.id.asc())
        return self.session.exec(statement).all()

    def delete_for_date(self, date: dt.date, *, commit: bool = True) -> int:
        result = self.session.exec(delete(Comptage).where(Comptage.date == date))
        self._sync(commit)
        return result.rowcount

    def delete_for_typologie(self, typologie_id: str, *, commit: bool = True) -> int:
        """Retire les comptages d'une typologie sur tous les jours."""
        result = self.session.exec(delete(Comptage).where(Comptage.typologie_id == typologie_id))
        self._sync(commit)
        return result.rowcount

    def bulk_create(
        self, date: dt.date, counts: Iterable[Tuple[str, int]], *, commit: bool = True
    ) -> None:
        self.session.add_all(
            [Comptage(date=date, typologie_id=typologie_id, count=count) for typologie_id, count in counts]
        )
        self._sync(commit)

    def totals_by_typologie(self) -> Sequence[Tuple[str, int]]:
        """(typologie_id, somme des comptages) sur tout l'historique."""
        statement = (
            select(Comptage.typologie_id, func.sum(Comptage.count))
            .group_by(Comptage.typologie_id)
        )
        return self.session.exec(statement).all()
