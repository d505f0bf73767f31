from typing import Sequence

from sqlmodel import select

from frequentation.db.repositories.base import BaseRepository
from frequentation.db.models.jours import Jour


class JourRepository(BaseRepository[Jour]):
    """CRUD Jours (clé primaire = date)."""
    model = Jour

    def list_ordered(self) -> Sequence[Jour]:
        """Tous les jours, par date croissante."""
        return self.session.exec(select(Jour).order_by(Jour.date.asc())).all()
