"""
➡️ But : Encapsuler toutes les opérations de base de données.

TypologieRepository : CRUD (create, read, update, delete) sur la table Typologie.

Ne contient aucune logique métier, juste de la persistance.

🔹 Avantages :

Réutilisable (les services n’ont pas à savoir comment la DB fonctionne).

Testable indépendamment (mock du repo sans base réelle).
"""

from typing import Sequence
from sqlmodel import select, func

from frequentation.db.repositories.base import BaseRepository
from frequentation.db.models.typologies import Typologie

class TypologieRepository(BaseRepository[Typologie]):
    model = Typologie

    def list_ordered(self) -> Sequence[Typologie]:
        """Toutes les typologies, dans l'ordre d'affichage."""
        statement = select(Typologie).order_by(Typologie.ordre.asc(), Typologie.nom.asc())
        return self.session.exec(statement).all()

    def list_active(self) -> Sequence[Typologie]:
        statement = (
            select(Typologie)
            .where(Typologie.actif.is_(True))
            .order_by(Typologie.ordre.asc())
        )
        return self.session.exec(statement).all()

    def max_ordre(self) -> int:
        """Plus grand ordre existant, 0 si la table est vide."""
        return self.session.exec(select(func.coalesce(func.max(Typologie.ordre), 0))).one()

    def existing_ids(self) -> set[str]:
        return set(self.session.exec(select(Typologie.id)).all())
