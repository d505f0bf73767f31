from typing import Any, Generic, Optional, Type, TypeVar
from sqlmodel import SQLModel, Session
from sqlalchemy import delete

# Type générique pour le modèle (Jour, Typologie, Comptage)
ModelT = TypeVar("ModelT", bound=SQLModel)

class BaseRepository(Generic[ModelT]):
    """
    Repository de base : get / create / update / delete / delete_all.

    👉 Ne contient aucune logique métier.
    👉 Chaque écriture accepte commit=False : le service enchaîne plusieurs repos
       dans une seule transaction et commit une fois à la fin.
    👉 Les repositories concrets définissent `model = MaClasseSQLModel`.
    """

    model: Type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    def _sync(self, commit: bool) -> None:
        # sans commit : flush pour que les lignes soient visibles des requêtes suivantes (FKs)
        if commit:
            self.session.commit()
        else:
            self.session.flush()

    # ---------- READ ----------

    def get(self, key: Any) -> Optional[ModelT]:
        """Retourne un enregistrement par sa clé primaire (id, date...), ou None."""
        return self.session.get(self.model, key)

    # ---------- WRITE ----------

    def create(self, *, commit: bool = True, **fields) -> ModelT:
        entity = self.model(**fields)
        self.session.add(entity)
        self._sync(commit)
        if commit:
            self.session.refresh(entity)
        return entity

    def update(self, entity: ModelT, *, commit: bool = True, **changes) -> ModelT:
        for key, value in changes.items():
            setattr(entity, key, value)
        self.session.add(entity)
        self._sync(commit)
        if commit:
            self.session.refresh(entity)
        return entity

    def delete(self, entity: ModelT, *, commit: bool = True) -> None:
        self.session.delete(entity)
        self._sync(commit)

    def delete_all(self, *, commit: bool = True) -> int:
        """Vide la table. Retourne le nombre de lignes supprimées."""
        result = self.session.exec(delete(self.model))
        self._sync(commit)
        return result.rowcount
