"""
➡️ But : Contenir la logique métier du jeu de données : orchestrer les repos, garantir l'atomicité, gérer les erreurs.

DatasetService : chaque mutation s'exécute dans UNE transaction (repos en commit=False puis un seul commit)
et renvoie le jeu de données complet mis à jour.

🔹 Avantages :

Code métier découplé du web.

Test unitaire possible sans passer par FastAPI.
"""

import datetime as dt
import json
import logging
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from frequentation.core.config import DATASET_VERSION
from frequentation.db.models.jours import as_utc, utc_now
from frequentation.db.models.typologies import new_typologie_id
from frequentation.db.repositories.typologies import TypologieRepository
from frequentation.db.repositories.jours import JourRepository
from frequentation.db.repositories.comptages import ComptageRepository
from frequentation.db.seed import default_typologies, generate_demo_jours
from frequentation.features.dataset.schemas import (
    AppData,
    AppDataIn,
    DatasetAction,
    FamilleGroupOut,
    JourIn,
    JourOut,
    TypologieCount,
    TypologieCreateIn,
    TypologieOut,
    SaveJourAction,
    DeleteJourAction,
    AddTypologieAction,
    UpdateTypologieAction,
    DeleteTypologieAction,
    ReorderTypologiesAction,
    ImportDataAction,
)

logger = logging.getLogger(__name__)

SANS_FAMILLE = "Sans famille"


class StorageError(Exception):
    """La base est indisponible ou une écriture a échoué (transaction annulée)."""
    pass

class DatasetFormatError(ValueError):
    """Document importé illisible ou incomplet : rien n'a été modifié."""
    pass


class DatasetService:
    def __init__(
        self,
        session: Session,
        typologie_repo: TypologieRepository,
        jour_repo: JourRepository,
        comptage_repo: ComptageRepository,
    ):
        self.session = session

        self.typologies = typologie_repo
        self.jours = jour_repo
        self.comptages = comptage_repo

    # -----------------------------------
    # Helpers: transaction
    # -----------------------------------
    @contextmanager
    def _transaction(self, label: str) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Échec de l'opération '%s', transaction annulée", label)
            raise StorageError(f"Failed to update data ({label})") from e

    @staticmethod
    def _now() -> dt.datetime:
        return utc_now()

    # ---------------------------------------------------------------------
    # Lecture
    # ---------------------------------------------------------------------

    def get_all(self) -> AppData:
        """Jeu de données complet : jours par date croissante, typologies par ordre."""
        try:
            typologies = self.typologies.list_ordered()
            jours = self.jours.list_ordered()
            comptages = self.comptages.list_all()
        except SQLAlchemyError as e:
            logger.exception("Lecture du jeu de données impossible")
            raise StorageError("Failed to fetch data") from e

        by_date: Dict[dt.date, List[TypologieCount]] = defaultdict(list)
        for c in comptages:
            by_date[c.date].append(TypologieCount(typologie_id=c.typologie_id, count=c.count))

        return AppData(
            jours=[
                JourOut(
                    date=j.date,
                    total_visites=j.total_visites,
                    override_total=j.override_total,
                    typologies=by_date.get(j.date, []),
                    note=j.note or "",
                    estimee=j.estimee,
                    derniere_maj=j.derniere_maj,
                )
                for j in jours
            ],
            typologies=[TypologieOut.model_validate(t) for t in typologies],
            version=DATASET_VERSION,
        )

    def get_jour(self, date: dt.date) -> JourOut:
        for jour in self.get_all().jours:
            if jour.date == date:
                return jour
        raise LookupError("Jour not found.")

    def previous_jour(self, date: dt.date) -> JourOut:
        """Saisie de la veille, pour pré-remplir le formulaire du jour."""
        return self.get_jour(date - dt.timedelta(days=1))

    def typologies_by_famille(self) -> List[FamilleGroupOut]:
        groups: Dict[str, List[TypologieOut]] = {}
        for t in self.get_all().typologies:
            groups.setdefault(t.famille or SANS_FAMILLE, []).append(t)
        return [FamilleGroupOut(famille=k, typologies=v) for k, v in groups.items()]

    def most_used_typologie(self) -> Optional[str]:
        """Typologie active la plus saisie sur tout l'historique (raccourci de saisie)."""
        try:
            active = [t.id for t in self.typologies.list_active()]
            totals = dict(self.comptages.totals_by_typologie())
        except SQLAlchemyError as e:
            logger.exception("Lecture des comptages impossible")
            raise StorageError("Failed to fetch data") from e
        if not active:
            return None

        best_id, best_count = active[0], 0
        for typologie_id in active:
            count = totals.get(typologie_id) or 0
            if count > best_count:
                best_id, best_count = typologie_id, count
        return best_id

    # ---------------------------------------------------------------------
    # Jours
    # ---------------------------------------------------------------------

    def save_jour(self, payload: JourIn) -> AppData:
        """
        Upsert par date. Les comptages du jour sont remplacés dans la même transaction.
        Sans override, le total stocké est la somme des comptages soumis.
        """
        known = self.typologies.existing_ids()
        unknown = [c.typologie_id for c in payload.typologies if c.typologie_id not in known]
        if unknown:
            raise LookupError(f"Typologie not found: {', '.join(unknown)}")

        total = payload.total_visites if payload.override_total else payload.computed_total()
        fields = dict(
            total_visites=total,
            override_total=payload.override_total,
            note=payload.note,
            estimee=payload.estimee,
            derniere_maj=self._now(),
        )

        with self._transaction("saveJour"):
            jour = self.jours.get(payload.date)
            if jour:
                self.jours.update(jour, commit=False, **fields)
            else:
                self.jours.create(commit=False, date=payload.date, **fields)

            self.comptages.delete_for_date(payload.date, commit=False)
            self.comptages.bulk_create(
                payload.date,
                [(c.typologie_id, c.count) for c in payload.typologies],
                commit=False,
            )

        logger.info("Jour %s enregistré (total=%d, override=%s)", payload.date, total, payload.override_total)
        return self.get_all()

    def delete_jour(self, date: dt.date) -> AppData:
        jour = self.jours.get(date)
        if not jour:
            return self.get_all()

        with self._transaction("deleteJour"):
            self.comptages.delete_for_date(date, commit=False)
            self.jours.delete(jour, commit=False)

        logger.info("Jour %s supprimé", date)
        return self.get_all()

    # ---------------------------------------------------------------------
    # Typologies
    # ---------------------------------------------------------------------

    def add_typologie(self, payload: TypologieCreateIn) -> AppData:
        with self._transaction("addTypologie"):
            created = self.typologies.create(
                commit=False,
                id=new_typologie_id(),
                ordre=self.typologies.max_ordre() + 1,
                **payload.model_dump(),
            )
        logger.info("Typologie '%s' créée (id=%s, ordre=%d)", created.nom, created.id, created.ordre)
        return self.get_all()

    def update_typologie(self, payload: TypologieOut) -> AppData:
        typologie = self.typologies.get(payload.id)
        if not typologie:
            logger.debug("updateTypologie ignoré : id %s inconnu", payload.id)
            return self.get_all()

        with self._transaction("updateTypologie"):
            self.typologies.update(typologie, commit=False, **payload.model_dump(exclude={"id"}))
        return self.get_all()

    def delete_typologie(self, typologie_id: str) -> AppData:
        """Supprime la typologie et ses comptages ; les jours et leurs totaux restent intacts."""
        typologie = self.typologies.get(typologie_id)
        if not typologie:
            return self.get_all()

        with self._transaction("deleteTypologie"):
            removed = self.comptages.delete_for_typologie(typologie_id, commit=False)
            self.typologies.delete(typologie, commit=False)

        logger.info("Typologie %s supprimée (%d comptages retirés)", typologie_id, removed)
        return self.get_all()

    def reorder_typologies(self, ordered: Sequence[TypologieOut]) -> AppData:
        """ordre = position (1-based) dans la liste fournie."""
        with self._transaction("reorderTypologies"):
            for index, item in enumerate(ordered, start=1):
                typologie = self.typologies.get(item.id)
                if not typologie:
                    continue
                changes = item.model_dump(exclude={"id"})
                changes["ordre"] = index
                self.typologies.update(typologie, commit=False, **changes)
        return self.get_all()

    # ---------------------------------------------------------------------
    # Import / export / reset
    # ---------------------------------------------------------------------

    def export_dataset(self) -> str:
        return self.get_all().model_dump_json(indent=2)

    def import_dataset(self, serialized: Any) -> AppData:
        """
        Remplace tout le jeu de données. Le document est entièrement validé AVANT toute écriture :
        en cas d'erreur, DatasetFormatError et la base reste intacte.
        """
        document = self._parse_document(serialized)
        self._replace_all(document.typologies, document.jours, label="importData")
        logger.info(
            "Import terminé : %d jours, %d typologies", len(document.jours), len(document.typologies)
        )
        return self.get_all()

    def reset_to_seed(self) -> AppData:
        """Typologies par défaut + jours de démonstration générés."""
        defaults = default_typologies()
        document = AppDataIn.model_validate({
            "jours": generate_demo_jours(defaults),
            "typologies": defaults,
            "version": DATASET_VERSION,
        })
        self._replace_all(document.typologies, document.jours, label="reset")
        return self.get_all()

    def clear_all(self) -> AppData:
        """Plus aucun jour ; les typologies par défaut sont conservées."""
        typologies = [TypologieOut.model_validate(t) for t in default_typologies()]
        self._replace_all(typologies, [], label="clear")
        return self.get_all()

    @staticmethod
    def _parse_document(serialized: Any) -> AppDataIn:
        if isinstance(serialized, AppDataIn):
            return serialized
        try:
            raw = json.loads(serialized) if isinstance(serialized, (str, bytes, bytearray)) else serialized
        except json.JSONDecodeError as e:
            raise DatasetFormatError(f"JSON invalide : {e.msg}") from e

        if not isinstance(raw, dict):
            raise DatasetFormatError("Le document doit être un objet JSON.")
        missing = [k for k in ("jours", "typologies", "version") if raw.get(k) is None]
        if missing:
            raise DatasetFormatError(f"Champs manquants : {', '.join(missing)}")

        try:
            return AppDataIn.model_validate(raw)
        except ValidationError as e:
            raise DatasetFormatError(f"Document invalide : {e.error_count()} erreur(s)") from e

    def _replace_all(
        self,
        typologies: Sequence[TypologieOut],
        jours: Sequence[JourIn],
        *,
        label: str,
    ) -> None:
        known = {t.id for t in typologies}
        now = self._now()

        with self._transaction(label):
            self.comptages.delete_all(commit=False)
            self.jours.delete_all(commit=False)
            self.typologies.delete_all(commit=False)
            # les instances supprimées en masse ne doivent plus occuper l'identity map
            self.session.expunge_all()

            for t in typologies:
                self.typologies.create(commit=False, **t.model_dump())

            for j in jours:
                self.jours.create(
                    commit=False,
                    date=j.date,
                    total_visites=j.total_visites,
                    override_total=j.override_total,
                    note=j.note,
                    estimee=j.estimee,
                    derniere_maj=as_utc(j.derniere_maj) if j.derniere_maj else now,
                )
                self.comptages.bulk_create(
                    j.date,
                    [(c.typologie_id, c.count) for c in j.typologies if c.typologie_id in known],
                    commit=False,
                )

    # ---------------------------------------------------------------------
    # Actions typées
    # ---------------------------------------------------------------------

    def dispatch(self, action: DatasetAction) -> AppData:
        if isinstance(action, SaveJourAction):
            return self.save_jour(action.data)
        if isinstance(action, DeleteJourAction):
            return self.delete_jour(action.data)
        if isinstance(action, AddTypologieAction):
            return self.add_typologie(action.data)
        if isinstance(action, UpdateTypologieAction):
            return self.update_typologie(action.data)
        if isinstance(action, DeleteTypologieAction):
            return self.delete_typologie(action.data)
        if isinstance(action, ReorderTypologiesAction):
            return self.reorder_typologies(action.data)
        if isinstance(action, ImportDataAction):
            return self.import_dataset(action.data)
        raise TypeError(f"Unsupported action: {type(action).__name__}")
