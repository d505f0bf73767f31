"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Exemples :

get_dataset_service() : crée un DatasetService à partir d’une session DB et de ses repositories.

analytics_filters() : paramètres communs des routes d'analyse (période, date, typologies, tendance).

🔹 Avantages :

Routes plus propres (pas de code dupliqué).

Facile à injecter dans plusieurs endpoints (Depends()).
"""

import datetime as dt
from typing import List, Optional

from fastapi import Depends, HTTPException, Query
from sqlmodel import Session

from frequentation.db.session import get_session

from frequentation.db.repositories.typologies import TypologieRepository
from frequentation.db.repositories.jours import JourRepository
from frequentation.db.repositories.comptages import ComptageRepository
from frequentation.features.dataset.services import DatasetService

from frequentation.features.analytics.periods import MAX_REFERENCE_DATE, MIN_REFERENCE_DATE, is_supported_reference_date
from frequentation.features.analytics.schemas import AnalyticsFilters, PeriodKind
from frequentation.features.analytics.services import AnalyticsService


# -----------------------------
# Repositories
# -----------------------------
def get_typologie_repository(session: Session = Depends(get_session)) -> TypologieRepository:
    return TypologieRepository(session)

def get_jour_repository(session: Session = Depends(get_session)) -> JourRepository:
    return JourRepository(session)

def get_comptage_repository(session: Session = Depends(get_session)) -> ComptageRepository:
    return ComptageRepository(session)


# -----------------------------
# Dataset service
# -----------------------------
def get_dataset_service(
    session: Session = Depends(get_session),
    typologie_repo: TypologieRepository = Depends(get_typologie_repository),
    jour_repo: JourRepository = Depends(get_jour_repository),
    comptage_repo: ComptageRepository = Depends(get_comptage_repository),
) -> DatasetService:
    # une seule session partagée par les repos : une transaction par requête
    return DatasetService(
        session=session,
        typologie_repo=typologie_repo,
        jour_repo=jour_repo,
        comptage_repo=comptage_repo,
    )


# -----------------------------
# Analytics service
# -----------------------------
def get_analytics_service(
    dataset_svc: DatasetService = Depends(get_dataset_service),
) -> AnalyticsService:
    return AnalyticsService(dataset_svc)


def check_reference_date(value: dt.date) -> dt.date:
    if not is_supported_reference_date(value):
        raise HTTPException(
            status_code=422,
            detail=f"reference_date must be between {MIN_REFERENCE_DATE} and {MAX_REFERENCE_DATE}",
        )
    return value


def analytics_filters(
    period: PeriodKind = Query(PeriodKind.WEEK, description="jour | semaine | mois | annee"),
    reference_date: Optional[dt.date] = Query(None, description="Date de référence (défaut : aujourd'hui)", examples=["2024-03-01"]),
    typologies: List[str] = Query([], description="Typologies retenues (vide = toutes les actives)"),
    trend: bool = Query(False, description="Ajouter la moyenne mobile 7 jours"),
) -> AnalyticsFilters:
    return AnalyticsFilters(
        period=period,
        reference_date=check_reference_date(reference_date or dt.date.today()),
        selected_typologies=typologies,
        show_trend_line=trend,
    )
