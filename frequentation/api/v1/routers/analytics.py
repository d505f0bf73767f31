import datetime as dt
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from frequentation.api.v1.dependencies import analytics_filters, check_reference_date, get_analytics_service
from frequentation.features.analytics.schemas import (
    AnalyticsFilters,
    AnalyticsOut,
    NavigationOut,
    PeriodKind,
)
from frequentation.features.analytics.services import AnalyticsService
from frequentation.features.dataset.services import StorageError

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
    responses={500: {"description": "Storage failure"}},
)


# -----------------------------
# Analyse d'une période
# -----------------------------
@router.get(
    "",
    summary="KPIs, série quotidienne et insights d'une période",
    response_model=AnalyticsOut,
)
def analyse(
    filters: AnalyticsFilters = Depends(analytics_filters),
    svc: AnalyticsService = Depends(get_analytics_service),
):
    try:
        return svc.analyse(filters)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")


@router.get(
    "/navigate",
    summary="Période précédente / suivante (jamais dans le futur)",
    response_model=NavigationOut,
)
def navigate(
    period: PeriodKind = Query(PeriodKind.WEEK),
    reference_date: dt.date = Query(...),
    direction: Literal["prev", "next"] = Query(...),
    svc: AnalyticsService = Depends(get_analytics_service),
):
    return svc.navigate(period, check_reference_date(reference_date), direction)


@router.get(
    "/csv",
    summary="Exporter la série de la période en CSV (séparateur ';')",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
def export_csv(
    filters: AnalyticsFilters = Depends(analytics_filters),
    svc: AnalyticsService = Depends(get_analytics_service),
):
    try:
        filename, content = svc.export_csv(filters)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


