from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from frequentation.api.v1.dependencies import get_analytics_service
from frequentation.features.analytics.schemas import CalendarFilter, CalendarMonthOut
from frequentation.features.analytics.services import AnalyticsService
from frequentation.features.dataset.services import StorageError

router = APIRouter(
    prefix="/calendar",
    tags=["calendar"],
    responses={500: {"description": "Storage failure"}},
)


@router.get(
    "/{year}/{month}",
    summary="Grille mensuelle (lundi → dimanche) avec le total de chaque jour",
    response_model=CalendarMonthOut,
)
def calendar_month(
    year: int = Path(..., ge=1900, le=2999),
    month: int = Path(..., ge=1, le=12),
    day_filter: CalendarFilter = Query(CalendarFilter.ALL, alias="filter", description="all | with-data | without-data"),
    svc: AnalyticsService = Depends(get_analytics_service),
):
    try:
        return svc.calendar(year, month, day_filter)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")
