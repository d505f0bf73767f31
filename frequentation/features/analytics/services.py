import datetime as dt
import logging
from typing import Literal, Optional, Tuple

from frequentation.features.dataset.services import DatasetService
from frequentation.features.analytics import engine
from frequentation.features.analytics.periods import navigate
from frequentation.features.analytics.schemas import (
    AnalyticsFilters,
    AnalyticsOut,
    CalendarFilter,
    CalendarMonthOut,
    NavigationOut,
    PeriodKind,
)

logger = logging.getLogger(__name__)


class AnalyticsService:
    """
    Lit le jeu de données complet via DatasetService puis délègue les calculs au moteur (fonctions pures).
    Aucune écriture.
    """

    def __init__(self, dataset_svc: DatasetService, today: Optional[dt.date] = None):
        self.dataset = dataset_svc
        self._today = today

    @property
    def today(self) -> dt.date:
        return self._today or dt.date.today()

    def analyse(self, filters: AnalyticsFilters) -> AnalyticsOut:
        data = self.dataset.get_all()
        result = engine.analyse(data.jours, data.typologies, filters, today=self.today)
        logger.debug(
            "Analyse %s du %s → %s..%s (%d points)",
            filters.period.value, filters.reference_date,
            result.bounds.start, result.bounds.end, len(result.series),
        )
        return result

    def navigate(
        self, period: PeriodKind, reference_date: dt.date, direction: Literal["prev", "next"]
    ) -> NavigationOut:
        moved_to = navigate(period, reference_date, direction, today=self.today)
        return NavigationOut(period=period, reference_date=moved_to, moved=moved_to != reference_date)

    def export_csv(self, filters: AnalyticsFilters) -> Tuple[str, str]:
        """(nom de fichier, contenu CSV) pour la série de la période."""
        data = self.dataset.get_all()
        result = engine.analyse(data.jours, data.typologies, filters, today=self.today)
        content = engine.series_to_csv(result.series, data.typologies)
        filename = f"frequentation_{result.bounds.start.isoformat()}_{result.bounds.end.isoformat()}.csv"
        return filename, content

    def calendar(self, year: int, month: int, day_filter: CalendarFilter = CalendarFilter.ALL) -> CalendarMonthOut:
        if not 1 <= month <= 12:
            raise ValueError("month must be between 1 and 12")
        data = self.dataset.get_all()
        return engine.calendar_month(data.jours, data.typologies, year, month, day_filter, today=self.today)
