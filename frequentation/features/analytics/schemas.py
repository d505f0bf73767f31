import datetime as dt
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class PeriodKind(str, Enum):
    DAY = "jour"
    WEEK = "semaine"
    MONTH = "mois"
    YEAR = "annee"


class CalendarFilter(str, Enum):
    ALL = "all"
    WITH_DATA = "with-data"
    WITHOUT_DATA = "without-data"


class PeriodBounds(BaseModel):
    start: dt.date
    end: dt.date
    prev_start: dt.date
    prev_end: dt.date

    @property
    def is_empty(self) -> bool:
        """Période entièrement dans le futur : rien d'écoulé."""
        return self.end < self.start


class AnalyticsFilters(BaseModel):
    period: PeriodKind = PeriodKind.WEEK
    reference_date: dt.date
    # vide = toutes les typologies actives
    selected_typologies: List[str] = Field(default_factory=list)
    show_trend_line: bool = False


# ---------- KPI ----------

class DayTotal(BaseModel):
    date: dt.date
    total: int


class TopTypologie(BaseModel):
    id: str
    nom: str
    count: int
    percentage: int


class KPIData(BaseModel):
    total_periode: int = 0
    moyenne_par_jour: int = 0
    jour_max: Optional[DayTotal] = None
    jour_min: Optional[DayTotal] = None
    top3_typologies: List[TopTypologie] = Field(default_factory=list)
    evolution_precedente: Optional[int] = None
    jours_avec_donnees: int = 0
    jours_sans_donnees: int = 0


# ---------- Séries / insights ----------

class ChartPoint(BaseModel):
    date: dt.date
    label: str
    total: int = 0
    details: Dict[str, int] = Field(default_factory=dict)
    moyenne_7j: Optional[int] = None


class Insight(BaseModel):
    type: Literal["info", "warning", "anomaly"]
    message: str


class AnalyticsOut(BaseModel):
    period: PeriodKind
    reference_date: dt.date
    label: str
    bounds: PeriodBounds
    typologies: List[str]
    kpis: KPIData
    series: List[ChartPoint]
    insights: List[Insight]


class NavigationOut(BaseModel):
    period: PeriodKind
    reference_date: dt.date
    moved: bool


# ---------- Calendrier ----------

class CalendarDay(BaseModel):
    date: dt.date
    in_month: bool
    is_today: bool
    is_future: bool
    has_data: bool
    visible: bool
    total: Optional[int] = None
    estimee: bool = False


class CalendarMonthOut(BaseModel):
    year: int
    month: int
    label: str
    filter: CalendarFilter
    days: List[CalendarDay]
