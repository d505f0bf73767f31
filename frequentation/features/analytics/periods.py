"""Bornes de périodes (semaines du lundi au dimanche), navigation et libellés en français."""

import datetime as dt
from typing import Literal, Optional

from dateutil.relativedelta import relativedelta, MO

from frequentation.features.analytics.schemas import PeriodBounds, PeriodKind

MOIS = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]
MOIS_ABREGES = [
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
]
JOURS_SEMAINE = ["lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"]

# plage de dates de référence acceptée (même bornes que le calendrier)
MIN_REFERENCE_DATE = dt.date(1900, 1, 1)
MAX_REFERENCE_DATE = dt.date(2999, 12, 31)


def is_supported_reference_date(value: dt.date) -> bool:
    return MIN_REFERENCE_DATE <= value <= MAX_REFERENCE_DATE


def _week(ref: dt.date) -> tuple[dt.date, dt.date]:
    start = ref + relativedelta(weekday=MO(-1))
    return start, start + dt.timedelta(days=6)


def _month(ref: dt.date) -> tuple[dt.date, dt.date]:
    start = ref.replace(day=1)
    return start, start + relativedelta(months=1, days=-1)


def _year(ref: dt.date) -> tuple[dt.date, dt.date]:
    return dt.date(ref.year, 1, 1), dt.date(ref.year, 12, 31)


def period_bounds(period: PeriodKind, reference_date: dt.date, today: Optional[dt.date] = None) -> PeriodBounds:
    """
    Période courante contenant reference_date et période équivalente précédente.
    La fin de la période courante est ramenée à `today` : on ne rapporte jamais sur des jours non écoulés.
    Une période entièrement future donne end < start (période vide mais valide).
    ValueError hors de [MIN_REFERENCE_DATE, MAX_REFERENCE_DATE].
    """
    if not is_supported_reference_date(reference_date):
        raise ValueError(f"reference_date out of range: {reference_date}")
    today = today or dt.date.today()
    ref = reference_date

    if period == PeriodKind.DAY:
        start = end = ref
        prev_start = prev_end = ref - dt.timedelta(days=1)
    elif period == PeriodKind.WEEK:
        start, end = _week(ref)
        prev_start, prev_end = _week(ref - dt.timedelta(weeks=1))
    elif period == PeriodKind.MONTH:
        start, end = _month(ref)
        prev_start, prev_end = _month(ref - relativedelta(months=1))
    elif period == PeriodKind.YEAR:
        start, end = _year(ref)
        prev_start, prev_end = _year(ref - relativedelta(years=1))
    else:
        raise ValueError(f"Unknown period: {period}")

    if end > today:
        end = today

    return PeriodBounds(start=start, end=end, prev_start=prev_start, prev_end=prev_end)


def navigate(
    period: PeriodKind,
    reference_date: dt.date,
    direction: Literal["prev", "next"],
    today: Optional[dt.date] = None,
) -> dt.date:
    """
    Date de référence voisine. Aller dans le futur est bloqué : la date reste inchangée,
    de même qu'en sortant de [MIN_REFERENCE_DATE, MAX_REFERENCE_DATE].
    """
    today = today or dt.date.today()

    if direction == "prev":
        steps = {
            PeriodKind.DAY: relativedelta(days=1),
            PeriodKind.WEEK: relativedelta(weeks=1),
            PeriodKind.MONTH: relativedelta(months=1),
            PeriodKind.YEAR: relativedelta(years=1),
        }
        try:
            candidate = reference_date - steps[period]
        except (OverflowError, ValueError):
            return reference_date
    else:
        # sauts fixes en jours : depuis une fin de mois (ou le 31 décembre d'une année
        # non bissextile) on peut sauter la période suivante, ex. 31/01 + 32 j = 03/03
        jumps = {PeriodKind.DAY: 1, PeriodKind.WEEK: 7, PeriodKind.MONTH: 32, PeriodKind.YEAR: 366}
        try:
            candidate = reference_date + dt.timedelta(days=jumps[period])
        except OverflowError:
            return reference_date

    if candidate > today or not is_supported_reference_date(candidate):
        return reference_date
    return candidate


# -----------------------------
# Libellés
# -----------------------------

def format_day_month(date: dt.date) -> str:
    """'01 mars'"""
    return f"{date.day:02d} {MOIS[date.month - 1]}"


def point_label(date: dt.date, period: PeriodKind) -> str:
    if period == PeriodKind.YEAR:
        return MOIS_ABREGES[date.month - 1]
    return f"{date.day:02d}/{date.month:02d}"


def month_label(year: int, month: int) -> str:
    return f"{MOIS[month - 1]} {year}"


def period_label(period: PeriodKind, reference_date: dt.date, bounds: PeriodBounds) -> str:
    """
    Libellé de la période. Pour une semaine en cours, le libellé affiche toujours
    le dimanche (semaine complète) et non `bounds.end` ramené à aujourd'hui.
    """
    ref = reference_date
    if period == PeriodKind.DAY:
        return f"{JOURS_SEMAINE[ref.weekday()]} {format_day_month(ref)} {ref.year}"
    if period == PeriodKind.WEEK:
        start = bounds.start
        end = start + dt.timedelta(days=6)
        return (
            f"Semaine du {start.day:02d} {MOIS_ABREGES[start.month - 1]} "
            f"au {end.day:02d} {MOIS_ABREGES[end.month - 1]} {end.year}"
        )
    if period == PeriodKind.MONTH:
        return month_label(ref.year, ref.month)
    return str(ref.year)
