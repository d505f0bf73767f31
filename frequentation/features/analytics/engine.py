"""
➡️ But : Calculer les indicateurs d'une période à partir d'une copie en mémoire du jeu de données.

Fonctions pures (aucun accès DB, aucun effet de bord) :

period_bounds → jours retenus → KPIs, série quotidienne, tendance 7 jours, insights.

`today` est injectable pour rendre les calculs déterministes en test.
"""

import csv
import datetime as dt
import io
import math
from typing import Dict, Iterable, List, Optional, Sequence

from frequentation.features.dataset.schemas import JourOut, TypologieOut
from frequentation.features.analytics.periods import (
    format_day_month,
    month_label,
    period_bounds,
    period_label,
    point_label,
)
from frequentation.features.analytics.schemas import (
    AnalyticsFilters,
    AnalyticsOut,
    CalendarDay,
    CalendarFilter,
    CalendarMonthOut,
    ChartPoint,
    DayTotal,
    Insight,
    KPIData,
    PeriodBounds,
    PeriodKind,
    TopTypologie,
)

TREND_WINDOW = 7
ANOMALY_MIN_POINTS = 6
ANOMALY_MIN_NON_ZERO = 3
ANOMALY_SIGMAS = 2


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _days(start: dt.date, end: dt.date) -> List[dt.date]:
    return [start + dt.timedelta(days=i) for i in range((end - start).days + 1)]


def _in_range(jours: Iterable[JourOut], start: dt.date, end: dt.date) -> List[JourOut]:
    return sorted((j for j in jours if start <= j.date <= end), key=lambda j: j.date)


def active_typologies(typologies: Sequence[TypologieOut]) -> List[TypologieOut]:
    return sorted((t for t in typologies if t.actif), key=lambda t: t.ordre)


def included_typologie_ids(typologies: Sequence[TypologieOut], selected: Sequence[str]) -> List[str]:
    """Sélection explicite, ou toutes les typologies actives si la sélection est vide."""
    if selected:
        return list(selected)
    return [t.id for t in active_typologies(typologies)]


def calculate_total(jour: JourOut, typologies: Sequence[TypologieOut]) -> int:
    """Total affiché d'un jour : le total saisi en override, sinon la somme des typologies actives."""
    if jour.override_total:
        return jour.total_visites
    active = {t.id for t in typologies if t.actif}
    return sum(c.count for c in jour.typologies if c.typologie_id in active)


# -----------------------------
# KPIs
# -----------------------------

def compute_kpis(
    jours: Sequence[JourOut],
    typologies: Sequence[TypologieOut],
    bounds: PeriodBounds,
    included: Sequence[str],
) -> KPIData:
    included_set = set(included)
    names = {t.id: t.nom for t in typologies}

    period_jours = _in_range(jours, bounds.start, bounds.end)
    prev_jours = _in_range(jours, bounds.prev_start, bounds.prev_end)

    total = 0
    jour_max: Optional[DayTotal] = None
    jour_min: Optional[DayTotal] = None
    per_typologie: Dict[str, int] = {}

    for jour in period_jours:
        jour_total = 0
        for c in jour.typologies:
            if c.typologie_id in included_set:
                jour_total += c.count
                per_typologie[c.typologie_id] = per_typologie.get(c.typologie_id, 0) + c.count
        total += jour_total

        # inégalités strictes : à égalité, la date la plus ancienne l'emporte
        if jour_max is None or jour_total > jour_max.total:
            jour_max = DayTotal(date=jour.date, total=jour_total)
        if jour_min is None or jour_total < jour_min.total:
            jour_min = DayTotal(date=jour.date, total=jour_total)

    top3 = [
        TopTypologie(
            id=typologie_id,
            nom=names.get(typologie_id, "Inconnu"),
            count=count,
            percentage=round_half_up(count / total * 100) if total > 0 else 0,
        )
        for typologie_id, count in sorted(per_typologie.items(), key=lambda kv: kv[1], reverse=True)[:3]
    ]

    prev_total = sum(
        c.count for jour in prev_jours for c in jour.typologies if c.typologie_id in included_set
    )
    evolution = round_half_up((total - prev_total) / prev_total * 100) if prev_total > 0 else None

    elapsed = 0 if bounds.is_empty else (bounds.end - bounds.start).days + 1
    with_data = len(period_jours)

    return KPIData(
        total_periode=total,
        moyenne_par_jour=round_half_up(total / with_data) if with_data > 0 else 0,
        jour_max=jour_max,
        jour_min=jour_min,
        top3_typologies=top3,
        evolution_precedente=evolution,
        jours_avec_donnees=with_data,
        jours_sans_donnees=max(0, elapsed - with_data),
    )


# -----------------------------
# Séries
# -----------------------------

def build_series(
    jours: Sequence[JourOut],
    typologies: Sequence[TypologieOut],
    bounds: PeriodBounds,
    included: Sequence[str],
    period: PeriodKind,
) -> List[ChartPoint]:
    """Un point par jour écoulé de la période, à zéro quand il n'y a pas de saisie."""
    if bounds.is_empty:
        return []

    by_date = {j.date: j for j in jours}
    included_set = set(included)
    active = {t.id: t.nom for t in active_typologies(typologies)}

    series: List[ChartPoint] = []
    for day in _days(bounds.start, bounds.end):
        point = ChartPoint(date=day, label=point_label(day, period))
        jour = by_date.get(day)
        if jour:
            for c in jour.typologies:
                if c.typologie_id in included_set and c.typologie_id in active:
                    point.details[active[c.typologie_id]] = c.count
                    point.total += c.count
        series.append(point)
    return series


def with_trend_line(series: List[ChartPoint], window: int = TREND_WINDOW) -> List[ChartPoint]:
    """Moyenne mobile glissante sur `window` points ; série inchangée si elle est trop courte."""
    if len(series) < window:
        return series

    out: List[ChartPoint] = []
    for index, point in enumerate(series):
        chunk = series[max(0, index - window + 1): index + 1]
        avg = sum(p.total for p in chunk) / len(chunk)
        out.append(point.model_copy(update={"moyenne_7j": round_half_up(avg)}))
    return out


def detect_anomalies(series: Sequence[ChartPoint]) -> List[ChartPoint]:
    """Jours dont le total dépasse moyenne + 2σ (σ de population, sur les totaux non nuls)."""
    if len(series) < ANOMALY_MIN_POINTS:
        return []
    totals = [p.total for p in series if p.total > 0]
    if len(totals) < ANOMALY_MIN_NON_ZERO:
        return []

    mean = sum(totals) / len(totals)
    std = math.sqrt(sum((t - mean) ** 2 for t in totals) / len(totals))
    threshold = mean + ANOMALY_SIGMAS * std
    return [p for p in series if p.total > threshold]


def generate_insights(kpis: KPIData, series: Sequence[ChartPoint]) -> List[Insight]:
    insights: List[Insight] = []

    if kpis.top3_typologies:
        top = kpis.top3_typologies[0]
        insights.append(Insight(
            type="info",
            message=f'La typologie la plus fréquente est "{top.nom}" avec {top.count} entrées ({top.percentage}%).',
        ))

    if kpis.jour_max:
        insights.append(Insight(
            type="info",
            message=(
                f"Le pic de fréquentation est le {format_day_month(kpis.jour_max.date)} "
                f"avec {kpis.jour_max.total} visiteurs."
            ),
        ))

    if kpis.jours_sans_donnees > 0:
        insights.append(Insight(
            type="warning",
            message=f"{kpis.jours_sans_donnees} jour(s) sans données sur cette période.",
        ))

    anomalies = detect_anomalies(series)
    if anomalies:
        insights.append(Insight(
            type="anomaly",
            message=f"{len(anomalies)} jour(s) avec une fréquentation anormalement élevée détecté(s).",
        ))

    return insights


def analyse(
    jours: Sequence[JourOut],
    typologies: Sequence[TypologieOut],
    filters: AnalyticsFilters,
    today: Optional[dt.date] = None,
) -> AnalyticsOut:
    bounds = period_bounds(filters.period, filters.reference_date, today)
    included = included_typologie_ids(typologies, filters.selected_typologies)

    kpis = compute_kpis(jours, typologies, bounds, included)
    series = build_series(jours, typologies, bounds, included, filters.period)
    insights = generate_insights(kpis, series)
    if filters.show_trend_line:
        series = with_trend_line(series)

    return AnalyticsOut(
        period=filters.period,
        reference_date=filters.reference_date,
        label=period_label(filters.period, filters.reference_date, bounds),
        bounds=bounds,
        typologies=included,
        kpis=kpis,
        series=series,
        insights=insights,
    )


# -----------------------------
# Export CSV
# -----------------------------

def series_to_csv(series: Sequence[ChartPoint], typologies: Sequence[TypologieOut]) -> str:
    """Date;Total;<typologies actives>, une ligne par point de la série."""
    names = [t.nom for t in active_typologies(typologies)]

    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\n")
    writer.writerow(["Date", "Total", *names])
    for point in series:
        writer.writerow([point.date.isoformat(), point.total, *(point.details.get(n, 0) for n in names)])
    return buffer.getvalue()


# -----------------------------
# Calendrier
# -----------------------------

def calendar_month(
    jours: Sequence[JourOut],
    typologies: Sequence[TypologieOut],
    year: int,
    month: int,
    day_filter: CalendarFilter = CalendarFilter.ALL,
    today: Optional[dt.date] = None,
) -> CalendarMonthOut:
    """Grille du lundi précédant le 1er au dimanche suivant la fin du mois."""
    today = today or dt.date.today()
    first = dt.date(year, month, 1)
    grid_start = first - dt.timedelta(days=first.weekday())
    last = (first.replace(day=28) + dt.timedelta(days=4)).replace(day=1) - dt.timedelta(days=1)
    grid_end = last + dt.timedelta(days=6 - last.weekday())

    by_date = {j.date: j for j in jours}
    days: List[CalendarDay] = []
    for day in _days(grid_start, grid_end):
        jour = by_date.get(day)
        has_data = jour is not None
        if day_filter == CalendarFilter.WITH_DATA:
            visible = has_data
        elif day_filter == CalendarFilter.WITHOUT_DATA:
            visible = not has_data
        else:
            visible = True

        days.append(CalendarDay(
            date=day,
            in_month=day.month == month,
            is_today=day == today,
            is_future=day > today,
            has_data=has_data,
            visible=visible,
            total=calculate_total(jour, typologies) if jour else None,
            estimee=jour.estimee if jour else False,
        ))

    return CalendarMonthOut(
        year=year, month=month, label=month_label(year, month), filter=day_filter, days=days
    )
