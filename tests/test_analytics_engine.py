import datetime as dt

import pytest

from frequentation.features.analytics import engine
from frequentation.features.analytics.periods import navigate, period_bounds, period_label
from frequentation.features.analytics.schemas import (
    AnalyticsFilters,
    CalendarFilter,
    ChartPoint,
    PeriodKind,
)
from frequentation.features.dataset.schemas import JourOut, TypologieCount, TypologieOut

LATER = dt.date(2024, 12, 31)

TYPOLOGIES = [
    TypologieOut(id="a", nom="Fablab", couleur="#10b981", actif=True, ordre=1),
    TypologieOut(id="b", nom="Céramiste", couleur="#3b82f6", actif=True, ordre=2),
    TypologieOut(id="c", nom="Archive", couleur="#f59e0b", actif=False, ordre=3),
]


def jour(date, counts, total=None, override=False):
    return JourOut(
        date=date,
        total_visites=sum(counts.values()) if total is None else total,
        override_total=override,
        typologies=[TypologieCount(typologie_id=k, count=v) for k, v in counts.items()],
        note="",
        estimee=False,
        derniere_maj=dt.datetime(2024, 1, 1, 12, 0),
    )


def points(totals, start=dt.date(2024, 3, 1)):
    return [
        ChartPoint(date=start + dt.timedelta(days=i), label="", total=t)
        for i, t in enumerate(totals)
    ]


WEEK_JOURS = [
    jour(dt.date(2024, 2, 28), {"a": 10}),
    jour(dt.date(2024, 3, 4), {"a": 3, "b": 2}),
    jour(dt.date(2024, 3, 5), {"a": 1, "c": 40}),
    jour(dt.date(2024, 3, 6), {"a": 4, "b": 1}),
]


# -----------------------------
# Bornes de périodes
# -----------------------------

def test_week_bounds_start_on_monday():
    bounds = period_bounds(PeriodKind.WEEK, dt.date(2024, 3, 6), today=LATER)

    assert (bounds.start, bounds.end) == (dt.date(2024, 3, 4), dt.date(2024, 3, 10))
    assert (bounds.prev_start, bounds.prev_end) == (dt.date(2024, 2, 26), dt.date(2024, 3, 3))


def test_current_week_is_clamped_to_today():
    bounds = period_bounds(PeriodKind.WEEK, dt.date(2024, 3, 6), today=dt.date(2024, 3, 6))

    assert bounds.end == dt.date(2024, 3, 6)
    assert not bounds.is_empty


def test_month_bounds_handle_leap_years():
    bounds = period_bounds(PeriodKind.MONTH, dt.date(2024, 3, 31), today=LATER)

    assert (bounds.start, bounds.end) == (dt.date(2024, 3, 1), dt.date(2024, 3, 31))
    assert (bounds.prev_start, bounds.prev_end) == (dt.date(2024, 2, 1), dt.date(2024, 2, 29))


def test_year_and_day_bounds():
    year = period_bounds(PeriodKind.YEAR, dt.date(2024, 6, 15), today=LATER)
    assert (year.start, year.end) == (dt.date(2024, 1, 1), dt.date(2024, 12, 31))
    assert (year.prev_start, year.prev_end) == (dt.date(2023, 1, 1), dt.date(2023, 12, 31))

    day = period_bounds(PeriodKind.DAY, dt.date(2024, 3, 1), today=LATER)
    assert day.start == day.end == dt.date(2024, 3, 1)
    assert day.prev_start == day.prev_end == dt.date(2024, 2, 29)


def test_future_period_is_empty():
    bounds = period_bounds(PeriodKind.WEEK, dt.date(2024, 3, 12), today=dt.date(2024, 3, 1))

    assert bounds.is_empty
    kpis = engine.compute_kpis(WEEK_JOURS, TYPOLOGIES, bounds, ["a", "b"])
    assert kpis.jours_sans_donnees == 0
    assert engine.build_series(WEEK_JOURS, TYPOLOGIES, bounds, ["a", "b"], PeriodKind.WEEK) == []


# -----------------------------
# Navigation et libellés
# -----------------------------

@pytest.mark.parametrize(
    "period, ref, direction, expected",
    [
        (PeriodKind.DAY, dt.date(2024, 3, 1), "prev", dt.date(2024, 2, 29)),
        (PeriodKind.WEEK, dt.date(2024, 3, 6), "prev", dt.date(2024, 2, 28)),
        (PeriodKind.MONTH, dt.date(2024, 3, 31), "prev", dt.date(2024, 2, 29)),
        (PeriodKind.YEAR, dt.date(2024, 2, 29), "prev", dt.date(2023, 2, 28)),
        (PeriodKind.MONTH, dt.date(2024, 1, 31), "next", dt.date(2024, 3, 3)),
        (PeriodKind.YEAR, dt.date(2022, 12, 31), "next", dt.date(2024, 1, 1)),
        (PeriodKind.WEEK, dt.date(2024, 3, 6), "next", dt.date(2024, 3, 13)),
    ],
)
def test_navigate(period, ref, direction, expected):
    assert navigate(period, ref, direction, today=LATER) == expected


def test_navigate_never_goes_into_the_future():
    today = dt.date(2024, 3, 6)

    assert navigate(PeriodKind.DAY, today, "next", today=today) == today
    assert navigate(PeriodKind.YEAR, dt.date(2024, 1, 1), "next", today=today) == dt.date(2024, 1, 1)


def test_navigate_stays_put_at_the_edges_of_the_supported_range():
    assert navigate(PeriodKind.DAY, dt.date(1900, 1, 1), "prev", today=LATER) == dt.date(1900, 1, 1)
    assert navigate(PeriodKind.YEAR, dt.date.min, "prev", today=LATER) == dt.date.min
    assert navigate(PeriodKind.YEAR, dt.date.max, "next", today=dt.date.max) == dt.date.max


@pytest.mark.parametrize("ref", [dt.date(1, 1, 1), dt.date(1899, 12, 31), dt.date(3000, 1, 1), dt.date(9999, 12, 15)])
def test_period_bounds_reject_out_of_range_dates(ref):
    with pytest.raises(ValueError):
        period_bounds(PeriodKind.MONTH, ref, today=LATER)


def test_far_future_period_is_empty_without_error():
    result = engine.analyse(
        WEEK_JOURS, TYPOLOGIES, AnalyticsFilters(period=PeriodKind.MONTH, reference_date=dt.date(2999, 12, 15)), today=LATER
    )

    assert result.bounds.is_empty
    assert result.series == []
    assert result.kpis.total_periode == 0


def test_period_labels():
    ref = dt.date(2024, 3, 6)
    bounds = period_bounds(PeriodKind.WEEK, ref, today=ref)

    # fin ramenée à aujourd'hui, mais le libellé montre la semaine complète
    assert bounds.end == ref
    assert period_label(PeriodKind.WEEK, ref, bounds) == "Semaine du 04 mars au 10 mars 2024"
    assert period_label(PeriodKind.MONTH, ref, bounds) == "mars 2024"
    assert period_label(PeriodKind.YEAR, ref, bounds) == "2024"
    assert period_label(PeriodKind.DAY, dt.date(2024, 3, 1), bounds) == "vendredi 01 mars 2024"


# -----------------------------
# Totaux et KPIs
# -----------------------------

def test_round_half_up():
    assert engine.round_half_up(2.5) == 3
    assert engine.round_half_up(3.4999) == 3
    assert engine.round_half_up(72.72) == 73


def test_calculate_total_ignores_inactive_typologies_unless_overridden():
    assert engine.calculate_total(jour(dt.date(2024, 3, 5), {"a": 1, "c": 40}), TYPOLOGIES) == 1
    assert engine.calculate_total(jour(dt.date(2024, 3, 5), {"a": 1}, total=30, override=True), TYPOLOGIES) == 30


def test_default_selection_is_active_typologies():
    assert engine.included_typologie_ids(TYPOLOGIES, []) == ["a", "b"]
    assert engine.included_typologie_ids(TYPOLOGIES, ["c"]) == ["c"]


def test_week_kpis():
    bounds = period_bounds(PeriodKind.WEEK, dt.date(2024, 3, 6), today=LATER)
    kpis = engine.compute_kpis(WEEK_JOURS, TYPOLOGIES, bounds, ["a", "b"])

    assert kpis.total_periode == 11
    assert kpis.moyenne_par_jour == 4
    # égalité à 5 : la date la plus ancienne l'emporte
    assert (kpis.jour_max.date, kpis.jour_max.total) == (dt.date(2024, 3, 4), 5)
    assert (kpis.jour_min.date, kpis.jour_min.total) == (dt.date(2024, 3, 5), 1)
    assert [(t.id, t.count, t.percentage) for t in kpis.top3_typologies] == [("a", 8, 73), ("b", 3, 27)]
    assert kpis.evolution_precedente == 10
    assert kpis.jours_avec_donnees == 3
    assert kpis.jours_sans_donnees == 4


def test_kpis_without_data():
    bounds = period_bounds(PeriodKind.MONTH, dt.date(2023, 6, 1), today=LATER)
    kpis = engine.compute_kpis(WEEK_JOURS, TYPOLOGIES, bounds, ["a", "b"])

    assert kpis.total_periode == 0
    assert kpis.moyenne_par_jour == 0
    assert kpis.jour_max is None
    assert kpis.top3_typologies == []
    assert kpis.evolution_precedente is None
    assert kpis.jours_sans_donnees == 30


# -----------------------------
# Séries, tendance, anomalies
# -----------------------------

def test_series_has_one_point_per_elapsed_day():
    bounds = period_bounds(PeriodKind.WEEK, dt.date(2024, 3, 6), today=dt.date(2024, 3, 6))
    series = engine.build_series(WEEK_JOURS, TYPOLOGIES, bounds, ["a", "b"], PeriodKind.WEEK)

    assert [p.label for p in series] == ["04/03", "05/03", "06/03"]
    assert [p.total for p in series] == [5, 1, 5]
    assert series[0].details == {"Fablab": 3, "Céramiste": 2}
    assert "Archive" not in series[1].details


def test_trend_line_is_a_rolling_average():
    series = engine.with_trend_line(points([1, 2, 3, 4, 5, 6, 7, 8]))

    assert [p.moyenne_7j for p in series] == [1, 2, 2, 3, 3, 4, 4, 5]


def test_trend_line_needs_a_full_window():
    series = engine.with_trend_line(points([1, 2, 3]))

    assert all(p.moyenne_7j is None for p in series)


def test_detect_anomalies_flags_outliers():
    series = points([5, 5, 5, 5, 5, 5, 50])

    flagged = engine.detect_anomalies(series)
    assert [p.total for p in flagged] == [50]


@pytest.mark.parametrize("totals", [[5, 5, 5, 5, 50], [0, 0, 0, 0, 5, 50]])
def test_detect_anomalies_needs_enough_points(totals):
    assert engine.detect_anomalies(points(totals)) == []


def test_insights_order_and_wording():
    result = engine.analyse(
        WEEK_JOURS,
        TYPOLOGIES,
        AnalyticsFilters(period=PeriodKind.WEEK, reference_date=dt.date(2024, 3, 6)),
        today=LATER,
    )

    assert [(i.type, i.message) for i in result.insights] == [
        ("info", 'La typologie la plus fréquente est "Fablab" avec 8 entrées (73%).'),
        ("info", "Le pic de fréquentation est le 04 mars avec 5 visiteurs."),
        ("warning", "4 jour(s) sans données sur cette période."),
    ]
    assert result.label == "Semaine du 04 mars au 10 mars 2024"
    assert len(result.series) == 7


def test_analyse_adds_trend_line_on_request():
    filters = AnalyticsFilters(
        period=PeriodKind.MONTH, reference_date=dt.date(2024, 3, 1), show_trend_line=True
    )
    result = engine.analyse(WEEK_JOURS, TYPOLOGIES, filters, today=LATER)

    assert len(result.series) == 31
    assert all(p.moyenne_7j is not None for p in result.series)


def test_anomaly_insight():
    jours = [jour(dt.date(2024, 3, d), {"a": 5}) for d in range(4, 10)] + [jour(dt.date(2024, 3, 10), {"a": 50})]
    result = engine.analyse(
        jours, TYPOLOGIES, AnalyticsFilters(period=PeriodKind.WEEK, reference_date=dt.date(2024, 3, 6)), today=LATER
    )

    assert result.insights[-1].type == "anomaly"
    assert result.insights[-1].message.startswith("1 jour(s)")


# -----------------------------
# Export CSV et calendrier
# -----------------------------

def test_series_to_csv():
    bounds = period_bounds(PeriodKind.WEEK, dt.date(2024, 3, 6), today=dt.date(2024, 3, 5))
    series = engine.build_series(WEEK_JOURS, TYPOLOGIES, bounds, ["a", "b"], PeriodKind.WEEK)

    assert engine.series_to_csv(series, TYPOLOGIES) == (
        "Date;Total;Fablab;Céramiste\n"
        "2024-03-04;5;3;2\n"
        "2024-03-05;1;1;0\n"
    )


def test_calendar_month_grid():
    cal = engine.calendar_month(WEEK_JOURS, TYPOLOGIES, 2024, 3, today=dt.date(2024, 3, 6))

    assert cal.label == "mars 2024"
    assert cal.days[0].date == dt.date(2024, 2, 26)
    assert cal.days[-1].date == dt.date(2024, 3, 31)
    assert len(cal.days) == 35

    by_date = {d.date: d for d in cal.days}
    assert by_date[dt.date(2024, 2, 28)].in_month is False
    assert by_date[dt.date(2024, 3, 5)].total == 1
    assert by_date[dt.date(2024, 3, 6)].is_today
    assert by_date[dt.date(2024, 3, 7)].is_future
    assert by_date[dt.date(2024, 3, 7)].total is None


def test_calendar_filters():
    with_data = engine.calendar_month(WEEK_JOURS, TYPOLOGIES, 2024, 3, CalendarFilter.WITH_DATA, today=LATER)
    without = engine.calendar_month(WEEK_JOURS, TYPOLOGIES, 2024, 3, CalendarFilter.WITHOUT_DATA, today=LATER)

    assert sum(d.visible for d in with_data.days) == 4
    assert sum(d.visible for d in without.days) == 31
