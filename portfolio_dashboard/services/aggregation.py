"""
Financial Aggregation Engine
Derives portfolio KPIs, monthly trend points and per-property rollups from
monthly ledger rows that the caller has already fetched.

Every function here is pure: no I/O, no shared state, and every division is
guarded so that empty or zero inputs produce 0 rather than an error.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from portfolio_dashboard.schemas.financial import (
    MonthlyPerformancePoint,
    NormalizedFinancialRecord,
    PerformanceTier,
    PortfolioKPISnapshot,
    PropertyRollup,
)
from portfolio_dashboard.schemas.property import PropertySummary


# ═══════════════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════════

VACANCY_MIN = 0.0
VACANCY_MAX = 100.0

# Upstream data sometimes stores vacancy scaled by 100 (9500 meaning 95.00%).
# A mean above this is divided by VACANCY_RESCALE before clamping.
VACANCY_RESCALE_THRESHOLD = 100.0
VACANCY_RESCALE = 100.0

# (tier, minimum NOI margin %, maximum vacancy % or None) in priority order
PERFORMANCE_TIERS = [
    (PerformanceTier.EXCELLENT, 30.0, 5.0),
    (PerformanceTier.GOOD, 20.0, 10.0),
    (PerformanceTier.FAIR, 10.0, None),
]


# ═══════════════════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def normalize_vacancy(values: Iterable[float]) -> float:
    """
    Mean vacancy percentage, always within [0, 100].

    If the raw mean is above 100 it is treated as a mis-scaled value and
    divided by 100 first; anything still out of range is clamped.
    """
    values = list(values)
    if not values:
        return 0.0

    mean = sum(values) / len(values)
    if mean > VACANCY_RESCALE_THRESHOLD:
        mean = mean / VACANCY_RESCALE
    return min(max(mean, VACANCY_MIN), VACANCY_MAX)


def percent_change(current: float, prior: float) -> float:
    """Year-over-year change in percent; 0 when there is no prior base."""
    if prior == 0:
        return 0.0
    return (current - prior) / prior * 100


def noi_margin(noi: float, revenue: float) -> float:
    """NOI as a percentage of revenue; 0 when revenue is not positive."""
    if revenue > 0:
        return noi / revenue * 100
    return 0.0


def classify_performance(margin: float, avg_vacancy: float) -> PerformanceTier:
    """Map an (NOI margin, vacancy) pair to exactly one tier; first match wins."""
    for tier, min_margin, max_vacancy in PERFORMANCE_TIERS:
        if margin < min_margin:
            continue
        if max_vacancy is not None and avg_vacancy > max_vacancy:
            continue
        return tier
    return PerformanceTier.POOR


def filter_through_month(
    records: Iterable[NormalizedFinancialRecord],
    month: Optional[int],
) -> List[NormalizedFinancialRecord]:
    """Keep records for months 1..month (year-to-date window). None keeps all."""
    if month is None:
        return list(records)
    return [r for r in records if r.reporting_month.month <= month]


# ═══════════════════════════════════════════════════════════════════════════════
# CORE AGGREGATION
# ═══════════════════════════════════════════════════════════════════════════════

def compute_portfolio_kpis(
    current_year_records: Sequence[NormalizedFinancialRecord],
    prior_year_records: Sequence[NormalizedFinancialRecord],
    properties: Sequence[PropertySummary],
    year: Optional[int] = None,
) -> PortfolioKPISnapshot:
    """
    Portfolio-level KPIs for one year, with variances against the prior year.

    property_count counts properties that reported in the current year, while
    portfolio_value sums purchase prices over the whole property list.
    """
    total_revenue = sum(r.total_income for r in current_year_records)
    total_expenses = sum(r.total_expenses for r in current_year_records)
    total_noi = sum(r.noi for r in current_year_records)

    prev_revenue = sum(r.total_income for r in prior_year_records)
    prev_noi = sum(r.noi for r in prior_year_records)

    # An empty year reports no change rather than a -100% drop
    if current_year_records:
        noi_variance = percent_change(total_noi, prev_noi)
        revenue_variance = percent_change(total_revenue, prev_revenue)
    else:
        noi_variance = 0.0
        revenue_variance = 0.0

    return PortfolioKPISnapshot(
        year=year,
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        total_noi=total_noi,
        avg_vacancy=normalize_vacancy(r.vacancy_rate for r in current_year_records),
        property_count=len({r.property_id for r in current_year_records}),
        portfolio_value=sum(p.purchase_price for p in properties),
        noi_variance=noi_variance,
        revenue_variance=revenue_variance,
        prev_noi=prev_noi,
        prev_revenue=prev_revenue,
    )


def compute_monthly_series(
    year_records: Sequence[NormalizedFinancialRecord],
) -> List[MonthlyPerformancePoint]:
    """One point per month that has records, ascending. Empty months are omitted."""
    by_month: Dict[date, List[NormalizedFinancialRecord]] = defaultdict(list)
    for record in year_records:
        by_month[record.reporting_month].append(record)

    series = []
    for month in sorted(by_month):
        rows = by_month[month]
        revenue = sum(r.total_income for r in rows)
        noi = sum(r.noi for r in rows)
        series.append(MonthlyPerformancePoint(
            reporting_month=month,
            revenue=revenue,
            expenses=sum(r.total_expenses for r in rows),
            noi=noi,
            cash_flow=sum(r.cash_flow for r in rows),
            avg_vacancy=normalize_vacancy(r.vacancy_rate for r in rows),
            noi_margin=noi_margin(noi, revenue),
        ))
    return series


def zero_fill_monthly_series(
    series: Sequence[MonthlyPerformancePoint],
    year: int,
) -> List[MonthlyPerformancePoint]:
    """Dense January..December series; months without data are all zeros."""
    by_month = {p.reporting_month: p for p in series}
    filled = []
    for m in range(1, 13):
        month = date(year, m, 1)
        filled.append(by_month.get(month) or MonthlyPerformancePoint(reporting_month=month))
    return filled


def compute_property_rollups(
    year_records: Sequence[NormalizedFinancialRecord],
    properties: Sequence[PropertySummary],
) -> List[PropertyRollup]:
    """
    One rollup per property in `properties`, including properties that did not
    report this year. Records for properties outside the list are ignored.
    Sorted by property name (case-sensitive), then property id.
    """
    by_property: Dict[int, List[NormalizedFinancialRecord]] = defaultdict(list)
    for record in year_records:
        by_property[record.property_id].append(record)

    rollups = []
    for prop in properties:
        rows = by_property.get(prop.property_id, [])
        revenue = sum(r.total_income for r in rows)
        noi = sum(r.noi for r in rows)
        margin = noi_margin(noi, revenue)
        avg_vacancy = normalize_vacancy(r.vacancy_rate for r in rows)
        avg_occupancy = sum(r.occupancy_rate for r in rows) / len(rows) if rows else 0.0

        rollups.append(PropertyRollup(
            property_id=prop.property_id,
            property_name=prop.property_name,
            purchase_price=prop.purchase_price,
            unit_count=prop.unit_count,
            total_revenue=revenue,
            total_expenses=sum(r.total_expenses for r in rows),
            total_noi=noi,
            total_cash_flow=sum(r.cash_flow for r in rows),
            avg_vacancy=avg_vacancy,
            avg_occupancy=avg_occupancy,
            months_reported=len({r.reporting_month for r in rows}),
            noi_margin=margin,
            performance_tier=classify_performance(margin, avg_vacancy),
        ))

    rollups.sort(key=lambda r: (r.property_name, r.property_id))
    return rollups


__all__ = [
    "normalize_vacancy",
    "percent_change",
    "noi_margin",
    "classify_performance",
    "filter_through_month",
    "compute_portfolio_kpis",
    "compute_monthly_series",
    "zero_fill_monthly_series",
    "compute_property_rollups",
]
