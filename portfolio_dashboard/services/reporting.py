"""
Dashboard reporting
Fetches rows through a FinancialRepository and hands them to the aggregation engine.
"""
import logging
from typing import List, Optional

from portfolio_dashboard.schemas.financial import (
    MonthlyPerformancePoint,
    PortfolioKPISnapshot,
    PropertyRollup,
)
from portfolio_dashboard.services.aggregation import (
    compute_monthly_series,
    compute_portfolio_kpis,
    compute_property_rollups,
    filter_through_month,
    zero_fill_monthly_series,
)
from portfolio_dashboard.services.repository import FinancialRepository

logger = logging.getLogger(__name__)


def build_portfolio_kpis(
    repo: FinancialRepository,
    year: int,
    through_month: Optional[int] = None,
) -> PortfolioKPISnapshot:
    """
    KPI snapshot for `year` against `year - 1`.

    With `through_month`, both years are cut to January..through_month so the
    variance compares the same window of each year.
    """
    current = filter_through_month(repo.list_records(year=year), through_month)
    prior = filter_through_month(repo.list_records(year=year - 1), through_month)
    properties = repo.list_properties()

    logger.debug(f"KPIs {year}: {len(current)} current rows, {len(prior)} prior rows")
    return compute_portfolio_kpis(current, prior, properties, year=year)


def build_monthly_performance(
    repo: FinancialRepository,
    year: int,
    dense: bool = False,
) -> List[MonthlyPerformancePoint]:
    series = compute_monthly_series(repo.list_records(year=year))
    if dense:
        return zero_fill_monthly_series(series, year)
    return series


def build_property_details(repo: FinancialRepository, year: int) -> List[PropertyRollup]:
    return compute_property_rollups(repo.list_records(year=year), repo.list_properties())
