"""
Dashboard Routes
Read-only portfolio views for one reporting year.

Endpoints:
  GET /dashboard/kpis                  – KPI snapshot with prior-year variance
  GET /dashboard/monthly-performance   – revenue / expenses / NOI per month
  GET /dashboard/property-details      – per-property rollup and tier
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from portfolio_dashboard.core.security import get_current_user
from portfolio_dashboard.dependencies import get_repository, get_through_month, get_year
from portfolio_dashboard.schemas.auth import AuthenticatedUser
from portfolio_dashboard.services import reporting
from portfolio_dashboard.services.repository import FinancialRepository

router = APIRouter(tags=["Dashboard"])
logger = logging.getLogger(__name__)


@router.get("/kpis")
def get_kpis(
    year: int = Depends(get_year),
    through_month: Optional[int] = Depends(get_through_month),
    current_user: AuthenticatedUser = Depends(get_current_user),
    repo: FinancialRepository = Depends(get_repository),
):
    snapshot = reporting.build_portfolio_kpis(repo, year, through_month=through_month)
    return {"success": True, "data": snapshot.model_dump(mode="json")}


@router.get("/monthly-performance")
def get_monthly_performance(
    year: int = Depends(get_year),
    dense: bool = Query(False, description="Return all twelve months, zero-filled"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    repo: FinancialRepository = Depends(get_repository),
):
    series = reporting.build_monthly_performance(repo, year, dense=dense)
    return {
        "success": True,
        "year": year,
        "data": [point.model_dump(mode="json") for point in series],
    }


@router.get("/property-details")
def get_property_details(
    year: int = Depends(get_year),
    current_user: AuthenticatedUser = Depends(get_current_user),
    repo: FinancialRepository = Depends(get_repository),
):
    rollups = reporting.build_property_details(repo, year)
    return {
        "success": True,
        "year": year,
        "data": [rollup.model_dump(mode="json") for rollup in rollups],
    }
