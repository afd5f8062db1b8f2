"""
Shared FastAPI dependencies: storage backend and query parameter checks
"""
from datetime import date
from typing import Iterator, Optional

from fastapi import HTTPException, Query, status

from portfolio_dashboard.core.config import settings
from portfolio_dashboard.database import get_db
from portfolio_dashboard.services.repository import FinancialRepository, SqlAlchemyFinancialRepository
from portfolio_dashboard.services.supabase_client import get_supabase_client
from portfolio_dashboard.services.supabase_repository import SupabaseFinancialRepository


def get_repository() -> Iterator[FinancialRepository]:
    """One repository per request, backed by DATA_BACKEND. Only the SQL backend opens a session."""
    if settings.DATA_BACKEND.lower() == "supabase":
        yield SupabaseFinancialRepository(get_supabase_client())
        return

    sessions = get_db()
    db = next(sessions)
    try:
        yield SqlAlchemyFinancialRepository(db)
    finally:
        sessions.close()


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def parse_year(raw: Optional[str], today: Optional[date] = None) -> int:
    """
    Reporting year from a query string value, defaulting to the current year.

    Accepted range: MIN_REPORTING_YEAR .. current year + 1.
    """
    current_year = (today or date.today()).year
    if raw is None or raw.strip() == "":
        return current_year
    try:
        year = int(raw)
    except ValueError:
        raise _bad_request("Invalid year parameter")
    if year < settings.MIN_REPORTING_YEAR or year > current_year + 1:
        raise _bad_request("Invalid year parameter")
    return year


def get_year(year: Optional[str] = Query(None, description="Reporting year, defaults to the current year")) -> int:
    return parse_year(year)


def get_property_filter(
    property_id: Optional[str] = Query(None, alias="propertyId", description="Restrict to one property"),
) -> Optional[int]:
    if property_id is None or property_id.strip() == "":
        return None
    try:
        value = int(property_id)
    except ValueError:
        raise _bad_request("Invalid propertyId parameter")
    if value <= 0:
        raise _bad_request("Invalid propertyId parameter")
    return value


def get_through_month(
    through_month: Optional[str] = Query(None, description="Limit both years to January..through_month"),
) -> Optional[int]:
    if through_month is None or through_month.strip() == "":
        return None
    try:
        month = int(through_month)
    except ValueError:
        raise _bad_request("Invalid through_month parameter")
    if not 1 <= month <= 12:
        raise _bad_request("Invalid through_month parameter")
    return month
