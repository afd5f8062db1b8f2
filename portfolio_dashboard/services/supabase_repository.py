"""
Supabase (PostgREST) backend for FinancialRepository
Same contract as the SQLAlchemy backend, expressed as REST filters.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

from pydantic import ValidationError
from supabase import Client

from portfolio_dashboard.core.config import settings
from portfolio_dashboard.core.exceptions import DataAccessError
from portfolio_dashboard.schemas.financial import MonthlyFinancialRecord, NormalizedFinancialRecord
from portfolio_dashboard.schemas.property import PropertySummary
from portfolio_dashboard.services.repository import FinancialRepository, record_values

logger = logging.getLogger(__name__)

PROPERTY_COLUMNS = "property_id,property_name,purchase_price,unit_count,address,city,state"
UPSERT_CONFLICT_COLUMNS = "property_id,reporting_month"

T = TypeVar("T")


class SupabaseFinancialRepository(FinancialRepository):
    """Repository over the Supabase REST API."""

    def __init__(
        self,
        client: Client,
        properties_table: Optional[str] = None,
        financials_table: Optional[str] = None,
    ):
        self.client = client
        self.properties_table = properties_table or settings.SUPABASE_PROPERTIES_TABLE
        self.financials_table = financials_table or settings.SUPABASE_FINANCIALS_TABLE

    def _execute(self, action: str, query) -> List[Dict[str, Any]]:
        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"Supabase error while {action}: {e}")
            raise DataAccessError(f"Failed {action}: {e}") from e
        return response.data or []

    def _convert(self, action: str, build: Callable[..., T], row: Dict[str, Any], **extra) -> T:
        try:
            return build(**{**row, **extra})
        except ValidationError as e:
            logger.error(f"Unreadable Supabase row while {action}: {e}")
            raise DataAccessError(f"Failed {action}: malformed row {row!r}") from e

    def _property_names(self) -> Dict[int, str]:
        return {p.property_id: p.property_name for p in self.list_properties()}

    def list_records(
        self,
        year: Optional[int] = None,
        property_id: Optional[int] = None,
    ) -> List[MonthlyFinancialRecord]:
        query = self.client.table(self.financials_table).select("*")
        if year is not None:
            query = query.gte("reporting_month", f"{year}-01-01").lte("reporting_month", f"{year}-12-31")
        if property_id is not None:
            query = query.eq("property_id", property_id)
        rows = self._execute("fetching financial records", query.order("reporting_month", desc=True))

        names = self._property_names()
        records = []
        for row in rows:
            # Inner join semantics: rows of unknown properties are not listed
            if row.get("property_id") not in names:
                continue
            records.append(self._convert(
                "fetching financial records", MonthlyFinancialRecord, row,
                property_name=names[row["property_id"]],
            ))

        # PostgREST sorts by one column here; name is the secondary key
        records.sort(key=lambda r: r.property_name or "")
        records.sort(key=lambda r: r.reporting_month, reverse=True)
        return records

    def list_properties(self) -> List[PropertySummary]:
        query = self.client.table(self.properties_table)\
            .select(PROPERTY_COLUMNS)\
            .order("property_name")
        rows = self._execute("fetching properties", query)
        return [self._convert("fetching properties", PropertySummary, row) for row in rows]

    def get_property(self, property_id: int) -> Optional[PropertySummary]:
        query = self.client.table(self.properties_table)\
            .select(PROPERTY_COLUMNS)\
            .eq("property_id", property_id)\
            .limit(1)
        rows = self._execute(f"fetching property {property_id}", query)
        if not rows:
            return None
        return self._convert(f"fetching property {property_id}", PropertySummary, rows[0])

    def upsert_record(self, record: NormalizedFinancialRecord) -> MonthlyFinancialRecord:
        payload = {
            "property_id": record.property_id,
            "reporting_month": record.reporting_month.isoformat(),
            **record_values(record),
        }
        query = self.client.table(self.financials_table)\
            .upsert(payload, on_conflict=UPSERT_CONFLICT_COLUMNS)
        rows = self._execute("saving financial data", query)

        prop = self.get_property(record.property_id)
        saved = rows[0] if rows else {**payload}
        return self._convert(
            "saving financial data", MonthlyFinancialRecord, saved,
            property_name=prop.property_name if prop else None,
        )

    def delete_record(self, financial_id: int) -> bool:
        query = self.client.table(self.financials_table)\
            .delete()\
            .eq("financial_id", financial_id)
        rows = self._execute(f"deleting record {financial_id}", query)
        if rows:
            logger.info(f"Deleted financial record {financial_id}")
        return bool(rows)

    def test_connection(self) -> Dict[str, Any]:
        try:
            self.client.table(self.properties_table).select("property_id").limit(1).execute()
        except Exception as e:
            return {"success": False, "message": str(e)}
        return {"success": True, "message": "Supabase connection successful"}
