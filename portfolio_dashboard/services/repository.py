"""
Financial data access
One interface, interchangeable backends (SQLAlchemy here, Supabase in
supabase_repository.py). Reporting code depends only on FinancialRepository.
"""
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio_dashboard.core.exceptions import DataAccessError
from portfolio_dashboard.database import count_tables
from portfolio_dashboard.db.base import utcnow
from portfolio_dashboard.models.financial import MonthlyFinancial
from portfolio_dashboard.models.property import Property
from portfolio_dashboard.schemas.financial import MonthlyFinancialRecord, NormalizedFinancialRecord
from portfolio_dashboard.schemas.property import PropertySummary

logger = logging.getLogger(__name__)

# Columns written on upsert, besides the (property_id, reporting_month) key
RECORD_COLUMNS = (
    "gross_rent",
    "vacancy_loss",
    "other_income",
    "total_income",
    "repairs_maintenance",
    "utilities",
    "property_management",
    "property_taxes",
    "insurance",
    "marketing",
    "administrative",
    "total_expenses",
    "noi",
    "debt_service",
    "cash_flow",
    "vacancy_rate",
    "occupancy_rate",
    "source",
)

# Dialects with INSERT .. ON CONFLICT DO UPDATE; others fall back to check-then-write
UPSERT_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


def record_values(record: NormalizedFinancialRecord) -> Dict[str, Any]:
    """Column values for a record, totals included."""
    data = record.model_dump()
    return {column: data[column] for column in RECORD_COLUMNS}


class FinancialRepository(ABC):
    """Storage contract for properties and monthly financial records."""

    @abstractmethod
    def list_records(
        self,
        year: Optional[int] = None,
        property_id: Optional[int] = None,
    ) -> List[MonthlyFinancialRecord]:
        """
        Records joined with their property name, newest month first.

        Args:
            year: restrict to reporting months in this calendar year
            property_id: restrict to one property
        """

    @abstractmethod
    def list_properties(self) -> List[PropertySummary]:
        """All properties ordered by name."""

    @abstractmethod
    def get_property(self, property_id: int) -> Optional[PropertySummary]:
        pass

    @abstractmethod
    def upsert_record(self, record: NormalizedFinancialRecord) -> MonthlyFinancialRecord:
        """Insert, or replace the row with the same (property_id, reporting_month)."""

    @abstractmethod
    def delete_record(self, financial_id: int) -> bool:
        """Delete by id. False when no row matched."""

    @abstractmethod
    def test_connection(self) -> Dict[str, Any]:
        pass


class SqlAlchemyFinancialRepository(FinancialRepository):
    """Repository over a SQLAlchemy session (SQLite locally, PostgreSQL in deployment)."""

    def __init__(self, db: Session):
        self.db = db

    def _to_record(self, row: MonthlyFinancial, property_name: Optional[str]) -> MonthlyFinancialRecord:
        record = MonthlyFinancialRecord.model_validate(row)
        record.property_name = property_name
        return record

    def list_records(
        self,
        year: Optional[int] = None,
        property_id: Optional[int] = None,
    ) -> List[MonthlyFinancialRecord]:
        try:
            q = self.db.query(MonthlyFinancial, Property.property_name)\
                .join(Property, MonthlyFinancial.property_id == Property.property_id)

            if year is not None:
                q = q.filter(
                    MonthlyFinancial.reporting_month >= date(year, 1, 1),
                    MonthlyFinancial.reporting_month <= date(year, 12, 31),
                )
            if property_id is not None:
                q = q.filter(MonthlyFinancial.property_id == property_id)

            rows = q.order_by(
                MonthlyFinancial.reporting_month.desc(),
                Property.property_name,
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching financial records (year={year}, property={property_id}): {e}")
            raise DataAccessError(f"Failed to fetch financial records: {e}") from e

        return [self._to_record(row, name) for row, name in rows]

    def list_properties(self) -> List[PropertySummary]:
        try:
            properties = self.db.query(Property).order_by(Property.property_name, Property.property_id).all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching properties: {e}")
            raise DataAccessError(f"Failed to fetch properties: {e}") from e
        return [PropertySummary.model_validate(p) for p in properties]

    def get_property(self, property_id: int) -> Optional[PropertySummary]:
        try:
            prop = self.db.query(Property).filter(Property.property_id == property_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching property {property_id}: {e}")
            raise DataAccessError(f"Failed to fetch property: {e}") from e
        return PropertySummary.model_validate(prop) if prop else None

    def _upsert_on_conflict(
        self, insert, record: NormalizedFinancialRecord, values: Dict[str, Any]
    ) -> MonthlyFinancial:
        stmt = insert(MonthlyFinancial).values(
            property_id=record.property_id,
            reporting_month=record.reporting_month,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["property_id", "reporting_month"],
            set_={**values, "updated_at": utcnow()},
        )
        self.db.execute(stmt)
        return self.db.query(MonthlyFinancial)\
            .filter(
                MonthlyFinancial.property_id == record.property_id,
                MonthlyFinancial.reporting_month == record.reporting_month,
            )\
            .execution_options(populate_existing=True)\
            .one()

    def _upsert_checked(self, record: NormalizedFinancialRecord, values: Dict[str, Any]) -> MonthlyFinancial:
        existing = self.db.query(MonthlyFinancial).filter(
            MonthlyFinancial.property_id == record.property_id,
            MonthlyFinancial.reporting_month == record.reporting_month,
        ).first()
        if existing:
            for column, value in values.items():
                setattr(existing, column, value)
            return existing

        row = MonthlyFinancial(
            property_id=record.property_id,
            reporting_month=record.reporting_month,
            **values,
        )
        self.db.add(row)
        return row

    def upsert_record(self, record: NormalizedFinancialRecord) -> MonthlyFinancialRecord:
        values = record_values(record)
        try:
            insert = UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
            if insert is not None:
                row = self._upsert_on_conflict(insert, record, values)
            else:
                row = self._upsert_checked(record, values)

            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error saving financials for property {record.property_id}: {e}")
            raise DataAccessError(f"Failed to save financial data: {e}") from e

        logger.info(f"Saved financials {row.financial_id} for property {record.property_id} "
                    f"{record.reporting_month:%Y-%m}")
        prop = self.get_property(row.property_id)
        return self._to_record(row, prop.property_name if prop else None)

    def delete_record(self, financial_id: int) -> bool:
        try:
            row = self.db.query(MonthlyFinancial)\
                .filter(MonthlyFinancial.financial_id == financial_id)\
                .first()
            if not row:
                return False
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting financial record {financial_id}: {e}")
            raise DataAccessError(f"Failed to delete record: {e}") from e

        logger.info(f"Deleted financial record {financial_id}")
        return True

    def test_connection(self) -> Dict[str, Any]:
        try:
            table_count = count_tables(self.db.get_bind())
        except SQLAlchemyError as e:
            return {"success": False, "message": str(e)}
        return {
            "success": True,
            "message": "Database connection successful",
            "table_count": table_count,
        }


__all__ = [
    "FinancialRepository",
    "SqlAlchemyFinancialRepository",
    "record_values",
]
