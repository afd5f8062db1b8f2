"""
CSV import / export for monthly financials

Import format (header row required, column order as in the template):
  PropertyID, ReportingMonth, GrossRent, Vacancy, OtherIncome,
  RepairsMaintenance, Utilities, PropertyManagement, PropertyTaxes,
  Insurance, Marketing, Administrative, DebtService, Occupancy

Each row goes through validate_financial_input; rows that fail are reported
with their row number and the rest of the file is still imported.
"""
from __future__ import annotations

import csv
import io
import logging
from typing import Dict, Iterable, List

from portfolio_dashboard.core.exceptions import DataAccessError, FinancialValidationError, ValidationErrorKind
from portfolio_dashboard.schemas.financial import ImportResult, ImportRowError, MonthlyFinancialRecord
from portfolio_dashboard.services.financial_input import canonical_field, validate_financial_input
from portfolio_dashboard.services.repository import FinancialRepository

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "PropertyID",
    "ReportingMonth",
    "GrossRent",
    "Vacancy",
    "OtherIncome",
    "RepairsMaintenance",
    "Utilities",
    "PropertyManagement",
    "PropertyTaxes",
    "Insurance",
    "Marketing",
    "Administrative",
    "DebtService",
    "Occupancy",
]
# template header -> field it must resolve to
REQUIRED_HEADERS = {"PropertyID": "property_id", "ReportingMonth": "reporting_month"}

TEMPLATE_SAMPLE_ROW = [
    "1", "2024-01", "5000", "250", "100", "200", "150", "400", "300", "200", "50", "100", "2000", "95",
]

EXPORT_HEADERS = [
    "Property", "Month", "Gross Rent", "Vacancy", "Other Income", "Total Income",
    "Repairs & Maintenance", "Utilities", "Property Management", "Property Taxes",
    "Insurance", "Marketing", "Administrative", "Total Expenses", "NOI",
    "Debt Service", "Cash Flow", "Occupancy %",
]

IMPORT_SOURCE = "CSV Import"


def parse_financials_csv(text: str) -> List[Dict[str, str]]:
    """
    Split CSV text into header-keyed rows. Blank lines are skipped.

    Raises:
        FinancialValidationError: the header is missing PropertyID or ReportingMonth
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")), skipinitialspace=True)
    headers = [h.strip() for h in (reader.fieldnames or [])]
    present = {canonical_field(h) for h in headers}
    for required, field in REQUIRED_HEADERS.items():
        if field not in present:
            raise FinancialValidationError(
                ValidationErrorKind.MISSING_REQUIRED_FIELD,
                required,
                f"CSV header is missing required column '{required}'",
            )
    reader.fieldnames = headers

    rows = []
    for raw in reader:
        rows.append({k: (v.strip() if isinstance(v, str) else v) for k, v in raw.items() if k is not None})
    return rows


def import_financials_csv(text: str, repo: FinancialRepository) -> ImportResult:
    """
    Validate and upsert every row of a CSV export.

    Row numbers in errors are 1-based and count data rows only.
    DataAccessError from the repository aborts the import and propagates.
    """
    rows = parse_financials_csv(text)
    known_properties = {p.property_id for p in repo.list_properties()}

    result = ImportResult()
    for index, row in enumerate(rows, start=1):
        try:
            record = validate_financial_input(row, source=IMPORT_SOURCE)
        except FinancialValidationError as exc:
            result.errors.append(ImportRowError(
                row=index, error=exc.message, kind=exc.kind.value, field=exc.field,
            ))
            continue

        if record.property_id not in known_properties:
            result.errors.append(ImportRowError(
                row=index,
                error=f"Property {record.property_id} does not exist",
                kind=ValidationErrorKind.INVALID_FIELD.value,
                field="property_id",
            ))
            continue

        try:
            repo.upsert_record(record)
        except DataAccessError:
            logger.error(f"CSV import aborted at row {index} after {result.imported} rows")
            raise
        result.imported += 1

    logger.info(f"CSV import: {result.imported} imported, {len(result.errors)} rejected")
    return result


def _write(rows: Iterable[list]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerows(rows)
    return buf.getvalue()


def render_template_csv() -> str:
    """Header plus one sample row, ready to fill in."""
    return _write([CSV_HEADERS, TEMPLATE_SAMPLE_ROW])


def render_records_csv(records: Iterable[MonthlyFinancialRecord]) -> str:
    """Export listed records with all components and derived totals."""
    lines = [EXPORT_HEADERS]
    for r in records:
        lines.append([
            r.property_name or f"Property {r.property_id}",
            r.reporting_month.strftime("%Y-%m"),
            r.gross_rent,
            r.vacancy_loss,
            r.other_income,
            r.total_income,
            r.repairs_maintenance,
            r.utilities,
            r.property_management,
            r.property_taxes,
            r.insurance,
            r.marketing,
            r.administrative,
            r.total_expenses,
            r.noi,
            r.debt_service,
            r.cash_flow,
            r.occupancy_rate,
        ])
    return _write(lines)
