"""
Financial input gate
Turns a loosely typed mapping (JSON body, CSV row) into a NormalizedFinancialRecord.

Used by both the manual-entry endpoint and the CSV importer before anything
is persisted. Currency parsing is deliberately lenient: blank or unparseable
amounts become 0 and negative amounts are kept.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from portfolio_dashboard.core.exceptions import FinancialValidationError, ValidationErrorKind
from portfolio_dashboard.schemas.financial import NormalizedFinancialRecord

# Occupancy assumed when an import row or form leaves it empty
DEFAULT_OCCUPANCY = 95.0

# canonical field -> accepted key spellings, compared after _canon()
FIELD_ALIASES: Dict[str, tuple] = {
    "property_id": ("propertyid",),
    "reporting_month": ("reportingmonth", "month"),
    "gross_rent": ("grossrent",),
    "vacancy_loss": ("vacancyloss", "vacancy"),
    "other_income": ("otherincome",),
    "repairs_maintenance": ("repairsmaintenance", "repairsandmaintenance"),
    "utilities": ("utilities",),
    "property_management": ("propertymanagement", "management"),
    "property_taxes": ("propertytaxes", "taxes"),
    "insurance": ("insurance",),
    "marketing": ("marketing",),
    "administrative": ("administrative",),
    "debt_service": ("debtservice",),
    "vacancy_rate": ("vacancyrate",),
    "occupancy_rate": ("occupancyrate", "occupancy"),
}

CURRENCY_FIELDS = (
    "gross_rent",
    "vacancy_loss",
    "other_income",
    "repairs_maintenance",
    "utilities",
    "property_management",
    "property_taxes",
    "insurance",
    "marketing",
    "administrative",
    "debt_service",
)

_MONTH_FORMATS = ("%Y-%m", "%Y-%m-%d", "%Y/%m", "%Y/%m/%d", "%m/%Y", "%m/%d/%Y")


def _canon(key: Any) -> str:
    return re.sub(r"[\s_\-&]", "", str(key)).lower()


def canonical_field(key: Any) -> Optional[str]:
    """Canonical field name for an input key or CSV header, None when unrecognised."""
    canon = _canon(key)
    for field, aliases in FIELD_ALIASES.items():
        if canon == _canon(field) or canon in aliases:
            return field
    return None


def _pick(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Resolve input keys to canonical field names. Later duplicates lose."""
    canon_input: Dict[str, Any] = {}
    for key, value in fields.items():
        canon_input.setdefault(_canon(key), value)

    picked: Dict[str, Any] = {}
    for field, aliases in FIELD_ALIASES.items():
        for alias in (_canon(field),) + aliases:
            if alias in canon_input:
                picked[field] = canon_input[alias]
                break
    return picked


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(value: Any, default: float = 0.0) -> float:
    """Lenient float parsing: blank, unparseable or non-finite gives `default`."""
    if _is_blank(value) or isinstance(value, bool):
        return default
    try:
        amount = float(str(value).strip())
    except (TypeError, ValueError):
        return default
    if not math.isfinite(amount):
        return default
    return amount


def parse_property_id(value: Any) -> int:
    if _is_blank(value):
        raise FinancialValidationError(
            ValidationErrorKind.MISSING_REQUIRED_FIELD, "property_id", "Property ID is required"
        )
    try:
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(value)
            property_id = int(value)
        else:
            property_id = int(str(value).strip())
    except (TypeError, ValueError):
        raise FinancialValidationError(
            ValidationErrorKind.INVALID_FIELD, "property_id", f"Invalid property ID: {value!r}"
        )
    if property_id <= 0:
        raise FinancialValidationError(
            ValidationErrorKind.INVALID_FIELD, "property_id", f"Property ID must be positive: {value!r}"
        )
    return property_id


def parse_reporting_month(value: Any) -> date:
    """Parse a month in any of the accepted shapes and return day 1 of it."""
    if _is_blank(value):
        raise FinancialValidationError(
            ValidationErrorKind.MISSING_REQUIRED_FIELD, "reporting_month", "Reporting month is required"
        )
    if isinstance(value, datetime):
        return value.date().replace(day=1)
    if isinstance(value, date):
        return value.replace(day=1)

    text = str(value).strip()
    for fmt in _MONTH_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().replace(day=1)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().replace(day=1)
    except ValueError:
        raise FinancialValidationError(
            ValidationErrorKind.INVALID_FIELD, "reporting_month", f"Invalid reporting month: {value!r}"
        )


def derive_vacancy_rate(vacancy_loss: float, gross_rent: float) -> float:
    """Share of potential rent lost to vacancy, in percent."""
    if gross_rent > 0:
        return vacancy_loss / gross_rent * 100
    return 0.0


def validate_financial_input(
    fields: Mapping[str, Any],
    source: str = "Manual Entry",
) -> NormalizedFinancialRecord:
    """
    Validate and normalize one financial record.

    Args:
        fields: raw key/value mapping; totals present in it are ignored
        source: provenance tag stored with the record

    Returns:
        NormalizedFinancialRecord with totals derived from the components

    Raises:
        FinancialValidationError: property_id or reporting_month is missing
            (MISSING_REQUIRED_FIELD) or cannot be parsed (INVALID_FIELD)
    """
    picked = _pick(fields)

    property_id = parse_property_id(picked.get("property_id"))
    reporting_month = parse_reporting_month(picked.get("reporting_month"))

    amounts = {name: parse_amount(picked.get(name)) for name in CURRENCY_FIELDS}

    vacancy_rate: Optional[float] = None
    if not _is_blank(picked.get("vacancy_rate")):
        vacancy_rate = parse_amount(picked["vacancy_rate"], default=None)
    if vacancy_rate is None:
        vacancy_rate = derive_vacancy_rate(amounts["vacancy_loss"], amounts["gross_rent"])

    return NormalizedFinancialRecord(
        property_id=property_id,
        reporting_month=reporting_month,
        vacancy_rate=vacancy_rate,
        occupancy_rate=parse_amount(picked.get("occupancy_rate"), default=DEFAULT_OCCUPANCY),
        source=source,
        **amounts,
    )
