import pytest
from datetime import date

from portfolio_dashboard.core.exceptions import FinancialValidationError, ValidationErrorKind
from portfolio_dashboard.services.financial_input import (
    DEFAULT_OCCUPANCY,
    parse_amount,
    parse_reporting_month,
    validate_financial_input,
)


def test_manual_entry_payload_is_normalized():
    record = validate_financial_input({
        "property_id": 3,
        "reporting_month": "2024-02",
        "gross_rent": "12000",
        "vacancy_loss": 600,
        "other_income": "150.50",
        "repairs_maintenance": 400,
        "utilities": 300,
        "property_management": 960,
        "property_taxes": 1100,
        "insurance": 280,
        "marketing": 0,
        "administrative": 90,
        "debt_service": 5200,
        "occupancy_rate": 93,
    })

    assert record.property_id == 3
    assert record.reporting_month == date(2024, 2, 1)
    assert record.total_income == pytest.approx(11550.5)
    assert record.total_expenses == pytest.approx(3130)
    assert record.noi == pytest.approx(8420.5)
    assert record.cash_flow == pytest.approx(3220.5)
    assert record.vacancy_rate == pytest.approx(5.0)
    assert record.occupancy_rate == 93
    assert record.source == "Manual Entry"


def test_csv_style_keys_are_accepted():
    record = validate_financial_input({
        "PropertyID": "1",
        "ReportingMonth": "2024-01",
        "GrossRent": "5000",
        "Vacancy": "250",
        "RepairsMaintenance": "200",
        "DebtService": "2000",
        "Occupancy": "",
    }, source="CSV Import")

    assert record.gross_rent == 5000
    assert record.vacancy_loss == 250
    assert record.repairs_maintenance == 200
    assert record.debt_service == 2000
    assert record.occupancy_rate == DEFAULT_OCCUPANCY
    assert record.source == "CSV Import"


def test_supplied_totals_are_ignored():
    record = validate_financial_input({
        "property_id": 1,
        "reporting_month": "2024-01",
        "gross_rent": 1000,
        "total_income": 999999,
        "noi": -1,
    })
    assert record.total_income == 1000
    assert record.noi == 1000


def test_unparseable_amounts_become_zero_and_negatives_are_kept():
    record = validate_financial_input({
        "property_id": 1,
        "reporting_month": "2024-01",
        "gross_rent": "abc",
        "utilities": "-75",
        "insurance": "nan",
    })
    assert record.gross_rent == 0
    assert record.utilities == -75
    assert record.insurance == 0


def test_explicit_vacancy_rate_wins_over_derived():
    record = validate_financial_input({
        "property_id": 1,
        "reporting_month": "2024-01",
        "gross_rent": 1000,
        "vacancy_loss": 100,
        "vacancy_rate": "7.5",
    })
    assert record.vacancy_rate == 7.5


def test_vacancy_rate_without_rent_is_zero():
    record = validate_financial_input({"property_id": 1, "reporting_month": "2024-01", "vacancy_loss": 50})
    assert record.vacancy_rate == 0.0


@pytest.mark.parametrize("fields,field", [
    ({"reporting_month": "2024-01"}, "property_id"),
    ({"property_id": "", "reporting_month": "2024-01"}, "property_id"),
    ({"property_id": 1}, "reporting_month"),
    ({"property_id": 1, "reporting_month": "   "}, "reporting_month"),
])
def test_missing_required_fields(fields, field):
    with pytest.raises(FinancialValidationError) as exc_info:
        validate_financial_input(fields)
    assert exc_info.value.kind == ValidationErrorKind.MISSING_REQUIRED_FIELD
    assert exc_info.value.field == field


@pytest.mark.parametrize("fields,field", [
    ({"property_id": "abc", "reporting_month": "2024-01"}, "property_id"),
    ({"property_id": 0, "reporting_month": "2024-01"}, "property_id"),
    ({"property_id": -4, "reporting_month": "2024-01"}, "property_id"),
    ({"property_id": 1.5, "reporting_month": "2024-01"}, "property_id"),
    ({"property_id": 1, "reporting_month": "January"}, "reporting_month"),
    ({"property_id": 1, "reporting_month": "2024-13"}, "reporting_month"),
])
def test_invalid_fields(fields, field):
    with pytest.raises(FinancialValidationError) as exc_info:
        validate_financial_input(fields)
    assert exc_info.value.kind == ValidationErrorKind.INVALID_FIELD
    assert exc_info.value.field == field


@pytest.mark.parametrize("raw", ["2024-05", "2024-05-20", "2024/05", "05/2024", "05/20/2024", "2024-05-20T10:30:00Z"])
def test_reporting_month_formats(raw):
    assert parse_reporting_month(raw) == date(2024, 5, 1)


def test_parse_amount_default():
    assert parse_amount(None, default=95.0) == 95.0
    assert parse_amount("inf") == 0.0
    assert parse_amount(" 12.5 ") == 12.5
