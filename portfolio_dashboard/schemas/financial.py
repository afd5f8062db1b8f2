"""
Monthly financial + reporting schemas
Pydantic v2 models shared by the engine, the repositories and the API.
"""
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, computed_field, field_validator


# ─────────────────── Ledger rows ───────────────────

class NormalizedFinancialRecord(BaseModel):
    """
    One property-month of income and expenses, as accepted for persistence.

    Totals are computed from the component fields on every access, so a record
    can never carry an inconsistent total_income / total_expenses / noi /
    cash_flow.
    """
    property_id: int
    reporting_month: date

    # Income
    gross_rent: float = 0.0
    vacancy_loss: float = 0.0
    other_income: float = 0.0

    # Operating expenses
    repairs_maintenance: float = 0.0
    utilities: float = 0.0
    property_management: float = 0.0
    property_taxes: float = 0.0
    insurance: float = 0.0
    marketing: float = 0.0
    administrative: float = 0.0

    debt_service: float = 0.0

    # Percentages
    vacancy_rate: float = 0.0
    occupancy_rate: float = 0.0

    source: str = "Manual Entry"

    class Config:
        from_attributes = True

    @field_validator(
        "gross_rent", "vacancy_loss", "other_income", "repairs_maintenance", "utilities",
        "property_management", "property_taxes", "insurance", "marketing", "administrative",
        "debt_service", "vacancy_rate", "occupancy_rate",
        mode="before",
    )
    @classmethod
    def _null_as_zero(cls, v: Any) -> Any:
        # NULL columns read back from storage count as 0
        return 0.0 if v is None else v

    @field_validator("source", mode="before")
    @classmethod
    def _null_source(cls, v: Any) -> Any:
        return "Manual Entry" if v is None else v

    @field_validator("reporting_month", mode="before")
    @classmethod
    def _date_only(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return v.date()
        return v

    @field_validator("reporting_month")
    @classmethod
    def _first_of_month(cls, v: date) -> date:
        return v.replace(day=1)

    @computed_field
    @property
    def total_income(self) -> float:
        return self.gross_rent - self.vacancy_loss + self.other_income

    @computed_field
    @property
    def total_expenses(self) -> float:
        return (
            self.repairs_maintenance
            + self.utilities
            + self.property_management
            + self.property_taxes
            + self.insurance
            + self.marketing
            + self.administrative
        )

    @computed_field
    @property
    def noi(self) -> float:
        return self.total_income - self.total_expenses

    @computed_field
    @property
    def cash_flow(self) -> float:
        return self.noi - self.debt_service


class MonthlyFinancialRecord(NormalizedFinancialRecord):
    """A persisted ledger row, optionally joined with its property name."""
    financial_id: Optional[int] = None
    property_name: Optional[str] = None


# ─────────────────── Report outputs ───────────────────

class PerformanceTier(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class PortfolioKPISnapshot(BaseModel):
    year: Optional[int] = None
    total_revenue: float = 0.0
    total_expenses: float = 0.0
    total_noi: float = 0.0
    avg_vacancy: float = 0.0
    property_count: int = 0
    portfolio_value: float = 0.0
    noi_variance: float = 0.0
    revenue_variance: float = 0.0
    prev_noi: float = 0.0
    prev_revenue: float = 0.0


class MonthlyPerformancePoint(BaseModel):
    reporting_month: date
    revenue: float = 0.0
    expenses: float = 0.0
    noi: float = 0.0
    cash_flow: float = 0.0
    avg_vacancy: float = 0.0
    noi_margin: float = 0.0


class PropertyRollup(BaseModel):
    property_id: int
    property_name: str
    purchase_price: float = 0.0
    unit_count: int = 0
    total_revenue: float = 0.0
    total_expenses: float = 0.0
    total_noi: float = 0.0
    total_cash_flow: float = 0.0
    avg_vacancy: float = 0.0
    avg_occupancy: float = 0.0
    months_reported: int = 0
    noi_margin: float = 0.0
    performance_tier: PerformanceTier = PerformanceTier.POOR


# ─────────────────── Import ───────────────────

class ImportRowError(BaseModel):
    row: int                      # 1-based data row (header excluded)
    error: str
    kind: Optional[str] = None
    field: Optional[str] = None


class ImportResult(BaseModel):
    imported: int = 0
    errors: List[ImportRowError] = []

    @computed_field
    @property
    def failed(self) -> int:
        return len(self.errors)
