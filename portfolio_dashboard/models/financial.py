"""
Monthly financial ledger
Table: monthly_financials (one row per property per reporting month)
"""
from datetime import date

from sqlalchemy import Date, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio_dashboard.db.base import Base, TimestampMixin


class MonthlyFinancial(TimestampMixin, Base):
    """Income, expenses and occupancy for a property in one month."""
    __tablename__ = "monthly_financials"

    financial_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.property_id", ondelete="CASCADE"), nullable=False
    )
    reporting_month: Mapped[date] = mapped_column(Date, nullable=False)  # always day 1

    # ── Income ──
    gross_rent: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    vacancy_loss: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    other_income: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_income: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # ── Operating expenses ──
    repairs_maintenance: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    utilities: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    property_management: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    property_taxes: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    insurance: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    marketing: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    administrative: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_expenses: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # ── Results ──
    noi: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    debt_service: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    cash_flow: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # ── Rates (percent) ──
    vacancy_rate: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    occupancy_rate: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    source: Mapped[str] = mapped_column(String(255), default="Manual Entry", nullable=False)

    property: Mapped["Property"] = relationship("Property", back_populates="financials")

    __table_args__ = (
        UniqueConstraint("property_id", "reporting_month", name="uq_financials_property_month"),
        Index("idx_financials_month", "reporting_month"),
    )
