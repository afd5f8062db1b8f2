from typing import List, Optional

from sqlalchemy import Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio_dashboard.db.base import Base, TimestampMixin


class Property(TimestampMixin, Base):
    """Reference data for one investment property. Read-only for reporting."""
    __tablename__ = "properties"

    property_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    property_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    purchase_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    unit_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    financials: Mapped[List["MonthlyFinancial"]] = relationship(
        "MonthlyFinancial", back_populates="property", cascade="all, delete-orphan"
    )
