# Import all models in correct order to avoid circular imports
from portfolio_dashboard.models.property import Property
from portfolio_dashboard.models.financial import MonthlyFinancial

__all__ = [
    "Property",
    "MonthlyFinancial",
]
