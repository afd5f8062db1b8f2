from portfolio_dashboard.services import aggregation
from portfolio_dashboard.services import csv_io
from portfolio_dashboard.services import financial_input
from portfolio_dashboard.services import reporting
from portfolio_dashboard.services import repository

__all__ = [
    "aggregation",
    "csv_io",
    "financial_input",
    "reporting",
    "repository",
]
