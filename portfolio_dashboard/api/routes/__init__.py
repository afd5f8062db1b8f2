from portfolio_dashboard.api.routes.dashboard import router as dashboard_router
from portfolio_dashboard.api.routes.financials import router as financials_router
from portfolio_dashboard.api.routes.properties import router as properties_router
from portfolio_dashboard.api.routes.system import router as system_router

__all__ = [
    "dashboard_router",
    "financials_router",
    "properties_router",
    "system_router",
]
