import logging

from fastapi import APIRouter, Depends

from portfolio_dashboard.core.security import get_current_user
from portfolio_dashboard.dependencies import get_repository
from portfolio_dashboard.schemas.auth import AuthenticatedUser
from portfolio_dashboard.services.repository import FinancialRepository

router = APIRouter(tags=["Properties"])
logger = logging.getLogger(__name__)


@router.get("")
@router.get("/")
def list_properties(
    current_user: AuthenticatedUser = Depends(get_current_user),
    repo: FinancialRepository = Depends(get_repository),
):
    properties = repo.list_properties()
    return {
        "success": True,
        "total": len(properties),
        "data": [p.model_dump(mode="json") for p in properties],
    }
