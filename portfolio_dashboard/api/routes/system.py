"""
Storage connectivity check
Unauthenticated so the frontend can show backend status before login.
"""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from portfolio_dashboard.core.config import settings
from portfolio_dashboard.dependencies import get_repository
from portfolio_dashboard.services.repository import FinancialRepository

router = APIRouter(tags=["System"])
logger = logging.getLogger(__name__)


@router.get("/test-connection")
def test_connection(repo: FinancialRepository = Depends(get_repository)):
    result = repo.test_connection()
    result["backend"] = settings.DATA_BACKEND
    if not result.get("success"):
        logger.error(f"Connection test failed: {result.get('message')}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={**result, "error": "Database connection failed"},
        )
    return result
