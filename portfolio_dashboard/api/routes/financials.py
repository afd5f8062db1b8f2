"""
Monthly Financials Routes
Data management for the ledger behind the dashboard.

Endpoints:
  POST   /financials                         – manual entry (upsert by property + month)
  GET    /financials/records                 – list records, newest month first
  DELETE /financials/records/{financial_id}  – delete one record
  POST   /financials/import                  – CSV upload, partial success
  GET    /financials/template                – CSV template download
  GET    /financials/export                  – CSV export of listed records
"""
from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import StreamingResponse

from portfolio_dashboard.core.security import get_current_user
from portfolio_dashboard.dependencies import get_property_filter, get_repository, get_year
from portfolio_dashboard.schemas.auth import AuthenticatedUser
from portfolio_dashboard.services import csv_io
from portfolio_dashboard.services.financial_input import validate_financial_input
from portfolio_dashboard.services.repository import FinancialRepository

router = APIRouter(tags=["Financials"])
logger = logging.getLogger(__name__)


def _csv_response(text: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(text.encode("utf-8-sig")),  # utf-8-sig for Excel CSV compatibility
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ═══════════════════════ ENTRY ═══════════════════════

@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED)
def save_financials(
    payload: Dict[str, Any] = Body(...),
    current_user: AuthenticatedUser = Depends(get_current_user),
    repo: FinancialRepository = Depends(get_repository),
):
    record = validate_financial_input(payload)

    if repo.get_property(record.property_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Property {record.property_id} not found",
        )

    saved = repo.upsert_record(record)
    logger.info(f"Financials saved by {current_user.id}: property {saved.property_id} "
                f"{saved.reporting_month:%Y-%m}")
    return {
        "success": True,
        "message": "Financial data saved successfully",
        "data": saved.model_dump(mode="json"),
    }


@router.get("/records")
def list_records(
    year: int = Depends(get_year),
    property_id: Optional[int] = Depends(get_property_filter),
    current_user: AuthenticatedUser = Depends(get_current_user),
    repo: FinancialRepository = Depends(get_repository),
):
    records = repo.list_records(year=year, property_id=property_id)
    return {
        "success": True,
        "year": year,
        "total": len(records),
        "data": [r.model_dump(mode="json") for r in records],
    }


@router.delete("/records/{financial_id}")
def delete_record(
    financial_id: int,
    current_user: AuthenticatedUser = Depends(get_current_user),
    repo: FinancialRepository = Depends(get_repository),
):
    if not repo.delete_record(financial_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Record {financial_id} not found",
        )
    return {"success": True, "message": "Record deleted successfully"}


# ═══════════════════════ CSV ═══════════════════════

@router.post("/import")
async def import_financials(
    file: UploadFile = File(...),
    current_user: AuthenticatedUser = Depends(get_current_user),
    repo: FinancialRepository = Depends(get_repository),
):
    """
    Upload a CSV in the template layout. Valid rows are saved; the response
    lists every rejected row with its 1-based data-row number.
    """
    content = await file.read()
    if not content.strip():
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    text = content.decode("utf-8", errors="replace")

    result = csv_io.import_financials_csv(text, repo)
    logger.info(f"CSV import '{file.filename}' by {current_user.id}: "
                f"{result.imported} imported, {result.failed} failed")
    return {
        "success": True,
        "message": f"Imported {result.imported} records",
        **result.model_dump(mode="json"),
    }


@router.get("/template")
def download_template(current_user: AuthenticatedUser = Depends(get_current_user)):
    return _csv_response(csv_io.render_template_csv(), "financial_data_template.csv")


@router.get("/export")
def export_financials(
    year: int = Depends(get_year),
    property_id: Optional[int] = Depends(get_property_filter),
    current_user: AuthenticatedUser = Depends(get_current_user),
    repo: FinancialRepository = Depends(get_repository),
):
    records = repo.list_records(year=year, property_id=property_id)
    filename = f"financial_data_{year}_{datetime.utcnow():%Y%m%d}.csv"
    return _csv_response(csv_io.render_records_csv(records), filename)
