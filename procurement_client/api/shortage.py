# procurement_client/api/shortage.py

from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from ..client import ApiClient
from ..services.shortage import (
    build_report_pdf,
    calculate_shortage,
    filter_shortage,
    pending_requests,
    read_bom,
    report_filename,
)
from .deps import get_client

router = APIRouter(prefix="/api/shortage", tags=["shortage"])


def _calculate(client: ApiClient, file: UploadFile, production_quantity: int, status: str, q: str):
    try:
        lines = read_bom(file.file.read(), filename=file.filename)
        result = calculate_shortage(client, lines, production_quantity)
        return filter_shortage(result, status, q)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/calculate")
def calculate(
    file: UploadFile = File(...),
    production_quantity: int = Form(1),
    status: str = Form("all"),
    q: str = Form(""),
    client: ApiClient = Depends(get_client),
):
    """Upload a BOM sheet; returns one shortage line per BOM row."""
    return [line.model_dump() for line in _calculate(client, file, production_quantity, status, q)]


@router.post("/report")
def report(
    file: UploadFile = File(...),
    production_quantity: int = Form(1),
    status: str = Form("all"),
    q: str = Form(""),
    client: ApiClient = Depends(get_client),
):
    """Same calculation, rendered as a PDF download."""
    lines = _calculate(client, file, production_quantity, status, q)
    now = datetime.now()
    return Response(
        content=build_report_pdf(lines, now),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{report_filename(now)}"'},
    )


@router.get("/pending-requests")
def list_pending_requests(client: ApiClient = Depends(get_client)):
    return [r.model_dump() for r in pending_requests(client)]
