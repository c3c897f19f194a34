"""CSV export endpoint."""

from fastapi import APIRouter

from testdesign.export import render_csv
from testdesign.schemas import ExportRequest, ExportResponse

router = APIRouter()


@router.post("/csv", response_model=ExportResponse)
async def export_csv(body: ExportRequest):
    return ExportResponse(csv=render_csv(body.ir))
