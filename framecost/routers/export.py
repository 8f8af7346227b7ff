"""
Export endpoints — the estimate as plain text or a PDF download.

POST /api/export/text
POST /api/export/pdf
"""

import re

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response

from .. import schemas
from ..calculators.estimator import FabricationEstimator, scale_to_batch
from ..calculators.fabrication_sheet import FabricationSheet
from ..deps import get_sheet
from ..export import generate_estimate_pdf, render_text
from .estimate import request_params, with_standard_charges

router = APIRouter(prefix="/export", tags=["export"])


def _batch(req: schemas.ExportRequest, sheet: FabricationSheet) -> dict:
    params = request_params(req)
    if req.standard_charges:
        params = with_standard_charges(params)
    breakdown = FabricationEstimator(sheet).estimate(params)
    return scale_to_batch(breakdown, req.frame_count)


@router.post("/text", response_class=PlainTextResponse)
def export_text(req: schemas.ExportRequest, sheet: FabricationSheet = Depends(get_sheet)):
    return render_text(_batch(req, sheet), req.project_name)


@router.post("/pdf")
def export_pdf(req: schemas.ExportRequest, sheet: FabricationSheet = Depends(get_sheet)):
    pdf_bytes = generate_estimate_pdf(_batch(req, sheet), req.project_name)
    slug = re.sub(r"[^A-Za-z0-9]+", "-", req.project_name or "estimate").strip("-").lower()
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{slug or "estimate"}.pdf"'},
    )
