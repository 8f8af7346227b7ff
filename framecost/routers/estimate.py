"""
Estimate endpoints.

POST /api/estimate            — parameters + frame_count → per-frame and batch totals
GET  /api/fabrication-sheet   — the rate table estimates fall back to

InvalidInput from the estimator is turned into a 422 by the app-level handler.
"""

from fastapi import APIRouter, Depends

from .. import schemas
from ..calculators.estimator import FabricationEstimator, scale_to_batch
from ..calculators.fabrication_sheet import FabricationSheet
from ..config import settings
from ..deps import get_sheet
from ..export import summary_lines
from ..formatting import format_currency, format_duration

router = APIRouter(tags=["estimate"])


def request_params(req: schemas.FabricationParams) -> dict:
    """Form fields as a plain dict; unset fields stay out so the engine sees them as missing."""
    return req.model_dump(
        exclude_none=True,
        exclude={"frame_count", "standard_charges", "project_name"},
    )


def build_estimate(params: dict, frame_count, sheet: FabricationSheet) -> dict:
    """Estimate one frame, scale to the batch and attach display strings."""
    breakdown = FabricationEstimator(sheet).estimate(params)
    batch = scale_to_batch(breakdown, frame_count)
    batch["formatted"] = _formatted(batch)
    return batch


def _formatted(batch: dict) -> dict:
    per = batch["per_frame"]["total_summary"]
    tot = batch["totals"]["total_summary"]
    return {
        "grand_total": format_currency(tot["grand_total_cost"]),
        "grand_total_per_frame": format_currency(per["grand_total_cost"]),
        "total_time": format_duration(tot["total_fabrication_time_minutes"]),
        "total_time_per_frame": format_duration(per["total_fabrication_time_minutes"]),
        "lines": summary_lines(batch),
    }


def with_standard_charges(params: dict) -> dict:
    params = dict(params)
    params.setdefault("finishing_charge_rate", settings.FINISHING_CHARGE_RATE_DEFAULT)
    params.setdefault("helper_charge_rate", settings.HELPER_CHARGE_RATE_DEFAULT)
    return params


@router.post("/estimate")
def create_estimate(req: schemas.EstimateRequest, sheet: FabricationSheet = Depends(get_sheet)):
    params = request_params(req)
    if req.standard_charges:
        params = with_standard_charges(params)
    return build_estimate(params, req.frame_count, sheet)


@router.get("/fabrication-sheet")
def fabrication_sheet(sheet: FabricationSheet = Depends(get_sheet)):
    return {
        "materials": sheet.materials(),
        "rows": sheet.rows(),
    }
