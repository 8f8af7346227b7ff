"""
Frame preset endpoints.

GET  /api/presets                      — the shop's standard frames
POST /api/presets/{preset_id}/estimate — estimate a preset for a batch
"""

from fastapi import APIRouter, Depends, HTTPException

from .. import schemas
from ..calculators.fabrication_sheet import FabricationSheet
from ..calculators.presets import list_presets, preset_parameters
from ..deps import get_sheet
from .estimate import build_estimate

router = APIRouter(prefix="/presets", tags=["presets"])


@router.get("")
def get_presets():
    return list_presets()


@router.post("/{preset_id}/estimate")
def estimate_preset(
    preset_id: str,
    req: schemas.PresetEstimateRequest = None,
    sheet: FabricationSheet = Depends(get_sheet),
):
    req = req or schemas.PresetEstimateRequest()
    try:
        params = preset_parameters(
            preset_id,
            material_cost_per_unit=req.material_cost_per_unit,
            labour_rate_per_minute=req.labour_rate_per_minute,
            helper_charge_rate=req.helper_charge_rate,
            consumables_charge=req.consumables_charge,
        )
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown preset: {preset_id}")
    result = build_estimate(params, req.frame_count, sheet)
    result["preset_id"] = preset_id
    result["parameters"] = params
    return result
