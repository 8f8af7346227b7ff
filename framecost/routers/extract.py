"""
AI extraction endpoints.

POST /api/extract/model — 3D model text → extracted parameters (+ estimate)
POST /api/extract/image — base64 photo/drawing → extracted parameters (+ estimate)

The AI output is merged with the user's overrides (user wins) and run
through the same estimator as a form. If the merged parameters are still
incomplete, the response carries the InvalidInput details instead of an
estimate so the form can ask for the missing field. An invalid frame_count
is the request's own error, not the AI's: it is rejected with a 422 up front,
the same as on /api/estimate.
"""

import base64
import binascii
import logging

from fastapi import APIRouter, Depends, HTTPException

from .. import schemas
from ..calculators.estimator import parse_frame_count
from ..calculators.fabrication_sheet import FabricationSheet
from ..deps import get_sheet
from ..errors import InvalidInput
from ..extraction import ParameterExtractor, build_parameters, mime_type_for
from .estimate import build_estimate, request_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/extract", tags=["extract"])

MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB


def _merge_and_estimate(extracted: dict, overrides, frame_count,
                        sheet: FabricationSheet) -> dict:
    override_params = request_params(overrides) if overrides else {}
    merged = build_parameters(extracted, override_params, sheet)
    result = {
        "extraction": extracted,
        "parameters": merged["params"],
        "field_sources": merged["field_sources"],
        "estimate": None,
        "error": None,
    }
    try:
        result["estimate"] = build_estimate(merged["params"], frame_count, sheet)
    except InvalidInput as e:
        logger.info("Extracted parameters incomplete: %s", e.message)
        result["error"] = e.to_dict()
    return result


@router.post("/model")
def extract_from_model(req: schemas.ExtractModelRequest,
                       sheet: FabricationSheet = Depends(get_sheet)):
    parse_frame_count(req.frame_count)
    extracted = ParameterExtractor().extract_from_model(req.model_data)
    return _merge_and_estimate(extracted, req.overrides, req.frame_count, sheet)


@router.post("/image")
def extract_from_image(req: schemas.ExtractImageRequest,
                       sheet: FabricationSheet = Depends(get_sheet)):
    parse_frame_count(req.frame_count)
    try:
        image_bytes = base64.b64decode(req.image_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="image_base64 is not valid base64")
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Empty image")
    if len(image_bytes) > MAX_IMAGE_SIZE:
        raise HTTPException(status_code=400, detail="Image too large. Max 10MB.")

    mime_type = req.mime_type or mime_type_for(req.filename)
    extracted = ParameterExtractor().extract_from_image(
        image_bytes, mime_type, req.description)
    return _merge_and_estimate(extracted, req.overrides, req.frame_count, sheet)
