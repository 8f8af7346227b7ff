"""
POST /api/materials/suggest — AI alternative-material suggestions.

Empty suggestions (not an error) when Gemini is not configured or fails.
"""

from fastapi import APIRouter

from .. import schemas
from ..extraction import ParameterExtractor

router = APIRouter(prefix="/materials", tags=["materials"])


@router.post("/suggest", response_model=schemas.MaterialSuggestResponse)
def suggest_materials(req: schemas.MaterialSuggestRequest):
    return ParameterExtractor().suggest_materials(
        req.description, req.cost_requirements, req.current_material)
