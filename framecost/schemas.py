from pydantic import BaseModel
from typing import Optional, List, Union

# Numbers arrive from forms as floats or strings; the estimator does the
# validation so every bad field gets the same InvalidInput payload.
Number = Union[float, str]


class ExtraTask(BaseModel):
    task_type: Optional[str] = None
    count: Optional[Number] = None
    cost_per_unit: Optional[Number] = None
    time_per_unit: Optional[Number] = None


class FabricationParams(BaseModel):
    material_type: Optional[str] = None
    material_cost_per_unit: Optional[Number] = None
    material_length: Optional[Number] = None
    cut_count: Optional[Number] = None
    cut_cost_per_unit: Optional[Number] = None
    cut_time_per_unit: Optional[Number] = None
    weld_count: Optional[Number] = None
    weld_cost_per_unit: Optional[Number] = None
    weld_time_per_unit: Optional[Number] = None
    labour_count: Optional[Number] = None
    labour_cost_per_hour: Optional[Number] = None
    finishing_charge_rate: Optional[Number] = None
    helper_charge_rate: Optional[Number] = None
    transport_charge: Optional[Number] = None
    consumables_charge: Optional[Number] = None
    extra_tasks: Optional[List[ExtraTask]] = None


class EstimateRequest(FabricationParams):
    frame_count: Number = 1
    # Fill finishing/helper rates from settings when not given
    standard_charges: bool = False


class ExportRequest(EstimateRequest):
    project_name: Optional[str] = None


class PresetEstimateRequest(BaseModel):
    frame_count: Number = 1
    material_cost_per_unit: Optional[float] = None
    labour_rate_per_minute: Optional[float] = None
    helper_charge_rate: Optional[float] = None
    consumables_charge: Optional[float] = None


class ExtractModelRequest(BaseModel):
    model_data: str
    frame_count: Number = 1
    overrides: Optional[FabricationParams] = None

    class Config:
        protected_namespaces = ()


class ExtractImageRequest(BaseModel):
    image_base64: str
    filename: Optional[str] = None
    mime_type: Optional[str] = None
    description: str = ""
    frame_count: Number = 1
    overrides: Optional[FabricationParams] = None


class MaterialSuggestRequest(BaseModel):
    description: str
    cost_requirements: str = ""
    current_material: str = ""


class MaterialSuggestResponse(BaseModel):
    suggested_materials: List[str] = []
    reasoning: str = ""
