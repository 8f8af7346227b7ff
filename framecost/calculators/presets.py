"""
Frame project presets — the shop's standard sign frames.

Each preset records one frame's material length, cut and weld counts, and the
TOTAL cutting/welding minutes from the shop's calculation sheets. The sheets
price labour by the minute, so per-unit cost = per-unit time × rate per minute.
Helper is half the cutting + welding labour; consumables are a flat charge.
"""

from ..config import settings

PRESETS = {
    "back-lighting-frame": {
        "name": "Back Lighting Frame",
        "dimensions": "10' x 6'",
        "pipe": '1" x 1/2" Sq. Pipe',
        "pipe_weight_kg": 2,
        "total_length": 4,
        "total_cutting": 70,
        "total_welding": 58,
        "cutting_time": 10,
        "welding_time": 15,
    },
    "non-light-single-frame": {
        "name": "Non Light Single Frame",
        "dimensions": "10' x 5'",
        "pipe": '1" x 1" Sq. Pipe',
        "pipe_weight_kg": 2,
        "total_length": 2.5,
        "total_cutting": 20,
        "total_welding": 14,
        "cutting_time": 25,
        "welding_time": 18,
    },
    "double-side-back-light-frame": {
        "name": "Double Side Back Light Frame",
        "dimensions": "6' x 3'",
        "pipe": '1" x 1" Sq. Pipe',
        "pipe_weight_kg": 2,
        "total_length": 3,
        "total_cutting": 38,
        "total_welding": 44,
        "cutting_time": 30,
        "welding_time": 45,
    },
    "slim-board-backlight-frame": {
        "name": "Slim Board Backlight Frame",
        "dimensions": "10' x 4'",
        "pipe": "Outer: 2'x1', Inner: 1/2'x1/2' Sq. Pipe",
        "pipe_weight_kg": 3,
        "total_length": 2.25,
        "material_details": [
            {"name": "Outer Pipe (2'x1')", "length": 1.5},
            {"name": "Inner Support Pipe (1/2'x1/2')", "length": 0.75},
        ],
        "total_cutting": 20,
        "total_welding": 12,
        "cutting_time": 13,
        "welding_time": 18,
    },
    "non-light-box-frame": {
        "name": "Non Light Box Frame",
        "dimensions": "6' x 4'",
        "pipe": '1" x 1" Sq. Pipe',
        "pipe_weight_kg": 2,
        "total_length": 2.5,
        "total_cutting": 40,
        "total_welding": 30,
        "cutting_time": 25,
        "welding_time": 35,
    },
}


def list_presets() -> list:
    return [{"id": preset_id, **preset} for preset_id, preset in PRESETS.items()]


def get_preset(preset_id: str) -> dict:
    """Returns the preset dict, or raises KeyError."""
    if preset_id not in PRESETS:
        raise KeyError(
            "Unknown preset: %s. Available: %s" % (preset_id, list(PRESETS.keys())))
    return PRESETS[preset_id]


def preset_parameters(preset_id: str, material_cost_per_unit: float = None,
                      labour_rate_per_minute: float = None,
                      helper_charge_rate: float = None,
                      consumables_charge: float = None) -> dict:
    """
    Convert a preset into FabricationParameters for the estimator.

    Total minutes are spread evenly over the cut/weld counts so that
    count × time_per_unit gives back the sheet's total.
    """
    preset = get_preset(preset_id)
    if material_cost_per_unit is None:
        material_cost_per_unit = settings.PRESET_MATERIAL_COST
    if labour_rate_per_minute is None:
        labour_rate_per_minute = settings.PRESET_LABOUR_RATE_PER_MINUTE
    if helper_charge_rate is None:
        helper_charge_rate = settings.HELPER_CHARGE_RATE_DEFAULT
    if consumables_charge is None:
        consumables_charge = settings.PRESET_CONSUMABLES_CHARGE

    cut_time = _per_unit(preset["cutting_time"], preset["total_cutting"])
    weld_time = _per_unit(preset["welding_time"], preset["total_welding"])

    return {
        "material_type": preset["pipe"],
        "material_length": preset["total_length"],
        "material_cost_per_unit": material_cost_per_unit,
        "cut_count": preset["total_cutting"],
        "cut_time_per_unit": cut_time,
        "cut_cost_per_unit": cut_time * labour_rate_per_minute,
        "weld_count": preset["total_welding"],
        "weld_time_per_unit": weld_time,
        "weld_cost_per_unit": weld_time * labour_rate_per_minute,
        "helper_charge_rate": helper_charge_rate,
        "consumables_charge": consumables_charge,
    }


def _per_unit(total_minutes: float, count: int) -> float:
    if count == 0:
        return 0.0
    return total_minutes / count
