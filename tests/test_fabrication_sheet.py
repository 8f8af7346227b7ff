"""
Tests for the fabrication sheet (calculators/fabrication_sheet.py).
"""

import json

import pytest

from framecost.calculators.fabrication_sheet import (
    DEFAULT_SHEET, FabricationSheet, SheetRate,
)


def test_built_in_rates():
    assert DEFAULT_SHEET.material_cost_per_unit("Mild Steel") == 150
    assert DEFAULT_SHEET.task_rates("Aluminum", "Welding") == (150, 7)
    assert DEFAULT_SHEET.task_rates("Mild Steel", "Frame Assembly") == (120, 10)


def test_lookup_is_case_insensitive():
    assert DEFAULT_SHEET.material_cost_per_unit("ALUMINUM") == 250
    assert DEFAULT_SHEET.has_material("mild steel")


def test_default_fallback():
    """Materials not on the sheet get the Default row, per task type."""
    assert not DEFAULT_SHEET.has_material("Copper")
    assert DEFAULT_SHEET.material_cost_per_unit("Copper") == 100
    assert DEFAULT_SHEET.task_rates("Copper", "Cutting") == (20, 3)


def test_unknown_task_without_default_raises():
    with pytest.raises(KeyError):
        DEFAULT_SHEET.lookup("Mild Steel", "Polishing")


def test_materials_excludes_default():
    materials = DEFAULT_SHEET.materials()
    assert "Mild Steel" in materials
    assert "Aluminum" in materials
    assert "Default" not in materials


def test_rows_are_plain_dicts():
    rows = DEFAULT_SHEET.rows()
    assert {"type": "Material", "material": "Default", "cost_per_unit": 100,
            "time_per_unit_min": None} in rows


def test_from_file_merges_over_defaults(tmp_path):
    path = tmp_path / "sheet.json"
    path.write_text(json.dumps([
        {"type": "Material", "material": "Copper", "cost_per_unit": 400},
        {"type": "Cutting", "material": "Mild Steel", "cost_per_unit": 30,
         "time_per_unit_min": 2.5},
    ]))
    sheet = FabricationSheet.from_file(str(path))
    assert sheet.material_cost_per_unit("Copper") == 400
    assert sheet.task_rates("Mild Steel", "Cutting") == (30, 2.5)
    # Built-in rows not in the file are kept
    assert sheet.task_rates("Mild Steel", "Welding") == (100, 5)
    assert sheet.task_rates("Copper", "Welding") == (90, 6)


def test_custom_rows_only():
    sheet = FabricationSheet([SheetRate("Material", "Default", 10)])
    assert sheet.material_cost_per_unit("Steel") == 10
    with pytest.raises(KeyError):
        sheet.task_rates("Steel", "Cutting")
