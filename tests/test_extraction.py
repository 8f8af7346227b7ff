"""
Tests for AI parameter extraction (extraction.py).

Gemini is never called — _call_gemini is monkeypatched.
"""

import pytest

from framecost import extraction
from framecost.calculators.estimator import estimate
from framecost.extraction import ParameterExtractor, build_parameters, normalize_extraction


def _sample_ai_payload():
    return {
        "material_type": "Mild Steel",
        "material_length": 4,
        "tasks": [
            {"task_type": "Cutting", "count": 70},
            {"task_type": "Welding", "count": 58},
        ],
        "confidence": 0.8,
    }


def _with_fake_gemini(monkeypatch, payload):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    calls = []

    def fake_call(parts, timeout=30):
        calls.append(parts)
        return payload

    monkeypatch.setattr(extraction, "_call_gemini", fake_call)
    return calls


# --- No API key ---

def test_no_key_returns_empty_extraction():
    result = ParameterExtractor().extract_from_model("v 0 0 0\nv 1 0 0")
    assert result["material_type"] is None
    assert result["material_length"] is None
    assert result["tasks"] == []


def test_no_key_image_returns_empty_extraction():
    result = ParameterExtractor().extract_from_image(b"\x89PNG", "image/png")
    assert result["tasks"] == []


def test_no_key_suggestions_empty():
    result = ParameterExtractor().suggest_materials("light box", "cheap", "Aluminum")
    assert result == {"suggested_materials": [], "reasoning": ""}


# --- Stubbed Gemini ---

def test_extract_from_model(monkeypatch):
    calls = _with_fake_gemini(monkeypatch, _sample_ai_payload())
    result = ParameterExtractor().extract_from_model("v 0 0 0")
    assert len(calls) == 1
    assert result["material_type"] == "Mild Steel"
    assert result["material_length"] == 4
    assert {"task_type": "Cutting", "count": 70} in result["tasks"]


def test_extract_from_image_sends_inline_data(monkeypatch):
    calls = _with_fake_gemini(monkeypatch, _sample_ai_payload())
    ParameterExtractor().extract_from_image(b"\xff\xd8", "image/jpeg", "sign frame")
    assert calls[0][1]["inline_data"]["mime_type"] == "image/jpeg"


def test_api_failure_returns_empty(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")

    def broken_call(parts, timeout=30):
        raise OSError("connection refused")

    monkeypatch.setattr(extraction, "_call_gemini", broken_call)
    result = ParameterExtractor().extract_from_model("v 0 0 0")
    assert result["tasks"] == []


def test_suggest_materials(monkeypatch):
    _with_fake_gemini(monkeypatch, {
        "suggested_materials": ["Aluminum", "Mild Steel"],
        "reasoning": "Light and cheap",
    })
    result = ParameterExtractor().suggest_materials("outdoor sign", "low", "Steel")
    assert result["suggested_materials"] == ["Aluminum", "Mild Steel"]
    assert result["reasoning"] == "Light and cheap"


# --- Normalization ---

def test_normalize_drops_malformed_tasks():
    result = normalize_extraction({
        "materialType": "Aluminum",
        "material_length": "-3",
        "tasks": [{"type": "cut", "count": 4}, {"task_type": "Welding", "count": "x"}, "junk"],
    })
    assert result["material_type"] == "Aluminum"
    assert result["material_length"] is None
    assert result["tasks"] == [{"task_type": "Cutting", "count": 4}]


def test_normalize_num_cuts_shape():
    result = normalize_extraction({"materialType": "Steel", "frameLength": 6,
                                   "numCuts": 12, "numWelds": 8})
    assert result["material_length"] == 6
    assert {"task_type": "Welding", "count": 8} in result["tasks"]


def test_normalize_non_dict():
    assert normalize_extraction(["nope"])["tasks"] == []


# --- Merge ---

def test_build_parameters_fills_sheet_rates():
    merged = build_parameters(normalize_extraction(_sample_ai_payload()))
    params = merged["params"]
    assert params["cut_count"] == 70
    assert params["material_cost_per_unit"] == 150
    assert merged["field_sources"]["cut_count"] == "ai"
    assert merged["field_sources"]["cut_cost_per_unit"] == "sheet"
    assert estimate(params)["total_summary"]["grand_total_cost"] == 8150


def test_user_overrides_win():
    merged = build_parameters(
        normalize_extraction(_sample_ai_payload()),
        {"cut_count": 10, "material_type": "Aluminum", "weld_count": None},
    )
    params = merged["params"]
    assert params["cut_count"] == 10
    assert params["weld_count"] == 58
    assert params["material_type"] == "Aluminum"
    # Sheet rates follow the user's material, not the AI's
    assert params["material_cost_per_unit"] == 250
    assert merged["field_sources"]["cut_count"] == "user"
    assert merged["field_sources"]["weld_count"] == "ai"


def test_other_tasks_become_extra_tasks():
    payload = _sample_ai_payload()
    payload["tasks"].append({"task_type": "Frame Assembly", "count": 2})
    params = build_parameters(normalize_extraction(payload))["params"]
    assert params["extra_tasks"] == [
        {"task_type": "Frame Assembly", "count": 2, "cost_per_unit": 120, "time_per_unit": 10},
    ]


def test_empty_extraction_leaves_required_fields_missing():
    merged = build_parameters(extraction._empty_extraction())
    assert merged["params"] == {}
