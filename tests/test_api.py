"""
Tests for the HTTP API (main.py + routers/).
"""

import base64

import pytest

from framecost import extraction


def _sample_form():
    return {
        "material_type": "Mild Steel",
        "material_length": 4,
        "material_cost_per_unit": 150,
        "cut_count": 70,
        "cut_cost_per_unit": 25,
        "cut_time_per_unit": 2,
        "weld_count": 58,
        "weld_cost_per_unit": 100,
        "weld_time_per_unit": 5,
    }


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


# --- Estimate ---

def test_estimate_batch(client):
    response = client.post("/api/estimate", json={**_sample_form(), "frame_count": 3})
    assert response.status_code == 200
    data = response.json()
    assert data["frame_count"] == 3
    assert data["per_frame"]["total_summary"]["grand_total_cost"] == 8150
    assert data["totals"]["total_summary"]["grand_total_cost"] == 24450
    assert data["formatted"]["total_time"] == "21h 30m"
    assert "labour_details" not in data["per_frame"]


def test_estimate_defaults_to_one_frame(client):
    data = client.post("/api/estimate", json=_sample_form()).json()
    assert data["frame_count"] == 1
    assert data["totals"] == data["per_frame"]


def test_estimate_standard_charges(client):
    data = client.post("/api/estimate",
                       json={**_sample_form(), "standard_charges": True}).json()
    charges = data["per_frame"]["charges"]
    assert charges["finishing_cost"] == pytest.approx(3775)
    assert charges["helper_cost"] == pytest.approx(3775)


def test_estimate_zero_frames_is_422(client):
    response = client.post("/api/estimate", json={**_sample_form(), "frame_count": 0})
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["field"] == "frame_count"
    assert detail["constraint"] == "less_than_one"


def test_estimate_missing_field_is_422(client):
    form = _sample_form()
    del form["cut_count"]
    response = client.post("/api/estimate", json=form)
    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "cut_count"


def test_estimate_non_numeric_is_422(client):
    response = client.post("/api/estimate", json={**_sample_form(), "weld_count": "lots"})
    assert response.status_code == 422
    assert response.json()["detail"] == {
        "field": "weld_count",
        "constraint": "non_numeric",
        "message": "weld_count must be a number",
    }


def test_estimate_overflow_is_422(client):
    """Finite inputs whose product overflows get a 422, not a 500."""
    form = {**_sample_form(), "material_length": 1e200, "material_cost_per_unit": 1e200}
    response = client.post("/api/estimate", json=form)
    assert response.status_code == 422
    assert response.json()["detail"]["constraint"] == "non_finite"


def test_estimate_batch_overflow_is_422(client):
    form = {**_sample_form(), "material_length": 1e306, "frame_count": 1000}
    response = client.post("/api/estimate", json=form)
    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "frame_count"


def test_estimate_rates_from_sheet(client):
    form = {"material_type": "Copper", "material_length": 2, "cut_count": 10, "weld_count": 5}
    data = client.post("/api/estimate", json=form).json()
    assert data["per_frame"]["total_summary"]["grand_total_cost"] == 850


def test_fabrication_sheet(client):
    data = client.get("/api/fabrication-sheet").json()
    assert "Mild Steel" in data["materials"]
    assert len(data["rows"]) == 12


# --- Presets ---

def test_list_presets(client):
    data = client.get("/api/presets").json()
    assert len(data) == 5


def test_preset_estimate(client):
    response = client.post("/api/presets/back-lighting-frame/estimate", json={"frame_count": 2})
    assert response.status_code == 200
    data = response.json()
    assert data["per_frame"]["total_summary"]["grand_total_cost"] == pytest.approx(3775)
    assert data["totals"]["total_summary"]["grand_total_cost"] == pytest.approx(7550)


def test_unknown_preset_is_404(client):
    response = client.post("/api/presets/round-frame/estimate", json={})
    assert response.status_code == 404


# --- Extraction ---

def test_extract_model_without_key(client):
    """No AI → empty extraction, and the first missing field is reported."""
    response = client.post("/api/extract/model", json={"model_data": "v 0 0 0"})
    assert response.status_code == 200
    data = response.json()
    assert data["estimate"] is None
    assert data["error"]["field"] == "material_length"


def test_extract_model_with_overrides(client):
    response = client.post("/api/extract/model", json={
        "model_data": "v 0 0 0",
        "frame_count": 3,
        "overrides": _sample_form(),
    })
    data = response.json()
    assert data["error"] is None
    assert data["estimate"]["totals"]["total_summary"]["grand_total_cost"] == 24450
    assert data["field_sources"]["cut_count"] == "user"


def test_extract_image_with_ai(client, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(extraction, "_call_gemini", lambda parts, timeout=30: {
        "material_type": "Mild Steel",
        "material_length": 4,
        "tasks": [{"task_type": "Cutting", "count": 70}, {"task_type": "Welding", "count": 58}],
    })
    image = base64.b64encode(b"\xff\xd8\xff\xe0fake-jpeg").decode()
    response = client.post("/api/extract/image", json={"image_base64": image,
                                                       "filename": "frame.jpg"})
    data = response.json()
    assert data["estimate"]["per_frame"]["total_summary"]["grand_total_cost"] == 8150
    assert data["field_sources"]["material_length"] == "ai"


def test_extract_model_bad_frame_count_is_422(client):
    """Same 422 as /api/estimate, not an error inside a 200."""
    response = client.post("/api/extract/model", json={
        "model_data": "v 0 0 0",
        "frame_count": 0,
        "overrides": _sample_form(),
    })
    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "frame_count"


def test_extract_image_bad_frame_count_is_422(client):
    image = base64.b64encode(b"\xff\xd8").decode()
    response = client.post("/api/extract/image",
                           json={"image_base64": image, "frame_count": -3})
    assert response.status_code == 422
    assert response.json()["detail"]["constraint"] == "less_than_one"


def test_extract_image_bad_base64(client):
    response = client.post("/api/extract/image", json={"image_base64": "not base64!!"})
    assert response.status_code == 400


def test_materials_suggest_without_key(client):
    response = client.post("/api/materials/suggest", json={"description": "light box"})
    assert response.status_code == 200
    assert response.json()["suggested_materials"] == []


# --- Export ---

def test_export_text(client):
    response = client.post("/api/export/text",
                           json={**_sample_form(), "frame_count": 3, "project_name": "Sign"})
    assert response.status_code == 200
    assert "Grand Total Cost" in response.text


def test_export_pdf(client):
    response = client.post("/api/export/pdf",
                           json={**_sample_form(), "project_name": "Shop Front"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "shop-front.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF-")


def test_export_invalid_is_422(client):
    response = client.post("/api/export/pdf", json={**_sample_form(), "frame_count": -1})
    assert response.status_code == 422
