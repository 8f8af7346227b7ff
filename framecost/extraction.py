"""
AI-assisted parameter extraction — powered by Gemini.

Reads a 3D model (as text, e.g. .obj/.stl content) or a photo of a frame and
returns a PARTIAL parameter set: material type, an estimated material length,
and a list of {task_type, count} pairs. The AI's numbers are estimates and may
be wrong — they are never fed to the estimator directly. build_parameters()
merges them with the user's overrides (user values win) and the estimator
validates the result exactly as it validates a form.

Graceful fallback: without GEMINI_API_KEY, or on any API/parse failure, the
extractor returns an empty result. The app NEVER fails because the AI is down.
"""

import base64
import json
import logging
import math
import os
import re
import urllib.error
import urllib.request
from typing import Optional

from .config import settings
from .calculators.fabrication_sheet import DEFAULT_SHEET, CUTTING, WELDING

logger = logging.getLogger(__name__)

# Model files can be megabytes of vertices — the prompt only needs a sample
MAX_MODEL_CHARS = 20000

MIME_TYPES = {"jpg": "image/jpeg", "jpeg": "image/jpeg", "png": "image/png", "webp": "image/webp"}

# Fields a user override may set on top of the AI's output
OVERRIDE_FIELDS = (
    "material_type",
    "material_cost_per_unit",
    "material_length",
    "cut_count",
    "cut_cost_per_unit",
    "cut_time_per_unit",
    "weld_count",
    "weld_cost_per_unit",
    "weld_time_per_unit",
    "labour_count",
    "labour_cost_per_hour",
    "finishing_charge_rate",
    "helper_charge_rate",
    "transport_charge",
    "consumables_charge",
    "extra_tasks",
)


def _empty_extraction() -> dict:
    return {
        "material_type": None,
        "material_length": None,
        "tasks": [],
        "confidence": 0.0,
        "notes": "AI extraction unavailable — enter parameters manually.",
    }


def _api_key() -> str:
    return os.getenv("GEMINI_API_KEY") or settings.GEMINI_API_KEY


def _model_name() -> str:
    return os.getenv("GEMINI_MODEL") or settings.GEMINI_MODEL


def _build_model_prompt(model_data: str) -> str:
    if len(model_data) > MAX_MODEL_CHARS:
        model_data = model_data[:MAX_MODEL_CHARS] + "\n... (truncated)"
    return f"""You are an AI expert in 3D modeling and metal frame fabrication. Based on the provided 3D model data, analyze its geometry and predict key fabrication parameters.

3D Model Data:
\"\"\"{model_data}\"\"\"

From the geometry, estimate the following:
- material_type: a likely material for this kind of frame (e.g. Mild Steel, Aluminum, Steel, Copper)
- material_length: total length of all structural members
- tasks: the fabrication tasks with counts — "Cutting" (number of individual cuts to create the pieces) and "Welding" (number of weld joints). Add "Frame Assembly" only if the model has separate sub-frames.

Return ONLY valid JSON, no explanation:
{{"material_type": "Mild Steel", "material_length": 4.0, "tasks": [{{"task_type": "Cutting", "count": 12}}, {{"task_type": "Welding", "count": 8}}], "confidence": 0.0 to 1.0}}"""


def _build_vision_prompt(description: str) -> str:
    return f"""You are analyzing a photo or drawing of a metal frame (signage frame, light box, display frame) for a fabrication estimating system.
Additional context from user: {description or "(none)"}

Identify:
1. MATERIAL: what the frame is built from (Mild Steel, Steel, Aluminum, Copper, Plastic, Carbon Fiber).
2. LENGTH: total length of all members, estimated from visible dimensions or context.
3. TASKS: count the separate pieces that must be cut ("Cutting") and the joints that must be welded ("Welding").

Return ONLY a JSON object:
{{"material_type": "...", "material_length": 0.0, "tasks": [{{"task_type": "Cutting", "count": 0}}, {{"task_type": "Welding", "count": 0}}], "confidence": 0.0 to 1.0, "notes": "what you saw"}}

Only report counts you can reasonably see or infer. Do NOT invent dimensions."""


def _build_suggestion_prompt(description: str, cost_requirements: str,
                             current_material: str) -> str:
    return f"""You are a metal fabrication materials advisor.

Model description: {description}
Cost requirements / budget: {cost_requirements}
Currently selected material: {current_material}

Suggest alternative materials that meet the purpose and budget.

Return ONLY valid JSON:
{{"suggested_materials": ["..."], "reasoning": "why these materials fit"}}"""


def _call_gemini(parts: list, timeout: int = 30):
    """Call Gemini generateContent and return the parsed JSON payload. Raises on failure."""
    api_key = _api_key()
    url = (
        f"https://generativelanguage.googleapis.com/v1beta/models/"
        f"{_model_name()}:generateContent?key={api_key}"
    )

    payload = json.dumps({
        "contents": [{"parts": parts}],
        "generationConfig": {
            "temperature": 0.1,
            "responseMimeType": "application/json",
        },
    }).encode("utf-8")

    req = urllib.request.Request(
        url,
        data=payload,
        headers={"Content-Type": "application/json"},
        method="POST",
    )

    with urllib.request.urlopen(req, timeout=timeout) as response:
        result = json.loads(response.read())
        text = result["candidates"][0]["content"]["parts"][0]["text"]
        return _parse_json(text)


def _parse_json(text: str):
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # Model sometimes wraps the object in a markdown code block
        match = re.search(r'\{[\s\S]*\}', text)
        if not match:
            raise
        return json.loads(match.group())


def _as_number(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def normalize_extraction(parsed) -> dict:
    """
    Coerce an AI payload into the extraction shape.
    Anything malformed is dropped, not guessed.
    """
    if not isinstance(parsed, dict):
        return _empty_extraction()

    material_type = parsed.get("material_type") or parsed.get("materialType")
    material_type = str(material_type).strip() if material_type else None
    length = _as_number(parsed.get("material_length",
                                   parsed.get("frameLength", parsed.get("material_length_ft"))))

    tasks = []
    raw_tasks = parsed.get("tasks")
    raw_tasks = list(raw_tasks) if isinstance(raw_tasks, list) else []
    # Older prompt shape: {"numCuts": .., "numWelds": ..}
    if parsed.get("numCuts") is not None:
        raw_tasks.append({"task_type": CUTTING, "count": parsed.get("numCuts")})
    if parsed.get("numWelds") is not None:
        raw_tasks.append({"task_type": WELDING, "count": parsed.get("numWelds")})

    for item in raw_tasks:
        if not isinstance(item, dict):
            continue
        task_type = str(item.get("task_type") or item.get("type") or "").strip()
        count = _as_number(item.get("count"))
        if not task_type or count is None:
            continue
        tasks.append({"task_type": _canonical_task(task_type), "count": int(round(count))})

    confidence = _as_number(parsed.get("confidence")) or 0.0
    return {
        "material_type": material_type,
        "material_length": length,
        "tasks": tasks,
        "confidence": min(confidence, 1.0),
        "notes": str(parsed.get("notes", "")),
    }


def _canonical_task(task_type: str) -> str:
    t = task_type.lower()
    if t.startswith("cut"):
        return CUTTING
    if t.startswith("weld"):
        return WELDING
    return task_type


class ParameterExtractor:
    """
    Gemini-backed extraction of partial FabricationParameters.

    Usage:
        extractor = ParameterExtractor()
        extracted = extractor.extract_from_model(obj_text)
        params = build_parameters(extracted, overrides=form_values)
    """

    def extract_from_model(self, model_data: str) -> dict:
        """Predict material, length and task counts from 3D model text."""
        if not _api_key():
            logger.info("No GEMINI_API_KEY — skipping model extraction")
            return _empty_extraction()
        if not model_data or not model_data.strip():
            return _empty_extraction()
        try:
            parsed = _call_gemini([{"text": _build_model_prompt(model_data)}], timeout=30)
        except (urllib.error.URLError, OSError, ValueError, KeyError, IndexError) as e:
            logger.warning("Model extraction failed: %s — returning empty extraction", e)
            return _empty_extraction()
        result = normalize_extraction(parsed)
        logger.info("Model extraction: material=%s length=%s tasks=%d",
                    result["material_type"], result["material_length"], len(result["tasks"]))
        return result

    def extract_from_image(self, image_bytes: bytes, mime_type: str = "image/jpeg",
                           description: str = "") -> dict:
        """Estimate material, length and task counts from a photo or drawing."""
        if not _api_key():
            logger.info("No GEMINI_API_KEY — skipping image extraction")
            return _empty_extraction()
        if not image_bytes:
            return _empty_extraction()
        image_b64 = base64.b64encode(image_bytes).decode("utf-8")
        parts = [
            {"text": _build_vision_prompt(description)},
            {"inline_data": {"mime_type": mime_type, "data": image_b64}},
        ]
        try:
            parsed = _call_gemini(parts, timeout=60)
        except (urllib.error.URLError, OSError, ValueError, KeyError, IndexError) as e:
            logger.warning("Image extraction failed: %s — returning empty extraction", e)
            return _empty_extraction()
        result = normalize_extraction(parsed)
        logger.info("Image extraction: material=%s length=%s tasks=%d confidence=%.2f",
                    result["material_type"], result["material_length"],
                    len(result["tasks"]), result["confidence"])
        return result

    def suggest_materials(self, description: str, cost_requirements: str,
                          current_material: str) -> dict:
        """Alternative material suggestions. Empty list when AI is unavailable."""
        empty = {"suggested_materials": [], "reasoning": ""}
        if not _api_key():
            logger.info("No GEMINI_API_KEY — skipping material suggestions")
            return empty
        prompt = _build_suggestion_prompt(description, cost_requirements, current_material)
        try:
            parsed = _call_gemini([{"text": prompt}], timeout=30)
        except (urllib.error.URLError, OSError, ValueError, KeyError, IndexError) as e:
            logger.warning("Material suggestions failed: %s", e)
            return empty
        if not isinstance(parsed, dict):
            return empty
        suggested = parsed.get("suggested_materials", [])
        if not isinstance(suggested, list):
            suggested = []
        return {
            "suggested_materials": [str(m) for m in suggested if m],
            "reasoning": str(parsed.get("reasoning", "")),
        }


def build_parameters(extracted: dict, overrides: dict = None, sheet=None) -> dict:
    """
    Merge AI-extracted fields with user overrides into FabricationParameters.

    User values always win; None/blank overrides are ignored. Per-unit rates
    still missing after the merge are filled from the fabrication sheet for
    the resolved material (Default row when the material is not listed).
    Counts and lengths are never filled — the estimator rejects them.

    Returns {"params": dict, "field_sources": {field: "ai" | "user" | "sheet"}}.
    """
    sheet = sheet or DEFAULT_SHEET
    extracted = extracted or {}
    overrides = overrides or {}
    params = {}
    sources = {}

    if extracted.get("material_type"):
        params["material_type"] = extracted["material_type"]
        sources["material_type"] = "ai"
    if extracted.get("material_length") is not None:
        params["material_length"] = extracted["material_length"]
        sources["material_length"] = "ai"

    counts = {}
    for task in extracted.get("tasks", []):
        counts[task["task_type"]] = counts.get(task["task_type"], 0) + task["count"]
    if CUTTING in counts:
        params["cut_count"] = counts.pop(CUTTING)
        sources["cut_count"] = "ai"
    if WELDING in counts:
        params["weld_count"] = counts.pop(WELDING)
        sources["weld_count"] = "ai"
    if counts:
        params["extra_tasks"] = [
            {"task_type": task_type, "count": count} for task_type, count in counts.items()
        ]
        sources["extra_tasks"] = "ai"

    for field in OVERRIDE_FIELDS:
        value = overrides.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        params[field] = value
        sources[field] = "user"

    material = params.get("material_type")
    if material:
        _fill_rates(params, sources, sheet, material)

    return {"params": params, "field_sources": sources}


def _fill_rates(params: dict, sources: dict, sheet, material: str):
    if params.get("material_cost_per_unit") is None:
        params["material_cost_per_unit"] = sheet.material_cost_per_unit(material)
        sources["material_cost_per_unit"] = "sheet"

    for prefix, task_type in (("cut", CUTTING), ("weld", WELDING)):
        cost, time = sheet.task_rates(material, task_type)
        if params.get(prefix + "_cost_per_unit") is None:
            params[prefix + "_cost_per_unit"] = cost
            sources[prefix + "_cost_per_unit"] = "sheet"
        if params.get(prefix + "_time_per_unit") is None:
            params[prefix + "_time_per_unit"] = time
            sources[prefix + "_time_per_unit"] = "sheet"

    tasks = params.get("extra_tasks")
    if not isinstance(tasks, list):
        return
    filled = []
    for task in tasks:
        task = dict(task) if isinstance(task, dict) else task
        if isinstance(task, dict) and task.get("task_type"):
            try:
                cost, time = sheet.task_rates(material, task["task_type"])
            except KeyError:
                # No sheet row — the estimator reports the missing rate
                filled.append(task)
                continue
            task.setdefault("cost_per_unit", cost)
            task.setdefault("time_per_unit", time)
        filled.append(task)
    params["extra_tasks"] = filled


def mime_type_for(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else "jpg"
    return MIME_TYPES.get(ext, "image/jpeg")
