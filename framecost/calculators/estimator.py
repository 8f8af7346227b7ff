"""
Deterministic fabrication cost/time engine.

Pure Python math. No AI, no I/O. Given one frame's parameters, produce the
per-frame breakdown; scale_to_batch() multiplies it by the frame count.

Input (FabricationParameters, flat dict):
    material_type, material_cost_per_unit, material_length,
    cut_count, cut_cost_per_unit, cut_time_per_unit,
    weld_count, weld_cost_per_unit, weld_time_per_unit,
    [labour_count, labour_cost_per_hour],
    [finishing_charge_rate, helper_charge_rate, transport_charge, consumables_charge],
    [extra_tasks: [{task_type, count, cost_per_unit, time_per_unit}, ...]]

Rates (cost/time per unit) that are left out are read from the fabrication
sheet for material_type. Lengths and counts are never defaulted.

Validation runs over the whole parameter set before any arithmetic, and a
breakdown whose products overflow is rejected before it is returned — an
InvalidInput never comes with a partial result.
"""

import logging
import math

from ..errors import InvalidInput, MISSING, NEGATIVE, NON_FINITE, LESS_THAN_ONE
from .base import BaseCalculator
from .fabrication_sheet import DEFAULT_SHEET, CUTTING, WELDING

logger = logging.getLogger(__name__)

# Optional add-on fields — a charges section appears if any is supplied
CHARGE_FIELDS = (
    "finishing_charge_rate",
    "helper_charge_rate",
    "transport_charge",
    "consumables_charge",
)

# Charge line → the input it comes from
CHARGE_INPUTS = {
    "finishing_cost": "finishing_charge_rate",
    "helper_cost": "helper_charge_rate",
    "transport_cost": "transport_charge",
    "consumables_cost": "consumables_charge",
}

# Breakdown section → the input named when it overflows
SECTION_FIELDS = (
    ("material_usage", "material_length"),
    ("cutting_details", "cut_count"),
    ("welding_details", "weld_count"),
    ("labour_details", "labour_cost_per_hour"),
)


class FabricationEstimator(BaseCalculator):
    """
    Turns FabricationParameters into a FabricationBreakdown.

    The sheet is injected — pass a custom FabricationSheet to quote with
    shop-specific default rates.
    """

    def __init__(self, sheet=None):
        self.sheet = sheet or DEFAULT_SHEET

    def calculate(self, fields: dict) -> dict:
        return self.estimate(fields)

    def estimate(self, params: dict) -> dict:
        """
        Per-frame cost and time breakdown.

        Raises InvalidInput (before computing anything) if a required field
        is missing, non-numeric, negative or non-finite.
        """
        p = self._normalize(params)

        # --- Material ---
        material_usage = self.make_material_section(
            p["material_length"], p["material_cost_per_unit"])

        # --- Operations ---
        cutting = self.make_task_section(
            p["cut_count"], p["cut_cost_per_unit"], p["cut_time_per_unit"])
        welding = self.make_task_section(
            p["weld_count"], p["weld_cost_per_unit"], p["weld_time_per_unit"])

        other_tasks = []
        for task in p["extra_tasks"]:
            section = self.make_task_section(
                task["count"], task["cost_per_unit"], task["time_per_unit"])
            section["task_type"] = task["task_type"]
            other_tasks.append(section)

        total_time = (
            cutting["total_time_minutes"]
            + welding["total_time_minutes"]
            + sum(t["total_time_minutes"] for t in other_tasks)
        )
        operations_cost = (
            cutting["total_cost"]
            + welding["total_cost"]
            + sum(t["total_cost"] for t in other_tasks)
        )
        material_cost = material_usage["total_cost"]

        breakdown = {
            "material_type": p["material_type"],
            "material_usage": material_usage,
            "cutting_details": cutting,
            "welding_details": welding,
            "other_tasks": other_tasks,
        }

        summary = {
            "total_material_cost": material_cost,
            "total_operations_cost": operations_cost,
        }
        grand_total = material_cost + operations_cost

        # --- Labour (present only when supplied — never zero-filled) ---
        labour_cost = None
        if p["labour"] is not None:
            labour_count, cost_per_hour = p["labour"]
            labour_hours = total_time / 60.0
            labour_cost = labour_hours * labour_count * cost_per_hour
            breakdown["labour_details"] = {
                "total_hours": labour_hours,
                "total_cost": labour_cost,
            }
            summary["total_labour_cost"] = labour_cost
            grand_total += labour_cost

        # --- Fixed add-ons ---
        charges = self._build_charges(p["charges"], operations_cost, labour_cost)
        if charges is not None:
            breakdown["charges"] = charges
            total_charges = sum(charges.values())
            summary["total_charges"] = total_charges
            grand_total += total_charges

        summary["grand_total_cost"] = grand_total
        summary["total_fabrication_time_minutes"] = total_time
        breakdown["total_summary"] = summary
        breakdown["assumptions"] = p["assumptions"]
        self._check_finite(breakdown)

        logger.info(
            "Estimate for %s: %.2f length, %d cuts, %d welds → %.2f total, %.1f min",
            p["material_type"] or "unspecified material",
            p["material_length"], p["cut_count"], p["weld_count"],
            grand_total, total_time,
        )
        return breakdown

    def _check_finite(self, breakdown: dict):
        """
        Finite inputs can still overflow once multiplied (1e200 × 1e200).
        Raise InvalidInput on the input field behind the first overflowing section.
        """
        for key, field in SECTION_FIELDS:
            if key in breakdown and not all_finite(breakdown[key]):
                raise InvalidInput(field, NON_FINITE,
                                   "%s is too large: %s is not finite" % (field, key))
        for i, task in enumerate(breakdown["other_tasks"]):
            if not all_finite(task):
                field = "extra_tasks[%d].count" % i
                raise InvalidInput(field, NON_FINITE, "%s is too large: %s cost is not finite"
                                   % (field, task["task_type"]))
        for key, amount in breakdown.get("charges", {}).items():
            if not math.isfinite(amount):
                field = CHARGE_INPUTS[key]
                raise InvalidInput(field, NON_FINITE,
                                   "%s is too large: %s is not finite" % (field, key))
        if not all_finite(breakdown["total_summary"]):
            raise InvalidInput("grand_total_cost", NON_FINITE,
                               "inputs are too large: the totals are not finite")

    def _build_charges(self, charges: dict, operations_cost: float, labour_cost):
        """
        Finishing is a fraction of operations cost. Helper is a fraction of
        labour cost — the labour section when present, otherwise the
        operations cost (the frame presets' "labour" is cutting + welding).
        """
        if not charges:
            return None
        result = {}
        if charges.get("finishing_charge_rate") is not None:
            result["finishing_cost"] = operations_cost * charges["finishing_charge_rate"]
        if charges.get("helper_charge_rate") is not None:
            basis = labour_cost if labour_cost is not None else operations_cost
            result["helper_cost"] = basis * charges["helper_charge_rate"]
        if charges.get("transport_charge") is not None:
            result["transport_cost"] = charges["transport_charge"]
        if charges.get("consumables_charge") is not None:
            result["consumables_cost"] = charges["consumables_charge"]
        return result

    # --- Validation / normalization ---

    def _normalize(self, params: dict) -> dict:
        """Validate everything and resolve sheet rates. No arithmetic here."""
        if not isinstance(params, dict):
            raise InvalidInput("params", MISSING, "parameters must be a mapping of field values")

        assumptions = []
        material_type = params.get("material_type")
        material_type = str(material_type).strip() if material_type else None

        material_length = self.require_number(params, "material_length")
        material_cost = self._rate(
            params, "material_cost_per_unit", material_type,
            lambda: self.sheet.material_cost_per_unit(material_type), assumptions)

        cut_count = self.require_count(params, "cut_count")
        cut_cost, cut_time = self._task_rates(
            params, "cut_cost_per_unit", "cut_time_per_unit",
            material_type, CUTTING, assumptions)

        weld_count = self.require_count(params, "weld_count")
        weld_cost, weld_time = self._task_rates(
            params, "weld_cost_per_unit", "weld_time_per_unit",
            material_type, WELDING, assumptions)

        extra_tasks = self._normalize_extra_tasks(
            params.get("extra_tasks") or [], material_type, assumptions)

        labour_count = self.optional_count(params, "labour_count")
        labour_rate = self.optional_number(params, "labour_cost_per_hour")
        if labour_count is None and labour_rate is None:
            labour = None
        elif labour_count is None:
            raise InvalidInput("labour_count", MISSING,
                               "labour_count is required when labour_cost_per_hour is given")
        elif labour_rate is None:
            raise InvalidInput("labour_cost_per_hour", MISSING,
                               "labour_cost_per_hour is required when labour_count is given")
        else:
            labour = (labour_count, labour_rate)

        charges = {}
        for name in CHARGE_FIELDS:
            value = self.optional_number(params, name)
            if value is not None:
                charges[name] = value

        return {
            "material_type": material_type,
            "material_length": material_length,
            "material_cost_per_unit": material_cost,
            "cut_count": cut_count,
            "cut_cost_per_unit": cut_cost,
            "cut_time_per_unit": cut_time,
            "weld_count": weld_count,
            "weld_cost_per_unit": weld_cost,
            "weld_time_per_unit": weld_time,
            "extra_tasks": extra_tasks,
            "labour": labour,
            "charges": charges,
            "assumptions": assumptions,
        }

    def _rate(self, params, name, material_type, from_sheet, assumptions):
        """User value if given, else sheet value for material_type, else InvalidInput."""
        value = self.optional_number(params, name)
        if value is not None:
            return value
        if not material_type:
            raise InvalidInput(name, MISSING,
                               "%s is required when material_type is not given" % name)
        try:
            value = from_sheet()
        except KeyError:
            raise InvalidInput(name, MISSING,
                               "%s is required — no fabrication sheet rate applies" % name)
        assumptions.append(self._sheet_note(name, material_type))
        return value

    def _task_rates(self, params, cost_name, time_name, material_type, task_type,
                    assumptions):
        cost = self._rate(
            params, cost_name, material_type,
            lambda: self.sheet.task_rates(material_type, task_type)[0], assumptions)
        time = self._rate(
            params, time_name, material_type,
            lambda: self.sheet.task_rates(material_type, task_type)[1], assumptions)
        return cost, time

    def _normalize_extra_tasks(self, tasks, material_type, assumptions) -> list:
        if not isinstance(tasks, (list, tuple)):
            raise InvalidInput("extra_tasks", MISSING, "extra_tasks must be a list of tasks")
        normalized = []
        for i, task in enumerate(tasks):
            prefix = "extra_tasks[%d]" % i
            if not isinstance(task, dict):
                raise InvalidInput(prefix, MISSING, "%s must be a task mapping" % prefix)
            task_type = str(task.get("task_type") or "").strip()
            if not task_type:
                raise InvalidInput(prefix + ".task_type", MISSING)
            # Field names carry the prefix so errors point at the right row
            scoped = {prefix + "." + k: v for k, v in task.items()}
            count = self.require_count(scoped, prefix + ".count")
            cost, time = self._task_rates(
                scoped, prefix + ".cost_per_unit", prefix + ".time_per_unit",
                material_type, task_type, assumptions)
            normalized.append({
                "task_type": task_type,
                "count": count,
                "cost_per_unit": cost,
                "time_per_unit": time,
            })
        return normalized

    def _sheet_note(self, name: str, material_type: str) -> str:
        if self.sheet.has_material(material_type):
            return "%s from fabrication sheet (%s)." % (name, material_type)
        return "%s from fabrication sheet Default row (%s not on sheet)." % (name, material_type)


def scale_to_batch(breakdown: dict, frame_count) -> dict:
    """
    Scale a per-frame breakdown to a batch of identical frames.

    Every numeric field is multiplied by frame_count — no batch discount,
    no rounding between frames. frame_count must be a whole number >= 1.
    """
    count = parse_frame_count(frame_count)
    totals = _scale(breakdown, count)
    if not all_finite(totals):
        raise InvalidInput("frame_count", NON_FINITE,
                           "frame_count is too large: batch totals are not finite")
    return {
        "frame_count": count,
        "per_frame": breakdown,
        "totals": totals,
    }


def parse_frame_count(frame_count) -> int:
    """Whole number >= 1, or InvalidInput on frame_count."""
    try:
        count = FabricationEstimator().parse_count(frame_count, "frame_count")
    except InvalidInput as e:
        # "-2" is out of range, not merely negative
        if e.constraint == NEGATIVE:
            raise InvalidInput("frame_count", LESS_THAN_ONE)
        raise
    if count < 1:
        raise InvalidInput("frame_count", LESS_THAN_ONE)
    return count


def all_finite(value) -> bool:
    """True if every number in a (nested) breakdown is finite."""
    # ints (counts) are exact and never inf
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, dict):
        return all(all_finite(v) for v in value.values())
    if isinstance(value, list):
        return all(all_finite(v) for v in value)
    return True


def _scale(value, factor: int):
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value * factor
    if isinstance(value, dict):
        return {k: _scale(v, factor) for k, v in value.items()}
    if isinstance(value, list):
        return [_scale(v, factor) for v in value]
    return value


def estimate(params: dict, sheet=None) -> dict:
    """Module-level shortcut for FabricationEstimator(sheet).estimate(params)."""
    return FabricationEstimator(sheet).estimate(params)
