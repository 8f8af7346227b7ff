"""
Fabrication sheet — rate lookup keyed by (material, task type).

Each row gives the default cost (and, for operations, time) per unit for one
material and one task. A "Default" material row per task type is the fallback
when a material isn't on the sheet. That fallback applies ONLY to rate
lookups; user-entered numbers are never replaced by sheet values.

Rows are immutable once the sheet is built. Consumers receive a sheet
instance (DEFAULT_SHEET unless one is injected) instead of reading module state.

Rates come from the shop's calculation sheets. Currency is INR, material
cost is per unit length, times are minutes per unit.
"""

import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_MATERIAL = "Default"

# Task types
MATERIAL = "Material"
CUTTING = "Cutting"
WELDING = "Welding"
FRAME_ASSEMBLY = "Frame Assembly"


@dataclass(frozen=True)
class SheetRate:
    task_type: str
    material: str
    cost_per_unit: float
    time_per_unit_min: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "type": self.task_type,
            "material": self.material,
            "cost_per_unit": self.cost_per_unit,
            "time_per_unit_min": self.time_per_unit_min,
        }


DEFAULT_ROWS = (
    # Mild steel
    SheetRate(MATERIAL, "Mild Steel", 150.0),
    SheetRate(CUTTING, "Mild Steel", 25.0, 2.0),
    SheetRate(WELDING, "Mild Steel", 100.0, 5.0),
    SheetRate(FRAME_ASSEMBLY, "Mild Steel", 120.0, 10.0),
    # Aluminum
    SheetRate(MATERIAL, "Aluminum", 250.0),
    SheetRate(CUTTING, "Aluminum", 30.0, 1.5),
    SheetRate(WELDING, "Aluminum", 150.0, 7.0),
    SheetRate(FRAME_ASSEMBLY, "Aluminum", 180.0, 12.0),
    # Fallback when the material isn't on the sheet
    SheetRate(MATERIAL, DEFAULT_MATERIAL, 100.0),
    SheetRate(CUTTING, DEFAULT_MATERIAL, 20.0, 3.0),
    SheetRate(WELDING, DEFAULT_MATERIAL, 90.0, 6.0),
    SheetRate(FRAME_ASSEMBLY, DEFAULT_MATERIAL, 100.0, 15.0),
)


def _key(material: str, task_type: str) -> tuple:
    return (str(material or "").strip().lower(), str(task_type or "").strip().lower())


class FabricationSheet:
    """
    Read-only (material, task_type) → SheetRate table.

    Material and task names match case-insensitively. Unknown materials
    resolve to the "Default" row for the task; a task with no row at all
    raises KeyError.
    """

    def __init__(self, rows: Iterable[SheetRate] = DEFAULT_ROWS):
        table = {}
        for row in rows:
            table[_key(row.material, row.task_type)] = row
        self._rows = MappingProxyType(table)

    @classmethod
    def from_file(cls, path: str) -> "FabricationSheet":
        """
        Build a sheet from a JSON list of rows:
        [{"type": "Cutting", "material": "Copper", "cost_per_unit": 40, "time_per_unit_min": 2.5}, ...]

        Rows in the file replace built-in rows with the same key; built-in
        rows (including "Default") stay available otherwise.
        """
        with open(path) as f:
            raw = json.load(f)
        rows = list(DEFAULT_ROWS)
        for entry in raw:
            time_per_unit = entry.get("time_per_unit_min")
            rows.append(SheetRate(
                task_type=entry["type"],
                material=entry["material"],
                cost_per_unit=float(entry["cost_per_unit"]),
                time_per_unit_min=float(time_per_unit) if time_per_unit is not None else None,
            ))
        logger.info("Loaded %d fabrication sheet rows from %s", len(raw), path)
        return cls(rows)

    def has_material(self, material: str) -> bool:
        """True if the sheet carries any row for this material (Default doesn't count)."""
        wanted = str(material or "").strip().lower()
        if wanted == DEFAULT_MATERIAL.lower():
            return False
        return any(mat == wanted for mat, _ in self._rows)

    def lookup(self, material: str, task_type: str) -> SheetRate:
        """
        Rate for a material/task, falling back to the "Default" material row.
        Raises KeyError if the task type has no row even under "Default".
        """
        row = self._rows.get(_key(material, task_type))
        if row is not None:
            return row
        fallback = self._rows.get(_key(DEFAULT_MATERIAL, task_type))
        if fallback is None:
            raise KeyError("No fabrication sheet rate for task type: %s" % task_type)
        logger.debug("No %s rate for material %r — using Default row", task_type, material)
        return fallback

    def material_cost_per_unit(self, material: str) -> float:
        return self.lookup(material, MATERIAL).cost_per_unit

    def task_rates(self, material: str, task_type: str) -> tuple:
        """Returns (cost_per_unit, time_per_unit_min) for an operation task."""
        row = self.lookup(material, task_type)
        return row.cost_per_unit, row.time_per_unit_min or 0.0

    def materials(self) -> list:
        """Materials named on the sheet, excluding the Default row, in insertion order."""
        seen = []
        for row in self._rows.values():
            if row.material != DEFAULT_MATERIAL and row.material not in seen:
                seen.append(row.material)
        return seen

    def rows(self) -> list:
        return [row.to_dict() for row in self._rows.values()]


DEFAULT_SHEET = FabricationSheet()
