"""
Abstract base class for fabrication calculators.

Input: a flat parameter dict (form fields, or AI fields merged with overrides)
Output: a breakdown dict

Unlike free-text intake parsing, these helpers NEVER default a missing or
malformed number — they raise InvalidInput naming the field. Form values
arrive as strings, so numeric strings ("150", " 2.5 ") are accepted.
"""

import math
from abc import ABC, abstractmethod

from ..errors import (
    InvalidInput, MISSING, NON_NUMERIC, NON_FINITE, NEGATIVE, NOT_INTEGER,
)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class BaseCalculator(ABC):
    """All fabrication calculators inherit from this."""

    @abstractmethod
    def calculate(self, fields: dict) -> dict:
        """
        Takes the parameter fields.
        Returns a breakdown dict.
        """
        pass

    # --- Strict parsing ---

    def require_number(self, fields: dict, name: str) -> float:
        """Parse a required non-negative, finite number."""
        return self.parse_number(fields.get(name), name)

    def optional_number(self, fields: dict, name: str):
        """Parse an optional non-negative number. Returns None if absent or blank."""
        value = fields.get(name)
        if _is_blank(value):
            return None
        return self.parse_number(value, name)

    def require_count(self, fields: dict, name: str) -> int:
        """Parse a required whole-number count >= 0."""
        return self.parse_count(fields.get(name), name)

    def optional_count(self, fields: dict, name: str):
        value = fields.get(name)
        if _is_blank(value):
            return None
        return self.parse_count(value, name)

    def parse_number(self, value, name: str) -> float:
        if _is_blank(value):
            raise InvalidInput(name, MISSING)
        # bool is an int subclass — a checkbox value is not a quantity
        if isinstance(value, bool):
            raise InvalidInput(name, NON_NUMERIC)
        try:
            number = float(str(value).strip()) if isinstance(value, str) else float(value)
        except (ValueError, TypeError):
            raise InvalidInput(name, NON_NUMERIC)
        except OverflowError:
            # int too large for a float
            raise InvalidInput(name, NON_FINITE)
        if not math.isfinite(number):
            raise InvalidInput(name, NON_FINITE)
        if number < 0:
            raise InvalidInput(name, NEGATIVE)
        return number

    def parse_count(self, value, name: str) -> int:
        number = self.parse_number(value, name)
        if not number.is_integer():
            raise InvalidInput(name, NOT_INTEGER)
        return int(number)

    # --- Section builders ---

    def make_task_section(self, count: int, cost_per_unit: float,
                          time_per_unit: float) -> dict:
        """count × cost and count × time for one task type (cutting, welding, ...)."""
        return {
            "total_count": count,
            "total_cost": count * cost_per_unit,
            "total_time_minutes": count * time_per_unit,
        }

    def make_material_section(self, length: float, cost_per_unit: float) -> dict:
        return {
            "total_required": length,
            "total_cost": length * cost_per_unit,
        }
