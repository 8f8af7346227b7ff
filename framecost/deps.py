"""
Shared FastAPI dependencies.

get_sheet() is the fabrication sheet every request quotes against: the
built-in rows, plus FABRICATION_SHEET_PATH rows when that is configured.
Override it in tests with app.dependency_overrides[get_sheet].
"""

import logging
from functools import lru_cache

from .calculators.fabrication_sheet import DEFAULT_SHEET, FabricationSheet
from .config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _load_sheet(path: str) -> FabricationSheet:
    if not path:
        return DEFAULT_SHEET
    return FabricationSheet.from_file(path)


def get_sheet() -> FabricationSheet:
    return _load_sheet(settings.FABRICATION_SHEET_PATH)
