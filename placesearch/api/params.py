"""
Query parameter parsing.

Optional numeric parameters never fail a request: unparseable values are
treated as absent.
"""

import logging
import math
from typing import List, Optional

logger = logging.getLogger(__name__)


def parse_float(value: Optional[str]) -> Optional[float]:
    if value is None or str(value).strip() == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring non-numeric parameter value '{value}'")
        return None
    return number if math.isfinite(number) else None


def parse_int(
    value: Optional[str], default: int, minimum: Optional[int] = None, maximum: Optional[int] = None
) -> int:
    """Parse an integer with a default and clamping."""
    number = parse_float(value)
    result = default if number is None else int(number)
    if minimum is not None:
        result = max(minimum, result)
    if maximum is not None:
        result = min(maximum, result)
    return result


def parse_list(value: Optional[str]) -> Optional[List[str]]:
    """Comma-separated values, e.g. `categories=spa,nail`."""
    if not value:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or None


def parse_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None
