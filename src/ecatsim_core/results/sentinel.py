# src/ecatsim_core/results/sentinel.py
import math
from enum import Enum


class _Unavailable(Enum):
    """Marker returned by result queries that have no answer."""
    UNAVAILABLE = "unavailable"

    def __bool__(self):
        return False

    def __str__(self):
        return "unavailable"

    def __repr__(self):
        return "UNAVAILABLE"


UNAVAILABLE = _Unavailable.UNAVAILABLE


def is_available(value) -> bool:
    """False for the sentinel and for NaN numbers."""
    if value is UNAVAILABLE:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return True


def format_value(value, unit: str = "") -> str:
    """Renders a result for display; unavailable values carry no unit."""
    if not is_available(value):
        return str(UNAVAILABLE)
    return f"{value:g} {unit}".rstrip()
