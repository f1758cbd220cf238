# --- src/ecatsim_core/units.py ---
import logging
from typing import Union

import pint

logger = logging.getLogger(__name__)
ureg = pint.UnitRegistry()
Quantity = ureg.Quantity
logger.info("Pint Unit Registry initialized.")

ParameterValue = Union[int, float, str, Quantity]


def to_si(value: ParameterValue, unit: str) -> float:
    """
    Converts a parameter value to a float magnitude expressed in `unit`.

    Plain numbers and unitless strings are taken to be in `unit` already; strings
    such as "4.7 kohm" and pint Quantities are converted.

    Raises:
        pint.DimensionalityError: If the value's unit does not match `unit`.
        pint.UndefinedUnitError: If the string names an unknown unit.
        TypeError: If the value is not a number, string or Quantity.
    """
    if isinstance(value, bool):
        raise TypeError("Boolean values are not valid parameter values.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        value = Quantity(value)
    if not isinstance(value, Quantity):
        raise TypeError(f"Cannot interpret {value!r} as a physical quantity.")
    if value.unitless:
        return float(value.magnitude)
    return float(value.to(unit).magnitude)
