# src/ecatsim_core/results/power.py
"""
Power derived from a voltage drop and the current through the same part.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum, auto

from ..signals import PhasorDomainSignal

logger = logging.getLogger(__name__)


class PowerType(Enum):
    NONE = auto()
    DISSIPATED = auto()
    SUPPLIED = auto()


@dataclass(frozen=True)
class PowerInformation:
    """
    Average and instantaneous bounds of the power absorbed by a part. A positive
    average is dissipated, a negative one supplied to the circuit. `average` is
    NaN when voltage and current span different frequency sets.
    """
    average: float
    maximum: float
    minimum: float

    @property
    def power_type(self) -> PowerType:
        if math.isnan(self.average) or self.average == 0:
            return PowerType.NONE
        return PowerType.DISSIPATED if self.average > 0 else PowerType.SUPPLIED


def compute_power(voltage: PhasorDomainSignal, current: PhasorDomainSignal) -> PowerInformation:
    """
    Computes power from a voltage drop and the current flowing through the part in
    the direction of that drop.

    The average is V_dc * I_dc plus 1/2 * Re(V * conj(I)) per shared frequency;
    only phasors sharing a frequency transfer average power. The bounds are the
    extreme products of the voltage and current envelopes.
    """
    if set(voltage.frequencies) != set(current.frequencies):
        logger.debug("Voltage and current span different frequencies; average power is undefined.")
        average = math.nan
    else:
        currents = current.phasors
        average = voltage.dc * current.dc + sum(
            0.5 * (v * currents[f].conjugate()).real for f, v in voltage.terms
        )

    v_max, v_min = voltage.maximum(), voltage.minimum()
    i_max, i_min = current.maximum(), current.minimum()
    products = (v_max * i_max, v_max * i_min, v_min * i_max, v_min * i_min)
    return PowerInformation(average=average, maximum=max(products), minimum=min(products))
