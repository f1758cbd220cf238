# src/ecatsim_core/components/elements.py
"""
Per-kind parameter payloads and the frequency-dependent behaviour of each kind.

Every payload is a frozen dataclass holding SI magnitudes. Behaviour is looked up by
`ComponentKind` in small registries rather than through methods on the payloads, so
the solver dispatches on the kind tag alone.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Union, TYPE_CHECKING

from ..constants import LARGE_ADMITTANCE_SIEMENS
from .base_enums import ComponentKind
from .exceptions import ComponentError

if TYPE_CHECKING:
    from .base import Component

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResistorParams:
    resistance: float


@dataclass(frozen=True)
class CapacitorParams:
    capacitance: float


@dataclass(frozen=True)
class InductorParams:
    inductance: float


@dataclass(frozen=True)
class DCVoltageSourceParams:
    voltage: float


@dataclass(frozen=True)
class ACVoltageSourceParams:
    peak_voltage: float
    frequency: float
    dc_offset: float = 0.0


@dataclass(frozen=True)
class CurrentSourceParams:
    current: float


@dataclass(frozen=True)
class SweepVoltageSourceParams:
    amplitude: float


@dataclass(frozen=True)
class OpAmpParams:
    positive_supply: float
    negative_supply: float
    open_loop_gain: float


@dataclass(frozen=True)
class BjtParams:
    """
    NPN transistor. The large-signal fields (beta, forward base-emitter drop and
    collector-emitter saturation voltage) drive the operating-mode model; the
    h-parameters are used instead when `small_signal` is set.
    """
    beta: float
    ube_forward: float
    uce_saturation: float
    h11: float
    h12: float
    h21: float
    h22: float
    small_signal: bool = False


@dataclass(frozen=True)
class JfetParams:
    """Small-signal JFET: gate-source and drain-source resistances plus transconductance."""
    rgs: float
    rds: float
    gm: float


@dataclass(frozen=True)
class GroundParams:
    pass


@dataclass(frozen=True)
class VoltmeterParams:
    pass


ComponentParameters = Union[
    ResistorParams, CapacitorParams, InductorParams, DCVoltageSourceParams,
    ACVoltageSourceParams, CurrentSourceParams, SweepVoltageSourceParams,
    OpAmpParams, BjtParams, JfetParams, GroundParams, VoltmeterParams,
]

PARAMETER_TYPES: Dict[ComponentKind, type] = {
    ComponentKind.RESISTOR: ResistorParams,
    ComponentKind.CAPACITOR: CapacitorParams,
    ComponentKind.INDUCTOR: InductorParams,
    ComponentKind.DC_VOLTAGE_SOURCE: DCVoltageSourceParams,
    ComponentKind.AC_VOLTAGE_SOURCE: ACVoltageSourceParams,
    ComponentKind.CURRENT_SOURCE: CurrentSourceParams,
    ComponentKind.SWEEP_VOLTAGE_SOURCE: SweepVoltageSourceParams,
    ComponentKind.OP_AMP: OpAmpParams,
    ComponentKind.NPN_BJT: BjtParams,
    ComponentKind.JFET: JfetParams,
    ComponentKind.GROUND: GroundParams,
    ComponentKind.VOLTMETER: VoltmeterParams,
}


# --- Two-terminal admittance dispatch ---

AdmittanceFunction = Callable[[ComponentParameters, float], complex]

ADMITTANCE_REGISTRY: Dict[ComponentKind, AdmittanceFunction] = {}


def admittance_for(kind: ComponentKind):
    """Registers the admittance function of a passive two-terminal kind."""
    def decorator(func: AdmittanceFunction) -> AdmittanceFunction:
        if kind in ADMITTANCE_REGISTRY:
            logger.warning(f"Admittance function for {kind.name} is being redefined.")
        ADMITTANCE_REGISTRY[kind] = func
        return func
    return decorator


@admittance_for(ComponentKind.RESISTOR)
def _resistor_admittance(params: ResistorParams, frequency: float) -> complex:
    if params.resistance == 0.0:
        return complex(LARGE_ADMITTANCE_SIEMENS)
    if math.isinf(params.resistance):
        return 0j
    return complex(1.0 / params.resistance)


@admittance_for(ComponentKind.CAPACITOR)
def _capacitor_admittance(params: CapacitorParams, frequency: float) -> complex:
    # Open at DC.
    return complex(0.0, 2.0 * math.pi * frequency * params.capacitance)


@admittance_for(ComponentKind.INDUCTOR)
def _inductor_admittance(params: InductorParams, frequency: float) -> complex:
    # At DC the solver models the inductor as a 0 V source; this value is only
    # consulted for current derivation above DC.
    if frequency == 0.0 or params.inductance == 0.0:
        return complex(LARGE_ADMITTANCE_SIEMENS)
    return 1.0 / complex(0.0, 2.0 * math.pi * frequency * params.inductance)


def component_admittance(component: "Component", frequency: float) -> complex:
    """
    Returns the complex admittance of a passive two-terminal component at `frequency`.

    Raises:
        ComponentError: If the component's kind is not a passive admittance.
    """
    try:
        func = ADMITTANCE_REGISTRY[component.kind]
    except KeyError:
        raise ComponentError(
            component_id=component.component_id,
            details=f"Components of kind {component.kind.name} have no two-terminal admittance.",
            frequency=frequency,
        ) from None
    return func(component.parameters, frequency)


# --- Three-terminal small-signal models ---

def bjt_admittance_parameters(params: BjtParams) -> Tuple[float, float, float, float]:
    """
    Converts the hybrid (h) parameters of a common-emitter BJT into admittance (y)
    parameters, returned as (y11, y12, y21, y22).
    """
    y11 = 1.0 / params.h11
    y12 = -params.h12 / params.h11
    y21 = params.h21 / params.h11
    y22 = (params.h11 * params.h22 - params.h12 * params.h21) / params.h11
    return y11, y12, y21, y22
