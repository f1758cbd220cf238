# src/ecatsim_core/components/factory.py
"""
Constructors for every component kind.

Each factory accepts terminal positions as `PlanePosition` objects or `(x, y)`
tuples and parameter values as numbers, pint Quantities or strings with units
("4.7 kohm", "10 uF"). Omitted values fall back to the supplied `ComponentDefaults`.
"""

import logging
import math
from typing import Optional, Tuple, Union

import pint

from ..data_structures import PlanePosition
from ..units import ParameterValue, to_si
from .base import Component, TERMINAL_A, TERMINAL_B
from .base_enums import ComponentKind
from .defaults import ComponentDefaults, DEFAULT_COMPONENT_VALUES
from .elements import (
    ACVoltageSourceParams, BjtParams, CapacitorParams, CurrentSourceParams,
    DCVoltageSourceParams, GroundParams, InductorParams, JfetParams, OpAmpParams,
    ResistorParams, SweepVoltageSourceParams, VoltmeterParams,
)
from .exceptions import ComponentError

logger = logging.getLogger(__name__)

PositionLike = Union[PlanePosition, Tuple[float, float]]


def _as_position(value: PositionLike) -> PlanePosition:
    if isinstance(value, PlanePosition):
        return value
    x, y = value
    return PlanePosition(float(x), float(y))


def _resolve_value(
    value: Optional[ParameterValue],
    default: Optional[float],
    component_id: str,
    param_name: str,
    unit: str,
    defaults: ComponentDefaults,
    allow_negative: bool = True,
    allow_zero: bool = True,
    allow_infinite: bool = False,
) -> float:
    """
    Converts one parameter to a float in `unit` and enforces the physical
    constraints of that parameter, raising a `ComponentError` for any violation.
    """
    if value is None:
        if default is None:
            raise ComponentError(component_id=component_id, details=f"Parameter '{param_name}' is required.")
        value = default
    try:
        magnitude = to_si(value, unit)
    except (pint.DimensionalityError, pint.UndefinedUnitError, TypeError, ValueError) as e:
        raise ComponentError(
            component_id=component_id,
            details=f"Validation failed for parameter '{param_name}': {e}"
        ) from e

    if math.isnan(magnitude):
        raise ComponentError(component_id=component_id, details=f"Parameter '{param_name}' is NaN.")
    if math.isinf(magnitude):
        if allow_infinite and magnitude > 0:
            return magnitude
        raise ComponentError(component_id=component_id, details=f"Parameter '{param_name}' must be finite.")
    if not allow_negative and magnitude < 0:
        raise ComponentError(component_id=component_id, details=f"Parameter '{param_name}' must be non-negative.")
    if not allow_zero and magnitude == 0:
        raise ComponentError(component_id=component_id, details=f"Parameter '{param_name}' must be non-zero.")
    if abs(magnitude) > defaults.maximum_parameter_value:
        raise ComponentError(
            component_id=component_id,
            details=f"Parameter '{param_name}' exceeds the maximum of {defaults.maximum_parameter_value:g}."
        )
    return magnitude


def _two_terminal(component_id, kind, a, b, params) -> Component:
    return Component(
        component_id=component_id,
        kind=kind,
        terminals={TERMINAL_A: _as_position(a), TERMINAL_B: _as_position(b)},
        parameters=params,
    )


def resistor(component_id: str, a: PositionLike, b: PositionLike,
             resistance: Optional[ParameterValue] = None,
             defaults: ComponentDefaults = DEFAULT_COMPONENT_VALUES) -> Component:
    r = _resolve_value(resistance, 1.0 / defaults.resistor_admittance, component_id, "resistance", "ohm",
                       defaults, allow_negative=False, allow_infinite=True)
    return _two_terminal(component_id, ComponentKind.RESISTOR, a, b, ResistorParams(r))


def capacitor(component_id: str, a: PositionLike, b: PositionLike,
              capacitance: ParameterValue,
              defaults: ComponentDefaults = DEFAULT_COMPONENT_VALUES) -> Component:
    c = _resolve_value(capacitance, None, component_id, "capacitance", "farad", defaults, allow_negative=False)
    return _two_terminal(component_id, ComponentKind.CAPACITOR, a, b, CapacitorParams(c))


def inductor(component_id: str, a: PositionLike, b: PositionLike,
             inductance: ParameterValue,
             defaults: ComponentDefaults = DEFAULT_COMPONENT_VALUES) -> Component:
    ind = _resolve_value(inductance, None, component_id, "inductance", "henry", defaults, allow_negative=False)
    return _two_terminal(component_id, ComponentKind.INDUCTOR, a, b, InductorParams(ind))


def dc_voltage_source(component_id: str, negative: PositionLike, positive: PositionLike,
                      voltage: Optional[ParameterValue] = None,
                      defaults: ComponentDefaults = DEFAULT_COMPONENT_VALUES) -> Component:
    v = _resolve_value(voltage, defaults.source_voltage, component_id, "voltage", "volt", defaults)
    return _two_terminal(component_id, ComponentKind.DC_VOLTAGE_SOURCE, negative, positive, DCVoltageSourceParams(v))


def ac_voltage_source(component_id: str, negative: PositionLike, positive: PositionLike,
                      peak_voltage: Optional[ParameterValue] = None,
                      frequency: ParameterValue = "1 kHz",
                      dc_offset: ParameterValue = 0.0,
                      defaults: ComponentDefaults = DEFAULT_COMPONENT_VALUES) -> Component:
    peak = _resolve_value(peak_voltage, defaults.source_voltage, component_id, "peak_voltage", "volt", defaults)
    freq = _resolve_value(frequency, None, component_id, "frequency", "hertz", defaults,
                          allow_negative=False, allow_zero=False)
    offset = _resolve_value(dc_offset, 0.0, component_id, "dc_offset", "volt", defaults)
    return _two_terminal(component_id, ComponentKind.AC_VOLTAGE_SOURCE, negative, positive,
                         ACVoltageSourceParams(peak, freq, offset))


def current_source(component_id: str, negative: PositionLike, positive: PositionLike,
                   current: Optional[ParameterValue] = None,
                   defaults: ComponentDefaults = DEFAULT_COMPONENT_VALUES) -> Component:
    """The produced current leaves the source through its positive terminal."""
    i = _resolve_value(current, defaults.source_current, component_id, "current", "ampere", defaults)
    return _two_terminal(component_id, ComponentKind.CURRENT_SOURCE, negative, positive, CurrentSourceParams(i))


def sweep_voltage_source(component_id: str, negative: PositionLike, positive: PositionLike,
                         amplitude: Optional[ParameterValue] = None,
                         defaults: ComponentDefaults = DEFAULT_COMPONENT_VALUES) -> Component:
    amp = _resolve_value(amplitude, defaults.source_voltage, component_id, "amplitude", "volt", defaults)
    return _two_terminal(component_id, ComponentKind.SWEEP_VOLTAGE_SOURCE, negative, positive,
                         SweepVoltageSourceParams(amp))


def op_amp(component_id: str, non_inverting: PositionLike, inverting: PositionLike, output: PositionLike,
           positive_supply: Optional[ParameterValue] = None,
           negative_supply: Optional[ParameterValue] = None,
           open_loop_gain: Optional[ParameterValue] = None,
           defaults: ComponentDefaults = DEFAULT_COMPONENT_VALUES) -> Component:
    v_pos = _resolve_value(positive_supply, defaults.op_amp_positive_supply, component_id, "positive_supply", "volt", defaults)
    v_neg = _resolve_value(negative_supply, defaults.op_amp_negative_supply, component_id, "negative_supply", "volt", defaults)
    gain = _resolve_value(open_loop_gain, defaults.op_amp_open_loop_gain, component_id, "open_loop_gain", "",
                          defaults, allow_negative=False, allow_zero=False)
    if v_neg >= v_pos:
        raise ComponentError(
            component_id=component_id,
            details=f"Negative supply ({v_neg} V) must be below the positive supply ({v_pos} V)."
        )
    return Component(
        component_id=component_id,
        kind=ComponentKind.OP_AMP,
        terminals={
            "non_inverting": _as_position(non_inverting),
            "inverting": _as_position(inverting),
            "output": _as_position(output),
        },
        parameters=OpAmpParams(v_pos, v_neg, gain),
    )


def npn_bjt(component_id: str, base: PositionLike, collector: PositionLike, emitter: PositionLike,
            beta: Optional[ParameterValue] = None,
            ube_forward: Optional[ParameterValue] = None,
            uce_saturation: Optional[ParameterValue] = None,
            small_signal: bool = False,
            h11: Optional[ParameterValue] = None,
            h12: Optional[ParameterValue] = None,
            h21: Optional[ParameterValue] = None,
            h22: Optional[ParameterValue] = None,
            defaults: ComponentDefaults = DEFAULT_COMPONENT_VALUES) -> Component:
    params = BjtParams(
        beta=_resolve_value(beta, defaults.bjt_beta, component_id, "beta", "", defaults,
                            allow_negative=False, allow_zero=False),
        ube_forward=_resolve_value(ube_forward, defaults.bjt_ube_forward, component_id, "ube_forward", "volt",
                                   defaults, allow_negative=False),
        uce_saturation=_resolve_value(uce_saturation, defaults.bjt_uce_saturation, component_id, "uce_saturation",
                                      "volt", defaults, allow_negative=False),
        h11=_resolve_value(h11, defaults.bjt_h11, component_id, "h11", "ohm", defaults,
                           allow_negative=False, allow_zero=False),
        h12=_resolve_value(h12, defaults.bjt_h12, component_id, "h12", "", defaults),
        h21=_resolve_value(h21, defaults.bjt_h21, component_id, "h21", "", defaults),
        h22=_resolve_value(h22, defaults.bjt_h22, component_id, "h22", "siemens", defaults),
        small_signal=bool(small_signal),
    )
    if params.uce_saturation >= params.ube_forward:
        raise ComponentError(
            component_id=component_id,
            details="The collector-emitter saturation voltage must be below the forward base-emitter voltage."
        )
    return Component(
        component_id=component_id,
        kind=ComponentKind.NPN_BJT,
        terminals={"base": _as_position(base), "collector": _as_position(collector), "emitter": _as_position(emitter)},
        parameters=params,
    )


def jfet(component_id: str, gate: PositionLike, drain: PositionLike, source: PositionLike,
         rgs: ParameterValue, rds: ParameterValue, gm: ParameterValue,
         defaults: ComponentDefaults = DEFAULT_COMPONENT_VALUES) -> Component:
    params = JfetParams(
        rgs=_resolve_value(rgs, None, component_id, "rgs", "ohm", defaults,
                           allow_negative=False, allow_zero=False, allow_infinite=True),
        rds=_resolve_value(rds, None, component_id, "rds", "ohm", defaults,
                           allow_negative=False, allow_zero=False, allow_infinite=True),
        gm=_resolve_value(gm, None, component_id, "gm", "siemens", defaults),
    )
    return Component(
        component_id=component_id,
        kind=ComponentKind.JFET,
        terminals={"gate": _as_position(gate), "drain": _as_position(drain), "source": _as_position(source)},
        parameters=params,
    )


def ground(component_id: str, position: PositionLike) -> Component:
    return Component(
        component_id=component_id,
        kind=ComponentKind.GROUND,
        terminals={TERMINAL_A: _as_position(position)},
        parameters=GroundParams(),
    )


def voltmeter(component_id: str, a: PositionLike, b: PositionLike) -> Component:
    """A probe measuring the drop from terminal A to terminal B; it does not load the circuit."""
    return _two_terminal(component_id, ComponentKind.VOLTMETER, a, b, VoltmeterParams())
