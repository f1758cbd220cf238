# src/ecatsim_core/components/__init__.py
from .base_enums import ComponentKind, OpAmpMode, TransistorMode
from .base import Component, TERMINAL_LAYOUT, TERMINAL_A, TERMINAL_B
from .defaults import ComponentDefaults, DEFAULT_COMPONENT_VALUES
from .elements import (
    ResistorParams, CapacitorParams, InductorParams, DCVoltageSourceParams,
    ACVoltageSourceParams, CurrentSourceParams, SweepVoltageSourceParams,
    OpAmpParams, BjtParams, JfetParams, GroundParams, VoltmeterParams,
    component_admittance, bjt_admittance_parameters,
)
from .exceptions import ComponentError
from .factory import (
    resistor, capacitor, inductor, dc_voltage_source, ac_voltage_source,
    current_source, sweep_voltage_source, op_amp, npn_bjt, jfet, ground, voltmeter,
)

__all__ = [
    "ComponentKind", "OpAmpMode", "TransistorMode",
    "Component", "TERMINAL_LAYOUT", "TERMINAL_A", "TERMINAL_B",
    "ComponentDefaults", "DEFAULT_COMPONENT_VALUES",
    "ResistorParams", "CapacitorParams", "InductorParams", "DCVoltageSourceParams",
    "ACVoltageSourceParams", "CurrentSourceParams", "SweepVoltageSourceParams",
    "OpAmpParams", "BjtParams", "JfetParams", "GroundParams", "VoltmeterParams",
    "component_admittance", "bjt_admittance_parameters",
    "ComponentError",
    "resistor", "capacitor", "inductor", "dc_voltage_source", "ac_voltage_source",
    "current_source", "sweep_voltage_source", "op_amp", "npn_bjt", "jfet", "ground", "voltmeter",
]
