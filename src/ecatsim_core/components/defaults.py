# src/ecatsim_core/components/defaults.py
"""
Default parameter values for newly created components.

An explicit `ComponentDefaults` instance is passed to the component factories and
carried by `SimulationConfig`, so that no global lookup is needed to know them.
"""
from dataclasses import dataclass

from ..constants import MAXIMUM_PARAMETER_VALUE


@dataclass(frozen=True)
class ComponentDefaults:
    maximum_parameter_value: float = MAXIMUM_PARAMETER_VALUE
    resistor_admittance: float = 1.0
    source_voltage: float = 1.0
    source_current: float = 1.0
    op_amp_positive_supply: float = 15.0
    op_amp_negative_supply: float = -15.0
    op_amp_open_loop_gain: float = 1.0e6
    bjt_beta: float = 100.0
    bjt_ube_forward: float = 0.7
    bjt_uce_saturation: float = 0.2
    bjt_h11: float = 4.0e3
    bjt_h12: float = 2.5e-4
    bjt_h21: float = 125.0
    bjt_h22: float = 20.0e-6


DEFAULT_COMPONENT_VALUES = ComponentDefaults()
