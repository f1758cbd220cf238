# src/ecatsim_core/simulation/config.py
"""
Simulation kinds and the explicit configuration passed into every solve.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import cerberus
import numpy as np
import pint
import yaml

from ..components.defaults import ComponentDefaults
from ..constants import DEFAULT_MAX_MODE_ITERATIONS, DEFAULT_POSITION_GRID
from ..units import ureg, to_si

logger = logging.getLogger(__name__)


class ConfigParsingError(ValueError):
    """Custom exception for errors during simulation configuration parsing."""
    pass


class SimulationKind(Enum):
    """What a bias solve computes."""
    DC = auto()
    AC = auto()
    ACDC = auto()
    FREQUENCY_SWEEP = auto()

    @property
    def includes_dc(self) -> bool:
        return self in (SimulationKind.DC, SimulationKind.ACDC)

    @property
    def includes_ac(self) -> bool:
        return self in (SimulationKind.AC, SimulationKind.ACDC)


@dataclass(frozen=True)
class SimulationConfig:
    """
    Tunables of a solve. Instances are passed explicitly to the node aggregator,
    the assembler and the engine.

    Attributes:
        position_grid: Rounding grid deciding that two terminal positions coincide.
        max_mode_iterations: Upper bound on solves spent resolving op-amp and
                             transistor operating modes.
        sweep_frequencies_hz: Frequencies visited by a FREQUENCY_SWEEP solve.
        defaults: Default component values. The component factories take them as
                  `defaults=config.defaults`, so a schematic can be built from
                  the same config it is solved with.
    """
    position_grid: float = DEFAULT_POSITION_GRID
    max_mode_iterations: int = DEFAULT_MAX_MODE_ITERATIONS
    sweep_frequencies_hz: Tuple[float, ...] = ()
    defaults: ComponentDefaults = field(default_factory=ComponentDefaults)

    def __post_init__(self):
        if not self.position_grid > 0:
            raise ValueError(f"position_grid must be positive, got {self.position_grid}.")
        if self.max_mode_iterations < 1:
            raise ValueError(f"max_mode_iterations must be at least 1, got {self.max_mode_iterations}.")
        sweep = tuple(float(f) for f in self.sweep_frequencies_hz)
        if any(not f > 0 for f in sweep):
            raise ValueError("Sweep frequencies must be strictly positive.")
        object.__setattr__(self, 'sweep_frequencies_hz', sweep)


# --- Parsing ---

# The fields each sweep type needs are enforced by `parse_sweep_config`.
_SWEEP_SCHEMA = {
    "type": {"type": "string", "required": True, "allowed": ["linear", "log", "list"]},
    "start": {"type": ["string", "number"], "dependencies": {"type": ["linear", "log"]}},
    "stop": {"type": ["string", "number"], "dependencies": {"type": ["linear", "log"]}},
    "num_points": {"type": "integer", "min": 1, "dependencies": {"type": ["linear", "log"]}},
    "points": {"type": "list", "minlength": 1, "schema": {"type": ["string", "number"]}, "dependencies": {"type": ["list"]}},
}

# Unit of every ComponentDefaults field; an empty string marks a plain number.
_DEFAULT_UNITS: Dict[str, str] = {
    "maximum_parameter_value": "",
    "resistor_admittance": "siemens",
    "source_voltage": "volt",
    "source_current": "ampere",
    "op_amp_positive_supply": "volt",
    "op_amp_negative_supply": "volt",
    "op_amp_open_loop_gain": "",
    "bjt_beta": "",
    "bjt_ube_forward": "volt",
    "bjt_uce_saturation": "volt",
    "bjt_h11": "ohm",
    "bjt_h12": "",
    "bjt_h21": "",
    "bjt_h22": "siemens",
}

_CONFIG_SCHEMA = {
    "position_grid": {"type": "number", "required": False, "min": 0},
    "max_mode_iterations": {"type": "integer", "required": False, "min": 1},
    "sweep": {"type": "dict", "required": False, "schema": _SWEEP_SCHEMA},
    "defaults": {
        "type": "dict", "required": False,
        "keysrules": {"type": "string", "allowed": list(_DEFAULT_UNITS)},
        "valuesrules": {"type": ["string", "number"]},
    },
}


def _to_hz(value) -> float:
    return ureg.Quantity(value).to('Hz').magnitude if isinstance(value, str) else float(value)


def parse_sweep_config(raw_sweep_config: Dict[str, Any]) -> np.ndarray:
    """
    Parses a raw sweep configuration dictionary into a sorted NumPy frequency array.

    Supported forms: `{'type': 'linear' | 'log', 'start', 'stop', 'num_points'}` and
    `{'type': 'list', 'points': [...]}`; values may carry units ("10 kHz").
    """
    if not raw_sweep_config:
        raise ConfigParsingError("Sweep configuration is missing or empty.")
    try:
        sweep_type = raw_sweep_config['type']

        if sweep_type in ['linear', 'log']:
            start_hz = _to_hz(raw_sweep_config['start'])
            stop_hz = _to_hz(raw_sweep_config['stop'])
            num_points = int(raw_sweep_config['num_points'])

            if stop_hz < start_hz: raise ValueError("Stop frequency cannot be less than start frequency.")

            if sweep_type == 'linear':
                if start_hz < 0: raise ValueError("Linear sweep start frequency must be >= 0.")
                return np.linspace(start_hz, stop_hz, num_points, dtype=float)
            if start_hz <= 0 or stop_hz <= 0: raise ValueError("Log sweep frequencies must be > 0.")
            return np.geomspace(start_hz, stop_hz, num_points, dtype=float)

        if sweep_type == 'list':
            points = [_to_hz(p) for p in raw_sweep_config['points']]
            if any(f < 0 for f in points): raise ValueError("Frequencies in list must be non-negative.")
            return np.array(sorted(set(points)), dtype=float)

        raise ValueError(f"Unknown sweep type '{sweep_type}'.")
    except (KeyError, ValueError, pint.DimensionalityError, pint.UndefinedUnitError) as e:
        raise ConfigParsingError(f"Failed to parse sweep configuration: {e}") from e


def _parse_defaults(raw_defaults: Dict[str, Any]) -> ComponentDefaults:
    values = {}
    for name, raw_value in raw_defaults.items():
        try:
            values[name] = to_si(raw_value, _DEFAULT_UNITS[name])
        except (pint.DimensionalityError, pint.UndefinedUnitError, TypeError, ValueError) as e:
            raise ConfigParsingError(f"Invalid default '{name}': {e}") from e
    return ComponentDefaults(**values)


def parse_simulation_config(raw_config: Dict[str, Any]) -> SimulationConfig:
    """
    Validates a raw configuration mapping and turns it into a `SimulationConfig`.
    A zero frequency produced by a linear sweep is dropped; sweeps run above DC.

    Raises:
        ConfigParsingError: If the mapping violates the schema or holds invalid values.
    """
    validator = cerberus.Validator(_CONFIG_SCHEMA)
    if not validator.validate(raw_config or {}):
        raise ConfigParsingError(f"Simulation configuration failed validation: {validator.errors}")
    document = validator.document

    sweep: Tuple[float, ...] = ()
    if 'sweep' in document:
        sweep = tuple(float(f) for f in parse_sweep_config(document['sweep']) if f > 0)
        if not sweep:
            raise ConfigParsingError("Sweep configuration yields no positive frequencies.")

    try:
        config = SimulationConfig(
            position_grid=float(document.get('position_grid', DEFAULT_POSITION_GRID)),
            max_mode_iterations=int(document.get('max_mode_iterations', DEFAULT_MAX_MODE_ITERATIONS)),
            sweep_frequencies_hz=sweep,
            defaults=_parse_defaults(document.get('defaults', {})),
        )
    except ValueError as e:
        if isinstance(e, ConfigParsingError):
            raise
        raise ConfigParsingError(str(e)) from e
    logger.debug(f"Parsed simulation config: {config}")
    return config


def load_simulation_config(path: Union[str, Path]) -> SimulationConfig:
    """Reads a YAML file and parses it with `parse_simulation_config`."""
    path = Path(path)
    try:
        with path.open('r', encoding='utf-8') as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigParsingError(f"Could not read simulation config '{path}': {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ConfigParsingError(f"Simulation config '{path}' must contain a mapping at the top level.")
    return parse_simulation_config(raw or {})
