# src/ecatsim_core/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("ECATSim Core package initialized.")

from .units import ureg, pint, Quantity, to_si
from .data_structures import PlanePosition, Wire, TerminalRef, Schematic
from .components import Component, ComponentKind, ComponentDefaults, ComponentError
from .analysis import NodeAggregator, Topology, Node, TopologyError
from .signals import (
    SignalType, CharacteristicValues, PhasorDomainSignal, PhasorSignalBuilder,
    TimeDomainSignal, TimeDomainSignalBuilder, FrequencySweptSignal, to_time_domain,
)
from .simulation import (
    SimulationKind, SimulationConfig, BiasOutcome, BiasSolution, bias, SimulationRunner,
    MnaInputError, SingularMatrixError, SimulationCancelled,
    parse_simulation_config, load_simulation_config,
)
from .results import UNAVAILABLE, SimulationResults, ResultsProvider, PowerInformation, PowerType
from .errors import ECATSimError, SchematicBuildError, SimulationRunError

__all__ = [
    # Units
    "ureg", "pint", "Quantity", "to_si",
    # Data Structures
    "PlanePosition", "Wire", "TerminalRef", "Schematic",
    # Components
    "Component", "ComponentKind", "ComponentDefaults", "ComponentError",
    # Node aggregation
    "NodeAggregator", "Topology", "Node", "TopologyError",
    # Signals
    "SignalType", "CharacteristicValues", "PhasorDomainSignal", "PhasorSignalBuilder",
    "TimeDomainSignal", "TimeDomainSignalBuilder", "FrequencySweptSignal", "to_time_domain",
    # Simulation
    "SimulationKind", "SimulationConfig", "BiasOutcome", "BiasSolution", "bias", "SimulationRunner",
    "MnaInputError", "SingularMatrixError", "SimulationCancelled",
    "parse_simulation_config", "load_simulation_config",
    # Results
    "UNAVAILABLE", "SimulationResults", "ResultsProvider", "PowerInformation", "PowerType",
    # Top-Level Errors (Actionable Diagnostics)
    "ECATSimError", "SchematicBuildError", "SimulationRunError",
]
