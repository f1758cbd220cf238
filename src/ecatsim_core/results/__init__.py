# src/ecatsim_core/results/__init__.py
from .sentinel import UNAVAILABLE, is_available, format_value
from .power import PowerType, PowerInformation, compute_power
from .cache import ResultsCache
from .database import VoltageDB, CurrentDB, PowerDB, SimulationResults
from .measurements import Measurement, MeasurementRegistry
from .provider import ResultsProvider

__all__ = [
    "UNAVAILABLE", "is_available", "format_value",
    "PowerType", "PowerInformation", "compute_power",
    "ResultsCache",
    "VoltageDB", "CurrentDB", "PowerDB", "SimulationResults",
    "Measurement", "MeasurementRegistry",
    "ResultsProvider",
]
