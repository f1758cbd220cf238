# src/ecatsim_core/simulation/__init__.py
from .exceptions import (
    MnaInputError,
    SingularMatrixError,
    SimulationCancelled,
)
from .config import (
    ConfigParsingError,
    SimulationConfig,
    SimulationKind,
    load_simulation_config,
    parse_simulation_config,
    parse_sweep_config,
)
from .mna import ActiveBranch, BranchRole, MnaAssembler, MnaSystem
from .solver import solve, solve_mna_system, factorize_mna_matrix
from .context import SimulationContext
from .results import BiasSolution
from .engine import SimulationEngine
from .execution import BiasOutcome, bias
from .runner import SimulationRunner

__all__ = [
    # Exceptions
    "MnaInputError",
    "SingularMatrixError",
    "SimulationCancelled",
    # Configuration
    "ConfigParsingError", "SimulationConfig", "SimulationKind",
    "load_simulation_config", "parse_simulation_config", "parse_sweep_config",
    # Core Classes
    "ActiveBranch", "BranchRole", "MnaAssembler", "MnaSystem",
    "solve", "solve_mna_system", "factorize_mna_matrix",
    "SimulationContext", "BiasSolution", "SimulationEngine",
    "BiasOutcome", "bias",
    "SimulationRunner",
]
