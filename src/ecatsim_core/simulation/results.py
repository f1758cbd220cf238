# src/ecatsim_core/simulation/results.py
"""
The raw output of a bias solve, before any per-component derivation.
"""
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from ..analysis.results import Topology
from ..data_structures import Schematic
from ..signals import FrequencySweptSignal, PhasorDomainSignal
from .config import SimulationKind
from .mna import ActiveBranch, BranchRole, OperatingMode


@dataclass(frozen=True)
class BiasSolution:
    """
    Solved node potentials and branch currents of one schematic snapshot.

    Node signals are keyed by node index and hold the DC value plus one phasor per
    solved AC frequency; the reference node is included with all-zero values and
    nodes excluded from the system are absent. Branch signals are keyed by
    `ActiveBranch.index` and hold the raw branch unknown (current from the branch's
    positive node into the branch). A FREQUENCY_SWEEP solve fills the `*_responses`
    mappings instead.

    Attributes:
        converged: False when the operating-mode loop hit its iteration bound; the
                   result is then a best-effort solve with the last assumed modes.
        mode_iterations: Number of DC solves spent resolving operating modes.
    """
    schematic: Schematic
    kind: SimulationKind
    topology: Topology
    branches: Tuple[ActiveBranch, ...]
    frequencies_hz: Tuple[float, ...] = ()
    node_potentials: Mapping[int, PhasorDomainSignal] = field(default_factory=dict)
    branch_currents: Mapping[int, PhasorDomainSignal] = field(default_factory=dict)
    sweep_frequencies_hz: Tuple[float, ...] = ()
    node_responses: Mapping[int, FrequencySweptSignal] = field(default_factory=dict)
    branch_responses: Mapping[int, FrequencySweptSignal] = field(default_factory=dict)
    operating_modes: Mapping[str, OperatingMode] = field(default_factory=dict)
    excluded_nodes: Tuple[int, ...] = ()
    converged: bool = True
    mode_iterations: int = 0

    @property
    def is_sweep(self) -> bool:
        return self.kind is SimulationKind.FREQUENCY_SWEEP

    def find_branch(self, component_id: str, role: BranchRole) -> Optional[ActiveBranch]:
        for branch in self.branches:
            if branch.component_id == component_id and branch.role is role:
                return branch
        return None
