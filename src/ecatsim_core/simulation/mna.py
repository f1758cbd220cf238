# src/ecatsim_core/simulation/mna.py

import logging
import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Mapping, Optional, Set, Tuple, Union

import networkx as nx
import numpy as np
import scipy.sparse as sp

from ..analysis.exceptions import TopologyError
from ..analysis.results import Topology
from ..components.base import Component, TERMINAL_A, TERMINAL_B
from ..components.base_enums import (
    ComponentKind, INERT_KINDS, OpAmpMode, PASSIVE_KINDS, TransistorMode,
)
from ..components.elements import bjt_admittance_parameters, component_admittance
from ..constants import GROUND_NODE_INDEX
from ..data_structures import Schematic
from .config import SimulationConfig
from .exceptions import MnaInputError

logger = logging.getLogger(__name__)

OperatingMode = Union[OpAmpMode, TransistorMode]


class BranchRole(Enum):
    """Why a branch current is an unknown of the system."""
    VOLTAGE_SOURCE = auto()
    INDUCTOR = auto()
    OP_AMP_OUTPUT = auto()
    BJT_BASE = auto()
    BJT_EMITTER = auto()
    BJT_COLLECTOR = auto()


@dataclass(frozen=True)
class ActiveBranch:
    """
    A branch whose current is solved for directly.

    The branch equation constrains V(pos_node) - V(neg_node); its current unknown
    is the current flowing from `pos_node` through the branch into `neg_node`.
    Node numbers at or above the topology's node count denote transistor inner
    nodes.
    """
    index: int
    role: BranchRole
    component_id: str
    pos_node: int
    neg_node: int


@dataclass(frozen=True)
class MnaSystem:
    """
    One assembled system `matrix @ x = rhs` at a single frequency.

    The first `len(node_rows)` unknowns are node potentials (reference node removed),
    the remaining `len(branches)` unknowns are branch currents in branch order.
    """
    frequency: float
    matrix: sp.csc_matrix
    rhs: np.ndarray
    node_rows: Mapping[int, int]
    branches: Tuple[ActiveBranch, ...]
    sweep: bool = False

    @property
    def size(self) -> int:
        return self.rhs.shape[0]

    def branch_row(self, branch: ActiveBranch) -> int:
        return len(self.node_rows) + branch.index


class _Stamps:
    """Triplet accumulator; duplicate entries are summed on conversion."""

    def __init__(self, node_rows: Mapping[int, int], branch_offset: int, size: int):
        self.node_rows = node_rows
        self.branch_offset = branch_offset
        self.size = size
        self.rows: List[int] = []
        self.cols: List[int] = []
        self.vals: List[complex] = []
        self.rhs = np.zeros(size, dtype=complex)

    def node(self, a: int, b: int, value: complex):
        # The reference node and excluded nodes have no row.
        if value == 0 or a not in self.node_rows or b not in self.node_rows:
            return
        self._add(self.node_rows[a], self.node_rows[b], value)

    def admittance(self, a: int, b: int, y: complex):
        """Stamps +y on the diagonals of a and b and -y between them."""
        if a == b:
            return
        self.node(a, a, y)
        self.node(b, b, y)
        self.node(a, b, -y)
        self.node(b, a, -y)

    def transconductance(self, out_p: int, out_n: int, ctl_p: int, ctl_n: int, g: complex):
        """Current g * V(ctl_p, ctl_n) leaving node out_p and entering out_n."""
        self.node(out_p, ctl_p, g)
        self.node(out_p, ctl_n, -g)
        self.node(out_n, ctl_p, -g)
        self.node(out_n, ctl_n, g)

    def branch_column(self, node: int, branch: ActiveBranch, value: float):
        if value and node in self.node_rows:
            self._add(self.node_rows[node], self.branch_offset + branch.index, value)

    def branch_row(self, branch: ActiveBranch, node: int, value: complex):
        if value and node in self.node_rows:
            self._add(self.branch_offset + branch.index, self.node_rows[node], value)

    def branch_diagonal(self, branch: ActiveBranch, value: complex):
        row = self.branch_offset + branch.index
        self._add(row, row, value)

    def inject(self, node: int, current: complex):
        if node in self.node_rows:
            self.rhs[self.node_rows[node]] += current

    def branch_value(self, branch: ActiveBranch, value: complex):
        self.rhs[self.branch_offset + branch.index] = value

    def _add(self, row: int, col: int, value: complex):
        self.rows.append(row)
        self.cols.append(col)
        self.vals.append(value)

    def to_matrix(self) -> sp.csc_matrix:
        return sp.coo_matrix(
            (np.asarray(self.vals, dtype=complex), (self.rows, self.cols)),
            shape=(self.size, self.size),
        ).tocsc()


class MnaAssembler:
    """
    Builds the Modified Nodal Analysis system of one schematic, one frequency at a time.

    The unknown layout is fixed at construction: one potential per simulated node
    except the reference node, one potential per transistor inner node, then one
    current per active branch. Operating modes only switch branches on and off
    (an inactive branch pins its own current to zero), so every system produced by
    one assembler has the same dimension.

    Components are dispatched on their kind through `_STAMPERS`.
    """
    def __init__(self, topology: Topology, schematic: Schematic, config: SimulationConfig):
        self.topology: Topology = topology
        self.schematic: Schematic = schematic
        self.config: SimulationConfig = config

        self.components: Tuple[Component, ...] = tuple(
            c for c in schematic.components if c.kind not in INERT_KINDS
        )
        if not self.components:
            raise MnaInputError(details=f"Schematic '{schematic.schematic_id}' contains no simulatable components.")

        self._check_op_amp_outputs()

        self.simulated_nodes: Tuple[int, ...] = self._find_simulated_nodes()
        simulated = set(self.simulated_nodes)
        self.excluded_nodes: Tuple[int, ...] = tuple(n.index for n in topology.nodes if n.index not in simulated)
        self.inner_nodes: Dict[str, int] = self._allocate_inner_nodes()

        unknown_nodes = [n for n in self.simulated_nodes if n != GROUND_NODE_INDEX] + list(self.inner_nodes.values())
        self.node_rows: Dict[int, int] = {node: row for row, node in enumerate(unknown_nodes)}
        self.branches: Tuple[ActiveBranch, ...] = self._allocate_branches()
        self._branches_by_component: Dict[str, Dict[BranchRole, ActiveBranch]] = {}
        for branch in self.branches:
            self._branches_by_component.setdefault(branch.component_id, {})[branch.role] = branch

        self.size: int = len(self.node_rows) + len(self.branches)
        if self.size == 0:
            raise MnaInputError(details="The circuit has no unknowns; every component is connected to the reference node only.")

        logger.debug(
            f"MNA assembler for '{schematic.schematic_id}': {len(self.node_rows)} node unknowns "
            f"({len(self.inner_nodes)} inner), {len(self.branches)} branch unknowns, "
            f"{len(self.excluded_nodes)} excluded nodes."
        )

    # --- Construction helpers ---

    def node_of(self, component: Component, terminal: str) -> int:
        return self.topology.node_of(component.component_id, terminal)

    def _check_op_amp_outputs(self):
        for component in self.components:
            if component.kind is ComponentKind.OP_AMP and self.node_of(component, "output") == GROUND_NODE_INDEX:
                raise TopologyError(
                    details=f"The output of op-amp '{component.component_id}' is connected to the reference node.",
                    component_id=component.component_id,
                    node_index=GROUND_NODE_INDEX,
                )

    def _find_simulated_nodes(self) -> Tuple[int, ...]:
        touched: Set[int] = set()
        for component in self.components:
            touched.update(self.topology.nodes_of_component(component.component_id))
        return tuple(sorted(touched))

    def _allocate_inner_nodes(self) -> Dict[str, int]:
        inner: Dict[str, int] = {}
        for component in self.components:
            if component.kind is ComponentKind.NPN_BJT and not component.parameters.small_signal:
                inner[component.component_id] = self.topology.node_count + len(inner)
        return inner

    def _allocate_branches(self) -> Tuple[ActiveBranch, ...]:
        branches: List[ActiveBranch] = []

        def add(role: BranchRole, component: Component, pos: int, neg: int):
            branches.append(ActiveBranch(len(branches), role, component.component_id, pos, neg))

        for component in self.components:
            kind = component.kind
            if kind in (ComponentKind.DC_VOLTAGE_SOURCE, ComponentKind.AC_VOLTAGE_SOURCE,
                        ComponentKind.SWEEP_VOLTAGE_SOURCE):
                add(BranchRole.VOLTAGE_SOURCE, component,
                    self.node_of(component, TERMINAL_B), self.node_of(component, TERMINAL_A))
            elif kind is ComponentKind.INDUCTOR:
                add(BranchRole.INDUCTOR, component,
                    self.node_of(component, TERMINAL_B), self.node_of(component, TERMINAL_A))
            elif kind is ComponentKind.OP_AMP:
                add(BranchRole.OP_AMP_OUTPUT, component, self.node_of(component, "output"), GROUND_NODE_INDEX)
            elif component.component_id in self.inner_nodes:
                inner = self.inner_nodes[component.component_id]
                add(BranchRole.BJT_BASE, component, self.node_of(component, "base"), inner)
                add(BranchRole.BJT_EMITTER, component, inner, self.node_of(component, "emitter"))
                add(BranchRole.BJT_COLLECTOR, component, inner, self.node_of(component, "collector"))
        return tuple(branches)

    # --- Queries ---

    def branch(self, component_id: str, role: BranchRole) -> Optional[ActiveBranch]:
        return self._branches_by_component.get(component_id, {}).get(role)

    def branches_of(self, component_id: str) -> Dict[BranchRole, ActiveBranch]:
        return dict(self._branches_by_component.get(component_id, {}))

    @property
    def nonlinear_components(self) -> Tuple[Component, ...]:
        """Components whose operating mode must be resolved by iteration."""
        return tuple(
            c for c in self.components
            if c.kind is ComponentKind.OP_AMP or c.component_id in self.inner_nodes
        )

    def initial_modes(self) -> Dict[str, OperatingMode]:
        modes: Dict[str, OperatingMode] = {}
        for component in self.components:
            if component.kind is ComponentKind.OP_AMP:
                modes[component.component_id] = OpAmpMode.ACTIVE
            elif component.kind is ComponentKind.NPN_BJT:
                modes[component.component_id] = (
                    TransistorMode.SMALL_SIGNAL if component.parameters.small_signal else TransistorMode.ACTIVE
                )
        return modes

    # --- Assembly ---

    def assemble(self, frequency: float, modes: Mapping[str, OperatingMode], sweep: bool = False) -> MnaSystem:
        """
        Assembles the system at `frequency` for the given operating modes.

        Args:
            frequency: Frequency in Hz; 0 is DC.
            modes: Operating mode of every op-amp and transistor, by component id.
            sweep: When set, only sweep sources drive the circuit; every other
                   independent source is zeroed.
        """
        if sweep and frequency <= 0:
            raise MnaInputError(details="Sweep frequencies must be above DC.", frequency=frequency)
        stamps = _Stamps(self.node_rows, len(self.node_rows), self.size)
        for component in self.components:
            stamper = _STAMPERS[component.kind]
            stamper(self, stamps, component, frequency, modes.get(component.component_id), sweep)

        self._check_connectivity(frequency, modes)
        system = MnaSystem(
            frequency=frequency,
            matrix=stamps.to_matrix(),
            rhs=stamps.rhs,
            node_rows=dict(self.node_rows),
            branches=self.branches,
            sweep=sweep,
        )
        logger.debug(f"Assembled {system.size}x{system.size} MNA system at {frequency:.4e} Hz (sweep={sweep}).")
        return system

    # --- Connectivity ---

    def conductive_graph(self, frequency: float, modes: Mapping[str, OperatingMode]) -> nx.Graph:
        """
        Graph of the node pairs joined by a nonzero admittance or an active branch at
        `frequency`. Controlled sources do not join their controlling nodes.
        """
        graph = nx.Graph()
        graph.add_node(GROUND_NODE_INDEX)
        graph.add_nodes_from(self.node_rows)

        for component in self.components:
            cid = component.component_id
            kind = component.kind
            if kind in PASSIVE_KINDS:
                if kind is ComponentKind.INDUCTOR and frequency == 0:
                    continue
                if component_admittance(component, frequency) != 0:
                    graph.add_edge(self.node_of(component, TERMINAL_A), self.node_of(component, TERMINAL_B))
            elif kind is ComponentKind.CURRENT_SOURCE:
                continue
            elif kind is ComponentKind.JFET:
                gate, drain, source = (self.node_of(component, t) for t in ("gate", "drain", "source"))
                if not math.isinf(component.parameters.rgs):
                    graph.add_edge(gate, source)
                if not math.isinf(component.parameters.rds):
                    graph.add_edge(drain, source)
            elif kind is ComponentKind.NPN_BJT and cid not in self.inner_nodes:
                base, collector, emitter = (self.node_of(component, t) for t in ("base", "collector", "emitter"))
                graph.add_edges_from([(base, emitter), (collector, emitter), (base, collector)])

        for branch in self.branches:
            if self._branch_active(branch, frequency, modes):
                graph.add_edge(branch.pos_node, branch.neg_node)
        return graph

    def _branch_active(self, branch: ActiveBranch, frequency: float, modes: Mapping[str, OperatingMode]) -> bool:
        mode = modes.get(branch.component_id)
        if branch.role is BranchRole.INDUCTOR:
            return frequency == 0
        if branch.role is BranchRole.BJT_EMITTER:
            return mode is not TransistorMode.CUTOFF
        if branch.role is BranchRole.BJT_COLLECTOR:
            return mode is TransistorMode.SATURATION
        return True

    def _check_connectivity(self, frequency: float, modes: Mapping[str, OperatingMode]):
        graph = self.conductive_graph(frequency, modes)
        reachable = nx.node_connected_component(graph, GROUND_NODE_INDEX)
        floating = sorted(n for n in self.node_rows if n not in reachable)
        if not floating:
            return
        first = floating[0]
        if first >= self.topology.node_count:
            owner = next(cid for cid, inner in self.inner_nodes.items() if inner == first)
            raise MnaInputError(
                details=f"The inner node of transistor '{owner}' has no conductive path to the reference node.",
                component_id=owner,
                frequency=frequency,
            )
        labels = ", ".join(str(n) for n in floating if n < self.topology.node_count)
        attached = ", ".join(self.topology.nodes[first].component_ids)
        raise MnaInputError(
            details=(f"Node(s) {labels} have no conductive path to the reference node "
                     f"(node {first} connects: {attached})."),
            node_index=first,
            frequency=frequency,
        )


# --- Per-kind stamping functions ---

def _stamp_passive(asm: MnaAssembler, st: _Stamps, c: Component, frequency, mode, sweep):
    st.admittance(asm.node_of(c, TERMINAL_A), asm.node_of(c, TERMINAL_B), component_admittance(c, frequency))


def _stamp_inductor(asm: MnaAssembler, st: _Stamps, c: Component, frequency, mode, sweep):
    branch = asm.branch(c.component_id, BranchRole.INDUCTOR)
    if frequency == 0:
        # A 0 V source; its current is the inductor current.
        _stamp_voltage_branch(st, branch, 0j)
        return
    _stamp_inactive_branch(st, branch)
    _stamp_passive(asm, st, c, frequency, mode, sweep)


def _source_value(frequency: float, sweep: bool, dc_value: complex, ac_value: complex = 0j,
                  ac_frequency: Optional[float] = None) -> complex:
    """The value an independent source drives at `frequency`; sweeps zero every such source."""
    if sweep:
        return 0j
    if frequency == 0:
        return dc_value
    if ac_frequency is not None and frequency == ac_frequency:
        return ac_value
    return 0j


def _stamp_voltage_branch(st: _Stamps, branch: ActiveBranch, value: complex):
    st.branch_column(branch.pos_node, branch, 1.0)
    st.branch_column(branch.neg_node, branch, -1.0)
    st.branch_row(branch, branch.pos_node, 1.0)
    st.branch_row(branch, branch.neg_node, -1.0)
    st.branch_value(branch, value)


def _stamp_inactive_branch(st: _Stamps, branch: ActiveBranch):
    st.branch_diagonal(branch, 1.0)


def _stamp_dc_source(asm: MnaAssembler, st: _Stamps, c: Component, frequency, mode, sweep):
    branch = asm.branch(c.component_id, BranchRole.VOLTAGE_SOURCE)
    _stamp_voltage_branch(st, branch, _source_value(frequency, sweep, c.parameters.voltage))


def _stamp_ac_source(asm: MnaAssembler, st: _Stamps, c: Component, frequency, mode, sweep):
    p = c.parameters
    branch = asm.branch(c.component_id, BranchRole.VOLTAGE_SOURCE)
    _stamp_voltage_branch(st, branch, _source_value(frequency, sweep, p.dc_offset, p.peak_voltage, p.frequency))


def _stamp_sweep_source(asm: MnaAssembler, st: _Stamps, c: Component, frequency, mode, sweep):
    branch = asm.branch(c.component_id, BranchRole.VOLTAGE_SOURCE)
    _stamp_voltage_branch(st, branch, c.parameters.amplitude if sweep else 0j)


def _stamp_current_source(asm: MnaAssembler, st: _Stamps, c: Component, frequency, mode, sweep):
    current = _source_value(frequency, sweep, c.parameters.current)
    # Produced current leaves through the positive terminal B.
    st.inject(asm.node_of(c, TERMINAL_B), current)
    st.inject(asm.node_of(c, TERMINAL_A), -current)


def _stamp_op_amp(asm: MnaAssembler, st: _Stamps, c: Component, frequency, mode, sweep):
    p = c.parameters
    branch = asm.branch(c.component_id, BranchRole.OP_AMP_OUTPUT)
    out = branch.pos_node
    st.branch_column(out, branch, 1.0)
    if mode is OpAmpMode.ACTIVE:
        # V(out) - A * (V(+) - V(-)) = 0, entries accumulate when inputs share the output node.
        st.branch_row(branch, out, 1.0)
        st.branch_row(branch, asm.node_of(c, "non_inverting"), -p.open_loop_gain)
        st.branch_row(branch, asm.node_of(c, "inverting"), p.open_loop_gain)
        st.branch_value(branch, 0j)
        return
    rail = p.positive_supply if mode is OpAmpMode.POSITIVE_SATURATION else p.negative_supply
    st.branch_row(branch, out, 1.0)
    st.branch_value(branch, _source_value(frequency, sweep, rail))


def _stamp_bjt(asm: MnaAssembler, st: _Stamps, c: Component, frequency, mode, sweep):
    p = c.parameters
    base, collector, emitter = (asm.node_of(c, t) for t in ("base", "collector", "emitter"))
    if c.component_id not in asm.inner_nodes:
        y11, y12, y21, y22 = bjt_admittance_parameters(p)
        # Common-emitter two-port: port 1 is base-emitter, port 2 is collector-emitter.
        st.node(base, base, y11)
        st.node(base, collector, y12)
        st.node(collector, base, y21)
        st.node(collector, collector, y22)
        st.node(base, emitter, -(y11 + y12))
        st.node(collector, emitter, -(y21 + y22))
        st.node(emitter, base, -(y11 + y21))
        st.node(emitter, collector, -(y12 + y22))
        st.node(emitter, emitter, y11 + y12 + y21 + y22)
        return

    branches = asm.branches_of(c.component_id)
    base_branch = branches[BranchRole.BJT_BASE]
    emitter_branch = branches[BranchRole.BJT_EMITTER]
    collector_branch = branches[BranchRole.BJT_COLLECTOR]
    inner = asm.inner_nodes[c.component_id]

    # The base current enters the inner node through a 0 V branch.
    _stamp_voltage_branch(st, base_branch, 0j)

    if mode is TransistorMode.CUTOFF:
        _stamp_inactive_branch(st, emitter_branch)
    else:
        _stamp_voltage_branch(st, emitter_branch, _source_value(frequency, sweep, p.ube_forward))

    if mode is TransistorMode.SATURATION:
        _stamp_voltage_branch(st, collector_branch,
                              _source_value(frequency, sweep, p.ube_forward - p.uce_saturation))
    else:
        _stamp_inactive_branch(st, collector_branch)

    if mode is TransistorMode.ACTIVE:
        # beta * I_B flows from the collector into the inner node.
        st.branch_column(collector, base_branch, p.beta)
        st.branch_column(inner, base_branch, -p.beta)


def _stamp_jfet(asm: MnaAssembler, st: _Stamps, c: Component, frequency, mode, sweep):
    p = c.parameters
    gate, drain, source = (asm.node_of(c, t) for t in ("gate", "drain", "source"))
    st.admittance(gate, source, 0.0 if math.isinf(p.rgs) else 1.0 / p.rgs)
    st.admittance(drain, source, 0.0 if math.isinf(p.rds) else 1.0 / p.rds)
    st.transconductance(drain, source, gate, source, p.gm)


_STAMPERS = {
    ComponentKind.RESISTOR: _stamp_passive,
    ComponentKind.CAPACITOR: _stamp_passive,
    ComponentKind.INDUCTOR: _stamp_inductor,
    ComponentKind.DC_VOLTAGE_SOURCE: _stamp_dc_source,
    ComponentKind.AC_VOLTAGE_SOURCE: _stamp_ac_source,
    ComponentKind.CURRENT_SOURCE: _stamp_current_source,
    ComponentKind.SWEEP_VOLTAGE_SOURCE: _stamp_sweep_source,
    ComponentKind.OP_AMP: _stamp_op_amp,
    ComponentKind.NPN_BJT: _stamp_bjt,
    ComponentKind.JFET: _stamp_jfet,
}
