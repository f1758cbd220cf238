# src/ecatsim_core/simulation/engine.py

"""
Defines the `SimulationEngine`, the stateless service that runs one bias solve.

The engine holds no state of its own: it operates on the `SimulationContext` it is
created with, aggregates nodes, resolves the operating modes of op-amps and
transistors with a bounded DC loop, then solves one system per frequency.
"""
import logging
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from ..analysis import NodeAggregator, Topology
from ..components.base import Component
from ..components.base_enums import ComponentKind, OpAmpMode, TransistorMode
from ..constants import GROUND_NODE_INDEX
from ..signals import FrequencySweptSignal, PhasorDomainSignal, PhasorSignalBuilder
from .config import SimulationKind
from .context import SimulationContext
from .exceptions import MnaInputError, SimulationCancelled
from .mna import BranchRole, MnaAssembler, OperatingMode
from .results import BiasSolution
from .solver import solve

logger = logging.getLogger(__name__)


class SimulationEngine:
    """
    A stateless service that runs one bias solve for a given `SimulationContext`.
    """
    def __init__(self, context: SimulationContext):
        self.context: SimulationContext = context
        self.schematic = context.schematic
        self.kind: SimulationKind = context.kind
        self.config = context.config
        logger.debug(f"SimulationEngine initialized for '{self.schematic.schematic_id}' ({self.kind.name}).")

    def run(self) -> BiasSolution:
        """
        Executes the solve.

        Raises:
            MnaInputError, TopologyError, SingularMatrixError: The circuit cannot be solved.
            SimulationCancelled: The context's cancel event was set.
        """
        self._check_cancelled()
        topology = NodeAggregator(self.schematic, self.config.position_grid).generate()
        assembler = MnaAssembler(topology, self.schematic, self.config)
        ac_frequencies = self._ac_frequencies(assembler)

        modes: Dict[str, OperatingMode] = assembler.initial_modes()
        converged, iterations = True, 0
        solutions: Dict[float, np.ndarray] = {}

        # AC systems reuse the modes of the DC operating point.
        if self.kind.includes_dc or assembler.nonlinear_components:
            modes, dc_vector, converged, iterations = self._resolve_operating_modes(assembler)
            if self.kind.includes_dc:
                solutions[0.0] = dc_vector

        if self.kind is SimulationKind.FREQUENCY_SWEEP:
            return self._run_sweep(assembler, topology, modes, converged, iterations)

        for frequency in ac_frequencies:
            self._check_cancelled()
            solutions[frequency] = solve(assembler.assemble(frequency, modes))

        node_potentials, branch_currents = self._package_phasors(assembler, topology, solutions)
        return BiasSolution(
            schematic=self.schematic,
            kind=self.kind,
            topology=topology,
            branches=assembler.branches,
            frequencies_hz=tuple(solutions),
            node_potentials=node_potentials,
            branch_currents=branch_currents,
            operating_modes=modes,
            excluded_nodes=assembler.excluded_nodes,
            converged=converged,
            mode_iterations=iterations,
        )

    def _check_cancelled(self):
        if self.context.cancel_requested:
            raise SimulationCancelled(schematic_id=self.schematic.schematic_id)

    def _ac_frequencies(self, assembler: MnaAssembler) -> Tuple[float, ...]:
        if self.kind is SimulationKind.FREQUENCY_SWEEP:
            if not any(c.kind is ComponentKind.SWEEP_VOLTAGE_SOURCE for c in assembler.components):
                raise MnaInputError(details="A frequency sweep requires a sweep voltage source in the schematic.")
            if not self.config.sweep_frequencies_hz:
                raise MnaInputError(details="A frequency sweep requires `sweep_frequencies_hz` in the simulation config.")
            return ()
        if not self.kind.includes_ac:
            return ()
        frequencies = sorted({
            c.parameters.frequency for c in assembler.components if c.kind is ComponentKind.AC_VOLTAGE_SOURCE
        })
        if not frequencies and self.kind is SimulationKind.AC:
            raise MnaInputError(details="An AC simulation requires at least one AC voltage source.")
        return tuple(frequencies)

    # --- Operating-mode resolution ---

    def _resolve_operating_modes(
        self, assembler: MnaAssembler
    ) -> Tuple[Dict[str, OperatingMode], np.ndarray, bool, int]:
        """
        Solves at DC under assumed modes and re-assumes the first inconsistent mode
        until every op-amp and transistor agrees with its solution, or the iteration
        bound is reached. Returns the modes that produced the returned DC vector.
        """
        bound = self.config.max_mode_iterations
        modes = assembler.initial_modes()
        for iteration in range(1, bound + 1):
            self._check_cancelled()
            vector = solve(assembler.assemble(0.0, modes))
            violation = self._find_mode_violation(assembler, vector, modes)
            if violation is None:
                logger.debug(f"Operating modes settled after {iteration} DC solve(s).")
                return modes, vector, True, iteration
            component_id, new_mode = violation
            logger.debug(
                f"Mode iteration {iteration}: '{component_id}' {modes[component_id].name} -> {new_mode.name}."
            )
            if iteration == bound:
                break
            modes = {**modes, component_id: new_mode}

        logger.warning(
            f"Operating modes of '{self.schematic.schematic_id}' did not settle within "
            f"{bound} iterations; returning a best-effort result."
        )
        return modes, vector, False, bound

    def _find_mode_violation(
        self, assembler: MnaAssembler, vector: np.ndarray, modes: Mapping[str, OperatingMode]
    ) -> Optional[Tuple[str, OperatingMode]]:
        for component in assembler.nonlinear_components:
            mode = modes[component.component_id]
            if component.kind is ComponentKind.OP_AMP:
                new_mode = self._check_op_amp(assembler, vector, component, mode)
            else:
                new_mode = self._check_bjt(assembler, vector, component, mode)
            if new_mode is not None and new_mode is not mode:
                return component.component_id, new_mode
        return None

    @staticmethod
    def _potential(assembler: MnaAssembler, vector: np.ndarray, node: int) -> float:
        row = assembler.node_rows.get(node)
        return 0.0 if row is None else float(vector[row].real)

    @staticmethod
    def _branch_current(assembler: MnaAssembler, vector: np.ndarray, component_id: str, role: BranchRole) -> float:
        branch = assembler.branch(component_id, role)
        return float(vector[len(assembler.node_rows) + branch.index].real)

    def _check_op_amp(self, assembler, vector, component: Component, mode: OpAmpMode) -> Optional[OpAmpMode]:
        p = component.parameters
        v_plus = self._potential(assembler, vector, assembler.node_of(component, "non_inverting"))
        v_minus = self._potential(assembler, vector, assembler.node_of(component, "inverting"))
        v_out = self._potential(assembler, vector, assembler.node_of(component, "output"))

        if mode is OpAmpMode.ACTIVE:
            if v_out >= p.positive_supply:
                return OpAmpMode.POSITIVE_SATURATION
            if v_out <= p.negative_supply:
                return OpAmpMode.NEGATIVE_SATURATION
            return None
        # A saturated output returns to the linear region once the open-loop output
        # no longer reaches the rail.
        open_loop = p.open_loop_gain * (v_plus - v_minus)
        if mode is OpAmpMode.POSITIVE_SATURATION and open_loop < p.positive_supply:
            return OpAmpMode.ACTIVE
        if mode is OpAmpMode.NEGATIVE_SATURATION and open_loop > p.negative_supply:
            return OpAmpMode.ACTIVE
        return None

    def _check_bjt(self, assembler, vector, component: Component, mode: TransistorMode) -> Optional[TransistorMode]:
        p = component.parameters
        cid = component.component_id
        v_base = self._potential(assembler, vector, assembler.node_of(component, "base"))
        v_collector = self._potential(assembler, vector, assembler.node_of(component, "collector"))
        v_emitter = self._potential(assembler, vector, assembler.node_of(component, "emitter"))
        i_base = self._branch_current(assembler, vector, cid, BranchRole.BJT_BASE)

        if mode is TransistorMode.ACTIVE:
            if i_base <= 0:
                return TransistorMode.CUTOFF
            if v_collector - v_emitter <= p.uce_saturation:
                return TransistorMode.SATURATION
            return None
        if mode is TransistorMode.CUTOFF:
            if v_base - v_emitter > p.ube_forward:
                return TransistorMode.ACTIVE
            return None
        if mode is TransistorMode.SATURATION:
            if i_base <= 0:
                return TransistorMode.CUTOFF
            i_collector = -self._branch_current(assembler, vector, cid, BranchRole.BJT_COLLECTOR)
            if i_collector > p.beta * i_base:
                return TransistorMode.ACTIVE
        return None

    # --- Packaging ---

    def _reported_nodes(self, assembler: MnaAssembler, topology: Topology) -> List[int]:
        nodes = [n for n in assembler.simulated_nodes if n != GROUND_NODE_INDEX]
        if topology.node_count:
            nodes.insert(0, GROUND_NODE_INDEX)
        return nodes

    def _package_phasors(
        self, assembler: MnaAssembler, topology: Topology, solutions: Mapping[float, np.ndarray]
    ) -> Tuple[Dict[int, PhasorDomainSignal], Dict[int, PhasorDomainSignal]]:
        offset = len(assembler.node_rows)

        def signal_of(row: Optional[int]) -> PhasorDomainSignal:
            builder = PhasorSignalBuilder()
            for frequency, vector in solutions.items():
                value = 0j if row is None else complex(vector[row])
                if frequency == 0.0:
                    builder.add_dc(value.real)
                else:
                    builder.add_phasor(frequency, value)
            return builder.freeze()

        node_potentials = {
            node: signal_of(assembler.node_rows.get(node)) for node in self._reported_nodes(assembler, topology)
        }
        branch_currents = {branch.index: signal_of(offset + branch.index) for branch in assembler.branches}
        return node_potentials, branch_currents

    def _run_sweep(self, assembler: MnaAssembler, topology: Topology, modes: Dict[str, OperatingMode],
                   converged: bool, iterations: int) -> BiasSolution:
        frequencies = self.config.sweep_frequencies_hz
        vectors: List[np.ndarray] = []
        for frequency in frequencies:
            self._check_cancelled()
            vectors.append(solve(assembler.assemble(frequency, modes, sweep=True)))

        offset = len(assembler.node_rows)

        def response_of(row: Optional[int]) -> FrequencySweptSignal:
            values = tuple(0j if row is None else complex(v[row]) for v in vectors)
            return FrequencySweptSignal(frequencies=frequencies, values=values)

        return BiasSolution(
            schematic=self.schematic,
            kind=self.kind,
            topology=topology,
            branches=assembler.branches,
            sweep_frequencies_hz=frequencies,
            node_responses={
                node: response_of(assembler.node_rows.get(node)) for node in self._reported_nodes(assembler, topology)
            },
            branch_responses={branch.index: response_of(offset + branch.index) for branch in assembler.branches},
            operating_modes=modes,
            excluded_nodes=assembler.excluded_nodes,
            converged=converged,
            mode_iterations=iterations,
        )
