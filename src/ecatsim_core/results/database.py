# src/ecatsim_core/results/database.py
"""
Query surface over one bias solution.

`VoltageDB`, `CurrentDB` and `PowerDB` derive per-node and per-component signals
from the raw node potentials and branch currents on first request and memoize
them in a `ResultsCache`. No query raises: anything that cannot be answered
(no solve yet, unknown component or node, a quantity the part does not have)
returns `UNAVAILABLE`.
"""
import logging
from typing import Optional, Union

from ..components.base import TERMINAL_A, TERMINAL_B
from ..components.base_enums import ComponentKind, PASSIVE_KINDS, TWO_TERMINAL_KINDS, VOLTAGE_SOURCE_KINDS
from ..components.elements import component_admittance
from ..signals import FrequencySweptSignal, PhasorDomainSignal, PhasorSignalBuilder
from ..simulation.mna import BranchRole
from ..simulation.results import BiasSolution
from .cache import ResultsCache
from .power import compute_power
from .sentinel import UNAVAILABLE

logger = logging.getLogger(__name__)

Signal = Union[PhasorDomainSignal, FrequencySweptSignal]

# Branch whose current is the terminal current of a component.
_COMPONENT_BRANCH_ROLE = {
    ComponentKind.DC_VOLTAGE_SOURCE: BranchRole.VOLTAGE_SOURCE,
    ComponentKind.AC_VOLTAGE_SOURCE: BranchRole.VOLTAGE_SOURCE,
    ComponentKind.SWEEP_VOLTAGE_SOURCE: BranchRole.VOLTAGE_SOURCE,
    ComponentKind.OP_AMP: BranchRole.OP_AMP_OUTPUT,
}


class _SolutionView:
    def __init__(self, solution: Optional[BiasSolution], cache: ResultsCache):
        self.solution = solution
        self.cache = cache

    def _unavailable(self, what: str):
        if self.solution is None:
            logger.debug(f"{what} requested before any solve.")
        else:
            logger.warning(f"{what} is not available in the latest {self.solution.kind.name} solve.")
        return UNAVAILABLE

    def _component(self, component_id: str):
        if self.solution is None:
            return None
        try:
            return self.solution.schematic.get_component(component_id)
        except KeyError:
            return None


class VoltageDB(_SolutionView):
    """Node potentials and voltage drops."""

    def to_ground(self, node: int):
        """The potential of `node` relative to the reference node."""
        if self.solution is None:
            return self._unavailable(f"Potential of node {node}")
        source = self.solution.node_responses if self.solution.is_sweep else self.solution.node_potentials
        signal = source.get(node)
        if signal is None:
            return self._unavailable(f"Potential of node {node}")
        return signal

    def get(self, node_a: int, node_b: int):
        """
        The voltage drop from `node_a` to `node_b`, i.e. V(node_b) - V(node_a),
        combined per frequency. The reverse drop is derived from a cached entry by
        negation.
        """
        key = (node_a, node_b)
        if (cached := self.cache.get(key, 'voltage')) is not None:
            return cached
        reverse = self.cache.get((node_b, node_a), 'voltage')
        if reverse is not None:
            value = reverse.negate() if reverse is not UNAVAILABLE else UNAVAILABLE
        else:
            value = self._construct(node_a, node_b)
        self.cache.put(key, value, 'voltage')
        return value

    def _construct(self, node_a: int, node_b: int):
        potential_a = self.to_ground(node_a)
        potential_b = self.to_ground(node_b)
        if potential_a is UNAVAILABLE or potential_b is UNAVAILABLE:
            return UNAVAILABLE
        return potential_b - potential_a

    def across(self, component_id: str, reverse: bool = False):
        """
        The drop from terminal A to terminal B of a two-terminal part (or voltmeter),
        V(B) - V(A). With `reverse`, V(A) - V(B).
        """
        component = self._component(component_id)
        if component is None or TERMINAL_B not in component.terminals:
            return self._unavailable(f"Voltage across '{component_id}'")
        topology = self.solution.topology
        node_a = topology.node_of(component_id, TERMINAL_A)
        node_b = topology.node_of(component_id, TERMINAL_B)
        return self.get(node_b, node_a) if reverse else self.get(node_a, node_b)


class CurrentDB(_SolutionView):
    """
    Branch currents and component currents.

    Component currents follow the passive sign convention: the current flowing
    through the part from terminal B to terminal A, so that it points along the
    drop returned by `VoltageDB.across`.
    """
    def __init__(self, solution: Optional[BiasSolution], cache: ResultsCache, voltage: VoltageDB):
        super().__init__(solution, cache)
        self.voltage = voltage

    def of_branch(self, index: int, reverse: bool = False):
        """
        The solved current of active branch `index`: the current flowing from the
        branch's positive node through the branch. `reverse` flips the sign.
        """
        key = ('branch', index, reverse)
        if (cached := self.cache.get(key, 'current')) is not None:
            return cached
        value = UNAVAILABLE
        if self.solution is not None:
            source = self.solution.branch_responses if self.solution.is_sweep else self.solution.branch_currents
            signal = source.get(index)
            if signal is not None:
                value = signal.negate() if reverse else signal
        if value is UNAVAILABLE:
            self._unavailable(f"Current of branch {index}")
        self.cache.put(key, value, 'current')
        return value

    def produced_by(self, component_id: str):
        """
        The current a voltage source delivers out of its positive terminal, or an
        op-amp out of its output.
        """
        component = self._component(component_id)
        role = _COMPONENT_BRANCH_ROLE.get(component.kind) if component is not None else None
        branch = self.solution.find_branch(component_id, role) if role is not None else None
        if branch is None:
            return self._unavailable(f"Produced current of '{component_id}'")
        return self.of_branch(branch.index, reverse=True)

    def of_component(self, component_id: str, reverse: bool = False):
        """The current through a two-terminal part from B to A (A to B with `reverse`)."""
        key = ('component', component_id, reverse)
        if (cached := self.cache.get(key, 'current')) is not None:
            return cached
        if reverse:
            forward = self.of_component(component_id)
            value = forward.negate() if forward is not UNAVAILABLE else UNAVAILABLE
        else:
            value = self._construct(component_id)
        self.cache.put(key, value, 'current')
        return value

    def _construct(self, component_id: str):
        component = self._component(component_id)
        if component is None or component.kind not in TWO_TERMINAL_KINDS:
            return self._unavailable(f"Current of '{component_id}'")

        kind = component.kind
        if kind in VOLTAGE_SOURCE_KINDS:
            # The branch runs from B through the source to A.
            branch = self.solution.find_branch(component_id, BranchRole.VOLTAGE_SOURCE)
            return self.of_branch(branch.index)
        if kind is ComponentKind.CURRENT_SOURCE:
            return self._current_source(component)

        voltage = self.voltage.across(component_id)
        if voltage is UNAVAILABLE:
            return UNAVAILABLE
        if isinstance(voltage, FrequencySweptSignal):
            return FrequencySweptSignal(
                frequencies=voltage.frequencies,
                values=tuple(v * component_admittance(component, f) for f, v in zip(voltage.frequencies, voltage.values)),
            )

        builder = PhasorSignalBuilder()
        if kind is ComponentKind.INDUCTOR:
            # At DC the inductor is a 0 V branch carrying its own current.
            branch = self.solution.find_branch(component_id, BranchRole.INDUCTOR)
            builder.add_dc(self.solution.branch_currents[branch.index].dc)
        elif kind in PASSIVE_KINDS:
            builder.add_dc(voltage.dc * component_admittance(component, 0.0).real)
        for frequency, phasor in voltage.terms:
            builder.add_phasor(frequency, phasor * component_admittance(component, frequency))
        return builder.freeze()

    def _current_source(self, component):
        # The produced current leaves through B, so B-to-A through the part is -I.
        if self.solution.is_sweep:
            return FrequencySweptSignal(
                frequencies=self.solution.sweep_frequencies_hz,
                values=(0j,) * len(self.solution.sweep_frequencies_hz),
            )
        builder = PhasorSignalBuilder()
        if 0.0 in self.solution.frequencies_hz:
            builder.add_dc(-component.parameters.current)
        for frequency in self.solution.frequencies_hz:
            if frequency > 0:
                builder.add_phasor(frequency, 0j)
        return builder.freeze()


class PowerDB(_SolutionView):
    """Power absorbed by two-terminal parts, in the passive sign convention."""

    def __init__(self, solution: Optional[BiasSolution], cache: ResultsCache,
                 voltage: VoltageDB, current: CurrentDB):
        super().__init__(solution, cache)
        self.voltage = voltage
        self.current = current

    def of_component(self, component_id: str):
        """
        Returns the `PowerInformation` of a two-terminal part. Negative average power
        means the part supplies the circuit.
        """
        if (cached := self.cache.get(component_id, 'power')) is not None:
            return cached
        value = self._construct(component_id)
        self.cache.put(component_id, value, 'power')
        return value

    def _construct(self, component_id: str):
        component = self._component(component_id)
        if component is None or component.kind not in TWO_TERMINAL_KINDS:
            return self._unavailable(f"Power of '{component_id}'")
        if self.solution.is_sweep:
            return self._unavailable(f"Power of '{component_id}'")
        voltage = self.voltage.across(component_id)
        current = self.current.of_component(component_id)
        if voltage is UNAVAILABLE or current is UNAVAILABLE:
            return UNAVAILABLE
        return compute_power(voltage, current)


class SimulationResults:
    """
    The results object of one solve: the three sub-databases over a shared cache.

    A `SimulationResults` without a solution is valid; every query on it returns
    `UNAVAILABLE`.
    """
    def __init__(self, solution: Optional[BiasSolution] = None):
        self.solution: Optional[BiasSolution] = solution
        self.cache = ResultsCache()
        self.voltage = VoltageDB(solution, self.cache)
        self.current = CurrentDB(solution, self.cache, self.voltage)
        self.power = PowerDB(solution, self.cache, self.voltage, self.current)

    @property
    def available(self) -> bool:
        return self.solution is not None

    @property
    def kind(self):
        return self.solution.kind if self.solution is not None else UNAVAILABLE

    def node_of(self, component_id: str, terminal: str):
        """The node index a terminal belonged to in this solve."""
        if self.solution is None:
            return UNAVAILABLE
        node = self.solution.topology.find_node_of(component_id, terminal)
        return UNAVAILABLE if node is None else node

    def operating_mode(self, component_id: str):
        if self.solution is None:
            return UNAVAILABLE
        return self.solution.operating_modes.get(component_id, UNAVAILABLE)

    def invalidate(self):
        """Drops every memoized derived signal."""
        self.cache.invalidate()
