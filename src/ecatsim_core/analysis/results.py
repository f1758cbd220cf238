# src/ecatsim_core/analysis/results.py
"""
Immutable results of node aggregation.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..constants import GROUND_NODE_INDEX
from ..data_structures import TerminalRef


@dataclass(frozen=True)
class Node:
    """
    One electrical node: an index (0 is the reference node) and the terminals and
    components attached to it. Terminals are listed in schematic order.
    """
    index: int
    terminals: Tuple[TerminalRef, ...]
    component_ids: Tuple[str, ...]

    @property
    def is_reference(self) -> bool:
        return self.index == GROUND_NODE_INDEX


@dataclass(frozen=True)
class Topology:
    """
    The formal result of `NodeAggregator.generate`.

    `nodes[i].index == i` for every node, so node indices double as positions in
    the tuple. `terminal_nodes` is the back-reference from each terminal to the
    index of the node it belongs to.

    Attributes:
        nodes: All nodes, reference node first.
        terminal_nodes: Terminal-to-node-index lookup.
        has_ground: False when the reference node was chosen by a fallback rule, in
                    which case absolute potentials are only meaningful relative to it.
        reference_reason: Short description of how the reference node was chosen.
    """
    nodes: Tuple[Node, ...]
    terminal_nodes: Dict[TerminalRef, int]
    has_ground: bool
    reference_reason: str

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def node_of(self, component_id: str, terminal: str) -> int:
        return self.terminal_nodes[TerminalRef(component_id, terminal)]

    def find_node_of(self, component_id: str, terminal: str) -> Optional[int]:
        return self.terminal_nodes.get(TerminalRef(component_id, terminal))

    def nodes_of_component(self, component_id: str) -> List[int]:
        return sorted({idx for ref, idx in self.terminal_nodes.items() if ref.component_id == component_id})
