# src/ecatsim_core/analysis/topology.py

"""
Turns a schematic snapshot into electrical nodes.
"""

import logging
from typing import Dict, Hashable, List, Optional, Tuple

import networkx as nx
from networkx.utils import UnionFind

from ..components.base import TERMINAL_A
from ..components.base_enums import ComponentKind, SOURCE_KINDS
from ..constants import DEFAULT_POSITION_GRID, GROUND_NODE_INDEX
from ..data_structures import Schematic, TerminalRef
from .results import Node, Topology

logger = logging.getLogger(__name__)

PositionKey = Tuple[int, int]


class NodeAggregator:
    """
    Groups component terminals into nodes for one schematic snapshot.

    Two passes run over an arena of position groups: terminals at the same snapped
    position form one group, then every wire network joins the groups sitting on
    its endpoints. Joins are recorded in a union-find structure; no group is ever
    emptied or mutated. Nodes holding a ground are joined into the reference node.
    This is a stateless service; call `generate()` for a fresh `Topology`.
    """
    def __init__(self, schematic: Schematic, position_grid: float = DEFAULT_POSITION_GRID):
        """
        Args:
            schematic: The schematic snapshot to analyze.
            position_grid: Rounding grid for position equality. Should match the
                           editor's snapping step.
        """
        if not isinstance(schematic, Schematic):
            raise TypeError("NodeAggregator requires a Schematic snapshot.")
        if not position_grid > 0:
            raise ValueError(f"Position grid must be positive, got {position_grid}.")
        self.schematic: Schematic = schematic
        self.position_grid: float = position_grid

    def generate(self) -> Topology:
        """Builds the ordered node list; index 0 is the reference node."""
        groups = self._group_terminals_by_position()
        merges = UnionFind(groups.keys())

        self._merge_wire_networks(groups, merges)
        self._merge_ground_groups(groups, merges)
        reference_key, has_ground, reason = self._select_reference(groups, merges)

        topology = self._index_nodes(groups, merges, reference_key, has_ground, reason)
        logger.debug(
            f"Aggregated {sum(len(t) for t in groups.values())} terminals of '{self.schematic.schematic_id}' "
            f"into {topology.node_count} nodes ({len(groups)} position groups, {len(self.schematic.wires)} wires)."
        )
        return topology

    def _group_terminals_by_position(self) -> Dict[PositionKey, List[TerminalRef]]:
        groups: Dict[PositionKey, List[TerminalRef]] = {}
        for ref, position in self.schematic.iter_terminals():
            groups.setdefault(position.snapped(self.position_grid), []).append(ref)
        return groups

    def _merge_wire_networks(self, groups: Dict[PositionKey, List[TerminalRef]], merges: UnionFind):
        wire_graph = nx.Graph()
        for wire in self.schematic.wires:
            wire_graph.add_edge(wire.start.snapped(self.position_grid), wire.end.snapped(self.position_grid))

        for network in nx.connected_components(wire_graph):
            # Endpoints without terminals are stray and produce no node.
            touched = [key for key in network if key in groups]
            if len(touched) > 1:
                merges.union(*touched)

    def _ground_keys(self, groups: Dict[PositionKey, List[TerminalRef]]) -> List[PositionKey]:
        components = self.schematic.component_map
        return [
            key for key, refs in groups.items()
            if any(components[ref.component_id].kind is ComponentKind.GROUND for ref in refs)
        ]

    def _merge_ground_groups(self, groups: Dict[PositionKey, List[TerminalRef]], merges: UnionFind):
        ground_keys = self._ground_keys(groups)
        if len(ground_keys) > 1:
            merges.union(*ground_keys)

    def _select_reference(
        self, groups: Dict[PositionKey, List[TerminalRef]], merges: UnionFind
    ) -> Tuple[Optional[Hashable], bool, str]:
        ground_keys = self._ground_keys(groups)
        if ground_keys:
            return merges[ground_keys[0]], True, "ground component"

        for component in self.schematic.components:
            if component.kind in SOURCE_KINDS:
                key = component.terminal(TERMINAL_A).snapped(self.position_grid)
                logger.warning(
                    f"Schematic '{self.schematic.schematic_id}' has no ground; using the negative terminal "
                    f"of '{component.component_id}' as the reference node."
                )
                return merges[key], False, f"negative terminal of '{component.component_id}'"

        if groups:
            logger.warning(
                f"Schematic '{self.schematic.schematic_id}' has neither a ground nor a source; "
                "absolute node potentials are undefined."
            )
            return merges[next(iter(groups))], False, "first node (no ground or source)"
        return None, False, "empty schematic"

    def _index_nodes(
        self,
        groups: Dict[PositionKey, List[TerminalRef]],
        merges: UnionFind,
        reference_key: Optional[Hashable],
        has_ground: bool,
        reason: str,
    ) -> Topology:
        root_index: Dict[Hashable, int] = {}
        if reference_key is not None:
            root_index[merges[reference_key]] = GROUND_NODE_INDEX
        for key in groups:
            root = merges[key]
            if root not in root_index:
                root_index[root] = len(root_index)

        members: List[List[TerminalRef]] = [[] for _ in range(len(root_index))]
        terminal_nodes: Dict[TerminalRef, int] = {}
        # Walk terminals in schematic order so node contents are deterministic.
        for ref, position in self.schematic.iter_terminals():
            index = root_index[merges[position.snapped(self.position_grid)]]
            members[index].append(ref)
            terminal_nodes[ref] = index

        nodes = tuple(
            Node(
                index=index,
                terminals=tuple(refs),
                component_ids=tuple(dict.fromkeys(ref.component_id for ref in refs)),
            )
            for index, refs in enumerate(members)
        )
        return Topology(nodes=nodes, terminal_nodes=terminal_nodes, has_ground=has_ground, reference_reason=reason)
