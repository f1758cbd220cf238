# tests/test_topology.py
import logging

import pytest

from conftest import wire
from ecatsim_core.analysis import NodeAggregator
from ecatsim_core.components import dc_voltage_source, ground, resistor
from ecatsim_core.constants import GROUND_NODE_INDEX
from ecatsim_core.data_structures import Schematic, TerminalRef
from ecatsim_core.errors import SchematicBuildError


def generate(components, wires=(), grid=1e-3):
    return NodeAggregator(Schematic("topo", components, wires), position_grid=grid).generate()


class TestPositionGrouping:
    def test_shared_position_gives_same_node(self):
        topology = generate([
            resistor("R1", (0, 0), (1, 0), 1.0),
            resistor("R2", (1, 0), (2, 0), 1.0),
        ])
        assert topology.node_of("R1", "B") == topology.node_of("R2", "A")
        assert topology.node_count == 3

    def test_positions_within_grid_are_merged(self):
        topology = generate([
            resistor("R1", (0, 0), (1.0, 0), 1.0),
            resistor("R2", (1.0004, 0), (2, 0), 1.0),
        ])
        assert topology.node_of("R1", "B") == topology.node_of("R2", "A")

    def test_unconnected_terminals_stay_apart(self):
        topology = generate([
            resistor("R1", (0, 0), (1, 0), 1.0),
            resistor("R2", (5, 0), (6, 0), 1.0),
        ])
        indices = {topology.node_of(cid, t) for cid in ("R1", "R2") for t in ("A", "B")}
        assert len(indices) == 4

    def test_node_lists_members_in_schematic_order(self):
        topology = generate([
            ground("GND", (0, 0)),
            resistor("R1", (0, 0), (1, 0), 1.0),
            resistor("R2", (0, 0), (2, 0), 1.0),
        ])
        reference = topology.nodes[GROUND_NODE_INDEX]
        assert reference.is_reference
        assert reference.component_ids == ("GND", "R1", "R2")
        assert reference.terminals[1] == TerminalRef("R1", "A")


class TestWireMerging:
    def test_wire_chain_merges_distant_terminals(self):
        topology = generate(
            [resistor("R1", (0, 0), (1, 0), 1.0), resistor("R2", (5, 5), (6, 5), 1.0)],
            wires=[wire((1, 0), (3, 0)), wire((3, 0), (3, 5)), wire((3, 5), (5, 5))],
        )
        assert topology.node_of("R1", "B") == topology.node_of("R2", "A")
        assert topology.node_count == 3

    def test_stray_wire_creates_no_node(self):
        topology = generate(
            [resistor("R1", (0, 0), (1, 0), 1.0)],
            wires=[wire((10, 10), (11, 10))],
        )
        assert topology.node_count == 2
        assert all(node.component_ids for node in topology.nodes)

    def test_separate_wire_networks_stay_apart(self):
        topology = generate(
            [resistor("R1", (0, 0), (1, 0), 1.0), resistor("R2", (4, 0), (5, 0), 1.0)],
            wires=[wire((1, 0), (2, 0)), wire((3, 0), (4, 0))],
        )
        assert topology.node_of("R1", "B") != topology.node_of("R2", "A")


class TestReferenceNode:
    def test_ground_is_index_zero(self):
        topology = generate([
            resistor("R1", (1, 0), (2, 0), 1.0),
            ground("GND", (2, 0)),
        ])
        assert topology.has_ground
        assert topology.node_of("GND", "A") == GROUND_NODE_INDEX
        assert topology.node_of("R1", "B") == GROUND_NODE_INDEX
        assert topology.node_of("R1", "A") == 1

    def test_all_grounds_share_the_reference_node(self):
        topology = generate([
            ground("G1", (0, 0)),
            ground("G2", (9, 9)),
            resistor("R1", (0, 0), (9, 9), 1.0),
        ])
        assert topology.node_count == 1
        assert topology.node_of("R1", "A") == topology.node_of("R1", "B") == GROUND_NODE_INDEX

    def test_negative_source_terminal_without_ground(self, caplog):
        with caplog.at_level(logging.WARNING):
            topology = generate([
                resistor("R1", (0, 1), (0, 2), 1.0),
                dc_voltage_source("V1", (0, 2), (0, 1), 5.0),
            ])
        assert not topology.has_ground
        assert topology.node_of("V1", "A") == GROUND_NODE_INDEX
        assert "no ground" in caplog.text

    def test_empty_schematic(self):
        topology = generate([])
        assert topology.node_count == 0
        assert topology.reference_reason == "empty schematic"


class TestValidation:
    def test_rejects_non_schematic(self):
        with pytest.raises(TypeError):
            NodeAggregator(["R1"])

    def test_rejects_non_positive_grid(self):
        with pytest.raises(ValueError):
            NodeAggregator(Schematic("s", []), position_grid=0.0)

    def test_duplicate_component_ids(self):
        with pytest.raises(SchematicBuildError, match="R1"):
            Schematic("dup", [resistor("R1", (0, 0), (1, 0), 1.0), resistor("R1", (1, 0), (2, 0), 1.0)])
