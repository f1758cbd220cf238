# tests/conftest.py
import pytest

from ecatsim_core.components import (
    resistor, capacitor, inductor, dc_voltage_source, ac_voltage_source, current_source,
    sweep_voltage_source, op_amp, npn_bjt, ground, voltmeter,
)
from ecatsim_core.data_structures import PlanePosition, Schematic, Wire
from ecatsim_core.simulation import SimulationConfig, SimulationKind, bias


def wire(a, b) -> Wire:
    return Wire(PlanePosition(*a), PlanePosition(*b))


def node_potential(outcome, component_id, terminal):
    """DC potential of the node a terminal sits on."""
    node = outcome.solution.topology.node_of(component_id, terminal)
    return outcome.solution.node_potentials[node].dc


@pytest.fixture
def config():
    return SimulationConfig()


@pytest.fixture
def divider_schematic():
    """10 V source feeding two 1 kohm resistors in series; the lower end is wired back to ground."""
    return Schematic(
        schematic_id="divider",
        components=[
            ground("GND", (0, 0)),
            dc_voltage_source("V1", (0, 0), (0, 1), "10 V"),
            resistor("R1", (0, 1), (1, 1), "1 kohm"),
            resistor("R2", (1, 1), (1, 0), "1 kohm"),
            voltmeter("VM1", (1, 0), (1, 1)),
        ],
        wires=[wire((1, 0), (0, 0))],
    )


@pytest.fixture
def ac_schematic():
    """1 V peak, 1 kHz source across a 1 kohm resistor."""
    return Schematic(
        schematic_id="ac",
        components=[
            ground("GND", (0, 0)),
            ac_voltage_source("V1", (0, 0), (0, 1), peak_voltage=1.0, frequency="1 kHz"),
            resistor("R1", (0, 1), (0, 0), 1e3),
        ],
    )


@pytest.fixture
def follower_schematic():
    def build(input_voltage: float) -> Schematic:
        return Schematic(
            schematic_id="follower",
            components=[
                ground("GND", (0, 0)),
                dc_voltage_source("VIN", (0, 0), (0, 1), input_voltage),
                op_amp("OA1", non_inverting=(0, 1), inverting=(2, 1), output=(2, 1)),
                resistor("RL", (2, 1), (2, 0), "10 kohm"),
            ],
            wires=[wire((2, 0), (0, 0))],
        )
    return build


@pytest.fixture
def inverting_amp_schematic():
    return Schematic(
        schematic_id="inverting",
        components=[
            ground("GND", (0, 0)),
            dc_voltage_source("VIN", (0, 0), (0, 1), 1.0),
            resistor("RIN", (0, 1), (1, 1), "1 kohm"),
            op_amp("OA1", non_inverting=(0, 0), inverting=(1, 1), output=(2, 1)),
            resistor("RF", (1, 1), (2, 1), "2 kohm"),
        ],
    )


@pytest.fixture
def bjt_schematic():
    """
    Common-emitter stage: VBB drives the base through RB, VCC feeds the collector
    through a 1 kohm resistor, the emitter is grounded.
    """
    def build(base_resistance: float, base_supply: float = 5.0) -> Schematic:
        return Schematic(
            schematic_id="bjt",
            components=[
                ground("GND", (0, 0)),
                ground("GND2", (3, 0)),
                ground("GND3", (2, 0)),
                dc_voltage_source("VBB", (0, 0), (0, 1), base_supply),
                resistor("RB", (0, 1), (1, 1), base_resistance),
                dc_voltage_source("VCC", (3, 0), (3, 2), 10.0),
                resistor("RC", (3, 2), (2, 2), "1 kohm"),
                npn_bjt("Q1", base=(1, 1), collector=(2, 2), emitter=(2, 0)),
            ],
        )
    return build


@pytest.fixture
def rc_sweep_schematic():
    """Low-pass RC (1 kohm, 1 uF) driven by a sweep source; a DC source feeds a separate load."""
    return Schematic(
        schematic_id="rc_sweep",
        components=[
            ground("GND", (0, 0)),
            sweep_voltage_source("S1", (0, 0), (0, 1), amplitude=1.0),
            resistor("R1", (0, 1), (1, 1), "1 kohm"),
            capacitor("C1", (1, 1), (1, 0), "1 uF"),
            dc_voltage_source("V2", (0, 0), (5, 1), 3.0),
            resistor("R2", (5, 1), (0, 0), "1 kohm"),
        ],
        wires=[wire((1, 0), (0, 0))],
    )


@pytest.fixture
def solved_divider(divider_schematic, config):
    outcome = bias(divider_schematic, SimulationKind.DC, config)
    assert outcome.success, outcome.reason
    return outcome

