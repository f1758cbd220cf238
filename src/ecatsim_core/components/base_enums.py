# src/ecatsim_core/components/base_enums.py
from enum import Enum, auto


class ComponentKind(Enum):
    """
    The closed set of component kinds the simulation core understands. Each kind
    carries its own parameter payload (see `elements.py`) and terminal layout.
    """
    RESISTOR = auto()
    CAPACITOR = auto()
    INDUCTOR = auto()
    DC_VOLTAGE_SOURCE = auto()
    AC_VOLTAGE_SOURCE = auto()
    CURRENT_SOURCE = auto()
    SWEEP_VOLTAGE_SOURCE = auto()
    OP_AMP = auto()
    NPN_BJT = auto()
    JFET = auto()
    GROUND = auto()
    VOLTMETER = auto()


PASSIVE_KINDS = frozenset({ComponentKind.RESISTOR, ComponentKind.CAPACITOR, ComponentKind.INDUCTOR})

VOLTAGE_SOURCE_KINDS = frozenset({
    ComponentKind.DC_VOLTAGE_SOURCE,
    ComponentKind.AC_VOLTAGE_SOURCE,
    ComponentKind.SWEEP_VOLTAGE_SOURCE,
})

# Kinds whose TerminalA node may serve as the fallback reference node.
SOURCE_KINDS = VOLTAGE_SOURCE_KINDS | {ComponentKind.CURRENT_SOURCE}

TWO_TERMINAL_KINDS = PASSIVE_KINDS | SOURCE_KINDS

# Kinds that contribute nothing to the system of equations.
INERT_KINDS = frozenset({ComponentKind.GROUND, ComponentKind.VOLTMETER})


class OpAmpMode(Enum):
    """Operating mode assumed for an op-amp during one solve."""
    ACTIVE = auto()
    POSITIVE_SATURATION = auto()
    NEGATIVE_SATURATION = auto()


class TransistorMode(Enum):
    """Operating mode assumed for a transistor during one solve."""
    ACTIVE = auto()
    CUTOFF = auto()
    SATURATION = auto()
    SMALL_SIGNAL = auto()
