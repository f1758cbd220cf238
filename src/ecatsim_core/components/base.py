# src/ecatsim_core/components/base.py

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from ..data_structures import PlanePosition
from .base_enums import ComponentKind, TWO_TERMINAL_KINDS
from .elements import ComponentParameters, PARAMETER_TYPES
from .exceptions import ComponentError

logger = logging.getLogger(__name__)

# For two-terminal parts TerminalA is the reference side: the negative terminal of
# a source, and the node a voltage drop "from A to B" is measured from.
TERMINAL_A = "A"
TERMINAL_B = "B"

TERMINAL_LAYOUT: Dict[ComponentKind, Tuple[str, ...]] = {
    **{kind: (TERMINAL_A, TERMINAL_B) for kind in TWO_TERMINAL_KINDS},
    ComponentKind.VOLTMETER: (TERMINAL_A, TERMINAL_B),
    ComponentKind.GROUND: (TERMINAL_A,),
    ComponentKind.OP_AMP: ("non_inverting", "inverting", "output"),
    ComponentKind.NPN_BJT: ("base", "collector", "emitter"),
    ComponentKind.JFET: ("gate", "drain", "source"),
}


@dataclass(frozen=True)
class Component:
    """
    A placed schematic component: an id, a kind tag, the plane position of each of
    its terminals and the kind-specific parameter payload.

    Instances are immutable snapshots; the editor builds a new one whenever the
    user changes a part.
    """
    component_id: str
    kind: ComponentKind
    terminals: Mapping[str, PlanePosition]
    parameters: ComponentParameters

    def __post_init__(self):
        expected = TERMINAL_LAYOUT[self.kind]
        if set(self.terminals) != set(expected):
            raise ComponentError(
                component_id=self.component_id,
                details=f"{self.kind.name} expects terminals {list(expected)}, got {sorted(self.terminals)}."
            )
        if not isinstance(self.parameters, PARAMETER_TYPES[self.kind]):
            raise ComponentError(
                component_id=self.component_id,
                details=(f"{self.kind.name} expects a {PARAMETER_TYPES[self.kind].__name__} payload, "
                         f"got {type(self.parameters).__name__}.")
            )
        # Freeze the mapping in layout order.
        ordered = {name: self.terminals[name] for name in expected}
        object.__setattr__(self, 'terminals', MappingProxyType(ordered))

    def __hash__(self):
        return hash((self.component_id, self.kind))

    def terminal(self, name: str) -> PlanePosition:
        try:
            return self.terminals[name]
        except KeyError:
            raise ComponentError(
                component_id=self.component_id,
                details=f"{self.kind.name} has no terminal named '{name}'."
            ) from None

    @property
    def is_two_terminal(self) -> bool:
        return self.kind in TWO_TERMINAL_KINDS
