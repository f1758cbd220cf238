# src/ecatsim_core/data_structures.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Tuple, TYPE_CHECKING

from .errors import SchematicBuildError

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .components.base import Component


@dataclass(frozen=True)
class PlanePosition:
    """A point on the schematic plane, in the editor's length units."""
    x: float
    y: float

    def snapped(self, grid: float) -> Tuple[int, int]:
        """Returns integer grid coordinates; positions with equal keys are the same point."""
        return (round(self.x / grid), round(self.y / grid))


@dataclass(frozen=True)
class Wire:
    """A straight wire segment between two plane positions."""
    start: PlanePosition
    end: PlanePosition


@dataclass(frozen=True)
class TerminalRef:
    """
    Identifies one terminal of one component. Used as the key of the
    terminal-to-node lookup produced by node aggregation.
    """
    component_id: str
    terminal: str


@dataclass(frozen=True)
class Schematic:
    """
    An immutable snapshot of a schematic as handed over by the editor: the placed
    components and the wires between them. It holds no simulation state.
    """
    schematic_id: str
    components: Tuple[Component, ...]
    wires: Tuple[Wire, ...] = ()

    def __post_init__(self):
        ids = [c.component_id for c in self.components]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise SchematicBuildError(f"Duplicate component ids in schematic '{self.schematic_id}': {duplicates}")
        # Accept lists from callers.
        object.__setattr__(self, 'components', tuple(self.components))
        object.__setattr__(self, 'wires', tuple(self.wires))

    @property
    def component_map(self) -> Dict[str, Component]:
        return {c.component_id: c for c in self.components}

    def get_component(self, component_id: str) -> Component:
        for component in self.components:
            if component.component_id == component_id:
                return component
        raise KeyError(component_id)

    def iter_terminals(self) -> Iterator[Tuple[TerminalRef, PlanePosition]]:
        """Yields every terminal of every component in schematic order."""
        for component in self.components:
            for name, position in component.terminals.items():
                yield TerminalRef(component.component_id, name), position
