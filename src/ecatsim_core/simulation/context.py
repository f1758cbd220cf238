# src/ecatsim_core/simulation/context.py
"""
Defines the `SimulationContext` handed to the stateless `SimulationEngine`.
"""
import threading
from dataclasses import dataclass, field
from typing import Optional

from ..data_structures import Schematic
from .config import SimulationConfig, SimulationKind


@dataclass(frozen=True)
class SimulationContext:
    """
    The complete, immutable input of one bias solve: the schematic snapshot, what to
    compute and how. `cancel_event`, when given, is polled between frequencies and
    between operating-mode iterations.
    """
    schematic: Schematic
    kind: SimulationKind
    config: SimulationConfig = field(default_factory=SimulationConfig)
    cancel_event: Optional[threading.Event] = None

    @property
    def cancel_requested(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()
