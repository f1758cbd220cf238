# src/ecatsim_core/results/measurements.py
"""
Named voltage measurements that outlive individual solves.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from ..components.base import TERMINAL_A, TERMINAL_B
from ..components.base_enums import ComponentKind
from ..simulation.results import BiasSolution
from .sentinel import UNAVAILABLE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Measurement:
    """
    A voltage measurement between two nodes, read as V(node_b) - V(node_a).

    `voltmeter` marks entries mirrored from a voltmeter component; those are
    re-pointed to the voltmeter's current nodes after every solve.
    """
    measurement_id: str
    node_a: int
    node_b: int
    voltmeter: bool = False

    def read(self, results):
        return results.voltage.get(self.node_a, self.node_b)


class MeasurementRegistry:
    """
    A thread-safe registry of `Measurement` entries keyed by id. Entries persist
    across re-simulation; only voltmeter-backed entries are refreshed by
    `sync_voltmeters`.
    """
    def __init__(self):
        self._lock = threading.RLock()
        self._entries: Dict[str, Measurement] = {}

    def register(self, measurement_id: str, node_a: int, node_b: int) -> Measurement:
        measurement = Measurement(measurement_id, node_a, node_b)
        with self._lock:
            if measurement_id in self._entries:
                logger.warning(f"Measurement '{measurement_id}' is being redefined.")
            self._entries[measurement_id] = measurement
        return measurement

    def unregister(self, measurement_id: str) -> bool:
        with self._lock:
            return self._entries.pop(measurement_id, None) is not None

    def get(self, measurement_id: str) -> Optional[Measurement]:
        with self._lock:
            return self._entries.get(measurement_id)

    def __contains__(self, measurement_id: str) -> bool:
        with self._lock:
            return measurement_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[Measurement]:
        with self._lock:
            return iter(list(self._entries.values()))

    def sync_voltmeters(self, solution: BiasSolution):
        """Mirrors every voltmeter of the solved schematic; stale voltmeter entries are dropped."""
        topology = solution.topology
        voltmeters = {
            c.component_id: Measurement(
                measurement_id=c.component_id,
                node_a=topology.node_of(c.component_id, TERMINAL_A),
                node_b=topology.node_of(c.component_id, TERMINAL_B),
                voltmeter=True,
            )
            for c in solution.schematic.components if c.kind is ComponentKind.VOLTMETER
        }
        with self._lock:
            for measurement_id in [m.measurement_id for m in self._entries.values() if m.voltmeter]:
                if measurement_id not in voltmeters:
                    del self._entries[measurement_id]
            self._entries.update(voltmeters)
        logger.debug(f"Synchronized {len(voltmeters)} voltmeter measurement(s).")

    def read(self, measurement_id: str, results):
        """The current value of a measurement, or `UNAVAILABLE`."""
        measurement = self.get(measurement_id)
        if measurement is None:
            return UNAVAILABLE
        return measurement.read(results)

    def read_all(self, results) -> Dict[str, object]:
        return {m.measurement_id: m.read(results) for m in self}
