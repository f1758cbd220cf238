# src/ecatsim_core/results/provider.py
"""
The observer boundary between the simulation core and its consumers.
"""
import logging
import threading
from typing import Callable, List, Optional

from ..simulation.execution import BiasOutcome
from .database import SimulationResults
from .measurements import MeasurementRegistry

logger = logging.getLogger(__name__)

ResultsListener = Callable[[SimulationResults, BiasOutcome], None]


class ResultsProvider:
    """
    Holds the single active result set and notifies subscribers when a solve is
    published.

    A successful outcome replaces the active results outright (last writer wins)
    together with all of their memoized signals. A failed outcome leaves the
    previous results in place; subscribers are still told about it.
    """
    def __init__(self):
        self._lock = threading.RLock()
        self._results = SimulationResults()
        self._last_outcome: Optional[BiasOutcome] = None
        self._listeners: List[ResultsListener] = []
        self.measurements = MeasurementRegistry()

    @property
    def results(self) -> SimulationResults:
        with self._lock:
            return self._results

    @property
    def last_outcome(self) -> Optional[BiasOutcome]:
        with self._lock:
            return self._last_outcome

    def subscribe(self, listener: ResultsListener) -> Callable[[], None]:
        """Registers `listener`; returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: ResultsListener):
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def publish(self, outcome: BiasOutcome) -> bool:
        """
        Publishes a solve outcome. Returns True when it became the active result set.
        """
        with self._lock:
            self._last_outcome = outcome
            accepted = outcome.success and outcome.solution is not None
            if accepted:
                self._results = SimulationResults(outcome.solution)
                self.measurements.sync_voltmeters(outcome.solution)
                logger.info(f"Published {outcome.kind.name} results ({outcome.elapsed_ms:.1f} ms).")
            else:
                logger.info(f"{outcome.kind.name} simulation failed; keeping the previous results.")
            results = self._results
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(results, outcome)
            except Exception:
                logger.exception(f"Results listener {listener!r} raised; continuing with the remaining listeners.")
        return accepted

    def clear(self):
        """Drops the active results; every query becomes unavailable."""
        with self._lock:
            self._results = SimulationResults()
            self._last_outcome = None
