# src/ecatsim_core/simulation/runner.py
"""
Off-thread execution of bias solves.

Each schematic has at most one solve in flight. Submitting a new solve for a
schematic cancels the previous one; a cancelled or superseded solve never
publishes its outcome.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, TYPE_CHECKING

from ..data_structures import Schematic
from .config import SimulationConfig, SimulationKind
from .execution import BiasOutcome, bias

if TYPE_CHECKING:
    from ..results.provider import ResultsProvider

logger = logging.getLogger(__name__)


@dataclass
class _Job:
    sequence: int
    cancel_event: threading.Event = field(default_factory=threading.Event)


class SimulationRunner:
    """
    Runs `bias()` on a worker pool and publishes accepted outcomes to a
    `ResultsProvider`.

    Solves of different schematics may run in parallel; solves of one schematic
    are serialized by a per-schematic lock, and only the most recently submitted
    one may publish.
    """
    def __init__(self, provider: Optional["ResultsProvider"] = None,
                 config: Optional[SimulationConfig] = None, max_workers: int = 2):
        self.provider = provider
        self.config = config if config is not None else SimulationConfig()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ecatsim-solve")
        self._lock = threading.RLock()
        self._jobs: Dict[str, _Job] = {}
        self._schematic_locks: Dict[str, threading.Lock] = {}
        # Queued or running jobs per schematic; the lock entry goes with the last one.
        self._lock_users: Dict[str, int] = {}
        self._sequence = 0
        self._closed = False

    def submit(self, schematic: Schematic, kind: SimulationKind,
               on_complete: Optional[Callable[[BiasOutcome], None]] = None) -> "Future[BiasOutcome]":
        """
        Schedules a solve of `schematic`, cancelling any solve of the same
        schematic that is still queued or running.

        Returns:
            A Future resolving to the `BiasOutcome`. A superseded solve resolves to
            a cancelled outcome.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("SimulationRunner has been shut down.")
            schematic_id = schematic.schematic_id
            if (previous := self._jobs.get(schematic_id)) is not None:
                previous.cancel_event.set()
                logger.debug(f"Cancelling solve #{previous.sequence} of '{schematic_id}'.")
            self._sequence += 1
            job = _Job(self._sequence)
            self._jobs[schematic_id] = job
            schematic_lock = self._schematic_locks.setdefault(schematic_id, threading.Lock())
            self._lock_users[schematic_id] = self._lock_users.get(schematic_id, 0) + 1

        logger.debug(f"Submitting {kind.name} solve #{job.sequence} of '{schematic_id}'.")
        return self._executor.submit(self._run_job, schematic, kind, job, schematic_lock, on_complete)

    def _run_job(self, schematic: Schematic, kind: SimulationKind, job: _Job,
                 schematic_lock: threading.Lock,
                 on_complete: Optional[Callable[[BiasOutcome], None]]) -> BiasOutcome:
        with schematic_lock:
            if job.cancel_event.is_set():
                outcome = BiasOutcome(success=False, kind=kind, reason="Superseded before it started.",
                                      cancelled=True)
            else:
                outcome = bias(schematic, kind, self.config, cancel_event=job.cancel_event)

        # The latest-job check and the publish are atomic with respect to submit().
        with self._lock:
            is_latest = self._jobs.get(schematic.schematic_id) is job
            if is_latest:
                del self._jobs[schematic.schematic_id]
            if is_latest and not outcome.cancelled and not job.cancel_event.is_set():
                if self.provider is not None:
                    self.provider.publish(outcome)
            else:
                logger.debug(f"Discarding outcome of solve #{job.sequence} of '{schematic.schematic_id}'.")
            self._release_schematic_lock(schematic.schematic_id)

        if on_complete is not None:
            try:
                on_complete(outcome)
            except Exception:
                logger.exception("Completion callback raised.")
        return outcome

    def _release_schematic_lock(self, schematic_id: str):
        remaining = self._lock_users[schematic_id] - 1
        if remaining:
            self._lock_users[schematic_id] = remaining
        else:
            del self._lock_users[schematic_id]
            del self._schematic_locks[schematic_id]

    def cancel(self, schematic_id: str) -> bool:
        """Requests cancellation of the in-flight solve of `schematic_id`."""
        with self._lock:
            job = self._jobs.get(schematic_id)
            if job is None:
                return False
            job.cancel_event.set()
        logger.info(f"Cancellation requested for '{schematic_id}'.")
        return True

    def is_running(self, schematic_id: str) -> bool:
        with self._lock:
            return schematic_id in self._jobs

    def shutdown(self, wait: bool = True):
        with self._lock:
            self._closed = True
            for job in self._jobs.values():
                job.cancel_event.set()
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
