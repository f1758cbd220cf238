# src/ecatsim_core/simulation/execution.py
"""
The public entry point for running a bias simulation.

`bias()` is a facade over `SimulationContext` and `SimulationEngine`. It never lets
a simulation failure escape: every outcome, good or bad, is returned as a
`BiasOutcome`. Callers that prefer exceptions can call `raise_for_failure()`.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

from ..data_structures import Schematic
from ..errors import DiagnosableError, SimulationRunError, format_diagnostic_report
from .config import SimulationConfig, SimulationKind
from .context import SimulationContext
from .engine import SimulationEngine
from .exceptions import SimulationCancelled
from .results import BiasSolution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BiasOutcome:
    """
    The result of one `bias()` call.

    Attributes:
        success: True when a solution was produced.
        kind: The requested simulation kind.
        reason: The diagnostic report of a failure, or a note on a best-effort result.
        solution: The solved circuit; None on failure, never partially filled.
        elapsed_ms: Wall time spent in the solve.
        cancelled: True when the solve was stopped through its cancel event.
    """
    success: bool
    kind: SimulationKind
    reason: Optional[str] = None
    solution: Optional[BiasSolution] = None
    elapsed_ms: float = 0.0
    cancelled: bool = False

    @property
    def best_effort(self) -> bool:
        """True when the operating-mode loop did not converge."""
        return self.solution is not None and not self.solution.converged

    def raise_for_failure(self):
        if not self.success:
            raise SimulationRunError(self.reason or "Simulation failed.")


def bias(
    schematic: Schematic,
    kind: SimulationKind,
    config: Optional[SimulationConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> BiasOutcome:
    """
    Runs one bias simulation of `schematic`.

    Args:
        schematic: The schematic snapshot to solve.
        kind: DC, AC, ACDC or FREQUENCY_SWEEP.
        config: Tunables; a default `SimulationConfig` is used when None.
        cancel_event: Optional event; setting it stops the solve at the next
                      frequency or mode-iteration boundary.

    Returns:
        A `BiasOutcome`. Failures (singular system, floating node, invalid topology)
        carry their diagnostic report in `reason` and no solution.
    """
    effective_config = config if config is not None else SimulationConfig()
    started = time.perf_counter()

    def elapsed() -> float:
        return (time.perf_counter() - started) * 1000.0

    try:
        context = SimulationContext(
            schematic=schematic,
            kind=kind,
            config=effective_config,
            cancel_event=cancel_event,
        )
        solution = SimulationEngine(context).run()
        elapsed_ms = elapsed()
        logger.info(f"Calculated {kind.name} simulation in {elapsed_ms:.1f} ms")

        reason = None
        if not solution.converged:
            reason = (f"Operating modes did not settle within {effective_config.max_mode_iterations} "
                      "iterations; results use the last assumed modes.")
        return BiasOutcome(success=True, kind=kind, reason=reason, solution=solution, elapsed_ms=elapsed_ms)

    except SimulationCancelled as e:
        logger.info(f"{e}")
        return BiasOutcome(success=False, kind=kind, reason=str(e), elapsed_ms=elapsed(), cancelled=True)

    except DiagnosableError as e:
        logger.error(f"A diagnosable error occurred during the {kind.name} simulation: {e}")
        return BiasOutcome(success=False, kind=kind, reason=e.get_diagnostic_report(), elapsed_ms=elapsed())

    except Exception as e:
        logger.critical(f"An unexpected internal error occurred during simulation: {e}", exc_info=True)
        report = format_diagnostic_report(
            error_type=f"An Unexpected Simulation Error Occurred ({type(e).__name__})",
            details=f"The simulator encountered an unexpected internal error: {e}",
            suggestion="This may be a bug. Review the traceback and consider filing a bug report.",
            context={}
        )
        return BiasOutcome(success=False, kind=kind, reason=report, elapsed_ms=elapsed())
