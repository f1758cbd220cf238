# src/ecatsim_core/errors.py
"""
Error types shared by every subsystem, and the diagnostic report they render.

Failures inside a solve are `DiagnosableError`s; `bias()` catches them and puts
their report into a failed `BiasOutcome`. `ECATSimError` subclasses are raised
straight to the caller.
"""
import logging
from abc import abstractmethod
from typing import Any, Dict, Optional, Protocol, Tuple
from typing import runtime_checkable

logger = logging.getLogger(__name__)


class ECATSimError(Exception):
    """Root of the errors that reach the host application."""
    pass


class SchematicBuildError(ECATSimError):
    """A schematic snapshot cannot be built, e.g. two components share an id."""
    pass


class SimulationRunError(ECATSimError):
    """Raised by `BiasOutcome.raise_for_failure`; carries the failure report."""
    pass


@runtime_checkable
class Diagnosable(Protocol):
    def get_diagnostic_report(self) -> str:
        ...


class DiagnosableError(Exception, Diagnosable):
    """
    Base of the errors raised while a schematic is aggregated, assembled or solved.
    Subclasses are dataclasses holding the offending component, node or frequency,
    and must render a report.
    """
    @abstractmethod
    def get_diagnostic_report(self) -> str:
        raise NotImplementedError


# Context keys printed in the report header, in order.
_CONTEXT_LABELS: Tuple[Tuple[str, str], ...] = (
    ('component', "Component"),
    ('node', "Node"),
    ('frequency', "Frequency"),
    ('mode', "Operating Mode"),
)

_RULE = "=" * 68


def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    Renders a failure as the multi-line block stored in `BiasOutcome.reason`.

    Args:
        error_type: Short title, e.g. "Singular Matrix".
        details: What went wrong; may span several lines.
        suggestion: How to fix the schematic. Omitted when empty.
        context: Values for 'component', 'node', 'frequency' and 'mode'. Missing or
                 empty entries are skipped; node 0 is printed.
    """
    lines = [
        "\n",
        "================ ECAT Simulation: Diagnostic Report ================",
        f"{'Error Type:':<16}{error_type}",
    ]
    for key, label in _CONTEXT_LABELS:
        value = context.get(key)
        if value is None or value == "":
            continue
        lines.append(f"{label + ':':<16}{value}")

    sections = [("Details", details), ("Suggestion", suggestion)]
    for title, text in sections:
        if not text:
            continue
        lines.append(f"\n{title}:")
        lines.extend(f"  {line}" for line in text.splitlines())

    lines.append(_RULE)
    return "\n".join(lines)


def format_frequency(frequency: Optional[float]) -> str:
    if frequency is None:
        return "N/A"
    if frequency == 0:
        return "DC (0 Hz)"
    return f"{frequency:.4e} Hz"
