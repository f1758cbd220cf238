# src/ecatsim_core/simulation/exceptions.py
"""
Diagnosable exceptions raised while a bias simulation is assembled and solved.

All of them derive from `DiagnosableError`, so the `bias()` facade can turn any of
them into a failed `BiasOutcome` carrying the rendered report.
"""
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..errors import DiagnosableError, format_diagnostic_report, format_frequency


@dataclass()
class MnaInputError(DiagnosableError):
    """
    Raised for structural problems found while setting up the system of equations:
    an empty circuit, a node without a conductive path to the reference node, a
    simulation kind the schematic cannot support.
    """
    details: str
    component_id: Optional[str] = None
    node_index: Optional[int] = None
    frequency: Optional[float] = None

    def __str__(self):
        return self.details

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="MNA Input Error",
            details=self.details,
            suggestion="Every node needs a conductive path to ground at each simulated frequency. Check for unconnected terminals, open circuits and capacitors that isolate a node at DC.",
            context={
                'component': self.component_id,
                'node': self.node_index,
                'frequency': format_frequency(self.frequency) if self.frequency is not None else None,
            }
        )


@dataclass()
class SingularMatrixError(DiagnosableError, np.linalg.LinAlgError):
    """
    Raised when the system matrix cannot be factorized or the solve produces NaN/Inf.

    Catchable both as a `DiagnosableError` and as a standard `LinAlgError`.
    """
    details: str
    frequency: Optional[float] = None

    def __str__(self):
        freq_str = f" at {format_frequency(self.frequency)}" if self.frequency is not None else ""
        return f"Singular matrix detected{freq_str}: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Singular Matrix Encountered",
            details=self.details,
            suggestion="This is often caused by a loop of ideal voltage sources, a loop of inductors at DC, or contradictory op-amp feedback. Check the circuit topology and component values.",
            context={'frequency': format_frequency(self.frequency)}
        )


@dataclass()
class SimulationCancelled(DiagnosableError):
    """Raised inside a solve when its cancel event is set, for example by a newer request."""
    schematic_id: str

    def __str__(self):
        return f"Simulation of '{self.schematic_id}' was cancelled."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Simulation Cancelled",
            details=str(self),
            suggestion="",
            context={}
        )
