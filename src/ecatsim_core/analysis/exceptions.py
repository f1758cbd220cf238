# src/ecatsim_core/analysis/exceptions.py
"""
Diagnosable exceptions for the topology services.
"""
from dataclasses import dataclass
from typing import Optional

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class TopologyError(DiagnosableError):
    """Raised when the connectivity of a schematic cannot be simulated."""
    details: str
    component_id: Optional[str] = None
    node_index: Optional[int] = None

    def __str__(self):
        return self.details

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Topology Error",
            details=self.details,
            suggestion="Check how the named component is wired; an op-amp output, for example, must not be connected to ground.",
            context={'component': self.component_id, 'node': self.node_index}
        )
