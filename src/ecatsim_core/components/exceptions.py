# src/ecatsim_core/components/exceptions.py
"""
Diagnosable exceptions for the components subsystem.
"""
from dataclasses import dataclass
from typing import Optional

from ..errors import DiagnosableError, format_diagnostic_report, format_frequency


@dataclass()
class ComponentError(DiagnosableError):
    """
    Raised when a component is malformed (wrong terminals, invalid parameter value)
    or is asked for a behaviour its kind does not have.
    """
    component_id: str
    details: str
    frequency: Optional[float] = None

    def __str__(self):
        return f"Component '{self.component_id}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Component Error",
            details=self.details,
            suggestion="Check the component's parameters: values must be finite, carry a compatible unit and respect the sign constraints of the part.",
            context={
                'component': self.component_id,
                'frequency': format_frequency(self.frequency) if self.frequency is not None else None,
            }
        )
