# src/ecatsim_core/signals/base.py
"""
Shared vocabulary of the three signal representations.
"""
from dataclasses import dataclass
from enum import Flag
from typing import Protocol, runtime_checkable


class SignalType(Flag):
    """Describes which parts a phasor-domain signal carries."""
    EMPTY = 0
    DC = 1
    SINGLE_AC = 2
    MULTIPLE_AC = 4


@dataclass(frozen=True)
class CharacteristicValues:
    """The four characteristic values every signal can report."""
    maximum: float
    minimum: float
    rms: float
    average: float


@runtime_checkable
class SignalData(Protocol):
    """
    The common contract of phasor-domain, time-domain and frequency-swept signals.

    Signals are immutable; `copy()` and `negate()` return new instances.
    """
    def maximum(self) -> float: ...

    def minimum(self) -> float: ...

    def rms(self) -> float: ...

    def average(self) -> float: ...

    def copy(self) -> "SignalData": ...

    def negate(self) -> "SignalData": ...


class CharacteristicsMixin:
    """Bundles the four interpreter results of a `SignalData` implementation."""

    def characteristics(self) -> CharacteristicValues:
        return CharacteristicValues(
            maximum=self.maximum(),
            minimum=self.minimum(),
            rms=self.rms(),
            average=self.average(),
        )
