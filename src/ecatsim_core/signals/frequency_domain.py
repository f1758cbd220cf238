# src/ecatsim_core/signals/frequency_domain.py
"""
Frequency-swept signals: one complex response per swept frequency.
"""
import math
from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np

from .base import CharacteristicsMixin


@dataclass(frozen=True)
class FrequencySweptSignal(CharacteristicsMixin):
    """
    A transfer-function style response. It is not a time series, so only the
    magnitude extremes are defined; `rms()` and `average()` return NaN.
    """
    frequencies: Tuple[float, ...]
    values: Tuple[complex, ...]

    def __post_init__(self):
        frequencies = tuple(float(f) for f in self.frequencies)
        values = tuple(complex(v) for v in self.values)
        if len(frequencies) != len(values):
            raise ValueError(f"Got {len(frequencies)} frequencies but {len(values)} values.")
        if any(b < a for a, b in zip(frequencies, frequencies[1:])):
            raise ValueError("Swept frequencies must be in non-decreasing order.")
        object.__setattr__(self, 'frequencies', frequencies)
        object.__setattr__(self, 'values', values)

    @property
    def magnitudes(self) -> np.ndarray:
        return np.abs(np.asarray(self.values, dtype=complex))

    @property
    def phases(self) -> np.ndarray:
        return np.angle(np.asarray(self.values, dtype=complex))

    def maximum(self) -> float:
        return float(np.max(self.magnitudes)) if self.values else math.nan

    def minimum(self) -> float:
        return float(np.min(self.magnitudes)) if self.values else math.nan

    def rms(self) -> float:
        return math.nan

    def average(self) -> float:
        return math.nan

    def copy(self) -> "FrequencySweptSignal":
        return replace(self)

    def negate(self) -> "FrequencySweptSignal":
        return replace(self, values=tuple(-v for v in self.values))

    def __neg__(self) -> "FrequencySweptSignal":
        return self.negate()

    def __sub__(self, other: "FrequencySweptSignal") -> "FrequencySweptSignal":
        if not isinstance(other, FrequencySweptSignal):
            return NotImplemented
        if other.frequencies != self.frequencies:
            raise ValueError("Swept signals can only be combined over the same frequencies.")
        return replace(self, values=tuple(a - b for a, b in zip(self.values, other.values)))
