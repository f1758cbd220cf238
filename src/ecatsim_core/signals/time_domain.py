# src/ecatsim_core/signals/time_domain.py
"""
Time-domain signals: fixed-step real sample sequences that remember which DC and
AC sub-waveforms they were summed from.
"""
import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Tuple

import numpy as np

from .base import CharacteristicsMixin

logger = logging.getLogger(__name__)

Waveform = Tuple[float, ...]
NamedWaveform = Tuple[str, Waveform]


@dataclass(frozen=True)
class TimeDomainSignal(CharacteristicsMixin):
    """
    A sampled signal. The displayed waveform is the sum of every registered DC and
    AC sub-waveform; each of them has exactly `samples` values.

    Attributes:
        samples: Number of samples.
        time_step: Seconds between consecutive samples.
        start_time: Time of the first sample.
        dc_waveforms: `(key, values)` pairs of constant contributions.
        ac_waveforms: `(key, values)` pairs of sinusoidal contributions.
    """
    samples: int
    time_step: float
    start_time: float = 0.0
    dc_waveforms: Tuple[NamedWaveform, ...] = ()
    ac_waveforms: Tuple[NamedWaveform, ...] = ()

    def __post_init__(self):
        if self.samples < 0:
            raise ValueError(f"Sample count must be non-negative, got {self.samples}.")
        if self.time_step < 0:
            raise ValueError(f"Time step must be non-negative, got {self.time_step}.")
        for label, waveforms in (("DC", self.dc_waveforms), ("AC", self.ac_waveforms)):
            keys = [key for key, _ in waveforms]
            if len(set(keys)) != len(keys):
                raise ValueError(f"Duplicate {label} waveform keys: {keys}.")
            for key, values in waveforms:
                if len(values) != self.samples:
                    raise ValueError(
                        f"{label} waveform '{key}' has {len(values)} samples, expected {self.samples}."
                    )

    @property
    def final_waveform(self) -> np.ndarray:
        total = np.zeros(self.samples, dtype=float)
        for _, values in self.dc_waveforms + self.ac_waveforms:
            total += np.asarray(values, dtype=float)
        return total

    @property
    def times(self) -> np.ndarray:
        return self.start_time + np.arange(self.samples, dtype=float) * self.time_step

    @property
    def dc_waveform_map(self) -> Dict[str, Waveform]:
        return dict(self.dc_waveforms)

    @property
    def ac_waveform_map(self) -> Dict[str, Waveform]:
        return dict(self.ac_waveforms)

    # --- Interpreter; an empty signal reports NaN ---

    def maximum(self) -> float:
        return float(np.max(self.final_waveform)) if self.samples else math.nan

    def minimum(self) -> float:
        return float(np.min(self.final_waveform)) if self.samples else math.nan

    def rms(self) -> float:
        if not self.samples:
            return math.nan
        return float(np.sqrt(np.mean(np.square(self.final_waveform))))

    def average(self) -> float:
        return float(np.mean(self.final_waveform)) if self.samples else math.nan

    def copy(self) -> "TimeDomainSignal":
        return replace(self)

    def negate(self) -> "TimeDomainSignal":
        def flipped(waveforms):
            return tuple((key, tuple(-v for v in values)) for key, values in waveforms)
        return replace(self, dc_waveforms=flipped(self.dc_waveforms), ac_waveforms=flipped(self.ac_waveforms))

    def __neg__(self) -> "TimeDomainSignal":
        return self.negate()


class TimeDomainSignalBuilder:
    """Collects sub-waveforms for a `TimeDomainSignal` and freezes them."""

    def __init__(self, samples: int, time_step: float, start_time: float = 0.0):
        if samples < 0:
            raise ValueError(f"Sample count must be non-negative, got {samples}.")
        self.samples = samples
        self.time_step = time_step
        self.start_time = start_time
        self._dc: List[NamedWaveform] = []
        self._ac: List[NamedWaveform] = []

    def _checked(self, key: str, values: Iterable[float], existing: List[NamedWaveform]) -> NamedWaveform:
        waveform = tuple(float(v) for v in values)
        if len(waveform) != self.samples:
            raise ValueError(f"Waveform '{key}' has {len(waveform)} samples, expected {self.samples}.")
        if any(k == key for k, _ in existing):
            raise ValueError(f"A waveform with key '{key}' was already added.")
        return key, waveform

    def add_dc_waveform(self, key: str, values: Iterable[float]) -> "TimeDomainSignalBuilder":
        self._dc.append(self._checked(key, values, self._dc))
        return self

    def add_ac_waveform(self, key: str, values: Iterable[float]) -> "TimeDomainSignalBuilder":
        self._ac.append(self._checked(key, values, self._ac))
        return self

    def add_constant(self, key: str, value: float) -> "TimeDomainSignalBuilder":
        return self.add_dc_waveform(key, [value] * self.samples)

    def freeze(self) -> TimeDomainSignal:
        return TimeDomainSignal(
            samples=self.samples,
            time_step=self.time_step,
            start_time=self.start_time,
            dc_waveforms=tuple(self._dc),
            ac_waveforms=tuple(self._ac),
        )
