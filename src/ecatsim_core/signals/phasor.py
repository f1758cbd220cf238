# src/ecatsim_core/signals/phasor.py
"""
Phasor-domain signals: a DC value plus one complex phasor per distinct frequency.
"""
import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Mapping, Tuple, Union

from .base import CharacteristicsMixin, SignalType

logger = logging.getLogger(__name__)

PhasorTerm = Tuple[float, complex]


def _check_frequency(frequency: float) -> float:
    frequency = float(frequency)
    if not math.isfinite(frequency) or frequency < 0:
        raise ValueError(f"Phasor frequency must be finite and non-negative, got {frequency}.")
    return frequency


@dataclass(frozen=True)
class PhasorDomainSignal(CharacteristicsMixin):
    """
    A steady-state signal x(t) = dc + sum(|p_f| * sin(2*pi*f*t + arg p_f)).

    The DC part is stored separately and never as a zero-frequency phasor. `terms`
    holds `(frequency, phasor)` pairs with distinct, strictly positive frequencies,
    sorted by frequency. Use `PhasorSignalBuilder` to accumulate contributions.
    """
    dc: float = 0.0
    terms: Tuple[PhasorTerm, ...] = ()

    def __post_init__(self):
        terms = tuple(sorted(((_check_frequency(f), complex(p)) for f, p in self.terms), key=lambda term: term[0]))
        frequencies = [f for f, _ in terms]
        if any(f == 0.0 for f in frequencies):
            raise ValueError("DC must be given as `dc`, not as a zero-frequency phasor.")
        if len(set(frequencies)) != len(frequencies):
            raise ValueError(f"Phasor frequencies must be distinct, got {frequencies}.")
        object.__setattr__(self, 'dc', float(self.dc))
        object.__setattr__(self, 'terms', terms)

    @classmethod
    def from_phasors(cls, phasors: Mapping[float, complex], dc: float = 0.0) -> "PhasorDomainSignal":
        return cls(dc=dc, terms=tuple(phasors.items()))

    @property
    def phasors(self) -> Dict[float, complex]:
        return dict(self.terms)

    @property
    def frequencies(self) -> Tuple[float, ...]:
        return tuple(f for f, _ in self.terms)

    def phasor(self, frequency: float) -> complex:
        """Returns the phasor at `frequency`, or 0 when the signal has none there."""
        return self.phasors.get(float(frequency), 0j)

    @property
    def signal_type(self) -> SignalType:
        result = SignalType.EMPTY
        if self.dc != 0:
            result |= SignalType.DC
        if len(self.terms) > 1:
            result |= SignalType.MULTIPLE_AC
        elif self.terms:
            result |= SignalType.SINGLE_AC
        return result

    # --- Interpreter ---

    def _envelope(self) -> float:
        return sum(abs(p) for _, p in self.terms)

    def maximum(self) -> float:
        """Upper envelope bound; exact only when every phasor peaks together."""
        return self.dc + self._envelope()

    def minimum(self) -> float:
        return self.dc - self._envelope()

    def rms(self) -> float:
        # Terms are distinct in frequency, so their powers add.
        return math.sqrt(self.dc ** 2 + sum(abs(p) ** 2 / 2.0 for _, p in self.terms))

    def average(self) -> float:
        return self.dc

    # --- Copy and arithmetic ---

    def copy(self) -> "PhasorDomainSignal":
        return replace(self)

    def negate(self) -> "PhasorDomainSignal":
        return PhasorDomainSignal(dc=-self.dc, terms=tuple((f, -p) for f, p in self.terms))

    def copy_with_positive_average(self) -> "PhasorDomainSignal":
        return self.copy() if self.dc >= 0 else self.negate()

    def __neg__(self) -> "PhasorDomainSignal":
        return self.negate()

    def __add__(self, other: "PhasorDomainSignal") -> "PhasorDomainSignal":
        if not isinstance(other, PhasorDomainSignal):
            return NotImplemented
        return PhasorSignalBuilder().add_signal(self).add_signal(other).freeze()

    def __sub__(self, other: "PhasorDomainSignal") -> "PhasorDomainSignal":
        if not isinstance(other, PhasorDomainSignal):
            return NotImplemented
        return self + other.negate()


class PhasorSignalBuilder:
    """
    Accumulates DC and phasor contributions, then freezes them into a
    `PhasorDomainSignal`. Contributions at the same frequency are summed as complex
    numbers; a zero-frequency phasor adds its real part to the DC value.
    """
    def __init__(self, dc: float = 0.0):
        self._dc: float = float(dc)
        self._phasors: Dict[float, complex] = {}

    def add_dc(self, value: float) -> "PhasorSignalBuilder":
        self._dc += float(value)
        return self

    def add_phasor(self, frequency: float, value: Union[complex, float]) -> "PhasorSignalBuilder":
        frequency = _check_frequency(frequency)
        if frequency == 0.0:
            self._dc += complex(value).real
            return self
        self._phasors[frequency] = self._phasors.get(frequency, 0j) + complex(value)
        return self

    def add_phasors(self, terms: Iterable[PhasorTerm]) -> "PhasorSignalBuilder":
        for frequency, value in terms:
            self.add_phasor(frequency, value)
        return self

    def add_signal(self, signal: PhasorDomainSignal) -> "PhasorSignalBuilder":
        self.add_dc(signal.dc)
        return self.add_phasors(signal.terms)

    def freeze(self) -> PhasorDomainSignal:
        return PhasorDomainSignal(dc=self._dc, terms=tuple(self._phasors.items()))
