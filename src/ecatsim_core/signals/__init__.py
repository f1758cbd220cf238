# src/ecatsim_core/signals/__init__.py
from .base import SignalType, CharacteristicValues, SignalData
from .phasor import PhasorDomainSignal, PhasorSignalBuilder
from .time_domain import TimeDomainSignal, TimeDomainSignalBuilder
from .frequency_domain import FrequencySweptSignal
from .conversion import to_time_domain, DC_WAVEFORM_KEY, ac_waveform_key

__all__ = [
    "SignalType", "CharacteristicValues", "SignalData",
    "PhasorDomainSignal", "PhasorSignalBuilder",
    "TimeDomainSignal", "TimeDomainSignalBuilder",
    "FrequencySweptSignal",
    "to_time_domain", "DC_WAVEFORM_KEY", "ac_waveform_key",
]
