# src/ecatsim_core/signals/conversion.py
import cmath
import math

from ..waveforms import sine_wave, zero_wave
from .phasor import PhasorDomainSignal
from .time_domain import TimeDomainSignal, TimeDomainSignalBuilder

DC_WAVEFORM_KEY = "DC"


def ac_waveform_key(frequency: float) -> str:
    return f"{frequency:g} Hz"


def to_time_domain(signal: PhasorDomainSignal, samples: int, time_step: float,
                   start_time: float = 0.0) -> TimeDomainSignal:
    """
    Materializes a phasor-domain signal as samples. The DC value and every phasor
    become separately registered sub-waveforms, keyed by `DC_WAVEFORM_KEY` and
    `ac_waveform_key(frequency)`.
    """
    builder = TimeDomainSignalBuilder(samples, time_step, start_time)
    builder.add_constant(DC_WAVEFORM_KEY, signal.dc)
    for frequency, phasor in signal.terms:
        if phasor == 0:
            values = zero_wave(samples)
        else:
            phase = cmath.phase(phasor) + 2.0 * math.pi * frequency * start_time
            values = sine_wave(abs(phasor), frequency, phase, samples, time_step)
        builder.add_ac_waveform(ac_waveform_key(frequency), values)
    return builder.freeze()
