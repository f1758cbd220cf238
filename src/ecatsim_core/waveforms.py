# src/ecatsim_core/waveforms.py
"""
Stateless sample-sequence generators.

These turn solved phasors into displayable time series; nothing in the solve path
depends on them. All functions follow x(t) = A * sin(2*pi*f*t + phi) + B with
t = k * step.
"""
import logging
import math

import numpy as np

logger = logging.getLogger(__name__)


def sine_wave_value(amplitude: float, frequency: float, phase: float, point_index: int,
                    step: float, offset: float = 0.0) -> float:
    """Returns the instantaneous value of a sine wave at sample `point_index`."""
    return amplitude * math.sin(2.0 * math.pi * frequency * point_index * step + phase) + offset


def sine_wave(amplitude: float, frequency: float, phase: float, count: int,
              step: float, offset: float = 0.0) -> np.ndarray:
    """
    Builds `count` samples of a sine wave.

    Args:
        amplitude: Peak amplitude (A).
        frequency: Frequency in Hz (f).
        phase: Phase shift in radians (phi).
        count: Number of samples to generate.
        step: Time between consecutive samples, in seconds.
        offset: Constant added to every sample (B).
    """
    if count < 0:
        raise ValueError(f"Sample count must be non-negative, got {count}.")
    t = np.arange(count, dtype=float) * step
    return amplitude * np.sin(2.0 * np.pi * frequency * t + phase) + offset


def zero_wave(count: int) -> np.ndarray:
    """Returns `count` zero samples."""
    if count < 0:
        raise ValueError(f"Sample count must be non-negative, got {count}.")
    return np.zeros(count, dtype=float)


def shift_waveform(waveform, phase: float) -> np.ndarray:
    """
    Shifts one full period of a periodic waveform by approximately `phase` radians.

    The sequence is re-spliced at the sample nearest to `phase / (2*pi)` of its
    length: the samples after the split come first, followed by those before it.

    Raises:
        ValueError: If `phase` is not strictly between 0 and 2*pi.
    """
    if not 0.0 < phase < 2.0 * math.pi:
        raise ValueError(f"Phase must lie strictly between 0 and 2*pi, got {phase}.")
    samples = np.asarray(waveform, dtype=float)
    split = int(round(samples.size * phase / (2.0 * math.pi)))
    return np.concatenate((samples[split:], samples[:split]))
