"""Unit conversion helpers (G, mm/s², mm/s)."""

from __future__ import annotations

import math
from typing import Union

import numpy as np
from numpy.typing import ArrayLike

Number = Union[float, np.ndarray]

# 1 G expressed in mm/s².
G_TO_MM_PER_SEC_SQUARED = 9806.65

# Sampling frequency is always fmax * 2.56 on these sensors.
SAMPLING_SCALE = 2.56


def acceleration_g_to_mm_per_sec_squared(g: ArrayLike) -> Number:
    """Convert acceleration from G to mm/s²."""
    if np.ndim(g) == 0:
        return float(g) * G_TO_MM_PER_SEC_SQUARED
    return np.asarray(g, dtype=float) * G_TO_MM_PER_SEC_SQUARED


def mm_per_sec_squared_to_acceleration_g(accel: ArrayLike) -> Number:
    """Convert acceleration from mm/s² to G."""
    if np.ndim(accel) == 0:
        return float(accel) / G_TO_MM_PER_SEC_SQUARED
    return np.asarray(accel, dtype=float) / G_TO_MM_PER_SEC_SQUARED


def acceleration_to_velocity(accelerations: ArrayLike, dt: float) -> np.ndarray:
    """
    Trapezoid velocity estimate from acceleration samples.

    Parameters
    ----------
    accelerations:
        1-D acceleration samples in mm/s².
    dt:
        Sample interval in seconds.

    Returns
    -------
    np.ndarray
        Same length as the input. ``v[0]`` is 0 and
        ``v[i + 1] = 0.5 * dt * (a[i] + a[i + 1])``.

    Notes
    -----
    Each element is the trapezoid between two neighbouring samples, not a
    running sum. Severity limits and RMS values downstream are calibrated
    against this shape.
    """
    acc = np.asarray(accelerations, dtype=float).reshape(-1)
    velocity = np.zeros_like(acc)
    if acc.size > 1:
        velocity[1:] = 0.5 * float(dt) * (acc[:-1] + acc[1:])
    return velocity


def velocity_from_frequency(acceleration: float, frequency_hz: float) -> float:
    """Frequency-domain velocity ``a / (2π f)``; 0 at DC."""
    if frequency_hz == 0:
        return 0.0
    return float(acceleration) / (2.0 * math.pi * float(frequency_hz))


def velocity_spectrum(magnitude: ArrayLike, frequency: ArrayLike) -> np.ndarray:
    """Apply :func:`velocity_from_frequency` bin by bin."""
    mag = np.asarray(magnitude, dtype=float)
    freq = np.asarray(frequency, dtype=float)
    if mag.shape != freq.shape:
        raise ValueError(
            f"magnitude and frequency must have the same shape, got {mag.shape} and {freq.shape}"
        )
    out = np.zeros_like(mag)
    nonzero = freq != 0
    out[nonzero] = mag[nonzero] / (2.0 * np.pi * freq[nonzero])
    return out
