"""Feature extraction helpers (RMS, peak values and per-axis summaries)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

import numpy as np
from numpy.typing import ArrayLike

from ..sensors.accelerometer import DEFAULT_G_RANGE, adc_to_acceleration_g
from .fft import compute_fft
from .peaks import Peak, PeakScaledRms, find_top_peaks
from .units import acceleration_g_to_mm_per_sec_squared, acceleration_to_velocity

logger = logging.getLogger(__name__)

Number = Union[float, np.floating]

DEFAULT_WARNING_G = 0.5
DEFAULT_CRITICAL_G = 0.8


def _to_1d_array(signal: ArrayLike) -> np.ndarray:
    """Convert input to a 1D float64 numpy array (empty input allowed)."""
    arr = np.asarray(signal, dtype=float)
    if arr.ndim > 1:
        raise ValueError(f"signal must be 1-D, got shape {arr.shape}")
    return arr.reshape(-1)


def rms(signal: ArrayLike) -> Number:
    """
    Compute root-mean-square (RMS) value of a 1-D signal.

    Parameters
    ----------
    signal:
        1-D array-like of samples.

    Returns
    -------
    float
        RMS value of the signal, 0.0 for an empty signal.
    """
    arr = _to_1d_array(signal)
    if arr.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(arr))))


def peak(signal: ArrayLike) -> Number:
    """Largest absolute sample value (0.0 for an empty signal)."""
    arr = _to_1d_array(signal)
    if arr.size == 0:
        return 0.0
    return float(np.max(np.abs(arr)))


def peak_to_peak(signal: ArrayLike) -> Number:
    """
    Compute peak-to-peak value (max - min) of a 1-D signal.

    Parameters
    ----------
    signal:
        1-D array-like of samples.

    Returns
    -------
    float
        Peak-to-peak amplitude, 0.0 for an empty signal.
    """
    arr = _to_1d_array(signal)
    if arr.size == 0:
        return 0.0
    return float(np.max(arr) - np.min(arr))


def determine_vibration_status(
    rms_g: float,
    *,
    warning: float = DEFAULT_WARNING_G,
    critical: float = DEFAULT_CRITICAL_G,
) -> str:
    """Classify an RMS value in G as ``Normal``, ``Warning`` or ``Critical``."""
    if rms_g > critical:
        return "Critical"
    if rms_g > warning:
        return "Warning"
    return "Normal"


# --------------------------------------------------------------------------- # per-axis summaries
@dataclass
class AxisTopPeakStats:
    """Quick per-axis summary (single dominant peak)."""

    accel_top_peak: str = "0.00"
    velocity_top_peak: str = "0.00"
    dominant_freq: str = "0.00"
    rms: str = "0.000"
    peak: str = "0.000"
    peak_to_peak: str = "0.000"


@dataclass
class AxisPeakDetail:
    """Enhanced per-axis summary with several peaks reported as scaled RMS."""

    accel_top_peak: str = "0.00"
    velocity_top_peak: str = "0.00"
    dominant_freq: str = "0.00"
    accel_peaks: List[Peak] = field(default_factory=list)
    velocity_peaks: List[Peak] = field(default_factory=list)
    total_accel_peaks: int = 0
    total_velocity_peaks: int = 0
    dominant_peak: Optional[Peak] = None


def _axis_series(adc: ArrayLike, time_interval: float, g_scale: int) -> tuple[np.ndarray, np.ndarray]:
    g_data = np.asarray(adc_to_acceleration_g(np.asarray(adc, dtype=float), g_scale)).reshape(-1)
    velocity = acceleration_to_velocity(acceleration_g_to_mm_per_sec_squared(g_data), time_interval)
    return g_data, velocity


def axis_top_peak_stats(
    adc: ArrayLike,
    time_interval: float,
    g_scale: int = DEFAULT_G_RANGE,
    fmax: float = 400.0,
) -> AxisTopPeakStats:
    """
    Dominant acceleration/velocity peak and velocity RMS for one axis.

    Peaks are reported with :class:`PeakAsRms`. The velocity RMS doubles as the
    peak value and peak-to-peak is twice that, matching the status cards.
    Bins above ``fmax`` (the mirrored half) are not searched.
    """
    samples = np.asarray(adc, dtype=float).reshape(-1)
    if samples.size == 0:
        return AxisTopPeakStats()

    try:
        g_data, velocity = _axis_series(samples, time_interval, g_scale)
        velocity_rms = rms(velocity)
        summary = AxisTopPeakStats(
            rms=f"{velocity_rms:.3f}",
            peak=f"{velocity_rms:.3f}",
            peak_to_peak=f"{velocity_rms * 2:.3f}",
        )

        accel = compute_fft(g_data, fmax).drop_leading(1).cut_above(fmax)
        vel = compute_fft(velocity, fmax).drop_leading(1).cut_above(fmax)
        if accel.is_empty or vel.is_empty:
            return summary

        accel_peaks = find_top_peaks(accel.magnitude, accel.frequency, None, 1)
        vel_peaks = find_top_peaks(vel.magnitude, vel.frequency, None, 1)

        top_accel = accel_peaks.dominant_peak
        top_vel = vel_peaks.dominant_peak
        summary.accel_top_peak = f"{top_accel.magnitude if top_accel else 0.0:.2f}"
        summary.velocity_top_peak = f"{top_vel.magnitude if top_vel else 0.0:.2f}"
        summary.dominant_freq = f"{top_vel.frequency_hz if top_vel else 0.0:.2f}"
        return summary
    except Exception:
        logger.exception("Failed to compute axis top-peak stats")
        return AxisTopPeakStats()


def axis_top_peak_stats_enhanced(
    adc: ArrayLike,
    time_interval: float,
    g_scale: int = DEFAULT_G_RANGE,
    fmax: float = 400.0,
    max_peaks: int = 5,
) -> AxisPeakDetail:
    """Like :func:`axis_top_peak_stats` but reports ``max_peaks`` peaks as 0.707 × amplitude."""
    samples = np.asarray(adc, dtype=float).reshape(-1)
    if samples.size == 0:
        return AxisPeakDetail()

    scaled = PeakScaledRms()
    try:
        g_data, velocity = _axis_series(samples, time_interval, g_scale)
        accel = compute_fft(g_data, fmax).drop_leading(1).cut_above(fmax)
        vel = compute_fft(velocity, fmax).drop_leading(1).cut_above(fmax)
        if accel.is_empty or vel.is_empty:
            return AxisPeakDetail()

        accel_result = find_top_peaks(
            accel.magnitude, accel.frequency, None, max_peaks, convention=scaled
        )
        vel_result = find_top_peaks(
            vel.magnitude, vel.frequency, None, max_peaks, convention=scaled
        )
        dominant = vel_result.dominant_peak
        top_accel = accel_result.dominant_peak

        return AxisPeakDetail(
            accel_top_peak=top_accel.rms if top_accel else "0.00",
            velocity_top_peak=dominant.rms if dominant else "0.00",
            dominant_freq=f"{dominant.frequency_hz if dominant else 0.0:.2f}",
            accel_peaks=accel_result.top_peaks,
            velocity_peaks=vel_result.top_peaks,
            total_accel_peaks=accel_result.total_peaks_found,
            total_velocity_peaks=vel_result.total_peaks_found,
            dominant_peak=dominant,
        )
    except Exception:
        logger.exception("Failed to compute enhanced axis peak stats")
        return AxisPeakDetail()


# --------------------------------------------------------------------------- # G-scale statistics
@dataclass
class SingleAxisStats:
    rms: str = "0.000"
    peak: str = "0.000"
    peak_to_peak: str = "0.000"
    status: str = "Normal"
    g_scale: int = DEFAULT_G_RANGE


@dataclass
class VibrationStats:
    """Combined G-scale statistics for the three axes."""

    rms: str = "0.000"
    peak: str = "0.000"
    status: str = "Normal"
    details: dict = field(default_factory=dict)


def single_axis_stats(
    adc: ArrayLike,
    g_scale: int = DEFAULT_G_RANGE,
    *,
    warning: float = DEFAULT_WARNING_G,
    critical: float = DEFAULT_CRITICAL_G,
) -> SingleAxisStats:
    """RMS, absolute peak and peak-to-peak in G with a status label."""
    samples = np.asarray(adc, dtype=float).reshape(-1)
    if samples.size == 0:
        return SingleAxisStats(g_scale=g_scale)

    g_data = np.asarray(adc_to_acceleration_g(samples, g_scale))
    rms_g = rms(g_data)
    return SingleAxisStats(
        rms=f"{rms_g:.3f}",
        peak=f"{peak(g_data):.3f}",
        peak_to_peak=f"{peak_to_peak(g_data):.3f}",
        status=determine_vibration_status(
            float(f"{rms_g:.3f}"), warning=warning, critical=critical
        ),
        g_scale=g_scale,
    )


def vibration_stats(
    h: ArrayLike,
    v: ArrayLike,
    a: ArrayLike,
    g_scale: int = DEFAULT_G_RANGE,
    *,
    warning: float = DEFAULT_WARNING_G,
    critical: float = DEFAULT_CRITICAL_G,
) -> VibrationStats:
    """
    Combine three axes into one RMS/peak figure.

    The total RMS is ``sqrt((rms_h² + rms_v² + rms_a²) / 3)`` and the total peak
    is the largest per-axis absolute peak. Any empty axis yields the default
    (zeroed, ``Normal``) result.
    """
    axes = [np.asarray(x, dtype=float).reshape(-1) for x in (h, v, a)]
    if any(axis.size == 0 for axis in axes):
        return VibrationStats()

    g_axes = [np.asarray(adc_to_acceleration_g(axis, g_scale)) for axis in axes]
    rms_values = [rms(axis) for axis in g_axes]
    peak_values = [peak(axis) for axis in g_axes]
    rms_total = float(np.sqrt(sum(r * r for r in rms_values) / 3.0))
    peak_total = max(peak_values)

    details = {}
    for name, r, p in zip(("x", "y", "z"), rms_values, peak_values):
        details[f"rms_{name}"] = f"{r:.3f}"
        details[f"peak_{name}"] = f"{p:.3f}"

    return VibrationStats(
        rms=f"{rms_total:.3f}",
        peak=f"{peak_total:.3f}",
        status=determine_vibration_status(rms_total, warning=warning, critical=critical),
        details=details,
    )
