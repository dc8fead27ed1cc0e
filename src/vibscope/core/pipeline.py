"""Chart pipeline: one axis source in, chart-ready time and frequency series out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from ..analysis.features import VibrationStats, rms, vibration_stats
from ..analysis.fft import Spectrum, compute_fft, sort_spectrum
from ..analysis.peaks import BASE_POINT_COLOR, PEAK_COLOR, Peak, PeakAsRms, find_top_peaks
from ..analysis.reconstruct import TimeReconstructionRequest, reconstruct_time_domain_from_api
from ..analysis.severity import VibrationThresholds, axis_velocity_level, thresholds_from_config
from ..analysis.units import (
    acceleration_g_to_mm_per_sec_squared,
    acceleration_to_velocity,
    mm_per_sec_squared_to_acceleration_g,
    velocity_spectrum,
)
from ..analysis.windowing import hann_window
from ..config.runtime import AnalysisConfig
from ..dataio.payload import resolve_axis_source, rms_overrides, sensor_config_from_payload
from ..sensors.accelerometer import AXES, adc_to_acceleration_g
from ..tools.debug import time_block
from .models import UNIT_PROFILES, MeasurementUnit, RawSamples, SensorConfig, SparseSpectrum

__all__ = [
    "TimeData",
    "FreqData",
    "ChartResult",
    "ReadingAnalysis",
    "prepare_chart_data",
    "analyze_reading",
    "time_labels",
]

logger = logging.getLogger(__name__)

EMPTY_SUMMARY = "0.000"


def _empty() -> np.ndarray:
    return np.zeros(0, dtype=float)


@dataclass
class TimeData:
    labels: List[str] = field(default_factory=list)
    rms_value: str = EMPTY_SUMMARY
    peak_value: str = EMPTY_SUMMARY
    peak_to_peak_value: str = EMPTY_SUMMARY
    series: np.ndarray = field(default_factory=_empty)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "labels": list(self.labels),
            "rmsValue": self.rms_value,
            "peakValue": self.peak_value,
            "peakToPeakValue": self.peak_to_peak_value,
            "series": self.series.tolist(),
        }


@dataclass
class FreqData:
    labels: List[str] = field(default_factory=list)
    series: np.ndarray = field(default_factory=_empty)
    point_background_color: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "labels": list(self.labels),
            "series": self.series.tolist(),
            "pointBackgroundColor": list(self.point_background_color),
        }


@dataclass
class ChartResult:
    """Chart-ready output for one axis in one unit."""

    unit: MeasurementUnit
    has_data: bool = False
    time_data: TimeData = field(default_factory=TimeData)
    freq_data: FreqData = field(default_factory=FreqData)
    top_peaks: List[Peak] = field(default_factory=list)
    chart_peaks: List[Peak] = field(default_factory=list)
    total_peaks_found: int = 0

    @property
    def y_axis_label(self) -> str:
        return UNIT_PROFILES[self.unit].y_axis_label

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasData": self.has_data,
            "yAxisLabel": self.y_axis_label,
            "timeData": self.time_data.to_dict(),
            "freqData": self.freq_data.to_dict(),
            "topPeaks": [p.to_dict() for p in self.top_peaks],
        }


def time_labels(n: int, total_time: float) -> List[str]:
    """``i * T / (n - 1)`` to four decimals; the last label is exactly ``T``."""
    if n <= 0:
        return []
    if n == 1:
        return [f"{0.0:.4f}"]
    step = float(total_time) / (n - 1)
    labels = [f"{i * step:.4f}" for i in range(n - 1)]
    labels.append(f"{float(total_time):.4f}")
    return labels


def _sample_interval(n: int, total_time: float) -> float:
    return float(total_time) / (n - 1) if n > 1 else float(total_time)


def _summary(series: np.ndarray, rms_override: Optional[float]) -> TimeData:
    rms_value = float(rms_override) if rms_override is not None else rms(series)
    peak_value = float(np.max(np.abs(series))) if series.size else 0.0
    return TimeData(
        rms_value=f"{rms_value:.2f}",
        peak_value=f"{peak_value:.2f}",
        peak_to_peak_value=f"{2.0 * peak_value:.2f}",
        series=series,
    )


def _raw_series(
    source: RawSamples, unit: MeasurementUnit, sensor: SensorConfig
) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(time series in unit, FFT input before windowing)``."""
    g_data = np.asarray(adc_to_acceleration_g(source.adc, sensor.g_scale), dtype=float)
    mm_data = np.asarray(acceleration_g_to_mm_per_sec_squared(g_data), dtype=float)
    if unit is MeasurementUnit.ACCELERATION_G:
        return g_data, g_data
    if unit is MeasurementUnit.ACCELERATION_MM_S2:
        return mm_data, mm_data
    dt = _sample_interval(mm_data.size, sensor.total_time)
    return acceleration_to_velocity(mm_data, dt), mm_data


def _sparse_series(
    source: SparseSpectrum, unit: MeasurementUnit, sensor: SensorConfig
) -> np.ndarray:
    """Reconstruct a time series in ``unit`` from a sparse API spectrum."""
    freq_hz, acc = sort_spectrum(source.frequencies_hz(sensor), source.acceleration)
    if acc.size == 0:
        return _empty()

    if unit is MeasurementUnit.ACCELERATION_G:
        values = np.asarray(mm_per_sec_squared_to_acceleration_g(acc), dtype=float)
    elif unit is MeasurementUnit.ACCELERATION_MM_S2:
        values = acc
    elif source.velocity is not None and source.velocity.size == source.acceleration.size:
        _, values = sort_spectrum(source.frequencies_hz(sensor), source.velocity)
    else:
        values = velocity_spectrum(acc, freq_hz)

    reconstructed = reconstruct_time_domain_from_api(
        TimeReconstructionRequest(
            lor=sensor.lor,
            fmax=sensor.fmax,
            acc=values,
            freq_point=freq_hz,
            are_frequencies_in_hz=True,
        )
    )
    return reconstructed.signal


def _resolve_unit(unit: MeasurementUnit | str) -> MeasurementUnit:
    try:
        return MeasurementUnit.parse(unit)
    except ValueError:
        logger.warning("Unknown unit %r, charting velocity instead", unit)
        return MeasurementUnit.VELOCITY_MM_S


def _shape_spectrum(spectrum: Spectrum, sensor: SensorConfig, analysis: AnalysisConfig) -> Spectrum:
    return spectrum.drop_leading(analysis.dc_skip_bins).cut_above(sensor.fmax)


def prepare_chart_data(
    source: RawSamples | SparseSpectrum | None,
    unit: MeasurementUnit | str,
    sensor_config: SensorConfig | None = None,
    *,
    rms_override: float | None = None,
    analysis: AnalysisConfig | None = None,
) -> ChartResult:
    """
    Build time and frequency chart series for one axis in one unit.

    Parameters
    ----------
    source:
        :class:`RawSamples`, :class:`SparseSpectrum` or ``None`` (no data).
    unit:
        Target :class:`MeasurementUnit` (or its display string). Unrecognised
        units are charted as velocity.
    sensor_config:
        Fmax/LOR/G range. Defaults come from ``analysis``.
    rms_override:
        RMS published by the API, reported instead of the computed RMS.
    analysis:
        Peak limits, DC bins to drop and bucket tolerance.

    Returns
    -------
    ChartResult
        ``has_data`` is False, with zeroed summaries, when the source is
        missing or yields no samples.
    """
    unit = _resolve_unit(unit)
    analysis = analysis or AnalysisConfig()
    sensor = sensor_config or SensorConfig(analysis.fmax, analysis.lor, analysis.g_scale)
    profile = UNIT_PROFILES[unit]

    if source is None or len(source) == 0:
        return ChartResult(unit=unit)

    with time_block(f"prepare_chart_data[{unit.name}]"):
        if isinstance(source, RawSamples):
            series, fft_input = _raw_series(source, unit, sensor)
            divide_by_omega = unit is MeasurementUnit.VELOCITY_MM_S
        elif isinstance(source, SparseSpectrum):
            series = _sparse_series(source, unit, sensor)
            fft_input = series
            divide_by_omega = False
        else:
            raise TypeError(f"Unsupported axis source: {type(source).__name__}")

        if series.size == 0:
            logger.warning("No samples for %s after resolving the axis source", unit.value)
            return ChartResult(unit=unit)

        if profile.apply_window:
            fft_input = hann_window(fft_input)
        spectrum = compute_fft(fft_input, sensor.fmax)
        if divide_by_omega and not spectrum.is_empty:
            spectrum = Spectrum(
                spectrum.frequency, velocity_spectrum(spectrum.magnitude, spectrum.frequency)
            )
        spectrum = _shape_spectrum(spectrum, sensor, analysis)

        time_data = _summary(series, rms_override)
        time_data.labels = time_labels(series.size, sensor.total_time)

        # Chart labels are rounded; peaks are located on the exact bin frequencies.
        freq_labels = [f"{f:.2f}" for f in spectrum.frequency]
        peaks = find_top_peaks(
            spectrum.magnitude,
            spectrum.frequency,
            sensor.lor,
            max(analysis.detail_peaks, analysis.chart_peaks),
            convention=PeakAsRms(),
            min_peak_height=analysis.min_peak_height,
            bucket_hz=analysis.peak_bucket_hz,
        )

    chart_peaks = peaks.top_peaks[: analysis.chart_peaks]
    colors = [BASE_POINT_COLOR] * len(spectrum)
    for p in chart_peaks:
        colors[p.index] = PEAK_COLOR

    return ChartResult(
        unit=unit,
        has_data=True,
        time_data=time_data,
        freq_data=FreqData(
            labels=freq_labels, series=spectrum.magnitude, point_background_color=colors
        ),
        top_peaks=peaks.top_peaks[: analysis.detail_peaks],
        chart_peaks=chart_peaks,
        total_peaks_found=peaks.total_peaks_found,
    )


@dataclass
class ReadingAnalysis:
    """Chart results for every axis and unit of one API reading."""

    sensor: SensorConfig
    axes: Dict[str, Dict[MeasurementUnit, ChartResult]] = field(default_factory=dict)
    # Velocity severity per axis with raw samples.
    levels: Dict[str, str] = field(default_factory=dict)
    # Combined G statistics, only when all three axes carry raw samples.
    stats: Optional[VibrationStats] = None

    @property
    def has_data(self) -> bool:
        return any(r.has_data for per_unit in self.axes.values() for r in per_unit.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasData": self.has_data,
            "sensor": {
                "fmax": self.sensor.fmax,
                "lor": self.sensor.lor,
                "gScale": self.sensor.g_scale,
            },
            "axes": {
                axis: {unit.value: result.to_dict() for unit, result in per_unit.items()}
                for axis, per_unit in self.axes.items()
            },
            "levels": dict(self.levels),
            "stats": None
            if self.stats is None
            else {
                "rms": self.stats.rms,
                "peak": self.stats.peak,
                "status": self.stats.status,
                "details": dict(self.stats.details),
            },
        }


def analyze_reading(
    payload: Mapping[str, Any],
    sensor_config: SensorConfig | None = None,
    analysis: AnalysisConfig | None = None,
    *,
    axes: Sequence[str] = AXES,
    units: Iterable[MeasurementUnit | str] | None = None,
) -> ReadingAnalysis:
    """
    Resolve every axis of an API payload and chart it in each unit.

    Axes with raw samples also get a velocity severity level. Thresholds come
    from ``thresholdMin``/``thresholdMedium``/``thresholdMax`` in the payload,
    falling back to ``analysis``. When all three axes are raw, combined G
    statistics are attached as well.
    """
    analysis = analysis or AnalysisConfig()
    sensor = sensor_config or sensor_config_from_payload(
        payload, SensorConfig(analysis.fmax, analysis.lor, analysis.g_scale)
    )
    wanted = [_resolve_unit(u) for u in (units or list(MeasurementUnit))]

    thresholds = thresholds_from_config(
        payload,
        VibrationThresholds(
            analysis.velocity_warning, analysis.velocity_concern, analysis.velocity_critical
        ),
    )

    result = ReadingAnalysis(sensor=sensor)
    raw_axes: Dict[str, RawSamples] = {}
    for axis in axes:
        source = resolve_axis_source(payload, axis, sensor.lor)
        if isinstance(source, RawSamples) and len(source):
            raw_axes[axis] = source
            result.levels[axis] = axis_velocity_level(
                source.adc, sensor, thresholds, max_peaks=analysis.summary_peaks
            )
        overrides = rms_overrides(payload, axis)
        if source is None:
            logger.info("Axis %s has no data in payload", axis)
        result.axes[axis] = {
            unit: prepare_chart_data(
                source,
                unit,
                sensor,
                rms_override=overrides.get(unit),
                analysis=analysis,
            )
            for unit in wanted
        }

    if all(axis in raw_axes for axis in AXES):
        result.stats = vibration_stats(
            *(raw_axes[axis].adc for axis in AXES),
            sensor.g_scale,
            warning=analysis.g_warning,
            critical=analysis.g_critical,
        )
    return result
