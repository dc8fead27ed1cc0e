"""Vibration severity levels from velocity thresholds.

Velocity values (mm/s) are classified into four levels using three
thresholds. Thresholds come either from the sensor configuration or from the
ISO 10816-3 machine-class table below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

import numpy as np
from numpy.typing import ArrayLike

from ..sensors.accelerometer import adc_to_acceleration_g
from .fft import compute_fft
from .peaks import find_top_peaks
from .units import acceleration_g_to_mm_per_sec_squared
from .windowing import hann_window

if TYPE_CHECKING:
    from ..core.models import SensorConfig

logger = logging.getLogger(__name__)

LEVELS = ("normal", "warning", "concern", "critical")


@dataclass(frozen=True)
class VibrationThresholds:
    """Start of the warning, concern and critical bands (mm/s)."""

    warning: float = 2.0
    concern: float = 2.5
    critical: float = 3.0


DEFAULT_THRESHOLDS = VibrationThresholds()

# Fallbacks used for per-axis status dots when the sensor has none configured.
AXIS_DOT_THRESHOLDS = VibrationThresholds(warning=0.1, concern=0.125, critical=0.15)


def vibration_level(
    velocity: float, thresholds: VibrationThresholds | None = None
) -> str:
    """Return ``normal``, ``warning``, ``concern`` or ``critical``."""
    t = thresholds or DEFAULT_THRESHOLDS
    if velocity < t.warning:
        return "normal"
    if velocity < t.concern:
        return "warning"
    if velocity < t.critical:
        return "concern"
    return "critical"


def thresholds_from_config(
    config: Mapping[str, Any] | None,
    defaults: VibrationThresholds | None = None,
) -> VibrationThresholds:
    """
    Read thresholds from a sensor config mapping.

    Both ``thresholdMin``/``thresholdMedium``/``thresholdMax`` and the
    snake_case API spelling are accepted; camelCase wins when both exist.
    Missing or non-numeric values fall back to ``defaults``.
    """
    base = defaults or DEFAULT_THRESHOLDS
    payload = config or {}

    def _value(camel: str, snake: str, fallback: float) -> float:
        for key in (camel, snake):
            raw = payload.get(key)
            if raw is None or raw == "":
                continue
            try:
                return float(raw)
            except (TypeError, ValueError):
                logger.warning("Ignoring non-numeric threshold %s=%r", key, raw)
        return fallback

    return VibrationThresholds(
        warning=_value("thresholdMin", "threshold_min", base.warning),
        concern=_value("thresholdMedium", "threshold_medium", base.concern),
        critical=_value("thresholdMax", "threshold_max", base.critical),
    )


# --------------------------------------------------------------------------- # ISO 10816-3
@dataclass(frozen=True)
class MachineClass:
    id: str
    code: int
    name: str
    thresholds: VibrationThresholds
    alarm_threshold_g: float = 5.0


ISO_10816_3_CLASSES: Dict[str, MachineClass] = {
    mc.id: mc
    for mc in (
        MachineClass("smallMachine", 1, "Small machine", VibrationThresholds(0.71, 1.8, 4.5)),
        MachineClass("mediumRigid", 2, "Medium machine rigid", VibrationThresholds(1.4, 2.8, 4.5)),
        MachineClass(
            "mediumFlexible", 3, "Medium machine flexible", VibrationThresholds(2.3, 4.5, 7.1)
        ),
        MachineClass("largeRigid", 4, "Large machine rigid", VibrationThresholds(2.3, 4.5, 7.1)),
        MachineClass(
            "largeFlexible", 5, "Large machine flexible", VibrationThresholds(3.5, 7.1, 11.0)
        ),
        MachineClass(
            "integratedRigid",
            6,
            "Integrated driver motor pump rigid",
            VibrationThresholds(1.4, 2.8, 4.5),
        ),
        MachineClass(
            "integratedFlexible",
            7,
            "Integrated driver motor pump flexible",
            VibrationThresholds(2.3, 4.5, 7.1),
        ),
        MachineClass(
            "externalRigid",
            8,
            "External driver motor pump rigid",
            VibrationThresholds(2.3, 4.5, 7.1),
        ),
        MachineClass(
            "externalFlexible",
            9,
            "External driver motor pump flexible",
            VibrationThresholds(3.5, 7.1, 11.0),
        ),
    )
}


def machine_class_from_power(power_kw: float, foundation: str) -> str:
    """Pick an ISO 10816-3 class id from motor power (kW) and foundation type."""
    rigid = str(foundation).strip().lower() == "rigid"
    if power_kw < 15:
        return "smallMachine"
    if power_kw <= 75:
        return "mediumRigid" if rigid else "mediumFlexible"
    return "largeRigid" if rigid else "largeFlexible"


def thresholds_for_machine_class(machine_class: str) -> Optional[VibrationThresholds]:
    info = ISO_10816_3_CLASSES.get(machine_class)
    return info.thresholds if info else None


def all_machine_classes() -> List[MachineClass]:
    return list(ISO_10816_3_CLASSES.values())


# --------------------------------------------------------------------------- # per-axis level
def axis_velocity_peak(adc: ArrayLike, sensor: SensorConfig, max_peaks: int = 1) -> float:
    """
    Dominant velocity amplitude (mm/s) of one axis.

    ADC -> G -> mm/s² -> Hann -> FFT, then each bin is divided by
    ``2π i Δf`` with ``Δf = fmax / lor`` (DC stays 0). Returns 0.0 when no
    peak is found.
    """
    samples = np.asarray(adc, dtype=float).reshape(-1)
    if samples.size == 0:
        return 0.0

    accel = acceleration_g_to_mm_per_sec_squared(adc_to_acceleration_g(samples, sensor.g_scale))
    spectrum = compute_fft(hann_window(accel), sensor.fmax)
    if spectrum.is_empty:
        return 0.0

    line = sensor.line_resolution
    freqs = np.arange(spectrum.magnitude.size, dtype=float) * line
    velocity = np.zeros_like(spectrum.magnitude)
    nonzero = freqs > 0
    velocity[nonzero] = spectrum.magnitude[nonzero] / (2.0 * np.pi * freqs[nonzero])

    result = find_top_peaks(velocity, freqs, sensor.lor, max(1, max_peaks))
    top = result.dominant_peak
    return round(top.magnitude, 2) if top else 0.0


def axis_velocity_level(
    adc: ArrayLike,
    sensor: SensorConfig,
    thresholds: VibrationThresholds | None = None,
    *,
    max_peaks: int = 1,
) -> str:
    """Severity level of the dominant velocity peak for one axis."""
    return vibration_level(
        axis_velocity_peak(adc, sensor, max_peaks), thresholds or AXIS_DOT_THRESHOLDS
    )
