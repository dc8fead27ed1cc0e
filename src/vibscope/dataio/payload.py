"""Resolve sensor API payloads into per-axis inputs.

A reading from ``/sensors/{id}/last-data`` may carry any of:

- ``acc_<axis>``: raw ADC samples,
- ``last_32_<axis>``: raw ADC samples in blocks (flattened here),
- ``a_<axis>_data`` / ``v_<axis>_data`` / ``f_point_<axis>``: a sparse
  acceleration (mm/s²) and velocity (mm/s) spectrum with its frequencies,
- ``g_rms_<axis>`` / ``a_rms_<axis>`` / ``velo_rms_<axis>``: RMS values
  already computed on the sensor.

Keys are looked up at the top level first, then under ``data``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import numpy as np

from ..core.models import MeasurementUnit, RawSamples, SensorConfig, SparseSpectrum

logger = logging.getLogger(__name__)

__all__ = [
    "resolve_axis_source",
    "sensor_config_from_payload",
    "rms_overrides",
    "load_payload",
]

_RMS_KEYS = {
    MeasurementUnit.ACCELERATION_G: "g_rms_{axis}",
    MeasurementUnit.ACCELERATION_MM_S2: "a_rms_{axis}",
    MeasurementUnit.VELOCITY_MM_S: "velo_rms_{axis}",
}


def _lookup(payload: Mapping[str, Any], key: str) -> Any:
    if key in payload and payload[key] is not None:
        return payload[key]
    nested = payload.get("data")
    if isinstance(nested, Mapping) and nested.get(key) is not None:
        return nested[key]
    return None


def _numeric_array(value: Any, name: str) -> Optional[np.ndarray]:
    """Flatten ``value`` to a float array; None when empty or not numeric."""
    if value is None:
        return None
    try:
        if isinstance(value, (list, tuple)) and value and isinstance(value[0], (list, tuple)):
            arr = np.concatenate([np.asarray(block, dtype=float).reshape(-1) for block in value])
        else:
            arr = np.asarray(value, dtype=float).reshape(-1)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric payload field %s", name)
        return None
    if arr.size == 0:
        return None
    return arr


def resolve_axis_source(
    payload: Mapping[str, Any] | None, axis: str, lor: int | None = None
) -> RawSamples | SparseSpectrum | None:
    """
    Pick the input for ``axis``, in order of preference.

    Raw samples (``acc_``, then ``last_32_``) win over the sparse spectrum.
    ``f_point_`` values are taken as Hz only when they pair one-to-one with
    ``a_<axis>_data``; otherwise bin indices ``0..n-1`` are used. ``lor`` is
    only used to report sparse spectra longer than the line count.
    """
    if not payload:
        return None

    raw = _numeric_array(_lookup(payload, f"acc_{axis}"), f"acc_{axis}")
    if raw is not None:
        return RawSamples(raw)

    blocks = _numeric_array(_lookup(payload, f"last_32_{axis}"), f"last_32_{axis}")
    if blocks is not None:
        return RawSamples(blocks)

    accel = _numeric_array(_lookup(payload, f"a_{axis}_data"), f"a_{axis}_data")
    if accel is None:
        return None

    points = _numeric_array(_lookup(payload, f"f_point_{axis}"), f"f_point_{axis}")
    velocity = _numeric_array(_lookup(payload, f"v_{axis}_data"), f"v_{axis}_data")
    if velocity is not None and velocity.size != accel.size:
        logger.warning(
            "Dropping v_%s_data: %d values for %d amplitudes", axis, velocity.size, accel.size
        )
        velocity = None
    if lor and accel.size > lor:
        logger.debug("Sparse spectrum for %s has %d points, above LOR %d", axis, accel.size, lor)

    if points is not None and points.size == accel.size:
        return SparseSpectrum(points, accel, velocity, frequencies_in_hz=True)
    return SparseSpectrum(
        np.arange(accel.size, dtype=float), accel, velocity, frequencies_in_hz=False
    )


def sensor_config_from_payload(
    payload: Mapping[str, Any] | None, defaults: SensorConfig | None = None
) -> SensorConfig:
    """Read Fmax, LOR and G range from a payload, falling back to ``defaults``."""
    merged: Dict[str, Any] = {}
    if payload:
        nested = payload.get("data")
        if isinstance(nested, Mapping):
            merged.update(nested)
        merged.update({k: v for k, v in payload.items() if k != "data"})
    return SensorConfig.from_mapping(merged, defaults)


def rms_overrides(payload: Mapping[str, Any] | None, axis: str) -> Dict[MeasurementUnit, float]:
    """RMS values published by the sensor for ``axis``, keyed by unit."""
    overrides: Dict[MeasurementUnit, float] = {}
    if not payload:
        return overrides
    for unit, template in _RMS_KEYS.items():
        key = template.format(axis=axis)
        raw = _lookup(payload, key)
        if raw is None or raw == "":
            continue
        try:
            overrides[unit] = float(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric %s=%r", key, raw)
    return overrides


def load_payload(path: str | Path) -> Dict[str, Any]:
    """Load a JSON reading saved from the API."""
    payload_path = Path(path)
    with payload_path.open("r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected JSON object in {payload_path}, got {type(raw).__name__}")
    return dict(raw)
