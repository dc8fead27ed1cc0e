"""
The wireless vibration sensors publish signed 16-bit ADC counts per axis
(horizontal, vertical, axial). The count-per-G sensitivity depends on the
configured full-scale range:

  - ±2 G  : 16384 counts/G
  - ±4 G  :  8192 counts/G
  - ±8 G  :  4096 counts/G
  - ±16 G :  2048 counts/G

Unknown ranges fall back to the ±2 G sensitivity. Values are not clipped;
saturation is handled on the device.
"""

from __future__ import annotations

from typing import Dict, Union

import numpy as np
from numpy.typing import ArrayLike

Number = Union[float, np.ndarray]

G_RANGE_SENSITIVITY: Dict[int, int] = {
    2: 16384,
    4: 8192,
    8: 4096,
    16: 2048,
}
DEFAULT_SENSITIVITY = G_RANGE_SENSITIVITY[2]
DEFAULT_G_RANGE = 16

AXES = ("h", "v", "a")


def sensitivity_for_range(g_range: int | float | None) -> int:
    """Return counts-per-G for a full-scale range (±2 G sensitivity if unknown)."""
    try:
        key = int(g_range)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_SENSITIVITY
    if key != g_range:
        return DEFAULT_SENSITIVITY
    return G_RANGE_SENSITIVITY.get(key, DEFAULT_SENSITIVITY)


def adc_to_acceleration_g(adc: ArrayLike, g_range: int | float = DEFAULT_G_RANGE) -> Number:
    """
    Convert ADC counts to acceleration in G.

    Scalars return a float, array-likes return a float64 array of the same shape.
    """
    sensitivity = float(sensitivity_for_range(g_range))
    if np.ndim(adc) == 0:
        return float(adc) / sensitivity
    return np.asarray(adc, dtype=float) / sensitivity


def acceleration_g_to_adc(g: ArrayLike, g_range: int | float = DEFAULT_G_RANGE) -> Number:
    """Inverse of :func:`adc_to_acceleration_g` (no rounding to integer counts)."""
    sensitivity = float(sensitivity_for_range(g_range))
    if np.ndim(g) == 0:
        return float(g) * sensitivity
    return np.asarray(g, dtype=float) * sensitivity
