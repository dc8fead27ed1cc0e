import math

import numpy as np
import pytest

from vibscope.analysis.units import (
    G_TO_MM_PER_SEC_SQUARED,
    acceleration_g_to_mm_per_sec_squared,
    acceleration_to_velocity,
    mm_per_sec_squared_to_acceleration_g,
    velocity_from_frequency,
    velocity_spectrum,
)
from vibscope.sensors.accelerometer import (
    G_RANGE_SENSITIVITY,
    acceleration_g_to_adc,
    adc_to_acceleration_g,
    sensitivity_for_range,
)


def test_full_scale_counts_map_to_one_g() -> None:
    assert adc_to_acceleration_g(2048, 16) == pytest.approx(1.0)
    assert adc_to_acceleration_g(16384, 2) == pytest.approx(1.0)
    assert adc_to_acceleration_g(-4096, 8) == pytest.approx(-1.0)


def test_unknown_range_uses_two_g_sensitivity() -> None:
    assert sensitivity_for_range(3) == 16384
    assert sensitivity_for_range(None) == 16384
    assert adc_to_acceleration_g(16384, 7) == pytest.approx(1.0)


@pytest.mark.parametrize("g_range", sorted(G_RANGE_SENSITIVITY))
def test_adc_round_trip_for_each_range(g_range: int) -> None:
    adc = np.array([-32768.0, -1.0, 0.0, 123.0, 32767.0])
    back = acceleration_g_to_adc(adc_to_acceleration_g(adc, g_range), g_range)
    np.testing.assert_allclose(back, adc)


def test_adc_conversion_is_elementwise_and_unclipped() -> None:
    out = adc_to_acceleration_g([2048, 4096, 65536], 16)
    assert isinstance(out, np.ndarray)
    np.testing.assert_allclose(out, [1.0, 2.0, 32.0])


def test_g_to_mm_per_sec_squared() -> None:
    assert acceleration_g_to_mm_per_sec_squared(1.0) == pytest.approx(9806.65)
    np.testing.assert_allclose(
        mm_per_sec_squared_to_acceleration_g([G_TO_MM_PER_SEC_SQUARED, 0.0]), [1.0, 0.0]
    )


def test_velocity_is_pairwise_trapezoid() -> None:
    v = acceleration_to_velocity([1.0, 2.0, 3.0], 0.5)
    np.testing.assert_allclose(v, [0.0, 0.75, 1.25])


def test_velocity_keeps_length_and_starts_at_zero() -> None:
    acc = np.linspace(-3.0, 5.0, 17)
    v = acceleration_to_velocity(acc, 0.01)
    assert v.shape == acc.shape
    assert v[0] == 0.0
    assert acceleration_to_velocity([], 0.1).size == 0
    np.testing.assert_array_equal(acceleration_to_velocity([4.0], 0.1), [0.0])


def test_velocity_from_frequency_guards_dc() -> None:
    assert velocity_from_frequency(10.0, 0.0) == 0.0
    assert velocity_from_frequency(2.0 * math.pi, 1.0) == pytest.approx(1.0)


def test_velocity_spectrum_per_bin() -> None:
    out = velocity_spectrum([5.0, 2.0 * math.pi * 10.0], [0.0, 10.0])
    np.testing.assert_allclose(out, [0.0, 1.0])
    with pytest.raises(ValueError):
        velocity_spectrum([1.0, 2.0], [1.0])
