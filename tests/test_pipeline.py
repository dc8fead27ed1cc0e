import numpy as np
import pytest

from vibscope.analysis.peaks import PEAK_COLOR
from vibscope.config.runtime import AnalysisConfig
from vibscope.core.models import MeasurementUnit, RawSamples, SensorConfig, SparseSpectrum
from vibscope.core.pipeline import analyze_reading, prepare_chart_data, time_labels

# Fmax 100 Hz with LOR 100: 256 samples at 256 Hz, 1 Hz per FFT bin, T = 1 s.
SENSOR = SensorConfig(fmax=100.0, lor=100, g_scale=16)


def _sine_adc(freq_hz: float = 20.0, counts: float = 2048.0) -> np.ndarray:
    t = np.arange(256) / 256.0
    return counts * np.sin(2 * np.pi * freq_hz * t)


def test_time_labels() -> None:
    assert time_labels(0, 1.0) == []
    assert time_labels(1, 1.0) == ["0.0000"]
    labels = time_labels(4, 0.64)
    assert labels == ["0.0000", "0.2133", "0.4267", "0.6400"]


def test_missing_data_gives_empty_result() -> None:
    for source in (None, RawSamples([])):
        result = prepare_chart_data(source, MeasurementUnit.ACCELERATION_G, SENSOR)
        assert not result.has_data
        payload = result.to_dict()
        assert payload["hasData"] is False
        assert payload["timeData"]["rmsValue"] == "0.000"
        assert payload["timeData"]["peakToPeakValue"] == "0.000"
        assert payload["freqData"]["series"] == []
        assert payload["topPeaks"] == []
        assert payload["yAxisLabel"] == "Acceleration (G)"


def test_raw_samples_in_g() -> None:
    result = prepare_chart_data(RawSamples(_sine_adc()), "Acceleration (G)", SENSOR)
    assert result.has_data
    td = result.time_data
    assert td.rms_value == "0.71"
    assert td.peak_value == "1.00"
    assert td.peak_to_peak_value == "2.00"
    assert len(td.labels) == 256
    assert td.labels[0] == "0.0000" and td.labels[-1] == "1.0000"

    fd = result.freq_data
    # DC and the next two bins are dropped; nothing above Fmax is kept.
    assert fd.labels[0] == "3.00"
    assert fd.labels[-1] == "100.00"
    assert len(fd.labels) == len(fd.series) == len(fd.point_background_color)

    top = result.top_peaks[0]
    assert top.frequency_hz == pytest.approx(20.0)
    assert top.magnitude == pytest.approx(1.0)
    assert len(result.top_peaks) <= 5
    assert fd.point_background_color.count(PEAK_COLOR) == len(result.chart_peaks)


def test_raw_samples_in_velocity() -> None:
    result = prepare_chart_data(RawSamples(_sine_adc()), MeasurementUnit.VELOCITY_MM_S, SENSOR)
    assert result.has_data
    assert result.y_axis_label == "Velocity (mm/s)"
    assert result.top_peaks[0].frequency_hz == pytest.approx(20.0)
    assert result.time_data.series[0] == 0.0


def test_rms_override_is_reported() -> None:
    result = prepare_chart_data(
        RawSamples(_sine_adc()), MeasurementUnit.ACCELERATION_G, SENSOR, rms_override=1.234
    )
    assert result.time_data.rms_value == "1.23"


def test_peak_limits_follow_config() -> None:
    analysis = AnalysisConfig(detail_peaks=2, chart_peaks=3, peak_bucket_hz=0.0)
    adc = _sine_adc(20.0) + _sine_adc(45.0, 1024.0) + _sine_adc(70.0, 512.0) + _sine_adc(90.0, 256.0)
    result = prepare_chart_data(RawSamples(adc), MeasurementUnit.ACCELERATION_G, SENSOR, analysis=analysis)
    assert [round(p.frequency_hz) for p in result.top_peaks] == [20, 45]
    assert [round(p.frequency_hz) for p in result.chart_peaks] == [20, 45, 70]
    assert result.freq_data.point_background_color.count(PEAK_COLOR) == 3


def test_output_is_deterministic() -> None:
    first = prepare_chart_data(RawSamples(_sine_adc()), MeasurementUnit.ACCELERATION_MM_S2, SENSOR)
    second = prepare_chart_data(RawSamples(_sine_adc()), MeasurementUnit.ACCELERATION_MM_S2, SENSOR)
    assert first.to_dict() == second.to_dict()


def test_sparse_spectrum_in_g() -> None:
    source = SparseSpectrum([20.0], [9806.65], frequencies_in_hz=True)
    result = prepare_chart_data(source, MeasurementUnit.ACCELERATION_G, SENSOR)
    assert result.has_data
    assert len(result.time_data.series) == 256
    assert result.time_data.peak_value == "1.00"
    top = result.top_peaks[0]
    assert top.frequency_hz == pytest.approx(20.0)
    assert top.magnitude == pytest.approx(1.0)


def test_sparse_indices_use_line_resolution() -> None:
    hz = prepare_chart_data(
        SparseSpectrum([20.0], [9806.65], frequencies_in_hz=True), MeasurementUnit.ACCELERATION_G, SENSOR
    )
    idx = prepare_chart_data(
        SparseSpectrum([20.0], [9806.65], frequencies_in_hz=False), MeasurementUnit.ACCELERATION_G, SENSOR
    )
    assert hz.to_dict() == idx.to_dict()


def test_sparse_velocity_prefers_published_values() -> None:
    source = SparseSpectrum([20.0, 40.0], [100.0, 50.0], velocity=[5.0, 1.0], frequencies_in_hz=True)
    result = prepare_chart_data(source, MeasurementUnit.VELOCITY_MM_S, SENSOR)
    assert result.has_data
    assert result.top_peaks[0].frequency_hz == pytest.approx(20.0)
    # Windowed: reconstructed 5 mm/s sine, then Hann halves the line amplitude.
    assert result.top_peaks[0].magnitude == pytest.approx(2.5, rel=0.05)


def test_analyze_reading_resolves_each_axis() -> None:
    payload = {
        "fmax": 100,
        "lor": 100,
        "acc_h": _sine_adc().tolist(),
        "data": {"a_v_data": [9806.65], "f_point_v": [20.0], "g_rms_v": "0.5"},
    }
    reading = analyze_reading(payload, units=["g"])
    assert reading.sensor == SENSOR
    assert reading.has_data
    assert reading.axes["h"][MeasurementUnit.ACCELERATION_G].has_data
    v = reading.axes["v"][MeasurementUnit.ACCELERATION_G]
    assert v.has_data and v.time_data.rms_value == "0.50"
    assert not reading.axes["a"][MeasurementUnit.ACCELERATION_G].has_data
    assert set(reading.to_dict()["axes"]["h"]) == {"Acceleration (G)"}


def test_analyze_reading_without_data() -> None:
    reading = analyze_reading({})
    assert not reading.has_data
    assert len(reading.axes) == 3
    assert all(len(per_unit) == 3 for per_unit in reading.axes.values())


def test_analyze_reading_levels_and_combined_stats() -> None:
    quiet = [0] * 256
    payload = {"fmax": 100, "lor": 100, "acc_h": quiet, "acc_v": quiet, "acc_a": _sine_adc().tolist()}
    reading = analyze_reading(payload, units=[MeasurementUnit.VELOCITY_MM_S])
    assert reading.levels["h"] == "normal"
    assert set(reading.levels) == {"h", "v", "a"}
    assert reading.stats is not None
    # Only the axial channel carries a 1 G sine: sqrt(0.5 / 3) G combined.
    assert reading.stats.rms == "0.408"
    assert reading.stats.status == "Normal"
    assert reading.to_dict()["stats"]["details"]["peak_z"] == "1.000"


def test_analyze_reading_uses_payload_thresholds() -> None:
    payload = {
        "fmax": 100,
        "lor": 100,
        "acc_h": _sine_adc().tolist(),
        "thresholdMin": 0.0,
        "thresholdMedium": 0.0,
        "thresholdMax": 0.0,
    }
    reading = analyze_reading(payload, units=["g"])
    assert reading.levels == {"h": "critical"}
    assert reading.stats is None


def test_peak_frequency_keeps_full_bin_precision() -> None:
    # Default sensor: 16384 samples at 25.6 kHz, 1.5625 Hz per bin.
    sensor = SensorConfig()
    t = np.arange(16384) / sensor.sampling_rate
    adc = 2048.0 * np.sin(2 * np.pi * 20.3125 * t)
    result = prepare_chart_data(RawSamples(adc), MeasurementUnit.ACCELERATION_G, sensor)

    top = result.top_peaks[0]
    assert top.frequency == "20.3125"
    assert top.frequency_hz == pytest.approx(20.3125)
    assert top.magnitude == pytest.approx(1.0)
    assert result.freq_data.labels[top.index] == "20.31"


def test_unknown_unit_is_charted_as_velocity(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("WARNING", logger="vibscope.core.pipeline"):
        result = prepare_chart_data(RawSamples(_sine_adc()), "Displacement (um)", SENSOR)
    expected = prepare_chart_data(RawSamples(_sine_adc()), MeasurementUnit.VELOCITY_MM_S, SENSOR)
    assert result.unit is MeasurementUnit.VELOCITY_MM_S
    assert result.to_dict() == expected.to_dict()
    assert "Displacement (um)" in caplog.text
