import json
import pathlib
import sys
import tempfile
import unittest

import numpy as np

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from vibscope.core.models import MeasurementUnit, RawSamples, SensorConfig, SparseSpectrum  # noqa: E402
from vibscope.dataio.payload import (  # noqa: E402
    load_payload,
    resolve_axis_source,
    rms_overrides,
    sensor_config_from_payload,
)


class ResolveAxisSourceTest(unittest.TestCase):
    def test_raw_samples_win(self):
        payload = {"acc_h": [1, 2, 3], "last_32_h": [[9, 9]], "a_h_data": [1.0]}
        source = resolve_axis_source(payload, "h")
        self.assertIsInstance(source, RawSamples)
        np.testing.assert_array_equal(source.adc, [1.0, 2.0, 3.0])

    def test_last_32_blocks_are_flattened(self):
        source = resolve_axis_source({"last_32_v": [[1, 2], [3]]}, "v")
        self.assertIsInstance(source, RawSamples)
        np.testing.assert_array_equal(source.adc, [1.0, 2.0, 3.0])

    def test_sparse_with_matching_frequencies_is_in_hz(self):
        payload = {"a_a_data": [10.0, 20.0], "f_point_a": [5.0, 15.0], "v_a_data": [1.0, 2.0]}
        source = resolve_axis_source(payload, "a")
        self.assertIsInstance(source, SparseSpectrum)
        self.assertTrue(source.frequencies_in_hz)
        np.testing.assert_array_equal(source.frequencies, [5.0, 15.0])
        np.testing.assert_array_equal(source.velocity, [1.0, 2.0])

    def test_sparse_with_mismatched_frequencies_uses_indices(self):
        payload = {"a_h_data": [10.0, 20.0, 30.0], "f_point_h": [5.0], "v_h_data": [1.0]}
        source = resolve_axis_source(payload, "h")
        self.assertFalse(source.frequencies_in_hz)
        np.testing.assert_array_equal(source.frequencies, [0.0, 1.0, 2.0])
        self.assertIsNone(source.velocity)

    def test_values_nested_under_data(self):
        source = resolve_axis_source({"data": {"acc_v": [4, 5]}}, "v")
        self.assertIsInstance(source, RawSamples)

    def test_missing_or_empty_axis_is_none(self):
        self.assertIsNone(resolve_axis_source({}, "h"))
        self.assertIsNone(resolve_axis_source(None, "h"))
        self.assertIsNone(resolve_axis_source({"acc_h": []}, "h"))
        self.assertIsNone(resolve_axis_source({"acc_h": ["x", "y"]}, "h"))


class PayloadHelpersTest(unittest.TestCase):
    def test_sensor_config_from_payload(self):
        sensor = sensor_config_from_payload({"data": {"fmax": 500}, "lor": "400"})
        self.assertEqual(sensor, SensorConfig(fmax=500.0, lor=400, g_scale=16))
        defaults = SensorConfig(fmax=200.0, lor=100, g_scale=4)
        self.assertEqual(sensor_config_from_payload(None, defaults), defaults)

    def test_rms_overrides(self):
        overrides = rms_overrides({"g_rms_h": "0.5", "velo_rms_h": 1.2, "a_rms_h": "bad"}, "h")
        self.assertEqual(
            overrides,
            {MeasurementUnit.ACCELERATION_G: 0.5, MeasurementUnit.VELOCITY_MM_S: 1.2},
        )
        self.assertEqual(rms_overrides({}, "h"), {})

    def test_load_payload(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "reading.json"
            path.write_text(json.dumps({"acc_h": [1, 2]}), encoding="utf-8")
            self.assertEqual(load_payload(path), {"acc_h": [1, 2]})

            bad = pathlib.Path(tmpdir) / "list.json"
            bad.write_text("[1, 2]", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_payload(bad)


if __name__ == "__main__":
    unittest.main()
