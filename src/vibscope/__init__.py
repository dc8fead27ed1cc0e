"""Vibration analysis for industrial accelerometer sensors.

Raw ADC samples (or sparse spectra published by the sensor API) are converted
to acceleration and velocity, transformed with an FFT, searched for dominant
peaks, and shaped into chart-ready series. Subpackages:

- :mod:`vibscope.sensors`: ADC sensitivity tables for the accelerometer.
- :mod:`vibscope.analysis`: unit conversion, windowing, FFT, peaks,
  reconstruction, features and severity levels.
- :mod:`vibscope.core`: input models and the chart pipeline.
- :mod:`vibscope.dataio`: API payload resolution.
- :mod:`vibscope.remote`: REST client with request coalescing.
- :mod:`vibscope.config`: YAML-backed analysis settings.
- :mod:`vibscope.tools`: debug helpers and the Matplotlib plotting CLI.
"""

__version__ = "0.1.0"
