"""Sensor-specific conversion helpers.

The :mod:`accelerometer` module holds the full-scale sensitivity table used to
turn raw signed ADC counts into acceleration in G.
"""
