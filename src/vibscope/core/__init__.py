"""Core data model and the chart pipeline.

:mod:`models` holds the sensor settings and the raw/sparse axis inputs;
:mod:`pipeline` turns one of those inputs into chart-ready series. The
pipeline is imported from its module so payload parsing can depend on the
models alone.
"""

from .models import (
    UNIT_PROFILES,
    AxisSource,
    MeasurementUnit,
    RawSamples,
    SensorConfig,
    SparseSpectrum,
    UnitProfile,
)

__all__ = [
    "UNIT_PROFILES",
    "AxisSource",
    "MeasurementUnit",
    "RawSamples",
    "SensorConfig",
    "SparseSpectrum",
    "UnitProfile",
]
