"""Shared dataclasses for sensor settings and per-axis inputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np

from ..analysis.units import SAMPLING_SCALE
from ..sensors.accelerometer import DEFAULT_G_RANGE


def _empty() -> np.ndarray:
    return np.zeros(0, dtype=float)


@dataclass(frozen=True)
class SensorConfig:
    """Acquisition settings of one sensor (Fmax in Hz, lines of resolution, G range)."""

    fmax: float = 10000.0
    lor: int = 6400
    g_scale: int = DEFAULT_G_RANGE

    def __post_init__(self) -> None:
        if not float(self.fmax) > 0:
            raise ValueError(f"fmax must be > 0, got {self.fmax}")
        if not int(self.lor) > 0:
            raise ValueError(f"lor must be > 0, got {self.lor}")

    @property
    def total_time(self) -> float:
        """Capture duration in seconds."""
        return float(self.lor) / float(self.fmax)

    @property
    def sampling_rate(self) -> float:
        return float(self.fmax) * SAMPLING_SCALE

    @property
    def line_resolution(self) -> float:
        return float(self.fmax) / float(self.lor)

    @classmethod
    def from_mapping(
        cls, data: Mapping[str, Any] | None, defaults: Optional["SensorConfig"] = None
    ) -> "SensorConfig":
        """
        Build a config from an API-style mapping.

        ``fmax``/``Fmax``, ``lor``/``LOR`` and ``g_scale``/``gScale`` are
        recognised; missing or non-positive values keep ``defaults``.
        """
        base = defaults or cls()
        payload = data or {}

        def _pick(keys: tuple[str, ...], fallback: float, cast) -> Any:
            for key in keys:
                raw = payload.get(key)
                if raw is None or raw == "":
                    continue
                try:
                    value = cast(float(raw))
                except (TypeError, ValueError):
                    continue
                if value > 0:
                    return value
            return fallback

        return cls(
            fmax=_pick(("fmax", "Fmax"), base.fmax, float),
            lor=_pick(("lor", "LOR"), base.lor, int),
            g_scale=_pick(("g_scale", "gScale"), base.g_scale, int),
        )


@dataclass(frozen=True)
class RawSamples:
    """Signed ADC readings of one axis, in capture order."""

    adc: np.ndarray = field(default_factory=_empty)

    def __post_init__(self) -> None:
        object.__setattr__(self, "adc", np.asarray(self.adc, dtype=float).reshape(-1))

    def __len__(self) -> int:
        return int(self.adc.size)


@dataclass(frozen=True)
class SparseSpectrum:
    """
    Frequency/amplitude pairs published by the sensor API.

    ``acceleration`` is in mm/s², ``velocity`` (optional) in mm/s. When
    ``frequencies_in_hz`` is False the frequencies are bin indices.
    """

    frequencies: np.ndarray = field(default_factory=_empty)
    acceleration: np.ndarray = field(default_factory=_empty)
    velocity: Optional[np.ndarray] = None
    frequencies_in_hz: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "frequencies", np.asarray(self.frequencies, dtype=float).reshape(-1)
        )
        object.__setattr__(
            self, "acceleration", np.asarray(self.acceleration, dtype=float).reshape(-1)
        )
        if self.velocity is not None:
            object.__setattr__(
                self, "velocity", np.asarray(self.velocity, dtype=float).reshape(-1)
            )

    def __len__(self) -> int:
        return int(self.acceleration.size)

    def frequencies_hz(self, sensor: SensorConfig) -> np.ndarray:
        """Frequencies in Hz, converting bin indices with ``fmax / lor``."""
        if self.frequencies_in_hz:
            return self.frequencies.copy()
        return self.frequencies * sensor.line_resolution


# ``None`` stands for an axis without data.
AxisSource = Union[RawSamples, SparseSpectrum]


class MeasurementUnit(str, Enum):
    ACCELERATION_G = "Acceleration (G)"
    ACCELERATION_MM_S2 = "Acceleration (mm/s²)"
    VELOCITY_MM_S = "Velocity (mm/s)"

    @classmethod
    def parse(cls, value: "MeasurementUnit | str") -> "MeasurementUnit":
        """Accept the enum, its display value or its member name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for unit in cls:
            if text == unit.value or text.upper() == unit.name:
                return unit
        aliases = {
            "g": cls.ACCELERATION_G,
            "mm/s2": cls.ACCELERATION_MM_S2,
            "mm/s²": cls.ACCELERATION_MM_S2,
            "velocity": cls.VELOCITY_MM_S,
            "mm/s": cls.VELOCITY_MM_S,
        }
        try:
            return aliases[text.lower()]
        except KeyError:
            raise ValueError(f"Unknown measurement unit: {value!r}") from None


@dataclass(frozen=True)
class UnitProfile:
    y_axis_label: str
    apply_window: bool


# G spectra are left unwindowed; mm/s² and velocity spectra get a Hann window.
UNIT_PROFILES: Dict[MeasurementUnit, UnitProfile] = {
    MeasurementUnit.ACCELERATION_G: UnitProfile("Acceleration (G)", apply_window=False),
    MeasurementUnit.ACCELERATION_MM_S2: UnitProfile("Acceleration (mm/s²)", apply_window=True),
    MeasurementUnit.VELOCITY_MM_S: UnitProfile("Velocity (mm/s)", apply_window=True),
}
