"""Time-domain reconstruction from a sparse API spectrum.

When the sensor API publishes only a handful of (frequency, amplitude) pairs
instead of raw samples, a plausible waveform is synthesised as a sum of sines
on the sensor's native sampling grid:

    signal[n] = sum_k acc_k * sin(2π f_k n / Fs),  Fs = fmax * 2.56

with ``round(lor * 2.56)`` output samples. The sum is evaluated with a single
inverse FFT: each amplitude is placed on its nearest bin as a conjugate pair.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

import numpy as np

from .units import SAMPLING_SCALE

logger = logging.getLogger(__name__)


def _empty() -> np.ndarray:
    return np.zeros(0, dtype=float)


@dataclass(frozen=True)
class TimeReconstructionRequest:
    """Sparse spectrum as returned by the API."""

    lor: float
    fmax: float
    acc: Sequence[float]
    freq_point: Sequence[float]
    are_frequencies_in_hz: bool = False

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "TimeReconstructionRequest":
        """Accept both the API spelling (``LOR``, ``FreqPoint``...) and snake_case."""

        def _pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in mapping and mapping[key] is not None:
                    return mapping[key]
            return default

        return cls(
            lor=_pick("LOR", "lor", default=0),
            fmax=_pick("Fmax", "fmax", default=0),
            acc=_pick("Acc", "acc", default=()),
            freq_point=_pick("FreqPoint", "freq_point", default=()),
            are_frequencies_in_hz=bool(
                _pick("areFrequenciesInHz", "are_frequencies_in_hz", default=False)
            ),
        )


@dataclass(frozen=True)
class TimeReconstructionResult:
    time: np.ndarray = field(default_factory=_empty)
    signal: np.ndarray = field(default_factory=_empty)

    @property
    def is_empty(self) -> bool:
        return self.signal.size == 0


def expected_sample_count(lor: float) -> int:
    """Conventional sample count for a LOR setting (``lor * 2.56``)."""
    return int(round(float(lor) * SAMPLING_SCALE))


def _validated(request: TimeReconstructionRequest) -> tuple[int, float, np.ndarray, np.ndarray]:
    lor = float(request.lor or 0)
    fmax = float(request.fmax or 0)
    if not (math.isfinite(lor) and lor > 0):
        raise ValueError(f"LOR must be > 0, got {request.lor!r}")
    if not (math.isfinite(fmax) and fmax > 0):
        raise ValueError(f"Fmax must be > 0, got {request.fmax!r}")

    acc = np.asarray(request.acc, dtype=float).reshape(-1)
    points = np.asarray(request.freq_point, dtype=float).reshape(-1)
    if acc.size == 0:
        raise ValueError("Acc must contain at least one amplitude")
    if acc.size != points.size:
        raise ValueError(
            f"Acc and FreqPoint must have equal length, got {acc.size} and {points.size}"
        )
    if not (np.all(np.isfinite(acc)) and np.all(np.isfinite(points))):
        raise ValueError("Acc and FreqPoint must be finite")

    n_samples = expected_sample_count(lor)
    if n_samples < 1:
        raise ValueError(f"LOR {lor} yields no samples")
    return n_samples, fmax * SAMPLING_SCALE, acc, points


def reconstruct_time_domain(request: TimeReconstructionRequest) -> TimeReconstructionResult:
    """
    Synthesise a time signal from a sparse spectrum.

    Raises
    ------
    ValueError
        If LOR/Fmax are missing or the arrays are empty, mismatched or
        non-finite.
    """
    n_samples, fs, acc, points = _validated(request)
    step = fs / n_samples

    if request.are_frequencies_in_hz:
        freq_hz = points
    else:
        # Indices on the same grid as the output bins.
        freq_hz = points * step

    bins = np.rint(freq_hz / step).astype(np.int64)
    buffer = np.zeros(n_samples, dtype=complex)
    half = 0.5 * n_samples * acc
    # A*sin(θ) = A/(2j) * (e^{jθ} - e^{-jθ}); ifft divides by N.
    np.add.at(buffer, np.mod(bins, n_samples), -1j * half)
    np.add.at(buffer, np.mod(-bins, n_samples), 1j * half)

    signal = np.fft.ifft(buffer).real
    time = np.arange(n_samples, dtype=float) / fs
    return TimeReconstructionResult(time=time, signal=signal)


def reconstruct_time_domain_from_api(
    request: TimeReconstructionRequest | Mapping[str, Any],
) -> TimeReconstructionResult:
    """
    Wrapper around :func:`reconstruct_time_domain` that never raises.

    Failures are logged and yield an empty result so callers can fall back to
    the "no data" state.
    """
    try:
        if not isinstance(request, TimeReconstructionRequest):
            request = TimeReconstructionRequest.from_mapping(request)
        logger.debug(
            "Reconstructing time domain: LOR=%s Fmax=%s points=%d in_hz=%s",
            request.lor,
            request.fmax,
            len(request.acc),
            request.are_frequencies_in_hz,
        )
        return reconstruct_time_domain(request)
    except Exception:
        logger.exception("Time-domain reconstruction failed")
        return TimeReconstructionResult()
