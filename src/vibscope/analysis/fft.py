"""FFT helpers."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
from numpy.typing import ArrayLike

from .units import SAMPLING_SCALE

logger = logging.getLogger(__name__)


def _empty() -> np.ndarray:
    return np.zeros(0, dtype=float)


@dataclass(frozen=True)
class Spectrum:
    """
    Parallel frequency/magnitude arrays.

    Attributes
    ----------
    frequency:
        Bin frequencies in Hz, ascending.
    magnitude:
        Amplitude per bin, same length as ``frequency``.
    """

    frequency: np.ndarray = field(default_factory=_empty)
    magnitude: np.ndarray = field(default_factory=_empty)

    def __post_init__(self) -> None:
        freq = np.asarray(self.frequency, dtype=float).reshape(-1)
        mag = np.asarray(self.magnitude, dtype=float).reshape(-1)
        if freq.size != mag.size:
            raise ValueError(
                f"frequency and magnitude must have equal length, got {freq.size} and {mag.size}"
            )
        object.__setattr__(self, "frequency", freq)
        object.__setattr__(self, "magnitude", mag)

    def __len__(self) -> int:
        return int(self.magnitude.size)

    @property
    def is_empty(self) -> bool:
        return self.magnitude.size == 0

    def drop_leading(self, count: int) -> "Spectrum":
        """Return a copy without the first ``count`` bins (DC and friends)."""
        count = max(0, int(count))
        return Spectrum(self.frequency[count:], self.magnitude[count:])

    def cut_above(self, max_frequency_hz: float) -> "Spectrum":
        """Return the bins up to and including ``max_frequency_hz``."""
        keep = self.frequency <= float(max_frequency_hz)
        if keep.all():
            return self
        # Frequencies are ascending, so everything from the first miss is dropped.
        stop = int(np.argmin(keep))
        return Spectrum(self.frequency[:stop], self.magnitude[:stop])


def next_power_of_two(n: int) -> int:
    """Return ``2 ** ceil(log2(n))`` (``n`` itself when already a power of two)."""
    if n <= 0:
        raise ValueError(f"n must be > 0, got {n}")
    return 1 << (int(n) - 1).bit_length()


def frequency_resolution(fmax: float, n_fft: int) -> float:
    """Bin spacing ``Δf = (fmax * 2.56) / n_fft``."""
    return (float(fmax) * SAMPLING_SCALE) / float(n_fft)


def compute_fft(time_signal: ArrayLike, fmax: float) -> Spectrum:
    """
    Compute the full (unfolded) amplitude spectrum of a real signal.

    Parameters
    ----------
    time_signal:
        1-D real-valued samples.
    fmax:
        Sensor Fmax in Hz. The sampling frequency is ``fmax * 2.56``.

    Returns
    -------
    Spectrum
        ``N = 2 ** ceil(log2(n))`` bins. Magnitude is ``2 * |X[i]| / n`` with
        ``n`` the original (unpadded) sample count; frequency is ``i * Δf``.
        Callers drop the DC bin and the mirrored upper half as needed.
        An empty :class:`Spectrum` is returned when the transform cannot be
        computed.
    """
    try:
        signal = np.asarray(time_signal, dtype=float).reshape(-1)
        n = signal.size
        if n == 0:
            logger.warning("compute_fft called with an empty signal")
            return Spectrum()
        if not math.isfinite(float(fmax)) or fmax <= 0:
            raise ValueError(f"fmax must be > 0, got {fmax}")

        n_fft = next_power_of_two(n)
        # Zero-padded complex transform of size n_fft.
        spectrum = np.fft.fft(signal, n=n_fft)
        magnitude = 2.0 * np.abs(spectrum) / n
        frequency = np.arange(n_fft, dtype=float) * frequency_resolution(fmax, n_fft)
        return Spectrum(frequency=frequency, magnitude=magnitude)
    except Exception:
        logger.exception("FFT computation failed")
        return Spectrum()


def sort_spectrum(frequency: ArrayLike, magnitude: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
    """
    Pair a sparse spectrum and sort it by ascending frequency.

    Mismatched lengths yield two empty arrays.
    """
    freq = np.asarray(frequency, dtype=float).reshape(-1)
    mag = np.asarray(magnitude, dtype=float).reshape(-1)
    if freq.size != mag.size:
        logger.warning(
            "Cannot pair spectrum with %d frequencies and %d magnitudes", freq.size, mag.size
        )
        return _empty(), _empty()
    order = np.argsort(freq, kind="stable")
    return freq[order], mag[order]
