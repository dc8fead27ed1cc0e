"""Peak detection on amplitude spectra.

Peaks are strict local maxima, ranked by magnitude and de-duplicated by
frequency so that the reported list names distinct spectral features rather
than neighbouring bins of the same lobe.

Two reporting conventions exist and the caller always picks one:

- :class:`PeakAsRms` reports the spectral amplitude as the RMS value.
- :class:`PeakScaledRms` scales the amplitude by 0.707 (amplitude to RMS).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np
from numpy.typing import ArrayLike
from scipy.signal import argrelmax

PEAK_COLOR = "red"
BASE_POINT_COLOR = "rgba(75, 192, 192, 0.5)"

# Default de-duplication band, in spectral lines.
DEFAULT_BUCKET_LINES = 2.0

Label = Union[str, float, int]


@dataclass(frozen=True)
class PeakAsRms:
    """Report the spectral amplitude unchanged."""

    factor: float = 1.0
    name: str = "peak_as_rms"

    def rms(self, magnitude: float) -> float:
        return float(magnitude) * self.factor


@dataclass(frozen=True)
class PeakScaledRms:
    """Report ``0.707 * amplitude`` as an RMS approximation."""

    factor: float = 0.707
    name: str = "peak_scaled_rms"

    def rms(self, magnitude: float) -> float:
        return float(magnitude) * self.factor


RmsConvention = Union[PeakAsRms, PeakScaledRms]


@dataclass(frozen=True)
class Peak:
    """A single accepted spectral peak."""

    index: int
    frequency_hz: float
    magnitude: float
    rms: str
    frequency: str

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "frequencyHz": self.frequency_hz,
            "peak": self.magnitude,
            "rms": self.rms,
            "frequency": self.frequency,
        }


@dataclass
class PeakSearchResult:
    """Output of :func:`find_top_peaks`."""

    top_peaks: List[Peak] = field(default_factory=list)
    point_background_color: List[str] = field(default_factory=list)
    total_peaks_found: int = 0

    @property
    def dominant_peak(self) -> Optional[Peak]:
        return self.top_peaks[0] if self.top_peaks else None


def _labels_to_hz(labels: Sequence[Label], size: int) -> np.ndarray:
    """Parse frequency labels (strings or numbers) to floats, padded with NaN."""
    out = np.full(size, np.nan, dtype=float)
    for i, label in enumerate(list(labels)[:size]):
        try:
            out[i] = float(label)
        except (TypeError, ValueError):
            continue
    return out


def _default_bucket_hz(freqs: np.ndarray) -> float:
    finite = freqs[np.isfinite(freqs)]
    if finite.size < 2:
        return 0.0
    steps = np.abs(np.diff(finite))
    steps = steps[steps > 0]
    if steps.size == 0:
        return 0.0
    return DEFAULT_BUCKET_LINES * float(np.median(steps))


def local_maxima(magnitude: ArrayLike) -> np.ndarray:
    """Indices ``i`` (``1 <= i <= len - 2``) with ``m[i-1] < m[i] > m[i+1]``."""
    mag = np.asarray(magnitude, dtype=float).reshape(-1)
    if mag.size < 3:
        return np.zeros(0, dtype=int)
    # mode="clip" compares the end points with themselves, so they never qualify.
    return argrelmax(mag, order=1, mode="clip")[0]


def find_top_peaks(
    magnitude: ArrayLike,
    frequency_labels: Sequence[Label],
    lor: int | None,
    max_peaks: int = 5,
    *,
    convention: RmsConvention | None = None,
    min_peak_height: float | None = None,
    bucket_hz: float | None = None,
) -> PeakSearchResult:
    """
    Find up to ``max_peaks`` distinct local maxima in a spectrum.

    Parameters
    ----------
    magnitude:
        Spectrum amplitudes.
    frequency_labels:
        Frequency per bin (numbers or numeric strings), aligned with
        ``magnitude``.
    lor:
        Lines of resolution. When positive, only the first ``lor`` lines are
        searched because lines beyond LOR lie above Fmax.
    max_peaks:
        Maximum number of peaks to report.
    convention:
        RMS reporting convention, :class:`PeakAsRms` when omitted.
    min_peak_height:
        Optional lower bound for candidate magnitudes.
    bucket_hz:
        Candidates closer than this to an accepted peak are treated as the
        same peak. Defaults to two spectral lines.

    Returns
    -------
    PeakSearchResult
        Accepted peaks (descending magnitude), per-bin marker colours and the
        number of candidate maxima.
    """
    mag = np.asarray(magnitude, dtype=float).reshape(-1)
    colors = [BASE_POINT_COLOR] * mag.size
    convention = convention or PeakAsRms()
    if mag.size == 0 or max_peaks <= 0:
        return PeakSearchResult(point_background_color=colors)

    search = mag
    if lor is not None and lor > 0 and mag.size > lor:
        search = mag[: int(lor)]

    candidates = local_maxima(search)
    if min_peak_height is not None:
        candidates = candidates[search[candidates] >= min_peak_height]

    # Stable descending sort keeps the lower bin first on ties.
    order = np.argsort(-search[candidates], kind="stable")
    candidates = candidates[order]

    freqs = _labels_to_hz(frequency_labels, mag.size)
    tolerance = _default_bucket_hz(freqs) if bucket_hz is None else max(0.0, float(bucket_hz))
    # Label spacing carries float noise; an exact multiple of a line stays inside the band.
    tolerance *= 1.0 + 1e-9

    accepted: List[int] = []
    for idx in candidates:
        if len(accepted) >= max_peaks:
            break
        f = freqs[idx]
        if np.isfinite(f) and any(
            np.isfinite(freqs[j]) and abs(f - freqs[j]) <= tolerance for j in accepted
        ):
            continue
        accepted.append(int(idx))

    peaks: List[Peak] = []
    for idx in accepted:
        colors[idx] = PEAK_COLOR
        value = float(mag[idx])
        freq_hz = float(freqs[idx])
        peaks.append(
            Peak(
                index=idx,
                frequency_hz=freq_hz,
                magnitude=value,
                rms=f"{convention.rms(value):.2f}",
                frequency=f"{freq_hz:.4f}",
            )
        )

    return PeakSearchResult(
        top_peaks=peaks,
        point_background_color=colors,
        total_peaks_found=int(candidates.size),
    )
