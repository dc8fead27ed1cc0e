"""Window functions applied before the FFT."""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike
from scipy.signal import windows


def hann_window(data: ArrayLike) -> np.ndarray:
    """
    Multiply a 1-D signal by a symmetric Hann window.

    The window is ``0.5 * (1 - cos(2π i / (N - 1)))`` for ``i`` in ``[0, N)``,
    i.e. :func:`scipy.signal.windows.hann` with ``sym=True``.

    Parameters
    ----------
    data:
        1-D array-like of samples.

    Returns
    -------
    np.ndarray
        Windowed copy of ``data``. Empty input gives an empty array and a
        single sample is returned unchanged.
    """
    arr = np.asarray(data, dtype=float).reshape(-1)
    if arr.size == 0:
        return arr.copy()
    return arr * windows.hann(arr.size, sym=True)
