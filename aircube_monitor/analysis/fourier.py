"""One-sided DFT spectrum of a single metric's history.

Provides the raw (unnormalized) discrete Fourier transform of a real-valued,
uniformly sampled sequence, restricted to the non-redundant half-spectrum.

Functions
---------
compute_spectrum
    Magnitude/phase per frequency bin ``k = 0..floor(N/2)``.
spectrum_to_frame
    Tabular view of a spectrum for display or export.
dominant_bin
    Strongest bin, optionally excluding the DC component.
bin_frequencies_hz
    Physical frequency of each bin for a known sampling interval.
reconstruct_signal
    Inverse transform of a one-sided spectrum (conjugate mirroring).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class FrequencyBin:
    """One coefficient ``X_k`` of the forward DFT.

    Attributes
    ----------
    frequency_index:
        Bin index ``k`` in ``[0, floor(N/2)]``.
    real_part, imaginary_part:
        Components of ``X_k = sum_n x_n exp(-2j*pi*k*n/N)``.
    magnitude:
        ``|X_k|``.
    phase:
        ``atan2(imaginary_part, real_part)`` in ``(-pi, pi]``.
    """

    frequency_index: int
    real_part: float
    imaginary_part: float
    magnitude: float
    phase: float


def _direct_dft(x: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    N = x.size
    k = np.arange(N // 2 + 1, dtype=float)
    n = np.arange(N, dtype=float)
    angle = 2.0 * np.pi * np.outer(k, n) / float(N)
    re = np.cos(angle) @ x
    # exp(-i*theta) = cos(theta) - i*sin(theta)
    im = 0.0 - np.sin(angle) @ x
    return re, im


def _fft_dft(x: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    X = np.fft.rfft(x)
    return np.real(X), np.imag(X) + 0.0


def compute_spectrum(signal: Sequence[float] | np.ndarray, *, method: str = "direct") -> List[FrequencyBin]:
    r"""Compute the one-sided DFT spectrum of a real sequence.

    Parameters
    ----------
    signal:
        1D sequence of ``N >= 0`` finite values sampled at a constant (implicit) rate.
        Missing values must be removed by the caller.
    method:
        ``"direct"`` evaluates the defining sums (``O(N^2)``); ``"fft"`` uses
        ``numpy.fft.rfft`` (``O(N log N)``). Both follow the same contract.

    Returns
    -------
    list of FrequencyBin
        ``floor(N/2) + 1`` bins ordered by ``frequency_index`` (empty for ``N = 0``).

    Notes
    -----
    The transform is defined on the sample index :math:`n = 0..N-1`, not on time:

    .. math::

        X_k = \sum_{n=0}^{N-1} x_n \left(\cos\frac{2\pi kn}{N} - i \sin\frac{2\pi kn}{N}\right)

    No normalization is applied. Non-finite input values propagate to the output.
    A zero imaginary part is always a positive zero, so the phase of a negative real
    coefficient is ``+pi``.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"signal must be 1D, got shape {x.shape}")
    if x.size == 0:
        return []

    if method == "direct":
        re, im = _direct_dft(x)
    elif method == "fft":
        re, im = _fft_dft(x)
    else:
        raise ValueError(f"method must be 'direct' or 'fft', got {method!r}")

    mag = np.sqrt(re * re + im * im)
    phase = np.arctan2(im, re)

    return [
        FrequencyBin(
            frequency_index=k,
            real_part=float(re[k]),
            imaginary_part=float(im[k]),
            magnitude=float(mag[k]),
            phase=float(phase[k]),
        )
        for k in range(re.size)
    ]


SPECTRUM_COLUMNS = ("frequency_index", "real_part", "imaginary_part", "magnitude", "phase")


def spectrum_to_frame(bins: Sequence[FrequencyBin]) -> pd.DataFrame:
    """Return the spectrum as a DataFrame with one row per bin."""
    return pd.DataFrame(
        {
            "frequency_index": np.array([b.frequency_index for b in bins], dtype=int),
            "real_part": np.array([b.real_part for b in bins], dtype=float),
            "imaginary_part": np.array([b.imaginary_part for b in bins], dtype=float),
            "magnitude": np.array([b.magnitude for b in bins], dtype=float),
            "phase": np.array([b.phase for b in bins], dtype=float),
        },
        columns=list(SPECTRUM_COLUMNS),
    )


def dominant_bin(bins: Sequence[FrequencyBin], *, include_dc: bool = False) -> Optional[FrequencyBin]:
    """Bin with the largest magnitude, or None if there is no candidate.

    Ties resolve to the lowest frequency index. The DC bin is skipped unless
    ``include_dc`` is set, since a sensor baseline usually dominates it.
    """
    best: Optional[FrequencyBin] = None
    for b in bins:
        if b.frequency_index == 0 and not include_dc:
            continue
        if best is None or b.magnitude > best.magnitude:
            best = b
    return best


def bin_frequencies_hz(n_samples: int, sample_interval_s: float) -> np.ndarray:
    """Frequency represented by each bin: ``k / (N * dt)``."""
    N = int(n_samples)
    if N <= 0:
        return np.zeros(0, dtype=float)
    dt = float(sample_interval_s)
    if not (dt > 0.0):
        raise ValueError(f"sample_interval_s must be > 0, got {sample_interval_s}")
    return np.arange(N // 2 + 1, dtype=float) / (N * dt)


def reconstruct_signal(bins: Sequence[FrequencyBin], n_samples: int) -> np.ndarray:
    """Inverse DFT of a one-sided spectrum.

    The full spectrum is rebuilt as ``X_{N-k} = conj(X_k)``; ``n_samples`` is
    required because ``N = 2m`` and ``N = 2m + 1`` share the same bin count.
    """
    N = int(n_samples)
    if N == 0:
        return np.zeros(0, dtype=float)
    if len(bins) != N // 2 + 1:
        raise ValueError(f"expected {N // 2 + 1} bins for n_samples={N}, got {len(bins)}")

    half = np.array([complex(b.real_part, b.imaginary_part) for b in bins])
    full = np.zeros(N, dtype=complex)
    full[: half.size] = half
    for k in range(1, half.size):
        if N - k != k:
            full[N - k] = np.conj(half[k])
    return np.real(np.fft.ifft(full))
