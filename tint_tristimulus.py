# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tint_tristimulus.py - Spectrum x observer x illuminant -> XYZ.

For every integer wavelength λ shared by the resampled spectrum, the
observer table and the illuminant table:

    X += S(λ)·x̄(λ)·I(λ),  Y += S(λ)·ȳ(λ)·I(λ),  Z += S(λ)·z̄(λ)·I(λ)

and afterwards X = 100·X/N (same for Y, Z) with N = Σ ȳ(λ)·I(λ) over the
same wavelengths, so that a perfect reflector gives Y = 100.

The three tables start at different wavelengths.  Their overlap is computed
once from the tables' own wavelength axes and every table is sliced through a
lookup, which keeps the alignment correct whatever the table ranges are.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
from numba import njit, prange

from tint_errors import NumericDegeneracyError, SourceFormatError
from tint_illuminant import IlluminantSpectrum
from tint_observer import ObserverTable, observer_table

__all__ = [
    "overlap_range",
    "normalization_constant",
    "TristimulusIntegrator",
]

logger = logging.getLogger(__name__)


# =============================================================================
# 1. KERNEL
# =============================================================================

@njit(cache=True, fastmath=True, parallel=True, nogil=True)
def _integrate_kernel(spectra: np.ndarray, weights: np.ndarray,
                      offset: int, stride: int, scale: float) -> np.ndarray:
    """
    Per-pixel weighted sums, parallel over pixels.

    Args:
        spectra: (pixels, grid) resampled values.
        weights: (samples, 3) products x̄·I, ȳ·I, z̄·I for the used wavelengths.
        offset: Column of ``spectra`` holding the first used wavelength.
        stride: Column step between consecutive weight rows.
        scale: 100 / N.
    """
    n_pix = spectra.shape[0]
    n_w = weights.shape[0]
    out = np.empty((n_pix, 3), dtype=np.float64)
    for i in prange(n_pix):
        x = 0.0
        y = 0.0
        z = 0.0
        col = offset
        for k in range(n_w):
            s = spectra[i, col]
            x += s * weights[k, 0]
            y += s * weights[k, 1]
            z += s * weights[k, 2]
            col += stride
        out[i, 0] = x * scale
        out[i, 1] = y * scale
        out[i, 2] = z * scale
    return out


@njit(cache=True, fastmath=True, nogil=True)
def _integrate_serial(spectra: np.ndarray, weights: np.ndarray,
                      offset: int, stride: int, scale: float) -> np.ndarray:
    """Single-threaded twin of ``_integrate_kernel`` for callers that already
    run one scanline per thread."""
    n_pix = spectra.shape[0]
    n_w = weights.shape[0]
    out = np.empty((n_pix, 3), dtype=np.float64)
    for i in range(n_pix):
        x = 0.0
        y = 0.0
        z = 0.0
        col = offset
        for k in range(n_w):
            s = spectra[i, col]
            x += s * weights[k, 0]
            y += s * weights[k, 1]
            z += s * weights[k, 2]
            col += stride
        out[i, 0] = x * scale
        out[i, 1] = y * scale
        out[i, 2] = z * scale
    return out


# =============================================================================
# 2. TABLE ALIGNMENT
# =============================================================================

def overlap_range(grid: np.ndarray, illuminant: IlluminantSpectrum,
                  observer: ObserverTable) -> Optional[Tuple[int, int]]:
    """
    Inclusive (first, last) wavelength covered by all three tables, or
    None if they do not overlap.
    """
    if len(grid) == 0:
        return None
    lo = max(int(grid[0]), illuminant.first, observer.first)
    hi = min(int(grid[-1]), illuminant.last, observer.last)
    if lo > hi:
        return None
    return lo, hi


def normalization_constant(illuminant: IlluminantSpectrum, observer: ObserverTable,
                           first: int, last: int, step: int = 1) -> float:
    """
    N = Σ ȳ(λ)·I(λ) for λ = first, first+step, ..., <= last.

    Raises:
        NumericDegeneracyError: If N is not a positive finite number.
    """
    y_bar = observer.rows(first, last)[::step, 1]
    power = illuminant.rows(first, last)[::step]
    norm = float(np.dot(y_bar, power))
    if not np.isfinite(norm) or norm <= 0.0:
        raise NumericDegeneracyError(
            f"Normalisation constant is {norm!r} over {first}-{last} nm: "
            "illuminant and observer do not overlap usefully"
        )
    return norm


# =============================================================================
# 3. INTEGRATOR
# =============================================================================

class TristimulusIntegrator:
    """
    Integrates resampled spectra into CIE XYZ (0-100 scale).

    Built once per render; holds only read-only arrays and is safe to share
    between threads.

    Args:
        grid: Integer wavelengths of the resampled spectra (1 nm pitch).
        illuminant: Illuminant power spectrum.
        observer: Colour-matching functions (defaults to CIE 1931 2°).
        step: Summation step in nm.  1 is the full-resolution render; larger
            steps (e.g. 5) give a cheaper preview normalised over the same
            samples.
    """

    __slots__ = ("grid", "step", "first", "last", "norm", "_weights", "_offset")

    def __init__(self, grid: np.ndarray, illuminant: IlluminantSpectrum,
                 observer: Optional[ObserverTable] = None, step: int = 1):
        if step < 1:
            raise ValueError(f"Summation step must be >= 1 nm, got {step}")
        observer = observer if observer is not None else observer_table()
        self.grid = np.asarray(grid, dtype=np.int64)
        self.step = int(step)

        span = overlap_range(self.grid, illuminant, observer)
        if span is None:
            raise NumericDegeneracyError(
                "Cube bands do not overlap the observer/illuminant range "
                f"[{max(illuminant.first, observer.first)}, {min(illuminant.last, observer.last)}] nm"
            )
        self.first, self.last = span
        if self.first > int(self.grid[0]):
            logger.debug("Ignoring grid wavelengths below %d nm", self.first)

        self.norm = normalization_constant(illuminant, observer, self.first, self.last, self.step)

        cmf = observer.rows(self.first, self.last)[::self.step]
        power = illuminant.rows(self.first, self.last)[::self.step]
        self._weights = np.ascontiguousarray(cmf * power[:, np.newaxis])
        self._weights.flags.writeable = False

        idx = int(np.searchsorted(self.grid, self.first))
        if self.grid[idx] != self.first:
            raise SourceFormatError(f"Grid does not contain {self.first} nm")
        self._offset = idx

        logger.debug(
            "Integrating %d-%d nm every %d nm, N = %.6g",
            self.first, self.last, self.step, self.norm,
        )

    @property
    def samples(self) -> int:
        """Number of wavelengths summed per pixel."""
        return int(self._weights.shape[0])

    def integrate(self, resampled: np.ndarray, parallel: bool = True) -> np.ndarray:
        """
        XYZ for each resampled spectrum.

        Args:
            resampled: Shape ``(grid,)`` or ``(pixels, grid)``.
            parallel: Spread pixels over numba threads.  Pass False when the
                caller already integrates scanlines on several threads.

        Returns:
            Shape ``(3,)`` or ``(pixels, 3)``.
        """
        spectra = np.ascontiguousarray(np.atleast_2d(resampled), dtype=np.float64)
        if spectra.shape[-1] != self.grid.shape[0]:
            raise SourceFormatError(
                f"Spectra have {spectra.shape[-1]} samples, grid has {self.grid.shape[0]}"
            )
        kernel = _integrate_kernel if parallel else _integrate_serial
        xyz = kernel(spectra, self._weights, self._offset, self.step, 100.0 / self.norm)
        if np.ndim(resampled) == 1:
            return xyz[0]
        return xyz
