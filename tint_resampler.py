# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tint_resampler.py - Band samples to a dense 1 nm spectrum.

A cube stores one intensity per band at the sensor's native (and possibly
irregular) band centres.  The integrator needs one value per integer
nanometre, so every pixel gets its own interpolant:

  - natural cubic spline when the cube has at least 3 bands,
  - linear interpolation for 2 bands,
  - a flat spectrum for a single band.

All pixels of a scanline are fitted in one vectorised call (the spline
coefficients are independent per column).  Grid points outside the native
band range are evaluated at the nearest native end point so that splines
never extrapolate, and spline overshoot below zero is clamped here.
"""

from __future__ import annotations

import logging
import math
from typing import Final

import numpy as np
from scipy.interpolate import CubicSpline, make_interp_spline

from tint_errors import SourceFormatError

__all__ = [
    "GRID_LAST_NM",
    "target_grid",
    "normalise_samples",
    "SpectralResampler",
]

logger = logging.getLogger(__name__)

GRID_LAST_NM: Final[int] = 830


def target_grid(wavelengths: np.ndarray, last: int = GRID_LAST_NM) -> np.ndarray:
    """
    Integer wavelengths from the first band centre (rounded up) to *last*.

    Returns an empty array if the cube starts above *last*.
    """
    first = math.ceil(float(wavelengths[0]))
    return np.arange(first, last + 1, dtype=np.int64)


def normalise_samples(raw: np.ndarray, bits: int) -> np.ndarray:
    """
    Map raw samples to normalised intensities.

    Integer samples are divided by the full-scale value ``2**bits - 1``;
    floating-point samples are taken to be normalised already.
    """
    raw = np.asarray(raw)
    if np.issubdtype(raw.dtype, np.floating):
        return raw.astype(np.float64, copy=False)
    if bits <= 0:
        raise SourceFormatError(f"Invalid bit depth {bits} for integer samples")
    return raw.astype(np.float64) / float((1 << bits) - 1)


class SpectralResampler:
    """
    Resamples band spectra onto a fixed integer-nanometre grid.

    The instance only holds the (read-only) band centres and evaluation
    points; interpolants are created and discarded inside ``resample`` so a
    single resampler may be shared between threads.
    """

    __slots__ = ("wavelengths", "grid", "_points")

    def __init__(self, wavelengths: np.ndarray, grid: np.ndarray):
        wl = np.ascontiguousarray(wavelengths, dtype=np.float64)
        if wl.ndim != 1 or wl.size == 0:
            raise SourceFormatError("Band wavelengths must be a non-empty 1D array")
        if wl.size > 1 and np.any(np.diff(wl) <= 0):
            raise SourceFormatError("Band wavelengths must be strictly increasing")
        self.wavelengths = wl
        self.grid = np.asarray(grid, dtype=np.int64)
        # Never evaluate outside the sampled range.
        self._points = np.clip(self.grid.astype(np.float64), wl[0], wl[-1])

        n_outside = int(np.count_nonzero(self.grid > wl[-1]))
        if n_outside:
            logger.debug(
                "%d grid points above the last band (%.2f nm) hold the end value",
                n_outside, wl[-1],
            )

    @property
    def kind(self) -> str:
        n = self.wavelengths.shape[0]
        if n >= 3:
            return "cubic"
        return "linear" if n == 2 else "constant"

    def resample(self, spectra: np.ndarray) -> np.ndarray:
        """
        Interpolate band spectra onto the grid.

        Args:
            spectra: Normalised intensities, shape ``(bands,)`` for a single
                pixel or ``(bands, pixels)`` for a scanline.

        Returns:
            Non-negative values, shape ``(grid,)`` or ``(pixels, grid)``
            (C-contiguous, one row per pixel).
        """
        values = np.asarray(spectra, dtype=np.float64)
        single = values.ndim == 1
        if single:
            values = values[:, np.newaxis]
        if values.ndim != 2 or values.shape[0] != self.wavelengths.shape[0]:
            raise SourceFormatError(
                f"Expected {self.wavelengths.shape[0]} bands, got array of shape {np.shape(spectra)}"
            )

        kind = self.kind
        if kind == "cubic":
            dense = CubicSpline(self.wavelengths, values, axis=0, bc_type="natural")(self._points)
        elif kind == "linear":
            dense = make_interp_spline(self.wavelengths, values, k=1, axis=0)(self._points)
        else:
            dense = np.repeat(values, self._points.shape[0], axis=0)

        out = np.ascontiguousarray(dense.T, dtype=np.float64)
        np.maximum(out, 0.0, out=out)
        return out[0] if single else out
