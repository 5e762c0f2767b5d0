# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tint_cube.py - Cube metadata and the scanline source protocol.

The renderer never touches file formats.  It sees a cube through:

  - ``CubeMetadata``: sizes, bit depth and band centres, validated once;
  - ``next_scanline()``: one ``(bands, samples)`` array per call, rows in
    increasing order (band-interleaved-by-line).

``ArrayCube`` adapts an in-memory ``(scanlines, bands, samples)`` array to
that protocol.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np

from tint_errors import CubeIOError, SourceFormatError

__all__ = [
    "CubeMetadata",
    "CubeSource",
    "ArrayCube",
    "check_scanline",
]


@dataclass(frozen=True, slots=True, eq=False)
class CubeMetadata:
    """
    Shape and spectral layout of a hyperspectral cube.

    Attributes:
        sample_count: Pixels per scanline.
        scanline_count: Number of scanlines.
        band_count: Number of spectral bands.
        bits_per_band_sample: Bit depth of integer samples (full scale is
            ``2**bits - 1``); ignored for floating-point data.
        wavelengths: Band centres in nm, strictly increasing.
    """
    sample_count: int
    scanline_count: int
    band_count: int
    bits_per_band_sample: int
    wavelengths: np.ndarray

    def __post_init__(self) -> None:
        for name in ("sample_count", "scanline_count", "band_count"):
            if getattr(self, name) <= 0:
                raise SourceFormatError(f"{name} must be positive, got {getattr(self, name)}")
        if self.bits_per_band_sample <= 0:
            raise SourceFormatError(
                f"bits_per_band_sample must be positive, got {self.bits_per_band_sample}"
            )

        wl = np.array(self.wavelengths, dtype=np.float64).ravel()
        if wl.shape[0] != self.band_count:
            raise SourceFormatError(
                f"Band count {self.band_count} does not match "
                f"{wl.shape[0]} tabulated wavelengths"
            )
        if not np.all(np.isfinite(wl)):
            raise SourceFormatError("Band wavelengths must be finite")
        if np.any(np.diff(wl) <= 0):
            raise SourceFormatError("Band wavelengths must be strictly increasing")
        wl.flags.writeable = False
        object.__setattr__(self, "wavelengths", wl)

    @property
    def scanline_shape(self) -> tuple[int, int]:
        return self.band_count, self.sample_count

    def __repr__(self) -> str:
        return (
            f"CubeMetadata({self.sample_count}x{self.scanline_count} px, "
            f"{self.band_count} bands {self.wavelengths[0]:.1f}-{self.wavelengths[-1]:.1f} nm, "
            f"{self.bits_per_band_sample} bit)"
        )


@runtime_checkable
class CubeSource(Protocol):
    """Anything the renderer can pull scanlines from."""

    @property
    def metadata(self) -> CubeMetadata: ...

    def next_scanline(self) -> np.ndarray: ...


def check_scanline(raw: np.ndarray, metadata: CubeMetadata) -> np.ndarray:
    """Validate a raw scanline against *metadata* and return it as an array."""
    arr = np.asarray(raw)
    if arr.ndim == 1 and arr.size == metadata.band_count * metadata.sample_count:
        arr = arr.reshape(metadata.scanline_shape)
    if arr.shape != metadata.scanline_shape:
        raise SourceFormatError(
            f"Scanline has shape {arr.shape}, expected (bands, samples) = {metadata.scanline_shape}"
        )
    return arr


class ArrayCube:
    """
    In-memory cube of shape ``(scanlines, bands, samples)``.

    Integer arrays are normalised with ``bits``; floating-point arrays are
    taken as already normalised intensities.
    """

    def __init__(self, data: np.ndarray, wavelengths: np.ndarray, bits: int = 16):
        arr = np.asarray(data)
        if arr.ndim != 3:
            raise SourceFormatError(
                f"Cube array must be (scanlines, bands, samples), got shape {arr.shape}"
            )
        self._data = arr
        self._metadata = CubeMetadata(
            sample_count=arr.shape[2],
            scanline_count=arr.shape[0],
            band_count=arr.shape[1],
            bits_per_band_sample=bits,
            wavelengths=wavelengths,
        )
        if np.issubdtype(arr.dtype, np.integer) and bits > 8 * arr.dtype.itemsize:
            warnings.warn(
                f"ArrayCube: {arr.dtype} samples cannot reach the {bits}-bit "
                "full scale; the render will be dark.",
                stacklevel=2,
            )
        self._row = 0

    @property
    def metadata(self) -> CubeMetadata:
        return self._metadata

    def next_scanline(self) -> np.ndarray:
        if self._row >= self._metadata.scanline_count:
            raise CubeIOError(
                f"Read past the last scanline ({self._metadata.scanline_count})", row=self._row
            )
        line = self._data[self._row]
        self._row += 1
        return line

    def rewind(self) -> None:
        self._row = 0
