# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tint_hyspex.py - HySpex cube reader.

A HySpex ``.hyspex`` file is a fixed-layout binary header followed by BIL
image data (unsigned 16-bit little-endian samples).  Only the fields the
renderer needs are decoded:

    offset  type           field
    0       char[8]        magic "HYSPEX\\0\\0"
    8       int32          header size (start of image data)
    1961    int32          band count
    1965    int32          samples per scanline
    2073    int32          scanline count
    2181    float64[bands] band centre wavelengths (nm)

Raw cubes without a header are supported when the caller gives the image
size and band count; band centres then come from the VNIR-1600 band sets
(40, 80 or 160 evenly spaced bands).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Final, Optional, Union

import numpy as np

from tint_cube import CubeMetadata
from tint_errors import ConfigurationError, CubeIOError, SourceFormatError

__all__ = [
    "HYSPEX_MAGIC",
    "HyspexCube",
    "is_hyspex",
    "read_hyspex_header",
    "vnir_wavelengths",
]

logger = logging.getLogger(__name__)

HYSPEX_MAGIC: Final[bytes] = b"HYSPEX\x00\x00"
HYSPEX_BITS: Final[int] = 16

_OFF_SIZE: Final[int] = 8
_OFF_BANDS: Final[int] = 1961
_OFF_SAMPLES: Final[int] = 1965
_OFF_SCANLINES: Final[int] = 2073
_OFF_WAVELENGTHS: Final[int] = 2181

# (first, last) band centre in nm of the VNIR-1600 binning modes.
_VNIR_BAND_SETS: Final[dict[int, tuple[float, float]]] = {
    40: (412.880826, 981.258187),
    80: (416.524261, 992.188538),
    160: (414.702548, 994.010243),
}


def vnir_wavelengths(bands: int) -> np.ndarray:
    """Band centres of a headerless VNIR-1600 cube with *bands* bands."""
    try:
        first, last = _VNIR_BAND_SETS[bands]
    except KeyError:
        raise ConfigurationError(
            f"No built-in wavelength table for {bands} bands "
            f"(known: {', '.join(str(b) for b in _VNIR_BAND_SETS)})"
        ) from None
    return np.linspace(first, last, bands)


def _read_int32(buf: bytes, offset: int) -> int:
    return int(np.frombuffer(buf, dtype="<i4", count=1, offset=offset)[0])


def is_hyspex(path: Union[str, os.PathLike]) -> bool:
    """True if *path* starts with the HySpex magic."""
    try:
        with open(path, "rb") as fh:
            return fh.read(len(HYSPEX_MAGIC)) == HYSPEX_MAGIC
    except OSError as exc:
        raise CubeIOError(f"Cannot read '{path}': {exc}") from exc


def read_hyspex_header(path: Union[str, os.PathLike]) -> tuple[int, CubeMetadata]:
    """
    Decode a HySpex header.

    Returns:
        (header size in bytes, cube metadata).

    Raises:
        SourceFormatError: Wrong magic, truncated or inconsistent header.
        CubeIOError: The file cannot be read.
    """
    try:
        with open(path, "rb") as fh:
            fixed = fh.read(_OFF_WAVELENGTHS)
            if len(fixed) < _OFF_WAVELENGTHS:
                raise SourceFormatError(
                    f"'{path}': truncated header ({len(fixed)} of {_OFF_WAVELENGTHS} bytes)"
                )
            if fixed[:len(HYSPEX_MAGIC)] != HYSPEX_MAGIC:
                raise SourceFormatError(f"'{path}': not a HySpex file (bad magic)")

            header_size = _read_int32(fixed, _OFF_SIZE)
            bands = _read_int32(fixed, _OFF_BANDS)
            samples = _read_int32(fixed, _OFF_SAMPLES)
            scanlines = _read_int32(fixed, _OFF_SCANLINES)
            if bands <= 0 or samples <= 0 or scanlines <= 0:
                raise SourceFormatError(
                    f"'{path}': invalid cube size {samples}x{scanlines}x{bands}"
                )

            wl_bytes = fh.read(8 * bands)
            if len(wl_bytes) < 8 * bands:
                raise SourceFormatError(f"'{path}': truncated wavelength table")
    except OSError as exc:
        raise CubeIOError(f"Cannot read '{path}': {exc}") from exc

    if header_size < _OFF_WAVELENGTHS + 8 * bands:
        raise SourceFormatError(
            f"'{path}': header size {header_size} is smaller than its wavelength table"
        )

    wavelengths = np.frombuffer(wl_bytes, dtype="<f8", count=bands)
    metadata = CubeMetadata(
        sample_count=samples,
        scanline_count=scanlines,
        band_count=bands,
        bits_per_band_sample=HYSPEX_BITS,
        wavelengths=wavelengths,
    )
    return header_size, metadata


class HyspexCube:
    """
    Memory-mapped HySpex (or headerless BIL uint16) cube.

    Args:
        path: Cube file.
        width, height, bands: Image size for headerless cubes.  When any of
            them is given the header is not parsed; the missing values are
            then an error.
        header_size: Bytes to skip before image data in headerless mode.
    """

    def __init__(self, path: Union[str, os.PathLike],
                 width: Optional[int] = None, height: Optional[int] = None,
                 bands: Optional[int] = None, header_size: int = 0):
        self.path = Path(path)

        if width is None and height is None and bands is None:
            self.header_size, self._metadata = read_hyspex_header(self.path)
        else:
            if not (width and height and bands):
                raise ConfigurationError(
                    "Headerless cubes need width, height and band count"
                )
            self.header_size = header_size
            self._metadata = CubeMetadata(
                sample_count=width,
                scanline_count=height,
                band_count=bands,
                bits_per_band_sample=HYSPEX_BITS,
                wavelengths=vnir_wavelengths(bands),
            )

        md = self._metadata
        expected = self.header_size + md.scanline_count * md.band_count * md.sample_count * 2
        try:
            actual = self.path.stat().st_size
        except OSError as exc:
            raise CubeIOError(f"Cannot stat '{self.path}': {exc}") from exc
        if actual < expected:
            raise SourceFormatError(
                f"'{self.path}': {actual} bytes, cube needs {expected}"
            )

        try:
            self._data: Optional[np.memmap] = np.memmap(
                self.path, dtype="<u2", mode="r", offset=self.header_size,
                shape=(md.scanline_count, md.band_count, md.sample_count),
            )
        except (OSError, ValueError) as exc:
            raise CubeIOError(f"Cannot map '{self.path}': {exc}") from exc
        self._row = 0
        logger.debug("Opened %s: %r, data at byte %d", self.path, md, self.header_size)

    # -- CubeSource --------------------------------------------------------
    @property
    def metadata(self) -> CubeMetadata:
        return self._metadata

    def next_scanline(self) -> np.ndarray:
        """Next ``(bands, samples)`` scanline as native-endian uint16."""
        data = self._mapped()
        if self._row >= self._metadata.scanline_count:
            raise CubeIOError(
                f"Read past the last scanline ({self._metadata.scanline_count})", row=self._row
            )
        try:
            line = np.array(data[self._row], dtype=np.uint16)
        except OSError as exc:
            raise CubeIOError(f"Failed to read scanline {self._row}: {exc}", row=self._row) from exc
        self._row += 1
        return line

    def rewind(self) -> None:
        self._row = 0

    def close(self) -> None:
        # Dropping the last reference unmaps the file.
        self._data = None

    def __enter__(self) -> "HyspexCube":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _mapped(self) -> np.memmap:
        if self._data is None:
            raise CubeIOError(f"'{self.path}' is closed")
        return self._data
