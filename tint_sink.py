# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tint_sink.py - Destinations for rendered scanlines.

A sink receives ``write_scanline(row, packed)`` calls in strict row order,
``packed`` being a ``(samples, 3)`` array in the output dtype.  Any problem
(wrong row, wrong buffer, failed write) raises ``CubeIOError``, which aborts
the render.

  - ``MemorySink`` keeps the image in a numpy array.
  - ``TiffSink`` opens the output through imageio's tifffile plugin up
    front and writes one TIFF on ``close()``, tagged RGB or CIELAB, with an
    embedded sRGB ICC profile from Pillow's LittleCMS bindings where
    applicable.
"""

from __future__ import annotations

import functools
import logging
import os
from pathlib import Path
from typing import Final, Optional, Protocol, Union, runtime_checkable

import imageio.v3 as iio
import numpy as np
from PIL import ImageCms

from tint_colorengine import ColorSpace
from tint_errors import ConfigurationError, CubeIOError
from tint_quantizer import OutputFormat

__all__ = [
    "COMPRESSIONS",
    "ScanlineSink",
    "MemorySink",
    "TiffSink",
    "srgb_icc_profile",
]

logger = logging.getLogger(__name__)

# CLI name -> tifffile compression codec
COMPRESSIONS: Final[dict[str, Optional[str]]] = {
    "none": None,
    "deflate": "zlib",
    "lzw": "lzw",
    "jpeg": "jpeg",
}

_RESOLUTION_PX_PER_CM: Final[float] = 150.0
_SOFTWARE: Final[str] = "tint"
_DESCRIPTION: Final[str] = "Color rendering of hyperspectral image cube"


@runtime_checkable
class ScanlineSink(Protocol):
    """Receiver of rendered scanlines, called in increasing row order."""

    def write_scanline(self, row: int, packed: np.ndarray) -> None: ...


@functools.lru_cache(maxsize=None)
def srgb_icc_profile() -> bytes:
    """Serialized sRGB ICC profile built by LittleCMS, created once per process."""
    return ImageCms.ImageCmsProfile(ImageCms.createProfile("sRGB")).tobytes()


class MemorySink:
    """
    Collects scanlines into a ``(height, width, 3)`` array.

    Rows must arrive in order 0, 1, 2, ...; ``image`` is complete once
    ``rows_written == height``.
    """

    def __init__(self, width: int, height: int, fmt: OutputFormat):
        self.width = width
        self.height = height
        self.fmt = fmt
        self.image = np.zeros((height, width, 3), dtype=fmt.dtype)
        self.rows_written = 0

    def _accept(self, row: int, packed: np.ndarray) -> np.ndarray:
        if row != self.rows_written:
            raise CubeIOError(
                f"Scanline {row} written out of order (expected {self.rows_written})", row=row
            )
        if row >= self.height:
            raise CubeIOError(f"Scanline {row} beyond image height {self.height}", row=row)
        buf = np.asarray(packed)
        if buf.dtype != self.fmt.dtype or buf.shape != (self.width, 3):
            raise CubeIOError(
                f"Scanline {row}: got {buf.dtype}{buf.shape}, "
                f"expected {self.fmt.dtype}{(self.width, 3)}", row=row,
            )
        return buf

    def write_scanline(self, row: int, packed: np.ndarray) -> None:
        self.image[row] = self._accept(row, packed)
        self.rows_written += 1

    @property
    def complete(self) -> bool:
        return self.rows_written == self.height


class TiffSink(MemorySink):
    """
    Writes the rendered image as a single TIFF.

    Args:
        path: Output file.
        width, height: Image size in pixels.
        space: Output colour space; selects the photometric tag.
        fmt: Sample format.
        compression: One of ``COMPRESSIONS``.

    The output file is opened on construction, so a bad path fails before
    any scanline is rendered.  Use as a context manager: the image is
    written on a clean exit, otherwise the partial file is removed.
    """

    def __init__(self, path: Union[str, os.PathLike], width: int, height: int,
                 space: ColorSpace, fmt: OutputFormat, compression: str = "none"):
        if compression not in COMPRESSIONS:
            raise ConfigurationError(
                f"Unsupported compression '{compression}': expected {', '.join(COMPRESSIONS)}"
            )
        if compression == "jpeg" and (fmt is not OutputFormat.UINT8 or not space.is_rgb):
            raise ConfigurationError("JPEG compression needs 8-bit RGB output")
        super().__init__(width, height, fmt)
        self.path = Path(path)
        self.space = space
        self.compression = compression
        try:
            self._file = iio.imopen(self.path, "w", plugin="tifffile")
        except (OSError, ValueError) as exc:
            raise CubeIOError(f"Cannot open {self.path} for writing: {exc}") from exc
        self.closed = False

    def _write_kwargs(self) -> dict:
        kwargs: dict = {
            "photometric": "rgb" if self.space.is_rgb else "cielab",
            "planarconfig": "contig",
            "compression": COMPRESSIONS[self.compression],
            "resolution": (_RESOLUTION_PX_PER_CM, _RESOLUTION_PX_PER_CM),
            "resolutionunit": "CENTIMETER",
            "software": _SOFTWARE,
            "description": _DESCRIPTION,
            "metadata": None,
        }
        if self.space is ColorSpace.SRGB:
            kwargs["iccprofile"] = srgb_icc_profile()
        elif self.space is ColorSpace.ADOBERGB:
            logger.warning("No AdobeRGB ICC profile available; %s is tagged RGB only", self.path)
        return kwargs

    def close(self) -> None:
        """Write the TIFF.  Raises CubeIOError if the image is incomplete or the write fails."""
        if self.closed:
            return
        if not self.complete:
            self.discard()
            raise CubeIOError(
                f"{self.path}: only {self.rows_written} of {self.height} scanlines rendered"
            )
        self.closed = True
        try:
            with self._file:
                self._file.write(self.image, **self._write_kwargs())
        except (OSError, ValueError) as exc:
            self.path.unlink(missing_ok=True)
            raise CubeIOError(f"Failed to write {self.path}: {exc}") from exc
        logger.info("Wrote %s (%dx%d, %s, %d bit)", self.path, self.width, self.height,
                    self.space.value, self.fmt.value)

    def discard(self) -> None:
        """Close the output without writing an image and remove the file."""
        if self.closed:
            return
        self.closed = True
        self._file.close()
        self.path.unlink(missing_ok=True)
        logger.debug("Discarded %s", self.path)

    def __enter__(self) -> "TiffSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.discard()
