# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tint_quantizer.py - Colour samples to output sample representation.

Scaling per output format:

    format    RGB          L*          a*, b*
    UINT8     x 255        x 2.55      as signed 8-bit
    UINT16    x 65535      x 655.35    x 255 as signed 16-bit
    FLOAT32   unscaled     unscaled    unscaled

Integer formats round to nearest.  Signed a*/b* channels are stored as
two's complement in the unsigned output array (the TIFF CIELAB layout).
Values outside the signed range are either saturated (``"clip"``, the
default) or wrapped modulo 2^bits (``"wrap"``, bit-compatible with older
hyperspectral renderers).
"""

from __future__ import annotations

import enum
from typing import Final, Literal

import numpy as np

from tint_colorengine import ColorSpace
from tint_errors import ConfigurationError

__all__ = [
    "OutputFormat",
    "LabOverflow",
    "LAB_OVERFLOW_MODES",
    "quantize",
]

LabOverflow = Literal["clip", "wrap"]
LAB_OVERFLOW_MODES: Final[tuple[str, ...]] = ("clip", "wrap")


class OutputFormat(enum.Enum):
    """Output sample representation, keyed by bits per channel."""
    UINT8 = 8
    UINT16 = 16
    FLOAT32 = 32

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(_DTYPES[self])

    @property
    def bytes_per_sample(self) -> int:
        return self.value // 8

    @property
    def is_integer(self) -> bool:
        return self is not OutputFormat.FLOAT32

    @classmethod
    def from_bits(cls, bits: "int | str | OutputFormat") -> "OutputFormat":
        if isinstance(bits, cls):
            return bits
        try:
            return cls(int(bits))
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Unsupported bit depth '{bits}': expected 8, 16 or 32"
            ) from None


_DTYPES: Final[dict[OutputFormat, type]] = {
    OutputFormat.UINT8: np.uint8,
    OutputFormat.UINT16: np.uint16,
    OutputFormat.FLOAT32: np.float32,
}

# (L scale, a/b scale, signed dtype) for the integer CIELAB encodings.
_LAB_SCALES: Final[dict[OutputFormat, tuple[float, float, type]]] = {
    OutputFormat.UINT8: (2.55, 1.0, np.int8),
    OutputFormat.UINT16: (655.35, 255.0, np.int16),
}


def _to_signed(values: np.ndarray, signed: type, overflow: str) -> np.ndarray:
    info = np.iinfo(signed)
    rounded = np.rint(values)
    if overflow == "clip":
        return np.clip(rounded, info.min, info.max).astype(signed)
    span = 1 << info.bits
    wrapped = np.mod(rounded.astype(np.int64) - info.min, span) + info.min
    return wrapped.astype(signed)


def quantize(samples: np.ndarray, space: ColorSpace, fmt: OutputFormat,
             lab_overflow: LabOverflow = "clip") -> np.ndarray:
    """
    Pack colour samples into the output representation.

    Args:
        samples: (N, 3) colour samples; RGB in [0, 1] or L*a*b*.
        space: Colour space of *samples*.
        fmt: Target format.
        lab_overflow: Handling of a*/b* outside the signed range.

    Returns:
        (N, 3) array of ``fmt.dtype``; its ``nbytes`` is
        ``N * 3 * fmt.bytes_per_sample``.
    """
    if lab_overflow not in LAB_OVERFLOW_MODES:
        raise ConfigurationError(
            f"Unknown a*/b* overflow mode '{lab_overflow}': expected 'clip' or 'wrap'"
        )
    values = np.asarray(samples, dtype=np.float64)
    if values.ndim != 2 or values.shape[1] != 3:
        raise ValueError(f"Expected samples of shape (N, 3), got {values.shape}")

    if fmt is OutputFormat.FLOAT32:
        return values.astype(np.float32)

    dtype = fmt.dtype
    if space.is_rgb:
        full_scale = float(np.iinfo(dtype).max)
        return np.rint(np.clip(values, 0.0, 1.0) * full_scale).astype(dtype)

    l_scale, ab_scale, signed = _LAB_SCALES[fmt]
    out = np.empty(values.shape, dtype=dtype)
    lightness = np.rint(np.clip(values[:, 0], 0.0, 100.0) * l_scale)
    out[:, 0] = np.minimum(lightness, np.iinfo(dtype).max)
    out[:, 1:] = _to_signed(values[:, 1:] * ab_scale, signed, lab_overflow).view(dtype)
    return out
