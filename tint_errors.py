# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tint_errors.py - Exception hierarchy shared by every Tint module.

Every failure is fatal to the current render.  The concrete classes also
derive from the closest builtin so that callers catching ``ValueError`` or
``OSError`` keep working.
"""

__all__ = [
    "TintError",
    "ConfigurationError",
    "SourceFormatError",
    "CubeIOError",
    "NumericDegeneracyError",
]


class TintError(Exception):
    """Base exception for all Tint errors."""


class ConfigurationError(TintError, ValueError):
    """
    Raised for invalid render parameters: a non-positive temperature, an
    unknown illuminant name, or an unsupported colour space / bit depth.
    """


class SourceFormatError(TintError, ValueError):
    """
    Raised when a cube is malformed: bad magic, truncated header,
    non-monotonic wavelengths or inconsistent band counts.
    """


class CubeIOError(TintError, OSError):
    """Raised when reading a scanline or writing an output scanline fails."""

    def __init__(self, message: str, row: int | None = None):
        super().__init__(message)
        self.row = row


class NumericDegeneracyError(TintError, ArithmeticError):
    """
    Raised when the normalisation constant is not positive, i.e. the
    observer and illuminant tables do not overlap the cube's bands.
    """
