# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Color Engine
============
XYZ (0-100 scale) to the three output spaces of a render:

- CIE L*a*b* relative to the D65 reference white, L* clipped to [0, 100].
- sRGB (IEC 61966-2-1 piecewise transfer).
- AdobeRGB (1998) (pure power law, exponent 256/563).

RGB matrices come in a D65 and a Bradford-adapted D50 flavour; the D50 one
is selected when the render temperature is exactly 5000 K.  Linear RGB is
clipped to [0, 1] before gamma encoding, so every value leaving this module
is inside its documented range.

The CIELAB transfer uses the classic 0.008856 / 7.787 constants rather than
the exact 6/29 rationals, matching the values every CIELAB TIFF reader of
the 8-bit era expects.

References:
    - CIE 15:2004 "Colorimetry"
    - IEC 61966-2-1:1999 (sRGB Standard)
    - Adobe RGB (1998) Color Image Encoding, v2005-05
"""

from __future__ import annotations

import enum
import functools
import logging
from typing import Any, Callable, Final, TypeAlias

import numpy as np
import numpy.typing as npt
from numba import njit

from tint_errors import ConfigurationError

__all__ = [
    # --- Type Aliases ---
    "ArrayFloat",

    # --- Constants ---
    "REF_WHITE_D65",
    "LAB_EPSILON",
    "LAB_SLOPE",
    "ADOBE_RGB_GAMMA",
    "D50_TEMPERATURE",

    # --- Matrices ---
    "M_XYZ_TO_SRGB_D65_T",
    "M_XYZ_TO_SRGB_D50_T",
    "M_XYZ_TO_ADOBERGB_D65_T",
    "M_XYZ_TO_ADOBERGB_D50_T",

    # --- Decorators ---
    "handle_shapes",

    # --- Classes ---
    "ColorSpace",
    "ColorSpaceEngine",
]

logger = logging.getLogger(__name__)

# --- Type Aliases ---
ArrayFloat: TypeAlias = npt.NDArray[np.floating]

# --- Constants & Pre-Transposed Matrices ---

# Reference white on the Y = 100 scale.
REF_WHITE_D65: Final[ArrayFloat] = np.array([95.047, 100.0, 108.88], dtype=np.float64)

LAB_EPSILON: Final[float] = 0.008856
LAB_SLOPE: Final[float] = 7.787
ADOBE_RGB_GAMMA: Final[float] = 256.0 / 563.0
D50_TEMPERATURE: Final[int] = 5000

# Row-vector convention: rgb = xyz @ M.T
_M_XYZ_TO_SRGB_D65 = np.array([
    [ 3.240479, -1.537150, -0.498535],
    [-0.969256,  1.875992,  0.041556],
    [ 0.055648, -0.204043,  1.057311]
], dtype=np.float64)
M_XYZ_TO_SRGB_D65_T: Final[ArrayFloat] = _M_XYZ_TO_SRGB_D65.T.copy()

# Bradford-adapted to D50 (ICC profile connection space).
_M_XYZ_TO_SRGB_D50 = np.array([
    [ 3.1338561, -1.6168667, -0.4906146],
    [-0.9787684,  1.9161415,  0.0334540],
    [ 0.0719453, -0.2289914,  1.4052427]
], dtype=np.float64)
M_XYZ_TO_SRGB_D50_T: Final[ArrayFloat] = _M_XYZ_TO_SRGB_D50.T.copy()

_M_XYZ_TO_ADOBERGB_D65 = np.array([
    [ 2.0413690, -0.5649464, -0.3446944],
    [-0.9692660,  1.8760108,  0.0415560],
    [ 0.0134474, -0.1183897,  1.0154096]
], dtype=np.float64)
M_XYZ_TO_ADOBERGB_D65_T: Final[ArrayFloat] = _M_XYZ_TO_ADOBERGB_D65.T.copy()

_M_XYZ_TO_ADOBERGB_D50 = np.array([
    [ 1.9624274, -0.6105343, -0.3413404],
    [-0.9787684,  1.9161415,  0.0334540],
    [ 0.0286869, -0.1406752,  1.3487655]
], dtype=np.float64)
M_XYZ_TO_ADOBERGB_D50_T: Final[ArrayFloat] = _M_XYZ_TO_ADOBERGB_D50.T.copy()

for _m in (M_XYZ_TO_SRGB_D65_T, M_XYZ_TO_SRGB_D50_T,
           M_XYZ_TO_ADOBERGB_D65_T, M_XYZ_TO_ADOBERGB_D50_T,
           REF_WHITE_D65):
    _m.flags.writeable = False
del _m


class ColorSpace(enum.Enum):
    """Output colour spaces of a render."""
    CIELAB = "CIELAB"
    SRGB = "sRGB"
    ADOBERGB = "AdobeRGB"

    @property
    def is_rgb(self) -> bool:
        return self is not ColorSpace.CIELAB

    @classmethod
    def parse(cls, value: "str | ColorSpace") -> "ColorSpace":
        """Case-insensitive lookup by value ("cielab", "srgb", "adobergb")."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        raise ConfigurationError(
            f"Unsupported colour space '{value}': expected CIELAB, sRGB or AdobeRGB"
        )


# =============================================================================
# 1. ROBUST DECORATORS
# =============================================================================

def handle_shapes(func: Callable[..., ArrayFloat]) -> Callable[..., ArrayFloat]:
    """
    Decorator to normalize inputs to (N, 3) and safeguard shape.

    Returns:
        The wrapped function with shape handling.
        - If input is (3,), returns (3,)
        - If input is (N, 3), returns (N, 3)
    """
    @functools.wraps(func)
    def wrapper(arr: ArrayFloat, *args: Any, **kwargs: Any) -> ArrayFloat:
        arr = np.asarray(arr, dtype=np.float64)
        arr_in = np.ascontiguousarray(np.atleast_2d(arr))

        if arr_in.shape[-1] != 3:
            raise ValueError(f"Expected last dimension size 3, got {arr_in.shape[-1]}")

        res = func(arr_in, *args, **kwargs)

        if arr.ndim == 1:
            return res[0]
        return res
    return wrapper


# =============================================================================
# 2. LOW-LEVEL MATH KERNELS (Numba Optimized)
# =============================================================================

@njit(cache=True, fastmath=True, nogil=True)
def _gamma_srgb(linear: ArrayFloat) -> ArrayFloat:
    """
    Applies sRGB OETF (Gamma Correction).

    Standard: IEC 61966-2-1

    Performance Note:
        Uses an explicit loop instead of `np.where` to avoid allocating a
        boolean mask array.
    """
    out = np.empty_like(linear)
    linear_flat = linear.ravel()
    out_flat = out.ravel()

    for i in range(linear.size):
        v = linear_flat[i]
        if v <= 0.0031308:
            out_flat[i] = 12.92 * v
        else:
            out_flat[i] = 1.055 * (v ** (1.0/2.4)) - 0.055
    return out


@njit(cache=True, fastmath=True, nogil=True)
def _gamma_adobergb(linear: ArrayFloat) -> ArrayFloat:
    """AdobeRGB (1998) encoding: pure power law, no linear toe."""
    out = np.empty_like(linear)
    linear_flat = linear.ravel()
    out_flat = out.ravel()

    for i in range(linear.size):
        out_flat[i] = linear_flat[i] ** ADOBE_RGB_GAMMA
    return out


@njit(cache=True, fastmath=True, nogil=True)
def _xyz_to_lab_f(t: ArrayFloat) -> ArrayFloat:
    """
    Non-linear transfer function f(t) for CIELAB.

    Cube root above LAB_EPSILON, straight line of slope LAB_SLOPE below it.
    """
    out = np.empty_like(t)
    t_flat = t.ravel()
    out_flat = out.ravel()

    for i in range(t.size):
        v = t_flat[i]
        if v > LAB_EPSILON:
            out_flat[i] = v ** (1.0/3.0)
        else:
            out_flat[i] = LAB_SLOPE * v + 16.0 / 116.0
    return out


# =============================================================================
# 3. COLOR SPACE ENGINE
# =============================================================================

_RGB_MATRICES: Final[dict[tuple[ColorSpace, bool], ArrayFloat]] = {
    (ColorSpace.SRGB, False): M_XYZ_TO_SRGB_D65_T,
    (ColorSpace.SRGB, True): M_XYZ_TO_SRGB_D50_T,
    (ColorSpace.ADOBERGB, False): M_XYZ_TO_ADOBERGB_D65_T,
    (ColorSpace.ADOBERGB, True): M_XYZ_TO_ADOBERGB_D50_T,
}

_GAMMAS: Final[dict[ColorSpace, Callable[[ArrayFloat], ArrayFloat]]] = {
    ColorSpace.SRGB: _gamma_srgb,
    ColorSpace.ADOBERGB: _gamma_adobergb,
}


class ColorSpaceEngine:
    """Static utility class for the XYZ -> output space transforms.

    Architecture Note:
        Public methods are ``@handle_shapes`` decorated and accept (3,) or
        (N, 3).  The ``_raw`` variants assume validated (N, 3) float64 input
        and are what the scanline renderer calls.
    """

    @staticmethod
    def rgb_matrix(space: ColorSpace, temperature: int) -> ArrayFloat:
        """
        Pre-transposed XYZ -> linear RGB matrix for *space*.

        The D50-adapted matrix is used when ``temperature == 5000`` and the
        D65 one for every other temperature.
        """
        space = ColorSpace.parse(space)
        if not space.is_rgb:
            raise ConfigurationError(f"{space.value} has no RGB matrix")
        d50 = temperature == D50_TEMPERATURE
        logger.debug("%s matrix: %s adapted", space.value, "D50" if d50 else "D65")
        return _RGB_MATRICES[(space, d50)]

    # =====================================================================
    #  Internal _raw fast-path methods  (assume validated (N, 3) float64)
    # =====================================================================

    @staticmethod
    def _xyz_to_lab_raw(xyz_array: ArrayFloat, white: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """Raw XYZ → Lab.  *xyz_array* must be (N, 3) float64."""
        f_xyz = _xyz_to_lab_f(np.ascontiguousarray(xyz_array / white))

        out = np.empty_like(xyz_array)
        out[..., 0] = 116.0 * f_xyz[..., 1] - 16.0
        out[..., 1] = 500.0 * (f_xyz[..., 0] - f_xyz[..., 1])
        out[..., 2] = 200.0 * (f_xyz[..., 1] - f_xyz[..., 2])
        np.clip(out[..., 0], 0.0, 100.0, out=out[..., 0])
        return out

    @staticmethod
    def _xyz_to_linear_rgb_raw(xyz_array: ArrayFloat, matrix_t: ArrayFloat) -> ArrayFloat:
        """Raw XYZ (0-100) → linear RGB clipped to [0, 1]."""
        linear = np.dot(xyz_array * 0.01, matrix_t)
        return np.clip(linear, 0.0, 1.0, out=linear)

    @staticmethod
    def _xyz_to_rgb_raw(xyz_array: ArrayFloat, space: ColorSpace, matrix_t: ArrayFloat) -> ArrayFloat:
        """Raw XYZ (0-100) → gamma encoded RGB in [0, 1]."""
        linear = ColorSpaceEngine._xyz_to_linear_rgb_raw(xyz_array, matrix_t)
        return _GAMMAS[space](linear)

    # =====================================================================
    #  Public API
    # =====================================================================

    @staticmethod
    @handle_shapes
    def xyz_to_lab(xyz_array: ArrayFloat, white: ArrayFloat = REF_WHITE_D65) -> ArrayFloat:
        """
        Converts XYZ (Y = 100 scale) to CIE L*a*b*.

        Args:
            xyz_array: (N, 3) or (3,) XYZ values.
            white: Reference white, D65 by default.

        Returns:
            L* in [0, 100]; a*, b* unbounded (roughly [-128, 127] in gamut).
        """
        return ColorSpaceEngine._xyz_to_lab_raw(xyz_array, np.asarray(white, dtype=np.float64))

    @staticmethod
    @handle_shapes
    def xyz_to_linear_rgb(xyz_array: ArrayFloat, space: ColorSpace = ColorSpace.SRGB,
                          temperature: int = 6504) -> ArrayFloat:
        """Converts XYZ (Y = 100 scale) to clipped linear RGB."""
        matrix_t = ColorSpaceEngine.rgb_matrix(space, temperature)
        return ColorSpaceEngine._xyz_to_linear_rgb_raw(xyz_array, matrix_t)

    @staticmethod
    @handle_shapes
    def xyz_to_rgb(xyz_array: ArrayFloat, space: ColorSpace = ColorSpace.SRGB,
                   temperature: int = 6504) -> ArrayFloat:
        """
        Converts XYZ (Y = 100 scale) to gamma-encoded sRGB or AdobeRGB.

        Args:
            xyz_array: (N, 3) or (3,) XYZ values.
            space: ``ColorSpace.SRGB`` or ``ColorSpace.ADOBERGB``.
            temperature: Render temperature in K; 5000 selects the
                D50-adapted matrix.

        Returns:
            RGB in [0, 1].
        """
        space = ColorSpace.parse(space)
        matrix_t = ColorSpaceEngine.rgb_matrix(space, temperature)
        return ColorSpaceEngine._xyz_to_rgb_raw(xyz_array, space, matrix_t)

    @staticmethod
    @handle_shapes
    def gamma_encode(linear: ArrayFloat, space: ColorSpace = ColorSpace.SRGB) -> ArrayFloat:
        """Applies the transfer function of *space* to linear RGB in [0, 1]."""
        space = ColorSpace.parse(space)
        if not space.is_rgb:
            raise ConfigurationError(f"{space.value} has no transfer function")
        return _GAMMAS[space](linear)
