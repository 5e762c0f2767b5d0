# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tint_illuminant.py - Illuminant power spectra, 300-830 nm at 1 nm.

Two kinds of source:
  - Tabulated CIE illuminants: D65 (CIE S 014-2, expanded from the 5 nm
    table by linear interpolation) and standard illuminant A (evaluated from
    its defining formula, which is what the CIE table is generated from).
  - Blackbody radiators at an arbitrary correlated colour temperature,
    via Planck's law.

Named daylight temperatures other than D65 (D50, D75, D93) are rendered as
blackbodies at their nominal temperature.  A request for 6504 K, the nominal
temperature of D65, selects the D65 table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final, Union

import numpy as np

from tint_errors import ConfigurationError
from tint_observer import SpectralTable

__all__ = [
    "ILLUMINANT_FIRST_NM",
    "ILLUMINANT_LAST_NM",
    "PLANCK_C1",
    "PLANCK_C2",
    "IlluminantChoice",
    "IlluminantSpectrum",
    "calculate_power_spectrum",
    "parse_illuminant",
    "build_illuminant",
]

logger = logging.getLogger(__name__)

ILLUMINANT_FIRST_NM: Final[int] = 300
ILLUMINANT_LAST_NM: Final[int] = 830

# First and second radiation constants (2hc², hc/k) in SI units.
PLANCK_C1: Final[float] = 3.74177152e-16
PLANCK_C2: Final[float] = 1.43877696e-2

# Nominal correlated colour temperatures of the tabulated illuminants.
_D65_KELVIN: Final[int] = 6504
_A_KELVIN: Final[int] = 2856

# CIE 15 illuminant A: Planck at 2848 K with c2 = 1.435e7 nm·K.
_A_FORMULA_KELVIN: Final[float] = 2848.0
_A_FORMULA_C2: Final[float] = 1.435e7

# CIE D65 relative SPD, 300-830 nm at 5 nm.
_D65_5NM = np.array([
    0.0341, 1.6643, 3.2945, 11.7652, 20.236, 28.6447, 37.0535, 38.5011,
    39.9488, 42.4302, 44.9117, 45.775, 46.6383, 49.3637, 52.0891, 51.0323,
    49.9755, 52.3118, 54.6482, 68.7015, 82.7549, 87.1204, 91.486, 92.4589,
    93.4318, 90.057, 86.6823, 95.7736, 104.865, 110.936, 117.008, 117.41,
    117.812, 116.336, 114.861, 115.392, 115.923, 112.367, 108.811, 109.082,
    109.354, 108.578, 107.802, 106.296, 104.79, 106.239, 107.689, 106.047,
    104.405, 104.225, 104.046, 102.023, 100.0, 98.1671, 96.3342, 96.0611,
    95.788, 92.2368, 88.6856, 89.3459, 90.0062, 89.8026, 89.5991, 88.6489,
    87.6987, 85.4936, 83.2886, 83.4939, 83.6992, 81.863, 80.0268, 80.1207,
    80.2146, 81.2462, 82.2778, 80.281, 78.2842, 74.0027, 69.7213, 70.6652,
    71.6091, 72.979, 74.349, 67.9765, 61.604, 65.7448, 69.8856, 72.4863,
    75.087, 69.3398, 63.5927, 55.0054, 46.4182, 56.6118, 66.8054, 65.0941,
    63.3828, 63.8434, 64.304, 61.8779, 59.4519, 55.7054, 51.959, 54.6998,
    57.4406, 58.8765, 60.3125,
], dtype=np.float64)

_GRID: Final[np.ndarray] = np.arange(ILLUMINANT_FIRST_NM, ILLUMINANT_LAST_NM + 1, dtype=np.int64)


class IlluminantSpectrum(SpectralTable):
    """Relative spectral power of an illuminant on the 300-830 nm grid."""

    __slots__ = ()

    @property
    def power(self) -> np.ndarray:
        return self.values


@dataclass(frozen=True, slots=True)
class IlluminantChoice:
    """
    A resolved illuminant request.

    Attributes:
        name: Display name ("D65", "A", "D50", "5000K", ...).
        temperature: Correlated colour temperature in Kelvin.  Also selects
            the D50-adapted RGB matrices when it equals 5000.
        tabulated: True if the spectrum comes from a CIE table rather
            than Planck's law.
    """
    name: str
    temperature: int
    tabulated: bool = False

    def __post_init__(self) -> None:
        if self.temperature <= 0:
            raise ConfigurationError(
                f"Colour temperature must be positive, got {self.temperature} K"
            )
        if self.tabulated and self.name not in _TABULATED:
            raise ConfigurationError(f"No tabulated spectrum for illuminant '{self.name}'")


def calculate_power_spectrum(
    temperature: float, wavelength: Union[int, float, np.ndarray]
) -> Union[float, np.ndarray]:
    """
    Blackbody spectral radiant exitance via Planck's law.

        P(λ) = c1 / (λ⁵ · (exp(c2 / (λ·T)) − 1))

    Args:
        temperature: Blackbody temperature in Kelvin (> 0).
        wavelength: Wavelength(s) in nanometres.

    Returns:
        Power at each wavelength (float for scalar input).

    Raises:
        ConfigurationError: If ``temperature <= 0``.
    """
    if temperature <= 0:
        raise ConfigurationError(f"Colour temperature must be positive, got {temperature} K")

    wl_m = np.asarray(wavelength, dtype=np.float64) * 1e-9
    # Very low temperatures overflow exp(); the limit of the expression is 0.
    with np.errstate(over="ignore"):
        power = PLANCK_C1 / (wl_m ** 5 * np.expm1(PLANCK_C2 / (wl_m * temperature)))
    if np.ndim(power) == 0:
        return float(power)
    return power


def _d65_power() -> np.ndarray:
    coarse = ILLUMINANT_FIRST_NM + 5 * np.arange(_D65_5NM.shape[0])
    return np.interp(_GRID, coarse, _D65_5NM)


def _illuminant_a_power() -> np.ndarray:
    # CIE 15:2004 eq. 3.1, normalised to 100 at 560 nm.
    wl = _GRID.astype(np.float64)
    c2t = _A_FORMULA_C2 / _A_FORMULA_KELVIN
    return 100.0 * (560.0 / wl) ** 5 * (np.expm1(c2t / 560.0) / np.expm1(c2t / wl))


_TABULATED: Final[dict[str, IlluminantSpectrum]] = {
    "D65": IlluminantSpectrum(_GRID, _d65_power()),
    "A": IlluminantSpectrum(_GRID, _illuminant_a_power()),
}

# Name -> (temperature, tabulated)
_NAMED: Final[dict[str, tuple[int, bool]]] = {
    "D65": (_D65_KELVIN, True),
    "A": (_A_KELVIN, True),
    "D50": (5000, False),
    "D75": (7500, False),
    "D93": (9300, False),
}


def parse_illuminant(value: Union[str, int]) -> IlluminantChoice:
    """
    Resolve a user illuminant request.

    Accepts one of the names D65, D50, D75, D93, A (case-insensitive), or a
    temperature in Kelvin given as an int or a numeric string, optionally
    suffixed with "K".

    Raises:
        ConfigurationError: For unknown names and non-positive temperatures.
    """
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return _from_kelvin(int(value))

    text = str(value).strip().upper()
    if text in _NAMED:
        kelvin, tabulated = _NAMED[text]
        return IlluminantChoice(text, kelvin, tabulated)

    digits = text[:-1] if text.endswith("K") else text
    try:
        kelvin = int(digits)
    except ValueError:
        raise ConfigurationError(
            f"Unknown illuminant '{value}': expected one of "
            f"{', '.join(_NAMED)} or a temperature in Kelvin"
        ) from None
    return _from_kelvin(kelvin)


def _from_kelvin(kelvin: int) -> IlluminantChoice:
    # 6504 K is the D65 table, any other temperature a blackbody.
    if kelvin == _D65_KELVIN:
        return IlluminantChoice("D65", _D65_KELVIN, True)
    return IlluminantChoice(f"{kelvin}K", kelvin)


def build_illuminant(choice: IlluminantChoice) -> IlluminantSpectrum:
    """Power spectrum for *choice* on the 300-830 nm, 1 nm grid."""
    if choice.tabulated:
        logger.debug("Using tabulated illuminant %s", choice.name)
        return _TABULATED[choice.name]

    logger.debug("Computing blackbody spectrum at %d K", choice.temperature)
    power = calculate_power_spectrum(choice.temperature, _GRID)
    return IlluminantSpectrum(_GRID, power)
