# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Shared fixtures: small synthetic cubes and HySpex files.
"""

import struct

import numpy as np
import pytest

from tint_hyspex import HYSPEX_MAGIC


def write_hyspex(path, data, wavelengths, header_size=None, magic=HYSPEX_MAGIC):
    """Write a (scanlines, bands, samples) uint16 cube as a HySpex file."""
    data = np.asarray(data, dtype="<u2")
    scanlines, bands, samples = data.shape
    wavelengths = np.asarray(wavelengths, dtype="<f8")
    if header_size is None:
        header_size = 2181 + 8 * bands
    header = bytearray(header_size)
    header[0:8] = magic
    struct.pack_into("<i", header, 8, header_size)
    struct.pack_into("<i", header, 1961, bands)
    struct.pack_into("<i", header, 1965, samples)
    struct.pack_into("<i", header, 2073, scanlines)
    header[2181:2181 + 8 * bands] = wavelengths.tobytes()
    with open(path, "wb") as fh:
        fh.write(bytes(header))
        fh.write(data.tobytes())
    return path


@pytest.fixture
def flat_wavelengths():
    return np.linspace(400.0, 900.0, 26)


@pytest.fixture
def gradient_cube(flat_wavelengths):
    """(6, 26, 5) uint16 cube: grey levels rising along each scanline."""
    levels = np.linspace(0.05, 0.95, 5)
    rows = []
    for j in range(6):
        scale = 0.5 + 0.1 * j
        line = np.tile(levels * scale, (flat_wavelengths.size, 1))
        rows.append(line)
    return np.rint(np.stack(rows) * 65535).astype(np.uint16)


@pytest.fixture
def hyspex_file(tmp_path, gradient_cube, flat_wavelengths):
    return write_hyspex(tmp_path / "cube.hyspex", gradient_cube, flat_wavelengths)
