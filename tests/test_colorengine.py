# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later
"""

import numpy as np
import pytest

from tint_colorengine import (
    ADOBE_RGB_GAMMA,
    M_XYZ_TO_SRGB_D50_T,
    M_XYZ_TO_SRGB_D65_T,
    M_XYZ_TO_ADOBERGB_D50_T,
    M_XYZ_TO_ADOBERGB_D65_T,
    REF_WHITE_D65,
    ColorSpace,
    ColorSpaceEngine,
)
from tint_errors import ConfigurationError


class TestLab:

    def test_white_is_l100(self):
        lab = ColorSpaceEngine.xyz_to_lab(REF_WHITE_D65)
        np.testing.assert_allclose(lab, [100.0, 0.0, 0.0], atol=1e-3)

    def test_black_is_zero(self):
        np.testing.assert_allclose(ColorSpaceEngine.xyz_to_lab([0.0, 0.0, 0.0]), [0, 0, 0], atol=1e-9)

    def test_srgb_red_primary(self):
        lab = ColorSpaceEngine.xyz_to_lab([41.2456, 21.2673, 1.9334])
        np.testing.assert_allclose(lab, [53.2408, 80.0925, 67.2032], atol=0.02)

    def test_dark_values_use_linear_segment(self):
        y = 0.5  # Y/Yn = 0.005 < 0.008856
        lab = ColorSpaceEngine.xyz_to_lab([0.0, y, 0.0])
        assert lab[0] == pytest.approx(116.0 * (7.787 * 0.005 + 16.0 / 116.0) - 16.0)

    def test_lightness_is_clipped(self):
        lab = ColorSpaceEngine.xyz_to_lab(np.array([[190.0, 200.0, 210.0], [-5.0, -1.0, 0.0]]))
        assert lab[0, 0] == 100.0
        assert lab[1, 0] == 0.0

    def test_batch_shape(self):
        xyz = np.random.default_rng(0).uniform(0, 100, size=(50, 3))
        lab = ColorSpaceEngine.xyz_to_lab(xyz)
        assert lab.shape == (50, 3)
        assert np.all((lab[:, 0] >= 0) & (lab[:, 0] <= 100))

    def test_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            ColorSpaceEngine.xyz_to_lab(np.zeros((4, 2)))


class TestRgb:

    @pytest.mark.parametrize("space", [ColorSpace.SRGB, ColorSpace.ADOBERGB])
    def test_d65_white_is_unity(self, space):
        rgb = ColorSpaceEngine.xyz_to_rgb(REF_WHITE_D65, space)
        np.testing.assert_allclose(rgb, [1.0, 1.0, 1.0], atol=1e-4)

    @pytest.mark.parametrize("space", ["sRGB", "AdobeRGB"])
    def test_output_is_in_unit_range(self, space):
        xyz = np.random.default_rng(1).uniform(-20, 150, size=(200, 3))
        rgb = ColorSpaceEngine.xyz_to_rgb(xyz, space)
        assert rgb.min() >= 0.0
        assert rgb.max() <= 1.0

    def test_srgb_transfer(self):
        enc = ColorSpaceEngine.gamma_encode([0.002, 0.5, 1.0], ColorSpace.SRGB)
        np.testing.assert_allclose(enc, [12.92 * 0.002, 1.055 * 0.5 ** (1 / 2.4) - 0.055, 1.0])

    def test_adobergb_transfer(self):
        enc = ColorSpaceEngine.gamma_encode([0.002, 0.5, 1.0], ColorSpace.ADOBERGB)
        np.testing.assert_allclose(enc, np.array([0.002, 0.5, 1.0]) ** ADOBE_RGB_GAMMA)

    def test_linear_rgb_is_clipped(self):
        lin = ColorSpaceEngine.xyz_to_linear_rgb([200.0, 0.0, -10.0])
        assert lin.min() >= 0.0 and lin.max() <= 1.0

    @pytest.mark.parametrize("space, temperature, expected", [
        (ColorSpace.SRGB, 6504, M_XYZ_TO_SRGB_D65_T),
        (ColorSpace.SRGB, 5000, M_XYZ_TO_SRGB_D50_T),
        (ColorSpace.SRGB, 5001, M_XYZ_TO_SRGB_D65_T),
        (ColorSpace.ADOBERGB, 2856, M_XYZ_TO_ADOBERGB_D65_T),
        (ColorSpace.ADOBERGB, 5000, M_XYZ_TO_ADOBERGB_D50_T),
    ])
    def test_matrix_selection(self, space, temperature, expected):
        assert ColorSpaceEngine.rgb_matrix(space, temperature) is expected

    def test_d50_white_maps_to_unity_with_d50_matrix(self):
        rgb = ColorSpaceEngine.xyz_to_rgb([96.422, 100.0, 82.521], ColorSpace.SRGB, 5000)
        np.testing.assert_allclose(rgb, [1.0, 1.0, 1.0], atol=1e-3)

    def test_matrices_are_read_only(self):
        with pytest.raises(ValueError):
            M_XYZ_TO_SRGB_D65_T[0, 0] = 0.0

    def test_cielab_has_no_matrix(self):
        with pytest.raises(ConfigurationError):
            ColorSpaceEngine.rgb_matrix(ColorSpace.CIELAB, 6504)


@pytest.mark.parametrize("text, member", [
    ("CIELAB", ColorSpace.CIELAB),
    ("cielab", ColorSpace.CIELAB),
    ("sRGB", ColorSpace.SRGB),
    ("SRGB", ColorSpace.SRGB),
    ("adobergb", ColorSpace.ADOBERGB),
    (ColorSpace.ADOBERGB, ColorSpace.ADOBERGB),
])
def test_colorspace_parse(text, member):
    assert ColorSpace.parse(text) is member


def test_colorspace_parse_rejects_unknown():
    with pytest.raises(ConfigurationError):
        ColorSpace.parse("ProPhoto")
