# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later
"""

import logging

import numpy as np
import pytest

from tint_colorengine import M_XYZ_TO_SRGB_D50_T, M_XYZ_TO_SRGB_D65_T, ColorSpace
from tint_cube import ArrayCube
from tint_errors import ConfigurationError, CubeIOError, NumericDegeneracyError
from tint_illuminant import IlluminantChoice
from tint_quantizer import OutputFormat
from tint_render import RenderConfig, Renderer, render_array
from tint_sink import MemorySink

TWO_BAND_WL = np.array([500.0, 600.0])


def two_band_pixel():
    """One scanline, two bands, one pixel of 0.5 reflectance."""
    return np.full((1, 2, 1), 0.5)


class RecordingSink(MemorySink):

    def __init__(self, width, height, fmt, fail_at=None, exc=CubeIOError):
        super().__init__(width, height, fmt)
        self.calls = []
        self.fail_at = fail_at
        self.exc = exc

    def write_scanline(self, row, packed):
        self.calls.append(row)
        if row == self.fail_at:
            if self.exc is CubeIOError:
                raise CubeIOError(f"disk full at {row}", row=row)
            raise self.exc(f"disk full at {row}")
        super().write_scanline(row, packed)


class FailingCube(ArrayCube):

    def __init__(self, data, wavelengths, fail_at):
        super().__init__(data, wavelengths)
        self.fail_at = fail_at

    def next_scanline(self):
        if self._row == self.fail_at:
            raise OSError("read error")
        return super().next_scanline()


class TestPinnedRender:

    def test_two_band_srgb_uint8(self):
        image = render_array(two_band_pixel(), TWO_BAND_WL)
        assert image.dtype == np.uint8
        np.testing.assert_array_equal(image, [[[199, 193, 0]]])

    def test_two_band_tristimulus(self):
        cube = ArrayCube(two_band_pixel(), TWO_BAND_WL)
        pipeline = Renderer().pipeline(cube.metadata)
        xyz = pipeline.tristimulus(cube.next_scanline())
        np.testing.assert_allclose(xyz, [[41.6616653, 50.0, 2.5204450]], rtol=1e-6)

    def test_two_band_cielab_uint8(self):
        config = RenderConfig(space=ColorSpace.CIELAB)
        image = render_array(two_band_pixel(), TWO_BAND_WL, config=config)
        assert image[0, 0, 0] == 194
        np.testing.assert_array_equal(image[0, 0, 1:].view(np.int8), [-17, 102])

    def test_two_band_cielab_float(self):
        config = RenderConfig(space="CIELAB", fmt=32)
        image = render_array(two_band_pixel(), TWO_BAND_WL, config=config)
        np.testing.assert_allclose(image[0, 0], [76.0693, -17.0376, 101.7403], atol=1e-3)


class TestRender:

    def test_ranges(self, gradient_cube, flat_wavelengths):
        rgb = render_array(gradient_cube, flat_wavelengths, config=RenderConfig(fmt=32))
        assert rgb.shape == (6, 5, 3)
        assert rgb.min() >= 0.0 and rgb.max() <= 1.0
        lab = render_array(gradient_cube, flat_wavelengths,
                           config=RenderConfig(space="CIELAB", fmt=32))
        assert np.all((lab[..., 0] >= 0.0) & (lab[..., 0] <= 100.0))

    def test_grey_levels_increase_along_scanline(self, gradient_cube, flat_wavelengths):
        rgb = render_array(gradient_cube, flat_wavelengths)
        assert np.all(np.diff(rgb[0, :, 1].astype(int)) > 0)

    def test_repeat_render_is_identical(self, gradient_cube, flat_wavelengths):
        first = render_array(gradient_cube, flat_wavelengths, config=RenderConfig(fmt=16))
        second = render_array(gradient_cube, flat_wavelengths, config=RenderConfig(fmt=16))
        assert first.tobytes() == second.tobytes()

    @pytest.mark.parametrize("workers", [2, 4])
    def test_threads_match_sequential(self, gradient_cube, flat_wavelengths, workers):
        serial = render_array(gradient_cube, flat_wavelengths)
        threaded = render_array(gradient_cube, flat_wavelengths,
                                config=RenderConfig(workers=workers))
        np.testing.assert_array_equal(serial, threaded)

    @pytest.mark.parametrize("workers", [1, 3])
    def test_rows_arrive_in_order(self, gradient_cube, flat_wavelengths, workers):
        cube = ArrayCube(gradient_cube, flat_wavelengths)
        sink = RecordingSink(5, 6, OutputFormat.UINT8)
        seen = []
        written = Renderer(RenderConfig(workers=workers)).render(
            cube, sink, progress=lambda done, total: seen.append((done, total))
        )
        assert written == 6
        assert sink.calls == list(range(6))
        assert seen == [(j, 6) for j in range(1, 7)]

    def test_preview_step_is_close(self, gradient_cube, flat_wavelengths):
        full = render_array(gradient_cube, flat_wavelengths).astype(int)
        preview = render_array(gradient_cube, flat_wavelengths,
                               config=RenderConfig(step=5)).astype(int)
        assert np.abs(full - preview).max() <= 2

    def test_d50_uses_adapted_matrix(self):
        assert Renderer(RenderConfig(illuminant="D50")).matrix_t is M_XYZ_TO_SRGB_D50_T
        assert Renderer(RenderConfig(illuminant=5001)).matrix_t is M_XYZ_TO_SRGB_D65_T
        assert Renderer(RenderConfig(space="CIELAB")).matrix_t is None

    def test_bands_beyond_observer_are_reported(self, gradient_cube, flat_wavelengths, caplog):
        with caplog.at_level(logging.WARNING, logger="tint_render"):
            render_array(gradient_cube, flat_wavelengths)
        assert "outside the observer range" in caplog.text


class TestFailures:

    @pytest.mark.parametrize("workers", [1, 4])
    def test_sink_failure_stops_render(self, gradient_cube, flat_wavelengths, workers):
        cube = ArrayCube(gradient_cube, flat_wavelengths)
        sink = RecordingSink(5, 6, OutputFormat.UINT8, fail_at=2)
        with pytest.raises(CubeIOError) as info:
            Renderer(RenderConfig(workers=workers)).render(cube, sink)
        assert info.value.row == 2
        assert sink.calls == [0, 1, 2]

    def test_foreign_sink_errors_become_cube_io_errors(self, gradient_cube, flat_wavelengths):
        cube = ArrayCube(gradient_cube, flat_wavelengths)
        sink = RecordingSink(5, 6, OutputFormat.UINT8, fail_at=0, exc=OSError)
        with pytest.raises(CubeIOError) as info:
            Renderer().render(cube, sink)
        assert isinstance(info.value.__cause__, OSError)

    @pytest.mark.parametrize("workers", [1, 2])
    def test_read_failure(self, gradient_cube, flat_wavelengths, workers):
        cube = FailingCube(gradient_cube, flat_wavelengths, fail_at=3)
        sink = RecordingSink(5, 6, OutputFormat.UINT8)
        with pytest.raises(CubeIOError) as info:
            Renderer(RenderConfig(workers=workers)).render(cube, sink)
        assert info.value.row == 3
        assert sink.calls == sorted(sink.calls)
        assert max(sink.calls, default=-1) < 3

    def test_cube_above_visible_range(self):
        data = np.full((1, 3, 2), 0.5)
        with pytest.raises(NumericDegeneracyError):
            render_array(data, np.array([900.0, 950.0, 1000.0]))

    def test_cold_illuminant(self):
        with pytest.raises(NumericDegeneracyError):
            render_array(two_band_pixel(), TWO_BAND_WL,
                         config=RenderConfig(illuminant=IlluminantChoice("1K", 1)))


class TestRenderConfig:

    def test_coerces_names(self):
        config = RenderConfig(space="cielab", illuminant="d50", fmt="16")
        assert config.space is ColorSpace.CIELAB
        assert config.illuminant == IlluminantChoice("D50", 5000)
        assert config.fmt is OutputFormat.UINT16

    def test_defaults(self):
        config = RenderConfig()
        assert config.space is ColorSpace.SRGB
        assert config.illuminant.name == "D65"
        assert config.fmt is OutputFormat.UINT8
        assert (config.lab_overflow, config.workers, config.step) == ("clip", 1, 1)

    @pytest.mark.parametrize("kwargs", [
        dict(workers=0),
        dict(step=0),
        dict(lab_overflow="fold"),
        dict(space="XYZ"),
        dict(fmt=12),
        dict(illuminant="F11"),
        dict(illuminant=-5),
    ])
    def test_rejects(self, kwargs):
        with pytest.raises(ConfigurationError):
            RenderConfig(**kwargs)
