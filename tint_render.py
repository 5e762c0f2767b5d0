# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tint_render.py - Scanline render driver.

Per scanline the pipeline is

    raw -> normalise -> resample (1 nm) -> integrate (XYZ) -> convert -> quantize

Everything that does not depend on pixel data (illuminant, normalisation,
weights, RGB matrix) is built once per render and shared read-only by the
worker threads.  Scanlines are read in order on the calling thread, computed
on a ``ThreadPoolExecutor`` when ``workers > 1`` and handed to the sink
strictly in row order.  A failed read or write sets a stop flag: queued
scanlines are cancelled, running ones stop before their next stage, and the
error propagates as ``CubeIOError``.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Deque, Optional, Tuple, Union

import numpy as np

from tint_colorengine import ColorSpace, ColorSpaceEngine, REF_WHITE_D65
from tint_cube import ArrayCube, CubeMetadata, CubeSource, check_scanline
from tint_errors import ConfigurationError, CubeIOError, TintError
from tint_illuminant import (
    IlluminantChoice, IlluminantSpectrum, build_illuminant, parse_illuminant,
)
from tint_observer import ObserverTable, observer_table
from tint_quantizer import LAB_OVERFLOW_MODES, OutputFormat, quantize
from tint_resampler import SpectralResampler, normalise_samples, target_grid
from tint_sink import MemorySink, ScanlineSink
from tint_tristimulus import TristimulusIntegrator

__all__ = [
    "RenderConfig",
    "ScanlinePipeline",
    "Renderer",
    "render_array",
]

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

# Scanlines in flight per worker thread.
_QUEUE_DEPTH = 2


@dataclass(frozen=True, slots=True)
class RenderConfig:
    """
    Render parameters.

    Attributes:
        space: Output colour space (a ``ColorSpace`` or its name).
        illuminant: ``IlluminantChoice``, a name such as "D65" or a
            temperature in Kelvin.
        fmt: Output sample format (an ``OutputFormat`` or 8/16/32).
        lab_overflow: "clip" or "wrap" for integer a*/b* out of range.
        workers: Scanlines computed concurrently.
        step: Integration step in nm (1 for full resolution).
    """
    space: ColorSpace = ColorSpace.SRGB
    illuminant: IlluminantChoice = field(default_factory=lambda: parse_illuminant("D65"))
    fmt: OutputFormat = OutputFormat.UINT8
    lab_overflow: str = "clip"
    workers: int = 1
    step: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "space", ColorSpace.parse(self.space))
        object.__setattr__(self, "fmt", OutputFormat.from_bits(self.fmt))
        if not isinstance(self.illuminant, IlluminantChoice):
            object.__setattr__(self, "illuminant", parse_illuminant(self.illuminant))
        if self.lab_overflow not in LAB_OVERFLOW_MODES:
            raise ConfigurationError(
                f"Unknown a*/b* overflow mode '{self.lab_overflow}': expected 'clip' or 'wrap'"
            )
        if self.workers < 1:
            raise ConfigurationError(f"Worker count must be >= 1, got {self.workers}")
        if self.step < 1:
            raise ConfigurationError(f"Integration step must be >= 1 nm, got {self.step}")


class ScanlinePipeline:
    """
    The per-cube half of a render: resampler and integrator bound to the
    cube's band centres.  Immutable after construction and thread safe.
    Pixels are integrated on numba threads for single-worker renders and
    serially inside each worker otherwise.
    """

    __slots__ = ("metadata", "config", "resampler", "integrator", "_matrix_t", "_parallel")

    def __init__(self, metadata: CubeMetadata, config: RenderConfig,
                 illuminant: IlluminantSpectrum, observer: ObserverTable,
                 matrix_t: Optional[np.ndarray]):
        self.metadata = metadata
        self.config = config
        grid = target_grid(metadata.wavelengths)
        self.resampler = SpectralResampler(metadata.wavelengths, grid)
        self.integrator = TristimulusIntegrator(grid, illuminant, observer, config.step)
        self._matrix_t = matrix_t
        # Scanline threads each run the serial kernel.
        self._parallel = config.workers == 1
        if metadata.wavelengths[-1] > observer.last:
            logger.warning(
                "Bands above %d nm (up to %.1f nm) are outside the observer range and ignored",
                observer.last, metadata.wavelengths[-1],
            )
        logger.debug(
            "Pipeline: %s resampling onto %d-%d nm, %d summed wavelengths",
            self.resampler.kind, grid[0], grid[-1], self.integrator.samples,
        )

    def tristimulus(self, raw: np.ndarray) -> np.ndarray:
        """(samples, 3) XYZ of one raw scanline."""
        line = check_scanline(raw, self.metadata)
        spectra = normalise_samples(line, self.metadata.bits_per_band_sample)
        return self.integrator.integrate(self.resampler.resample(spectra), self._parallel)

    def colour(self, xyz: np.ndarray) -> np.ndarray:
        """(samples, 3) colour samples in the configured space, unquantized."""
        space = self.config.space
        if space is ColorSpace.CIELAB:
            return ColorSpaceEngine._xyz_to_lab_raw(xyz, REF_WHITE_D65)
        return ColorSpaceEngine._xyz_to_rgb_raw(xyz, space, self._matrix_t)

    def render_scanline(self, raw: np.ndarray,
                        stop: Optional[threading.Event] = None) -> np.ndarray:
        """
        Render one raw ``(bands, samples)`` scanline.

        Returns:
            ``(samples, 3)`` array of the output dtype.

        Raises:
            CancelledError: If *stop* is set between two stages.
        """
        xyz = self.tristimulus(raw)
        _check_stop(stop)
        samples = self.colour(xyz)
        _check_stop(stop)
        return quantize(samples, self.config.space, self.config.fmt, self.config.lab_overflow)


def _check_stop(stop: Optional[threading.Event]) -> None:
    if stop is not None and stop.is_set():
        raise CancelledError()


class Renderer:
    """
    Renders cubes with one configuration.

    The illuminant spectrum and RGB matrix are resolved on construction;
    ``pipeline()`` adds the cube-dependent resampler and integrator.

    Example:
        >>> renderer = Renderer(RenderConfig(space="sRGB", illuminant="D65"))
        >>> renderer.render(cube, sink)
    """

    def __init__(self, config: Optional[RenderConfig] = None,
                 observer: Optional[ObserverTable] = None):
        self.config = config if config is not None else RenderConfig()
        self.observer = observer if observer is not None else observer_table()
        self.illuminant = build_illuminant(self.config.illuminant)
        if self.config.space.is_rgb:
            self.matrix_t = ColorSpaceEngine.rgb_matrix(
                self.config.space, self.config.illuminant.temperature
            )
        else:
            self.matrix_t = None

    def pipeline(self, metadata: CubeMetadata) -> ScanlinePipeline:
        return ScanlinePipeline(metadata, self.config, self.illuminant,
                                self.observer, self.matrix_t)

    def render_scanline(self, raw: np.ndarray, metadata: CubeMetadata) -> np.ndarray:
        """Render a single scanline of a cube described by *metadata*."""
        return self.pipeline(metadata).render_scanline(raw)

    def render(self, cube: CubeSource, sink: ScanlineSink,
               progress: Optional[ProgressCallback] = None) -> int:
        """
        Render every scanline of *cube* into *sink*.

        Args:
            cube: Scanline source.
            sink: Receives ``write_scanline(row, packed)`` in row order.
            progress: Called as ``progress(rows_done, rows_total)`` after
                each written scanline.

        Returns:
            Number of scanlines written.
        """
        metadata = cube.metadata
        pipeline = self.pipeline(metadata)
        total = metadata.scanline_count
        logger.info(
            "Rendering %r as %s/%s, %d bit, %d worker(s)",
            metadata, self.config.space.value, self.config.illuminant.name,
            self.config.fmt.value, self.config.workers,
        )

        if self.config.workers == 1:
            for row in range(total):
                packed = pipeline.render_scanline(_read(cube, row))
                _write(sink, row, packed)
                if progress is not None:
                    progress(row + 1, total)
        else:
            self._render_threaded(cube, sink, pipeline, total, progress)

        logger.info("Rendered %d scanlines", total)
        return total

    def _render_threaded(self, cube: CubeSource, sink: ScanlineSink,
                         pipeline: ScanlinePipeline, total: int,
                         progress: Optional[ProgressCallback]) -> None:
        stop = threading.Event()
        pending: Deque[Tuple[int, Future]] = deque()
        depth = _QUEUE_DEPTH * self.config.workers

        def drain_one() -> None:
            row, future = pending.popleft()
            _write(sink, row, future.result())
            if progress is not None:
                progress(row + 1, total)

        with ThreadPoolExecutor(max_workers=self.config.workers,
                                thread_name_prefix="tint-render") as pool:
            try:
                for row in range(total):
                    raw = _read(cube, row)
                    pending.append((row, pool.submit(pipeline.render_scanline, raw, stop)))
                    if len(pending) >= depth:
                        drain_one()
                while pending:
                    drain_one()
            except BaseException:
                stop.set()
                for _, future in pending:
                    future.cancel()
                raise


def _read(cube: CubeSource, row: int) -> np.ndarray:
    try:
        return cube.next_scanline()
    except TintError:
        raise
    except OSError as exc:
        raise CubeIOError(f"Failed to read scanline {row}: {exc}", row=row) from exc


def _write(sink: ScanlineSink, row: int, packed: np.ndarray) -> None:
    try:
        sink.write_scanline(row, packed)
    except CubeIOError as exc:
        if exc.row is None:
            exc.row = row
        raise
    except Exception as exc:
        raise CubeIOError(f"Failed to write scanline {row}: {exc}", row=row) from exc


def render_array(data: np.ndarray, wavelengths: np.ndarray, bits: int = 16,
                 config: Union[RenderConfig, None] = None) -> np.ndarray:
    """
    Render an in-memory ``(scanlines, bands, samples)`` cube.

    Returns:
        ``(scanlines, samples, 3)`` image in the configured output dtype.
    """
    renderer = Renderer(config)
    cube = ArrayCube(data, wavelengths, bits)
    md = cube.metadata
    sink = MemorySink(md.sample_count, md.scanline_count, renderer.config.fmt)
    renderer.render(cube, sink)
    return sink.image
