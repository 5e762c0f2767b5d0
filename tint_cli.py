# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tint_cli.py - ``tint`` command line entry point.

    tint -i data.hyspex -o colour.tif -t D65 -s sRGB -b 8

Exit status is 0 on success, 1 when the render fails and 2 for invalid
arguments.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from __about__ import __copyright__, __description__, __license__, __version__
from tint_colorengine import ColorSpace
from tint_errors import TintError
from tint_hyspex import HyspexCube
from tint_quantizer import LAB_OVERFLOW_MODES, OutputFormat
from tint_render import RenderConfig, Renderer
from tint_sink import COMPRESSIONS, TiffSink

__all__ = ["build_parser", "main"]

logger = logging.getLogger("tint")

_EPILOG = f"""\
The temperature is a standard illuminant (D65, D50, D75, D93, A) or a
colour temperature in Kelvin, e.g. 5000 for 5000 K.  Output bits per channel
are 8 or 16 (unsigned integer) or 32 (floating point).

Headerless cubes need --width, --height and --channels (40, 80 or 160
bands).

example: tint -i data.hyspex -o calibrated_color.tif -t D65

{__copyright__}, {__license__}
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tint",
        description=__description__,
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-i", "--input", required=True, help="input hyperspectral cube")
    parser.add_argument("-o", "--output", required=True, help="output TIFF image")
    parser.add_argument("-t", "--temperature", default="D65",
                        help="illuminant name or temperature in K (default: D65)")
    parser.add_argument("-s", "--colorspace", default=ColorSpace.SRGB.value,
                        help="output colour space: CIELAB, sRGB (default) or AdobeRGB")
    parser.add_argument("-b", "--bits", default="8",
                        help="output bits per channel: 8 (default), 16 or 32")
    parser.add_argument("-x", "--width", type=int, help="hyperspectral image width")
    parser.add_argument("-y", "--height", type=int, help="hyperspectral image height")
    parser.add_argument("-c", "--channels", type=int,
                        help="number of bands in the hyperspectral cube")
    parser.add_argument("-m", "--compression", default="none", choices=list(COMPRESSIONS),
                        help="TIFF compression (default: none)")
    parser.add_argument("-j", "--workers", type=int, default=1,
                        help="scanlines rendered concurrently (default: 1)")
    parser.add_argument("--lab-overflow", default="clip", choices=LAB_OVERFLOW_MODES,
                        help="integer a*/b* out of range: clip (default) or wrap")
    parser.add_argument("-v", "--verbose", action="store_true", help="verbose output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _progress(done: int, total: int) -> None:
    sys.stderr.write(f"Processing: {done * 100 // total:3d}%\r")
    if done == total:
        sys.stderr.write("\n")
    sys.stderr.flush()


def _run(args: argparse.Namespace) -> None:
    config = RenderConfig(
        space=ColorSpace.parse(args.colorspace),
        illuminant=args.temperature,
        fmt=OutputFormat.from_bits(args.bits),
        lab_overflow=args.lab_overflow,
        workers=args.workers,
    )
    renderer = Renderer(config)

    with HyspexCube(args.input, width=args.width, height=args.height,
                    bands=args.channels) as cube:
        md = cube.metadata
        logger.info("Hyperspectral data cube: %dx%d pixels, %d bands",
                    md.sample_count, md.scanline_count, md.band_count)
        logger.info("Output colour space: %s, temperature %d K",
                    config.space.value, config.illuminant.temperature)
        with TiffSink(args.output, md.sample_count, md.scanline_count,
                      config.space, config.fmt, args.compression) as sink:
            renderer.render(cube, sink, progress=_progress if args.verbose else None)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        _run(args)
    except TintError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
