# -*- coding: utf-8 -*-
# Tint: Rendering hyperspectral cubes through the eyes of a standard observer
#
# Copyright (c) 2026 opticsWolf
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Project metadata for the opticsWolf Tint renderer.
"""

from typing import Final

# Metadata Definitions
__title__: Final[str] = "Tint"
__description__: Final[str] = (
    "Generate a true colour CIE L*a*b*, sRGB or AdobeRGB image from a "
    "hyperspectral cube under a chosen illuminant."
)
__version__: Final[str] = "0.1.0"
__author__: Final[str] = "opticsWolf"
__license__: Final[str] = "LGPL-3.0-or-later"
__copyright__: Final[str] = "Copyright (c) 2026 opticsWolf"
