"""
Filter pipeline - pixel adjustments baked into scanned pages.

The order of operations is fixed: auto enhance ("magic"), then
brightness/contrast/grayscale, then threshold, then rotation.
"""

import logging
from dataclasses import asdict, dataclass, replace

import cv2
import numpy as np

from .config import EXPORT_MAX_SIDE, PREVIEW_MAX_SIDE
from .errors import ProcessingFault
from .raster import Raster

VALID_ROTATIONS = (0, 90, 180, 270)

# Rec. 709 luma weights used by the CSS grayscale() matrix
GRAY_R, GRAY_G, GRAY_B = 0.2126, 0.7152, 0.0722


@dataclass(frozen=True)
class FilterSettings:
    """
    Pixel adjustments for one page.

    brightness and contrast run from -100 to 100 with 0 meaning unchanged,
    grayscale from 0 (color) to 100 (fully gray), threshold from 0 (off) to
    255. auto_enhance enables the background-whitening "magic" filter.
    """
    brightness: int = 0
    contrast: int = 0
    grayscale: int = 0
    threshold: int = 0
    auto_enhance: bool = False

    def __post_init__(self):
        for name, low, high in (('brightness', -100, 100), ('contrast', -100, 100),
                                ('grayscale', 0, 100), ('threshold', 0, 255)):
            value = getattr(self, name)
            if not low <= value <= high:
                raise ValueError(f"{name} must be between {low} and {high}, got {value}")

    @classmethod
    def preset(cls, name):
        """
        Named filter combinations.

        ORIGINAL clears everything, MAGIC whitens the background and adds
        contrast, BW binarizes, GRAY desaturates.
        """
        try:
            return PRESETS[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown preset '{name}'. Choose from {', '.join(PRESETS)}") from None

    @property
    def is_identity(self):
        return self == PRESETS['ORIGINAL']

    def updated(self, **changes):
        return replace(self, **changes)

    def to_dict(self):
        return asdict(self)


PRESETS = {
    'ORIGINAL': FilterSettings(),
    'MAGIC': FilterSettings(brightness=20, contrast=30, auto_enhance=True),
    'BW': FilterSettings(contrast=15, grayscale=100, threshold=135),
    'GRAY': FilterSettings(contrast=5, grayscale=100),
}


def fit_size(width, height, max_side):
    """
    Scale (width, height) down so neither side exceeds max_side.

    Sizes that already fit are returned unchanged; nothing is upscaled.
    """
    if width > height:
        if width > max_side:
            return max_side, int(np.floor(height * max_side / width + 0.5))
    elif height > max_side:
        return int(np.floor(width * max_side / height + 0.5)), max_side
    return width, height


def luminance(rgb):
    rgb = rgb.astype(np.float64)
    return 0.299 * rgb[:, :, 0] + 0.587 * rgb[:, :, 1] + 0.114 * rgb[:, :, 2]


def apply_auto_enhance(rgb):
    """
    Approximation of a scanner app's "magic color" mode.

    Light pixels (luminance above 130) are pushed towards white by
    2.5x their distance from 130, which flattens paper texture and shadows.
    Dark pixels (below 80) are darkened by half their distance from 80.
    """
    lum = luminance(rgb)[:, :, np.newaxis]
    out = rgb.astype(np.float64)
    out += np.where(lum > 130, (lum - 130) * 2.5, 0.0)
    out -= np.where(lum < 80, (80 - lum) * 0.5, 0.0)
    return np.rint(np.clip(out, 0, 255)).astype(np.uint8)


def apply_adjustments(rgb, brightness=0, contrast=0, grayscale=0):
    """
    brightness(), contrast() and grayscale() in the CSS filter sense,
    applied left to right with clamping after each step.

    Args:
        rgb: uint8 array (height, width, 3)
        brightness: -100..100, multiplier (brightness + 100) / 100
        contrast: -100..100, slope (contrast + 100) / 100 around mid-gray
        grayscale: 0..100, amount grayscale / 100
    """
    b = (brightness + 100) / 100
    c = (contrast + 100) / 100
    g = grayscale / 100

    out = rgb.astype(np.float64) / 255.0
    if b != 1:
        out = np.clip(out * b, 0.0, 1.0)
    if c != 1:
        out = np.clip((out - 0.5) * c + 0.5, 0.0, 1.0)
    if g != 0:
        a = 1 - min(1.0, max(0.0, g))
        matrix = np.array([
            [GRAY_R + (1 - GRAY_R) * a, GRAY_G - GRAY_G * a, GRAY_B - GRAY_B * a],
            [GRAY_R - GRAY_R * a, GRAY_G + (1 - GRAY_G) * a, GRAY_B - GRAY_B * a],
            [GRAY_R - GRAY_R * a, GRAY_G - GRAY_G * a, GRAY_B + (1 - GRAY_B) * a],
        ])
        out = np.clip(out @ matrix.T, 0.0, 1.0)
    return np.rint(out * 255.0).astype(np.uint8)


def apply_threshold(rgb, level):
    """
    Binarize: pixels with luminance above level become white, others black.

    Luminance is compared in integer thousandths so pure white stays white
    when the filter runs again.
    """
    channels = rgb.astype(np.int64)
    lum_milli = 299 * channels[:, :, 0] + 587 * channels[:, :, 1] + 114 * channels[:, :, 2]
    value = np.where(lum_milli > level * 1000, 255, 0).astype(np.uint8)
    return np.repeat(value[:, :, np.newaxis], 3, axis=2)


def rotate_raster(raster, rotation):
    """Rotate clockwise by a multiple of 90 degrees about the center"""
    rotation = rotation % 360
    if rotation not in VALID_ROTATIONS:
        raise ValueError(f"Rotation must be one of {VALID_ROTATIONS}, got {rotation}")
    if rotation == 0:
        return raster
    rotation_code = {
        90: cv2.ROTATE_90_CLOCKWISE,
        180: cv2.ROTATE_180,
        270: cv2.ROTATE_90_COUNTERCLOCKWISE,
    }[rotation]
    return Raster(cv2.rotate(raster.data, rotation_code))


class FilterPipeline:
    """
    Renders a raster with FilterSettings and a rotation applied.

    Rendering first caps the raster size (4096 px for final output, 1600 px
    for previews), then runs the pixel stages in their fixed order. Stages
    whose settings are neutral are skipped, so the ORIGINAL preset returns
    the input pixels unchanged.
    """

    def __init__(self, max_side=EXPORT_MAX_SIDE, preview_max_side=PREVIEW_MAX_SIDE):
        self.max_side = max_side
        self.preview_max_side = preview_max_side

    def render(self, raster, filters, rotation=0, max_side=None, fallback=True):
        """
        Apply filters and rotation.

        Args:
            raster: Source Raster
            filters: FilterSettings
            rotation: 0, 90, 180 or 270
            max_side: Size cap, defaults to the export size
            fallback: On an unexpected failure return the source raster
                instead of raising ProcessingFault

        Returns:
            New Raster (or the source raster when nothing applies)
        """
        if rotation % 360 not in VALID_ROTATIONS:
            raise ValueError(f"Rotation must be one of {VALID_ROTATIONS}, got {rotation}")
        max_side = max_side or self.max_side

        try:
            return self._render(raster, filters, rotation, max_side)
        except Exception as e:
            logging.error(f"Filter rendering failed: {str(e)}")
            if not fallback:
                raise ProcessingFault(f"Filter rendering failed: {e}") from e
            logging.warning("Returning the unfiltered image")
            return raster

    def preview(self, raster, filters, rotation=0):
        """Render at preview resolution"""
        return self.render(raster, filters, rotation, max_side=self.preview_max_side)

    def _render(self, raster, filters, rotation, max_side):
        result = raster

        final_w, final_h = fit_size(raster.width, raster.height, max_side)
        if (final_w, final_h) != (raster.width, raster.height):
            logging.debug(f"Resizing {raster.width}x{raster.height} -> {final_w}x{final_h}")
            result = Raster(cv2.resize(raster.data, (final_w, final_h),
                                       interpolation=cv2.INTER_AREA))

        if not filters.is_identity:
            rgb = result.rgb
            if filters.auto_enhance:
                rgb = apply_auto_enhance(rgb)
            if filters.brightness or filters.contrast or filters.grayscale:
                rgb = apply_adjustments(rgb, filters.brightness, filters.contrast, filters.grayscale)
            if filters.threshold > 0:
                rgb = apply_threshold(rgb, filters.threshold)
            result = result.with_rgb(rgb)

        return rotate_raster(result, rotation)
