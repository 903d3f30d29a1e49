"""
Shared fixtures: synthetic document photos drawn with OpenCV.
"""

import io

import cv2
import numpy as np
import pytest
from PIL import Image

from scanlib.raster import Raster

# Colors (RGB)
DARK_GREY_BG = (60, 60, 60)
PAPER = (235, 235, 225)
INK = (20, 20, 20)


class FlatView:
    """Stand-in for PageViewport: page and screen coordinates coincide at `scale`"""

    def __init__(self, scale=1.0):
        self.scale = scale

    def page_to_screen(self, x, y):
        return x * self.scale, y * self.scale


def draw_document(width, height, corners, background=DARK_GREY_BG, paper=PAPER):
    """
    Draw a sheet of paper with a few text-like bars, seen in perspective.

    The flat sheet is rendered first and then warped onto `corners` over a
    plain background, which is how a phone photo of a page on a desk looks.
    """
    sheet_w, sheet_h = 420, 594
    sheet = np.full((sheet_h, sheet_w, 3), paper, dtype=np.uint8)
    for row in range(60, sheet_h - 60, 40):
        cv2.rectangle(sheet, (50, row), (sheet_w - 50, row + 12), INK, -1)

    src = np.float32([[0, 0], [sheet_w, 0], [sheet_w, sheet_h], [0, sheet_h]])
    dst = np.float32(corners)
    matrix = cv2.getPerspectiveTransform(src, dst)

    image = np.full((height, width, 3), background, dtype=np.uint8)
    return cv2.warpPerspective(sheet, matrix, (width, height), dst=image,
                               borderMode=cv2.BORDER_TRANSPARENT)


@pytest.fixture
def document_corners():
    return [(200, 150), (780, 190), (760, 640), (230, 610)]


@pytest.fixture
def document_photo(document_corners):
    """1000x800 photo of a page on a dark desk"""
    return Raster(draw_document(1000, 800, document_corners))


@pytest.fixture
def make_raster():
    """Factory for solid-color rasters"""
    def _make(width, height, color=(255, 255, 255)):
        return Raster.blank(width, height, color)
    return _make


@pytest.fixture
def gradient_raster():
    """Raster with distinct values in every pixel, for exact-pixel checks"""
    rng = np.random.default_rng(1234)
    return Raster(rng.integers(0, 256, size=(60, 2000, 3), dtype=np.uint8))


@pytest.fixture
def flat_view():
    return FlatView()


@pytest.fixture
def png_bytes(make_raster):
    from scanlib.codec import ImageCodec
    return ImageCodec().encode(make_raster(64, 48, (10, 120, 200)))


def make_pdf(*pages):
    """
    Build a PDF with one solid-color page per (width, height, color).

    Pages are saved at 72 DPI, so a page is as many points as the image
    has pixels.
    """
    images = [Image.new('RGB', (width, height), color) for width, height, color in pages]
    buffer = io.BytesIO()
    images[0].save(buffer, 'PDF', resolution=72.0, save_all=True, append_images=images[1:])
    return buffer.getvalue()


@pytest.fixture
def pdf_bytes():
    """Two-page PDF: a red landscape page, then a blue portrait page"""
    return make_pdf((40, 30, (200, 30, 30)), (30, 40, (30, 30, 200)))
