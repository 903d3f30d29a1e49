"""
Tests for rasters, pages and placed items.
"""

import numpy as np
import pytest

from scanlib.models import OutputPage, PlacedItem, ProcessedPage
from scanlib.raster import Raster


def test_raster_expands_to_rgba():
    gray = Raster(np.full((3, 5), 7, dtype=np.uint8))
    assert gray.data.shape == (3, 5, 4)
    assert gray.rgb[0, 0].tolist() == [7, 7, 7]
    assert gray.data[0, 0, 3] == 255
    assert gray.size == (5, 3)


@pytest.mark.parametrize("data", [
    np.zeros((2, 2, 3), dtype=np.float32),
    np.zeros((2, 2, 2), dtype=np.uint8),
    np.zeros((0, 4, 3), dtype=np.uint8),
])
def test_raster_rejects_bad_data(data):
    with pytest.raises(ValueError):
        Raster(data)


def test_with_rgb_keeps_alpha():
    data = np.zeros((2, 2, 4), dtype=np.uint8)
    data[:, :, 3] = 100
    raster = Raster(data)
    same_size = raster.with_rgb(np.full((2, 2, 3), 9, dtype=np.uint8))
    assert same_size.data[0, 0].tolist() == [9, 9, 9, 100]
    resized = raster.with_rgb(np.full((4, 4, 3), 9, dtype=np.uint8))
    assert resized.data[0, 0, 3] == 255


def test_processed_page(make_raster):
    page = ProcessedPage(raster=make_raster(300, 600))
    assert (page.width, page.height) == (300, 600)
    assert page.aspect_ratio == 0.5

    copy = page.clone()
    assert copy.id != page.id
    assert copy.raster is page.raster

    with pytest.raises(ValueError):
        ProcessedPage(raster=page.raster, rotation=45)


def test_placed_item_center_and_copy():
    item = PlacedItem(image_id='p', x=10, y=20, width=100, height=50)
    assert item.center == (60, 45)
    moved = item.copy(x=0)
    assert moved.id == item.id
    assert item.x == 10


def test_output_page_defaults():
    page = OutputPage()
    assert (page.width, page.height, page.dpi) == (2480, 3508, 300)
    assert page.center == (1240, 1754)
    assert page.physical_size('inches') == pytest.approx((2480 / 300, 3508 / 300))
