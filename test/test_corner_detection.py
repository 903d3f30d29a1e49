"""
Test corner estimation on synthetic document photos
"""

import numpy as np
import pytest

from scanlib.corner_estimator import CornerEstimator
from scanlib.geometry import inset_quad
from scanlib.raster import Raster


def bounding_box(corners):
    xs = [p[0] for p in corners]
    ys = [p[1] for p in corners]
    return min(xs), min(ys), max(xs), max(ys)


def test_light_page_on_dark_desk(document_photo, document_corners):
    corners = CornerEstimator().estimate(document_photo)
    assert corners is not None
    assert len(corners) == 4

    left, top, right, bottom = bounding_box(corners)
    doc_left, doc_top, doc_right, doc_bottom = bounding_box(document_corners)

    # Proposal encloses the page, with at most padding plus stride to spare
    slack = 35
    assert doc_left - slack <= left <= doc_left
    assert doc_top - slack <= top <= doc_top
    assert doc_right <= right <= doc_right + slack
    assert doc_bottom <= bottom <= doc_bottom + slack


def test_corners_are_ordered(document_photo):
    tl, tr, br, bl = CornerEstimator().estimate(document_photo)
    assert tl.x < tr.x and bl.x < br.x
    assert tl.y < bl.y and tr.y < br.y


def test_dark_page_on_light_desk():
    data = np.full((400, 600, 3), 240, dtype=np.uint8)
    data[100:300, 150:450] = 30
    corners = CornerEstimator(stride=1, padding=0).estimate(Raster(data))

    assert corners[0] == (150, 100)
    assert corners[2] == (449, 299)


def test_uniform_image_falls_back_to_inset(make_raster):
    raster = make_raster(1200, 900, (128, 128, 128))
    corners = CornerEstimator().estimate(raster)
    assert corners == inset_quad(1200, 900, 0.1)


def test_single_line_of_content_falls_back(make_raster):
    data = np.zeros((100, 100, 3), dtype=np.uint8)
    data[50, 10:90] = 255
    corners = CornerEstimator(stride=1).estimate(Raster(data))
    assert corners == inset_quad(100, 100, 0.1)


def test_threshold_is_configurable():
    data = np.full((200, 200, 3), 100, dtype=np.uint8)
    data[50:150, 50:150] = 120  # distance ~34.6 from the background

    assert CornerEstimator(threshold=30, stride=1, padding=0).estimate(Raster(data))[0] == (50, 50)
    fallback = CornerEstimator(threshold=40, stride=1, padding=0).estimate(Raster(data))
    assert fallback == inset_quad(200, 200, 0.1)


def test_working_size():
    estimator = CornerEstimator()
    assert estimator.working_size(4000, 3000) == (800, 600)
    assert estimator.working_size(640, 480) == (640, 480)


def test_invalid_stride():
    with pytest.raises(ValueError):
        CornerEstimator(stride=0)


def test_failure_returns_none():
    class Broken:
        @property
        def rgb(self):
            raise RuntimeError("no pixels")

    assert CornerEstimator().estimate(Broken()) is None
    assert CornerEstimator().estimate(None) is None
