"""
Tests for the corner-handle crop editor.
"""

import pytest

from scanlib.crop_editor import BOTTOM_RIGHT, TOP_LEFT, TOP_RIGHT, CropEditor, ImageBox
from scanlib.geometry import inset_quad

BOX = ImageBox(left=50, top=20, width=400, height=300)


@pytest.fixture
def changes():
    return []


@pytest.fixture
def editor(changes):
    editor = CropEditor(on_corners_change=changes.append)
    editor.image_loaded()
    return editor


def test_image_load_sets_inset_default_and_notifies(editor, changes):
    assert editor.corners == inset_quad(1.0, 1.0, 0.1)
    assert changes == [editor.corners]


def test_initial_corners_are_kept_on_load(changes):
    initial = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
    editor = CropEditor(initial_corners=initial, on_corners_change=changes.append)
    editor.image_loaded()
    assert editor.corners == tuple(initial)
    assert changes == []


def test_drag_moves_only_the_grabbed_corner(editor, changes):
    before = editor.corners
    assert editor.pointer_down(TOP_RIGHT)
    assert editor.dragging_corner == TOP_RIGHT

    assert editor.pointer_move(50 + 300, 20 + 60, BOX)
    assert editor.corners[1] == pytest.approx((0.75, 0.2))
    assert editor.corners[0] == before[0]
    assert editor.corners[2:] == before[2:]
    assert len(changes) == 2

    assert editor.pointer_up()
    assert editor.dragging_corner is None


def test_drag_is_clamped_to_image(editor):
    editor.pointer_down(BOTTOM_RIGHT)
    editor.pointer_move(1000, -500, BOX)
    assert editor.corners[2] == (1.0, 0.0)


def test_single_pointer_capture(editor):
    assert editor.pointer_down(TOP_LEFT, pointer_id=1)
    assert not editor.pointer_down(BOTTOM_RIGHT, pointer_id=2)
    assert editor.dragging_corner == TOP_LEFT

    # Moves and releases from another pointer are ignored
    assert not editor.pointer_move(60, 30, BOX, pointer_id=2)
    assert not editor.pointer_up(pointer_id=2)
    assert editor.dragging_corner == TOP_LEFT

    assert editor.pointer_up(pointer_id=1)
    assert editor.pointer_down(BOTTOM_RIGHT, pointer_id=2)


def test_move_without_drag_does_nothing(editor, changes):
    assert not editor.pointer_move(100, 100, BOX)
    assert len(changes) == 1


def test_unknown_handle():
    with pytest.raises(ValueError):
        CropEditor().pointer_down('MIDDLE')


def test_no_drag_before_corners_exist():
    assert not CropEditor().pointer_down(TOP_LEFT)


def test_handle_hit_test(editor):
    # Top-left handle sits at 10% of the box
    assert editor.handle_at(50 + 40 + 5, 20 + 30 - 5, BOX) == TOP_LEFT
    assert editor.handle_at(250, 170, BOX) is None


def test_absolute_corners(editor):
    corners = editor.absolute_corners(1000, 500)
    assert corners[0] == pytest.approx((100, 50))
    assert corners[2] == pytest.approx((900, 450))
    assert CropEditor().absolute_corners(10, 10) is None


def test_set_absolute_corners(editor, changes):
    editor.set_absolute_corners([(0, 0), (200, 0), (200, 100), (0, 100)], 400, 200)
    assert editor.corners[2] == (0.5, 0.5)
    assert changes[-1] == editor.corners
