"""
CropEditor - four draggable corner handles over a displayed image.
"""

from collections import namedtuple

import numpy as np

from .config import DEFAULT_INSET
from .geometry import Point, as_quad, denormalize_quad, inset_quad, normalize_quad

# Where the image is drawn on screen: left/top offset and rendered size
ImageBox = namedtuple('ImageBox', ['left', 'top', 'width', 'height'])

TOP_LEFT = 'TL'
TOP_RIGHT = 'TR'
BOTTOM_RIGHT = 'BR'
BOTTOM_LEFT = 'BL'

# Position of each handle in the corner tuple
HANDLES = (TOP_LEFT, TOP_RIGHT, BOTTOM_RIGHT, BOTTOM_LEFT)


class CropEditor:
    """
    Holds the crop quadrilateral in normalized [0, 1] image coordinates
    and applies pointer input to it.

    Only one handle can be dragged at a time: the pointer that grabbed it
    owns the drag until it is released, and other pointers are ignored.
    The observer callback receives the corners after every change.
    """

    def __init__(self, initial_corners=None, on_corners_change=None,
                 inset=DEFAULT_INSET, hit_threshold=24):
        """
        Args:
            initial_corners: Normalized [TL, TR, BR, BL] corners, or None to
                use the inset default once the image has loaded
            on_corners_change: Called with the corner tuple on every change
            inset: Fraction inset of the default rectangle
            hit_threshold: Screen distance within which a press grabs a handle
        """
        self.on_corners_change = on_corners_change
        self.inset = inset
        self.hit_threshold = hit_threshold

        self.corners = self._normalized(initial_corners) if initial_corners is not None else None
        self.dragging_corner = None
        self._pointer_id = None

    @staticmethod
    def _normalized(corners):
        corners = as_quad(corners)
        return tuple(Point(min(1.0, max(0.0, x)), min(1.0, max(0.0, y))) for x, y in corners)

    def _notify(self):
        if self.on_corners_change is not None:
            self.on_corners_change(self.corners)

    def image_loaded(self):
        """
        Called once the image is displayed. Without corners the default
        inset rectangle is used and reported to the observer.
        """
        if self.corners is None:
            self.corners = inset_quad(1.0, 1.0, self.inset)
            self._notify()

    def set_corners(self, corners):
        """Replace all four corners (e.g. with an auto-detected proposal)"""
        self.corners = self._normalized(corners)
        self._notify()

    def set_absolute_corners(self, corners, width, height):
        """Replace the corners with pixel coordinates of a width x height image"""
        self.set_corners(normalize_quad(corners, width, height))

    def absolute_corners(self, width, height):
        """Corners in pixel coordinates of a width x height image"""
        if self.corners is None:
            return None
        return denormalize_quad(self.corners, width, height)

    def corner_position(self, handle, image_box):
        """Screen position of a handle"""
        x, y = self.corners[HANDLES.index(handle)]
        return image_box.left + x * image_box.width, image_box.top + y * image_box.height

    def handle_at(self, x, y, image_box):
        """
        Find the handle under a screen position.

        Returns:
            Handle name of the nearest handle within hit_threshold, or None
        """
        if self.corners is None:
            return None

        best = None
        best_distance = None
        for handle in HANDLES:
            hx, hy = self.corner_position(handle, image_box)
            distance = np.hypot(x - hx, y - hy)
            if distance <= self.hit_threshold and (best_distance is None or distance < best_distance):
                best = handle
                best_distance = distance
        return best

    def pointer_down(self, handle, pointer_id=0):
        """
        Start dragging a handle.

        Returns:
            bool: True if the drag started. False while another drag is active
            or before corners exist.
        """
        if handle not in HANDLES:
            raise ValueError(f"Unknown handle '{handle}'")
        if self.corners is None or self.dragging_corner is not None:
            return False

        self.dragging_corner = handle
        self._pointer_id = pointer_id
        return True

    def pointer_move(self, x, y, image_box, pointer_id=0):
        """
        Move the dragged handle to a screen position.

        The position is converted to image-relative coordinates and clamped
        to [0, 1]; the other three corners are untouched.

        Returns:
            bool: True if a corner moved
        """
        if self.dragging_corner is None or pointer_id != self._pointer_id:
            return False
        if image_box.width <= 0 or image_box.height <= 0:
            return False

        relative_x = min(1.0, max(0.0, (x - image_box.left) / image_box.width))
        relative_y = min(1.0, max(0.0, (y - image_box.top) / image_box.height))

        corners = list(self.corners)
        corners[HANDLES.index(self.dragging_corner)] = Point(relative_x, relative_y)
        self.corners = tuple(corners)
        self._notify()
        return True

    def pointer_up(self, pointer_id=0):
        """Release the drag held by pointer_id"""
        if self.dragging_corner is None or pointer_id != self._pointer_id:
            return False
        self.dragging_corner = None
        self._pointer_id = None
        return True
