"""
Raster - the pixel buffer passed between pipeline stages.
"""

import numpy as np


class Raster:
    """
    An image as a packed RGBA buffer.

    Wraps a numpy array of shape (height, width, 4) and dtype uint8. Grayscale
    and RGB arrays are accepted and expanded, with alpha set to opaque.

    Rasters compare by identity: two decodes of the same file are different
    rasters. Stages never modify a raster in place; they return a new one.

    `dpi` is the resolution recorded in the decoded file, or None. Only
    decoded sources carry it; stage outputs do not.
    """

    def __init__(self, data, dpi=None):
        data = np.asarray(data)
        if data.dtype != np.uint8:
            raise ValueError(f"Raster data must be uint8, got {data.dtype}")

        if data.ndim == 2:
            data = np.repeat(data[:, :, np.newaxis], 3, axis=2)
        if data.ndim != 3 or data.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported raster shape {data.shape}")
        if data.shape[2] == 3:
            alpha = np.full(data.shape[:2] + (1,), 255, dtype=np.uint8)
            data = np.concatenate([data, alpha], axis=2)
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError("Raster must not be empty")

        self._data = np.ascontiguousarray(data)
        self.dpi = dpi

    @classmethod
    def blank(cls, width, height, color=(255, 255, 255)):
        """Create an opaque raster filled with a single RGB color"""
        data = np.empty((height, width, 4), dtype=np.uint8)
        data[:, :, :3] = color
        data[:, :, 3] = 255
        return cls(data)

    @property
    def data(self):
        return self._data

    @property
    def rgb(self):
        """View of the color channels, shape (height, width, 3)"""
        return self._data[:, :, :3]

    @property
    def width(self):
        return self._data.shape[1]

    @property
    def height(self):
        return self._data.shape[0]

    @property
    def size(self):
        return self.width, self.height

    def with_rgb(self, rgb):
        """Return a new raster with the given color channels and this alpha"""
        data = np.empty((rgb.shape[0], rgb.shape[1], 4), dtype=np.uint8)
        data[:, :, :3] = rgb
        if rgb.shape[:2] == self._data.shape[:2]:
            data[:, :, 3] = self._data[:, :, 3]
        else:
            data[:, :, 3] = 255
        return Raster(data)

    def __repr__(self):
        return f"Raster({self.width}x{self.height})"
