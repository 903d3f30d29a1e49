"""
CornerEstimator - proposes a document boundary for manual adjustment.
"""

import logging

import cv3
import numpy as np

from .config import (DEFAULT_INSET, ESTIMATOR_MAX_DIMENSION, ESTIMATOR_PADDING,
                     ESTIMATOR_STRIDE, ESTIMATOR_THRESHOLD)
from .geometry import Point, inset_quad


class CornerEstimator:
    """
    Estimates document corners by separating content from background.

    This is a bounding-box heuristic, not contour detection: the top-left
    pixel is taken as the background color and every sampled pixel that
    differs from it by more than a color distance threshold counts as
    document. The box around those pixels is the proposal. It works for a
    page photographed on a plain, contrasting surface and is expected to be
    corrected by hand otherwise.

    Supports:
    - Light documents on dark backgrounds
    - Dark documents on light backgrounds
    - Uniform images (falls back to a 10% inset rectangle)
    """

    def __init__(self, threshold=ESTIMATOR_THRESHOLD, stride=ESTIMATOR_STRIDE,
                 max_dimension=ESTIMATOR_MAX_DIMENSION, padding=ESTIMATOR_PADDING,
                 inset=DEFAULT_INSET):
        """
        Initialize the corner estimator

        Args:
            threshold: RGB distance from the background that counts as content
            stride: Sample every Nth pixel in both axes
            max_dimension: Longest side of the working copy
            padding: Pixels added around the content box (working-copy space)
            inset: Fractional inset of the fallback rectangle
        """
        if stride < 1:
            raise ValueError("Stride must be at least 1")
        if max_dimension < 1:
            raise ValueError("Working size must be positive")

        self.threshold = threshold
        self.stride = stride
        self.max_dimension = max_dimension
        self.padding = padding
        self.inset = inset

    def working_size(self, width, height):
        """Size of the downsampled copy used for scanning"""
        if width > self.max_dimension or height > self.max_dimension:
            ratio = min(self.max_dimension / width, self.max_dimension / height)
            return max(1, int(round(width * ratio))), max(1, int(round(height * ratio)))
        return width, height

    def estimate(self, raster):
        """
        Propose document corners for a raster.

        Args:
            raster: Source Raster

        Returns:
            Tuple of 4 Points in source pixels ordered as:
            [top-left, top-right, bottom-right, bottom-left].
            Uniform images yield the inset fallback rectangle.
            Returns None if processing fails.
        """
        if raster is None:
            return None

        logging.info("Auto-detecting corners")

        try:
            image = raster.rgb
            h, w = image.shape[:2]

            # Downsample for speed
            work_w, work_h = self.working_size(w, h)
            if (work_w, work_h) != (w, h):
                small = cv3.resize(np.ascontiguousarray(image), work_w, work_h)
            else:
                small = image

            # Background color sampled from the top-left pixel
            background = small[0, 0].astype(np.float64)

            sampled = small[::self.stride, ::self.stride].astype(np.float64)
            distance = np.sqrt(((sampled - background) ** 2).sum(axis=2))
            rows, cols = np.nonzero(distance > self.threshold)

            if len(rows) == 0:
                logging.info("No content boundary found, using inset rectangle")
                return inset_quad(w, h, self.inset)

            min_x = int(cols.min()) * self.stride
            max_x = int(cols.max()) * self.stride
            min_y = int(rows.min()) * self.stride
            max_y = int(rows.max()) * self.stride

            # A single row or column of content is not a usable box
            if min_x >= max_x or min_y >= max_y:
                logging.info("Content boundary is degenerate, using inset rectangle")
                return inset_quad(w, h, self.inset)

            # Add a small padding
            min_x = max(0, min_x - self.padding)
            min_y = max(0, min_y - self.padding)
            max_x = min(work_w, max_x + self.padding)
            max_y = min(work_h, max_y + self.padding)

            # Scale back up to original coordinates
            scale_x = w / work_w
            scale_y = h / work_h

            return (Point(min_x * scale_x, min_y * scale_y),
                    Point(max_x * scale_x, min_y * scale_y),
                    Point(max_x * scale_x, max_y * scale_y),
                    Point(min_x * scale_x, max_y * scale_y))

        except Exception as e:
            logging.error(f"Auto-detection failed: {str(e)}")
            return None
