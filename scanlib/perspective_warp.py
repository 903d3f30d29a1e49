"""
PerspectiveWarper - flattens a photographed document into a rectangle.
"""

import logging

import numpy as np

from .config import WARP_CHUNK_PIXELS, WARP_MIN_OUTPUT_SIZE
from .errors import InvalidGeometry, ProcessingFault
from .geometry import as_quad, edge_lengths, rectangle, solve_homography
from .raster import Raster

# Sampling slack so coordinates that land on the source edge up to
# floating point noise still count as inside the source
EDGE_TOLERANCE = 1e-6


class PerspectiveWarper:
    """
    Perspective-corrects the region of a raster bounded by four corners.

    Output pixels are produced by inverse mapping: every pixel of the output
    rectangle is projected back into the source with the homography from the
    rectangle to the corner quadrilateral and bilinearly sampled there, so
    the output has no holes. Output rows are processed in chunks to keep
    memory bounded on large pages.
    """

    def __init__(self, min_output_size=WARP_MIN_OUTPUT_SIZE, chunk_pixels=WARP_CHUNK_PIXELS):
        """
        Args:
            min_output_size: Outputs whose longer side is smaller than this
                are upscaled so the longer side matches it exactly
            chunk_pixels: Approximate number of output pixels sampled at once
        """
        self.min_output_size = min_output_size
        self.chunk_pixels = chunk_pixels

    def output_size(self, corners):
        """
        Calculate the flattened page size for a quadrilateral.

        Width is the longer of the top and bottom edges, height the longer
        of the left and right edges, which avoids squashing either axis
        when the photo was taken at an angle.

        Returns:
            (width, height, scale_factor)

        Raises:
            InvalidGeometry: If the quadrilateral has no area to flatten
        """
        top, right, bottom, left = edge_lengths(corners)
        width = int(round(max(top, bottom)))
        height = int(round(max(left, right)))
        if width < 1 or height < 1:
            raise InvalidGeometry(f"Corners collapse to a {width}x{height} page")

        scale_factor = 1.0
        longest = max(width, height)
        if longest < self.min_output_size:
            scale_factor = self.min_output_size / longest
            width = max(1, int(round(width * scale_factor)))
            height = max(1, int(round(height * scale_factor)))

        return width, height, scale_factor

    def warp(self, raster, corners, fallback=True):
        """
        Flatten the quadrilateral region of a raster.

        Args:
            raster: Source Raster
            corners: Four absolute pixel corners [TL, TR, BR, BL]
            fallback: Return the source unchanged when sampling fails
                (the editing session keeps a usable image). With False the
                failure is raised as ProcessingFault.

        Returns:
            New Raster of the computed output size

        Raises:
            InvalidGeometry: Degenerate corners
            ProcessingFault: Sampling failed and fallback is False
        """
        corners = as_quad(corners)
        width, height, scale_factor = self.output_size(corners)
        logging.info(f"Perspective warp: {raster.width}x{raster.height} -> "
                     f"{width}x{height} (scale {scale_factor:.3f})")

        # Inverse mapping: output rectangle -> source quadrilateral
        h = solve_homography(rectangle(width, height), corners)

        try:
            data = self._sample(raster.data, h, width, height)
        except Exception as e:
            logging.error(f"Perspective warp failed: {str(e)}")
            if not fallback:
                raise ProcessingFault(f"Perspective warp failed: {e}") from e
            logging.warning("Returning the unwarped image")
            return raster

        return Raster(data)

    def _sample(self, src, h, width, height):
        """Inverse-map and bilinearly sample every output pixel"""
        h = np.asarray(h, dtype=np.float64).ravel()
        src_h, src_w = src.shape[:2]
        max_x = src_w - 1
        max_y = src_h - 1

        # Pre-initialized white; pixels mapping outside the source stay white
        out = np.full((height, width, 4), 255, dtype=np.uint8)

        xs = np.arange(width, dtype=np.float64)
        rows_per_chunk = max(1, self.chunk_pixels // width)
        valid_pixels = 0

        for row_start in range(0, height, rows_per_chunk):
            row_end = min(height, row_start + rows_per_chunk)
            ys = np.arange(row_start, row_end, dtype=np.float64)
            gx, gy = np.meshgrid(xs, ys)

            denominator = h[6] * gx + h[7] * gy + h[8]
            with np.errstate(divide='ignore', invalid='ignore'):
                src_x = (h[0] * gx + h[1] * gy + h[2]) / denominator
                src_y = (h[3] * gx + h[4] * gy + h[5]) / denominator

            # Corners are pixel edges (0..w); samples past the last pixel
            # center clamp to the last row/column
            inside = (np.isfinite(src_x) & np.isfinite(src_y)
                      & (src_x >= -EDGE_TOLERANCE) & (src_x <= src_w + EDGE_TOLERANCE)
                      & (src_y >= -EDGE_TOLERANCE) & (src_y <= src_h + EDGE_TOLERANCE))
            if not inside.any():
                continue

            sx = np.clip(src_x[inside], 0, max_x)
            sy = np.clip(src_y[inside], 0, max_y)
            x1 = np.floor(sx).astype(np.intp)
            y1 = np.floor(sy).astype(np.intp)
            # Neighbours clamp at the last row/column, where their weight is zero
            x2 = np.minimum(x1 + 1, max_x)
            y2 = np.minimum(y1 + 1, max_y)
            x_frac = (sx - x1)[:, np.newaxis]
            y_frac = (sy - y1)[:, np.newaxis]

            v11 = src[y1, x1, :3].astype(np.float64)
            v21 = src[y1, x2, :3].astype(np.float64)
            v12 = src[y2, x1, :3].astype(np.float64)
            v22 = src[y2, x2, :3].astype(np.float64)

            # Interpolate horizontally, then vertically
            top = v11 * (1 - x_frac) + v21 * x_frac
            bottom = v12 * (1 - x_frac) + v22 * x_frac
            value = top * (1 - y_frac) + bottom * y_frac

            block = out[row_start:row_end]
            block[inside, :3] = np.clip(np.floor(value + 0.5), 0, 255).astype(np.uint8)
            valid_pixels += int(inside.sum())

        logging.debug(f"Perspective warp sampled {valid_pixels}/{width * height} pixels")
        return out
