"""
PageEditor - one image's crop/rotate/filter editing session.
"""

import logging

from .config import HISTORY_LIMIT
from .corner_estimator import CornerEstimator
from .crop_editor import CropEditor
from .filters import FilterPipeline, FilterSettings
from .history import HistoryEntry, HistoryManager
from .models import ProcessedPage
from .perspective_warp import PerspectiveWarper


class PageEditor:
    """
    Edits a single decoded photo until it is saved as a ProcessedPage.

    Rotation and filter changes go through the undo history; the crop
    corners live in `crop` (a CropEditor in normalized coordinates of the
    unrotated source). Saving runs the stages in their fixed order:
    perspective warp (when corners are set), then the filter and rotation
    bake at export resolution.

    The host calls `crop.image_loaded()` once the image is on screen to
    get the default inset corners. Without corners, save() keeps the whole
    image.
    """

    def __init__(self, raster, corners=None, estimator=None, warper=None, pipeline=None,
                 history_limit=HISTORY_LIMIT, on_corners_change=None):
        """
        Args:
            raster: Decoded source Raster
            corners: Initial normalized corners [TL, TR, BR, BL], or None
            estimator: CornerEstimator used by auto_detect()
            warper: PerspectiveWarper used by save()
            pipeline: FilterPipeline used by preview() and save()
            history_limit: Number of undo steps kept
            on_corners_change: Observer for crop corner changes
        """
        self.estimator = estimator or CornerEstimator()
        self.warper = warper or PerspectiveWarper()
        self.pipeline = pipeline or FilterPipeline()
        self.crop = CropEditor(initial_corners=corners, on_corners_change=on_corners_change)
        self.history = HistoryManager(HistoryEntry(raster), limit=history_limit)

        # Set by save() when the warp could not be applied and the
        # unwarped image was used instead
        self.warp_degraded = False

    @property
    def source(self):
        return self.history.current.raster

    @property
    def rotation(self):
        return self.history.current.rotation

    @property
    def filters(self):
        return self.history.current.filters

    @property
    def corners(self):
        return self.crop.corners

    def _push(self, rotation=None, filters=None):
        current = self.history.current
        entry = HistoryEntry(raster=current.raster,
                             rotation=current.rotation if rotation is None else rotation,
                             filters=current.filters if filters is None else filters)
        return self.history.push(entry)

    def rotate(self, delta=90):
        """Rotate the page by a multiple of 90 degrees"""
        if delta % 90:
            raise ValueError(f"Rotation step must be a multiple of 90, got {delta}")
        return self._push(rotation=(self.rotation + delta) % 360)

    def apply_preset(self, name):
        """Replace the filters with a named preset (ORIGINAL, MAGIC, BW, GRAY)"""
        return self._push(filters=FilterSettings.preset(name))

    def set_filters(self, **changes):
        """Change individual filter values, e.g. set_filters(contrast=40)"""
        return self._push(filters=self.filters.updated(**changes))

    def auto_detect(self):
        """
        Propose crop corners from the image content.

        Returns:
            The new normalized corners, or None if detection failed (the
            current corners are kept)
        """
        source = self.source
        corners = self.estimator.estimate(source)
        if corners is None:
            logging.warning("Auto-detection failed, keeping current corners")
            return None
        self.crop.set_absolute_corners(corners, source.width, source.height)
        return self.crop.corners

    def undo(self):
        return self.history.undo() is not None

    def redo(self):
        return self.history.redo() is not None

    def can_undo(self):
        return self.history.can_undo()

    def can_redo(self):
        return self.history.can_redo()

    def preview(self):
        """
        Source with the current filters at preview resolution.

        The preview stays unrotated so crop handles drawn over it line up
        with the corners; the host displays it turned by `rotation`.
        """
        return self.pipeline.preview(self.source, self.filters)

    def save(self):
        """
        Produce the final page.

        Returns:
            ProcessedPage with the crop, rotation and filters baked in (its
            own rotation is 0 and its filters are neutral)

        Raises:
            InvalidGeometry: If the crop corners are degenerate
        """
        source = self.source
        image = source
        self.warp_degraded = False

        corners = self.crop.absolute_corners(source.width, source.height)
        if corners is not None:
            image = self.warper.warp(source, corners)
            self.warp_degraded = image is source

        baked = self.pipeline.render(image, self.filters, self.rotation)
        logging.info(f"Saved page {baked.width}x{baked.height}")
        return ProcessedPage(raster=baked)
