"""
PageComposer - arranges processed pages on the output page and exports it.
"""

import io
import logging
import math
from dataclasses import replace

import cv2
import numpy as np
from PIL import Image

from .codec import ImageCodec
from .config import (DUPLICATE_OFFSET, PLACEMENT_FALLBACK_Y, PLACEMENT_START_Y,
                     PLACEMENT_STEP_Y, PLACEMENT_WIDTH_RATIO)
from .errors import ExportFault
from .interaction import ComposerState, PointerEvent, normalize_rotation, step
from .models import OutputPage, PlacedItem
from .raster import Raster


class PageComposer:
    """
    Places pages on a fixed-size output page and flattens them to one image.

    Every PlacedItem refers to its ProcessedPage by id. Pages themselves live
    in the caller's arena (a mapping of id to ProcessedPage, normally the
    DocumentSession); the composer only needs it for sync and export.
    Removing an item reports the page id through `on_remove_page` so the
    owner can drop the page too. Duplicating an item asks `on_duplicate_page`
    for a new page id so each item keeps its own page.
    """

    def __init__(self, page=None, on_remove_page=None, on_duplicate_page=None):
        """
        Args:
            page: OutputPage to compose onto (default A4 @ 300 DPI)
            on_remove_page: Called with the image id of a deleted item
            on_duplicate_page: Called with an image id, returns the id of a
                copy of that page. Without it a duplicate shares the page id.
        """
        self.page = page or OutputPage()
        self.on_remove_page = on_remove_page
        self.on_duplicate_page = on_duplicate_page
        self.state = ComposerState(page=self.page)

    @property
    def items(self):
        return list(self.state.items)

    @property
    def selected_id(self):
        return self.state.selected_id

    @property
    def selected(self):
        return self.state.find(self.state.selected_id)

    @property
    def guides(self):
        return self.state.guides

    def item_for_page(self, image_id):
        for item in self.state.items:
            if item.image_id == image_id:
                return item
        return None

    def _next_z_index(self):
        return max((item.z_index for item in self.state.items), default=0) + 1

    def _set_items(self, items, selected_id=None):
        self.state = replace(self.state, items=tuple(items), selected_id=selected_id)

    def place(self, page):
        """
        Add a placed item for a page.

        The item is 40% of the page width with the page's aspect ratio,
        centered horizontally and stacked below the previous items. If the
        stack would run off the bottom it goes back to the top margin.

        Returns:
            The new PlacedItem
        """
        count = len(self.state.items)
        width = self.page.width * PLACEMENT_WIDTH_RATIO
        height = width / page.aspect_ratio
        x = (self.page.width - width) / 2
        y = PLACEMENT_START_Y + count * PLACEMENT_STEP_Y
        if y + height > self.page.height:
            y = PLACEMENT_FALLBACK_Y

        item = PlacedItem(image_id=page.id, x=x, y=y, width=width, height=height,
                          rotation=0.0, z_index=self._next_z_index())
        self._set_items(self.state.items + (item,), self.state.selected_id)
        logging.info(f"Placed page {page.id} at ({x:.0f}, {y:.0f}) size {width:.0f}x{height:.0f}")
        return item

    def sync(self, pages):
        """
        Bring the items in line with a collection of pages.

        Items whose page is gone are dropped (without notifying
        on_remove_page), and pages without an item are placed.

        Args:
            pages: Iterable of ProcessedPage in arrival order

        Returns:
            list: The newly placed items
        """
        pages = list(pages)
        page_ids = {page.id for page in pages}

        kept = [item for item in self.state.items if item.image_id in page_ids]
        if len(kept) != len(self.state.items):
            selected = self.state.selected_id
            if all(item.id != selected for item in kept):
                selected = None
            self._set_items(kept, selected)
            if self.state.active is not None and self.state.find(self.state.active.item_id) is None:
                self.state = replace(self.state, active=None)

        placed_ids = {item.image_id for item in self.state.items}
        return [self.place(page) for page in pages if page.id not in placed_ids]

    def select(self, item_id):
        """Select an item by id, or clear the selection with None"""
        if item_id is not None and self.state.find(item_id) is None:
            raise KeyError(f"No placed item with id {item_id}")
        self.state = replace(self.state, selected_id=item_id)

    def handle(self, event, view):
        """Feed a PointerEvent through the interaction state machine"""
        self.state, effects = step(self.state, event, view)
        return effects

    def pointer_down(self, item_id, mode, x, y, view):
        return self.handle(PointerEvent.down(x, y, item_id, mode), view)

    def pointer_move(self, x, y, view):
        return self.handle(PointerEvent.move(x, y), view)

    def pointer_up(self, view=None):
        return self.handle(PointerEvent.up(), view)

    def rotate_selected(self, delta=90):
        """
        Rotate the selected item by delta degrees, normalized to [0, 360).

        Returns:
            The updated item, or None when nothing is selected
        """
        item = self.selected
        if item is None:
            return None
        item = item.copy(rotation=normalize_rotation(item.rotation + delta))
        self.state = self.state.replace_item(item)
        return item

    def duplicate_selected(self):
        """
        Copy the selected item, offset by (+100, +100) and above every other item.

        Returns:
            The new item (now selected), or None when nothing is selected
        """
        item = self.selected
        if item is None:
            return None

        image_id = item.image_id
        if self.on_duplicate_page is not None:
            image_id = self.on_duplicate_page(item.image_id)

        duplicate = PlacedItem(image_id=image_id,
                               x=item.x + DUPLICATE_OFFSET, y=item.y + DUPLICATE_OFFSET,
                               width=item.width, height=item.height,
                               rotation=item.rotation, z_index=self._next_z_index())
        self._set_items(self.state.items + (duplicate,), duplicate.id)
        return duplicate

    def delete_selected(self):
        """
        Remove the selected item and report its page for removal.

        Returns:
            The removed item, or None when nothing is selected
        """
        item = self.selected
        if item is None:
            return None

        active = self.state.active
        if active is not None and active.item_id == item.id:
            self.state = replace(self.state, active=None)
        self._set_items([i for i in self.state.items if i.id != item.id], None)

        if self.on_remove_page is not None and self.item_for_page(item.image_id) is None:
            self.on_remove_page(item.image_id)
        return item

    def _paint(self, canvas, source, item):
        """Draw source onto canvas with the item's center/rotation/size transform"""
        src_h, src_w = source.shape[:2]

        # Shrink large sources first so the bilinear draw does not alias
        target_w = max(1, int(round(item.width)))
        target_h = max(1, int(round(item.height)))
        if src_w > target_w and src_h > target_h:
            source = cv2.resize(source, (target_w, target_h), interpolation=cv2.INTER_AREA)
            src_h, src_w = source.shape[:2]

        scale_x = item.width / src_w
        scale_y = item.height / src_h
        rad = math.radians(item.rotation)
        cos_r = math.cos(rad)
        sin_r = math.sin(rad)
        cx, cy = item.center

        # Source pixel centers -> item local frame -> rotate -> page pixel centers
        local_x = 0.5 * scale_x - item.width / 2
        local_y = 0.5 * scale_y - item.height / 2
        matrix = np.array([
            [cos_r * scale_x, -sin_r * scale_y, cx + cos_r * local_x - sin_r * local_y - 0.5],
            [sin_r * scale_x, cos_r * scale_y, cy + sin_r * local_x + cos_r * local_y - 0.5],
        ], dtype=np.float64)

        return cv2.warpAffine(source, matrix, (canvas.shape[1], canvas.shape[0]), dst=canvas,
                              flags=cv2.INTER_LINEAR, borderMode=cv2.BORDER_TRANSPARENT)

    def flatten(self, pages):
        """
        Render the output page: white background, items painted in
        ascending z_index order.

        Args:
            pages: Mapping of image id to ProcessedPage

        Returns:
            Raster of exactly the output page size

        Raises:
            ExportFault: If a page is missing or drawing fails
        """
        logging.info(f"Flattening {len(self.state.items)} item(s) onto "
                     f"{self.page.width}x{self.page.height} page")
        try:
            canvas = np.full((self.page.height, self.page.width, 3), 255, dtype=np.uint8)
            for item in sorted(self.state.items, key=lambda i: i.z_index):
                page = pages.get(item.image_id)
                if page is None:
                    raise ExportFault(f"No page for placed item {item.id} (image {item.image_id})")
                source = np.ascontiguousarray(page.raster.rgb)
                canvas = self._paint(canvas, source, item)
            return Raster(canvas)
        except ExportFault:
            raise
        except Exception as e:
            logging.error(f"Page export failed: {e}")
            raise ExportFault(f"Page export failed: {e}") from e

    def export_png(self, pages):
        """Flatten and encode the output page as PNG bytes"""
        raster = self.flatten(pages)
        try:
            return ImageCodec(dpi=self.page.dpi).encode(raster)
        except Exception as e:
            logging.error(f"PNG encoding failed: {e}")
            raise ExportFault(f"PNG encoding failed: {e}") from e

    def export_pdf(self, pages):
        """
        Flatten the output page into a one-page PDF.

        The page raster is embedded at the page DPI, so a 2480x3508 page
        comes out as 210x297 mm.
        """
        raster = self.flatten(pages)
        try:
            buffer = io.BytesIO()
            Image.fromarray(np.ascontiguousarray(raster.rgb)).save(
                buffer, "PDF", resolution=float(self.page.dpi))
            return buffer.getvalue()
        except Exception as e:
            logging.error(f"PDF encoding failed: {e}")
            raise ExportFault(f"PDF encoding failed: {e}") from e
