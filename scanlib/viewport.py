"""
PageViewport - zoom, pan and coordinate conversion for the composer page.
"""

from .models import OutputPage

ZOOM_STEP = 1.2
MIN_ZOOM = 0.1
MAX_ZOOM = 10.0


class PageViewport:
    """
    Maps between output-page pixels and screen pixels.

    The page is fitted into the screen area with a margin (narrow screens
    use most of the width, wide screens fit the whole page), then the user
    zoom and pan are applied on top. The composer uses the effective scale
    to turn pointer deltas into page units and to locate item centers on
    screen.
    """

    def __init__(self, screen_width, screen_height, page=None, margin=40, narrow_width=768):
        self.page = page or OutputPage()
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.margin = margin
        self.narrow_width = narrow_width

        # Zoom and pan state
        self.zoom_level = 1.0
        self.pan_offset = [0.0, 0.0]
        self.base_scale_factor = self.fit_scale()

        self.pan_anchor = None

        self.center_page()

    def fit_scale(self):
        """Scale that fits the page into the screen area"""
        scale_w = (self.screen_width - self.margin) / self.page.width
        scale_h = (self.screen_height - self.margin) / self.page.height

        if self.screen_width < self.narrow_width:
            # Narrow screens show 85% of the width so the page edges stay visible
            return min(scale_w * 0.85, 1.0)
        return min(scale_h, scale_w, 1.0) * 0.9

    @property
    def scale(self):
        """Effective page-to-screen scale (fit scale times zoom)"""
        return self.base_scale_factor * self.zoom_level

    def update_screen_size(self, width, height):
        """Update screen dimensions and refit the page"""
        self.screen_width = width
        self.screen_height = height
        self.base_scale_factor = self.fit_scale()
        self.center_page()

    def center_page(self):
        """Place the page in the middle of the screen at the current scale"""
        self.pan_offset = [(self.screen_width - self.page.width * self.scale) / 2.0,
                           (self.screen_height - self.page.height * self.scale) / 2.0]

    def zoom_in(self, center_x=None, center_y=None):
        """Enlarge by one zoom step about a screen point (default: screen middle)"""
        self._zoom(min(self.zoom_level * ZOOM_STEP, MAX_ZOOM), center_x, center_y)

    def zoom_out(self, center_x=None, center_y=None):
        """Shrink by one zoom step about a screen point (default: screen middle)"""
        self._zoom(max(self.zoom_level / ZOOM_STEP, MIN_ZOOM), center_x, center_y)

    def _zoom(self, new_zoom, center_x, center_y):
        anchor_x = self.screen_width / 2 if center_x is None else center_x
        anchor_y = self.screen_height / 2 if center_y is None else center_y

        # The page point under the anchor stays under the anchor
        page_x, page_y = self.screen_to_page(anchor_x, anchor_y)
        self.zoom_level = new_zoom
        self.pan_offset = [anchor_x - page_x * self.scale,
                           anchor_y - page_y * self.scale]

    def zoom_fit(self):
        """Drop user zoom and recenter the page"""
        self.zoom_level = 1.0
        self.center_page()

    def get_zoom_percentage(self):
        """Effective page scale in percent, as shown in the zoom label"""
        return int(self.scale * 100)

    def screen_to_page(self, screen_x, screen_y):
        """Convert screen coordinates to page coordinates"""
        return ((screen_x - self.pan_offset[0]) / self.scale,
                (screen_y - self.pan_offset[1]) / self.scale)

    def page_to_screen(self, page_x, page_y):
        """Convert page coordinates to screen coordinates"""
        return (page_x * self.scale + self.pan_offset[0],
                page_y * self.scale + self.pan_offset[1])

    def start_pan(self, x, y):
        """Anchor a pan gesture at a screen point"""
        self.pan_anchor = (x, y)

    def update_pan(self, x, y):
        """
        Move the page with the pointer.

        Returns:
            True if a pan gesture is active and the offset changed
        """
        if self.pan_anchor is None:
            return False
        last_x, last_y = self.pan_anchor
        self.pan_offset[0] += x - last_x
        self.pan_offset[1] += y - last_y
        self.pan_anchor = (x, y)
        return True

    def end_pan(self):
        self.pan_anchor = None
