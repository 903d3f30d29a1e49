"""
Pages and placements shared by the editor, the session and the composer.
"""

import uuid
from dataclasses import dataclass, field, replace

from .config import PAGE_DPI, PAGE_HEIGHT_PX, PAGE_WIDTH_PX
from .filters import VALID_ROTATIONS, FilterSettings
from .unit_converter import UnitConverter


def new_id():
    return str(uuid.uuid4())


@dataclass(frozen=True, eq=False)
class ProcessedPage:
    """
    Result of one scan/edit cycle.

    Pages are immutable: edits produce a new page. Width and height mirror
    the raster size.
    """
    raster: object
    rotation: int = 0
    filters: FilterSettings = FilterSettings()
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        if self.rotation not in VALID_ROTATIONS:
            raise ValueError(f"Rotation must be one of {VALID_ROTATIONS}, got {self.rotation}")

    @property
    def width(self):
        return self.raster.width

    @property
    def height(self):
        return self.raster.height

    @property
    def aspect_ratio(self):
        return self.width / self.height

    def clone(self):
        """Same pixels under a new id"""
        return replace(self, id=new_id())


@dataclass
class PlacedItem:
    """
    A page positioned on the output page.

    (x, y) is the top-left corner of the unrotated box; rotation turns the
    box clockwise about its center. image_id refers to a ProcessedPage in
    the session by id only.
    """
    image_id: str
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0
    z_index: int = 0
    id: str = field(default_factory=new_id)

    @property
    def center(self):
        return self.x + self.width / 2, self.y + self.height / 2

    def copy(self, **changes):
        return replace(self, **changes)


@dataclass(frozen=True)
class OutputPage:
    """
    The fixed-size page that composed items are exported onto.

    Defaults to A4 at 300 DPI (2480x3508 px, 210x297 mm).
    """
    width: int = PAGE_WIDTH_PX
    height: int = PAGE_HEIGHT_PX
    dpi: int = PAGE_DPI

    @property
    def center(self):
        return self.width / 2, self.height / 2

    def physical_size(self, units="mm"):
        """Page size in physical units at the page DPI"""
        converter = UnitConverter(units=units, dpi=self.dpi)
        return converter.pixels_to_units(self.width), converter.pixels_to_units(self.height)
