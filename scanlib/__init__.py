"""
Docscan library modules - document scanning pipeline and page composition.
"""

from .errors import ScanError, DecodeFailure, InvalidGeometry, ProcessingFault, ExportFault
from .raster import Raster
from .codec import ImageCodec
from .geometry import Point, order_points, solve_homography, apply_homography
from .perspective_warp import PerspectiveWarper
from .corner_estimator import CornerEstimator
from .filters import FilterSettings, FilterPipeline, PRESETS
from .crop_editor import CropEditor, ImageBox
from .history import HistoryEntry, HistoryManager
from .models import ProcessedPage, PlacedItem, OutputPage
from .unit_converter import UnitConverter
from .viewport import PageViewport
from .interaction import ComposerState, PointerEvent, step
from .composer import PageComposer
from .editor import PageEditor
from .session import DocumentSession

__all__ = [
    'ScanError',
    'DecodeFailure',
    'InvalidGeometry',
    'ProcessingFault',
    'ExportFault',
    'Raster',
    'ImageCodec',
    'Point',
    'order_points',
    'solve_homography',
    'apply_homography',
    'PerspectiveWarper',
    'CornerEstimator',
    'FilterSettings',
    'FilterPipeline',
    'PRESETS',
    'CropEditor',
    'ImageBox',
    'HistoryEntry',
    'HistoryManager',
    'ProcessedPage',
    'PlacedItem',
    'OutputPage',
    'UnitConverter',
    'PageViewport',
    'ComposerState',
    'PointerEvent',
    'step',
    'PageComposer',
    'PageEditor',
    'DocumentSession',
]
