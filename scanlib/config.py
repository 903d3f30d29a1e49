"""
Named constants for the scanning pipeline.

Everything here is a default: the classes that use a value accept it as a
keyword argument, and the CLI exposes the ones worth tuning as flags.
"""

# Output page (A4 @ 300 DPI)
PAGE_DPI = 300
PAGE_WIDTH_PX = 2480
PAGE_HEIGHT_PX = 3508
PAGE_WIDTH_MM = 210
PAGE_HEIGHT_MM = 297

# Perspective warp
WARP_MIN_OUTPUT_SIZE = 2000
WARP_CHUNK_PIXELS = 1 << 20  # output pixels sampled per batch

# Filter rendering
EXPORT_MAX_SIDE = 4096
PREVIEW_MAX_SIDE = 1600

# Corner estimator
ESTIMATOR_MAX_DIMENSION = 800
ESTIMATOR_THRESHOLD = 30
ESTIMATOR_STRIDE = 5
ESTIMATOR_PADDING = 10
DEFAULT_INSET = 0.1

# Composer
PLACEMENT_WIDTH_RATIO = 0.4
PLACEMENT_START_Y = 150
PLACEMENT_STEP_Y = 400
PLACEMENT_FALLBACK_Y = 100
SNAP_TOLERANCE = 20
ROTATE_SNAP_DEGREES = 5
MIN_ITEM_WIDTH = 50
DUPLICATE_OFFSET = 100

# History
HISTORY_LIMIT = 20

# Input validation
MAX_INPUT_BYTES = 10 * 1024 * 1024

# PDF input is rendered at this multiple of its 72 DPI page size
PDF_RENDER_SCALE = 2.0
