"""
Exception types raised by the scanning pipeline.
"""


class ScanError(Exception):
    """Base class for every error the pipeline reports."""


class DecodeFailure(ScanError, ValueError):
    """A source image could not be loaded or decoded."""


class InvalidGeometry(ScanError, ValueError):
    """
    Corner points are degenerate (collinear, collapsed, or otherwise unable
    to define a projective mapping). Callers should ask for new corners.
    """


class ProcessingFault(ScanError):
    """Unexpected failure inside the warp or filter stages."""


class ExportFault(ScanError):
    """Rasterizing or encoding the composed page failed."""
