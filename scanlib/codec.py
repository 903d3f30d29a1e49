"""
ImageCodec - decoding of source photos and lossless encoding of results.
"""

import io
import logging
import os

import cv3
import fitz  # PyMuPDF, for rasterizing PDF input
import numpy as np
from PIL import Image, ImageOps
from pillow_heif import register_heif_opener  # For HEIC file support

from .config import MAX_INPUT_BYTES, PAGE_DPI, PDF_RENDER_SCALE
from .errors import DecodeFailure
from .raster import Raster

# Register HEIF opener with Pillow to enable HEIC support
register_heif_opener()

PDF_POINTS_PER_INCH = 72


class ImageCodec:
    """
    Turns image handles into rasters and rasters into encoded bytes.

    A handle is a file path (str or os.PathLike), raw encoded bytes, or a
    binary file object. Standard formats on disk are read with cv3 (which
    returns RGB directly); HEIC files and in-memory payloads go through
    Pillow with the pillow-heif plugin. PDF documents are rasterized page
    by page with PyMuPDF.
    """

    HEIF_EXTENSIONS = ('.heic', '.heif')
    PDF_EXTENSIONS = ('.pdf',)
    PDF_MAGIC = b'%PDF'

    def __init__(self, max_bytes=MAX_INPUT_BYTES, dpi=PAGE_DPI, pdf_scale=PDF_RENDER_SCALE):
        """
        Args:
            max_bytes: Reject inputs larger than this many bytes (None disables)
            dpi: DPI written into encoded output
            pdf_scale: Zoom applied to PDF pages when rasterizing them
        """
        self.max_bytes = max_bytes
        self.dpi = dpi
        self.pdf_scale = pdf_scale

    def decode(self, handle):
        """
        Decode an image handle into a Raster.

        For a PDF this is its first page; use decode_pages() for all of them.

        Raises:
            DecodeFailure: If the handle is empty, too large, unreadable,
                or not an image
        """
        return self.decode_pages(handle)[0]

    def decode_pages(self, handle):
        """
        Decode a handle into one Raster per page.

        Images have a single page. Each page of a PDF becomes its own
        raster, rendered at `pdf_scale` times the page size in points.

        Returns:
            Non-empty list of Rasters, each with the DPI recorded in the file
            (or None when the file has none)

        Raises:
            DecodeFailure: If the handle is empty, too large, unreadable,
                or neither an image nor a PDF with pages
        """
        if isinstance(handle, (bytes, bytearray, memoryview)):
            return self._decode_payload(bytes(handle), "<bytes>")
        if isinstance(handle, (str, os.PathLike)):
            return self._decode_path(os.fspath(handle))
        if hasattr(handle, 'read'):
            return self._decode_payload(handle.read(), "<stream>")
        raise DecodeFailure(f"Unsupported image handle: {type(handle).__name__}")

    def _check_size(self, size, label):
        if size == 0:
            raise DecodeFailure(f"Empty or corrupted input: {label}")
        if self.max_bytes is not None and size > self.max_bytes:
            raise DecodeFailure(
                f"Input too large ({size / 1024 / 1024:.1f}MB): {label}. "
                f"Maximum allowed: {self.max_bytes / 1024 / 1024:.0f}MB")

    def _decode_path(self, file_path):
        if not os.path.isfile(file_path):
            raise DecodeFailure(f"Could not load image: {file_path} does not exist")
        self._check_size(os.path.getsize(file_path), file_path)

        if file_path.lower().endswith(self.HEIF_EXTENSIONS + self.PDF_EXTENSIONS):
            with open(file_path, 'rb') as f:
                return self._decode_payload(f.read(), file_path)

        try:
            image = cv3.imread(file_path)
        except Exception as e:
            raise DecodeFailure(f"Could not load image {file_path}: {e}") from e
        if image is None:
            raise DecodeFailure(f"Could not load image: {file_path}")

        dpi = self.read_dpi(file_path)
        logging.info(f"Decoded {file_path} ({image.shape[1]}x{image.shape[0]}), DPI: {dpi}")
        return [Raster(np.asarray(image, dtype=np.uint8), dpi=dpi)]

    def _decode_payload(self, payload, label):
        self._check_size(len(payload), label)
        if payload.startswith(self.PDF_MAGIC):
            return self._rasterize_pdf(payload, label)

        try:
            with Image.open(io.BytesIO(payload)) as pil_image:
                dpi = self._dpi_from_info(pil_image.info)
                pil_image = ImageOps.exif_transpose(pil_image)
                rgba = np.array(pil_image.convert('RGBA'))
        except Exception as e:
            raise DecodeFailure(f"Could not decode image data: {e}") from e

        # Alpha is not carried through the pipeline; every page is opaque
        rgba[:, :, 3] = 255
        logging.info(f"Decoded {label} ({rgba.shape[1]}x{rgba.shape[0]}), DPI: {dpi}")
        return [Raster(rgba, dpi=dpi)]

    def _rasterize_pdf(self, payload, label):
        try:
            document = fitz.open(stream=payload, filetype="pdf")
        except Exception as e:
            raise DecodeFailure(f"Could not open PDF {label}: {e}") from e

        dpi = int(round(PDF_POINTS_PER_INCH * self.pdf_scale))
        rasters = []
        try:
            logging.info(f"{label}: PDF has {document.page_count} page(s)")
            matrix = fitz.Matrix(self.pdf_scale, self.pdf_scale)
            for page in document:
                pix = page.get_pixmap(matrix=matrix, alpha=False)
                image = np.frombuffer(pix.samples, dtype=np.uint8)
                image = image.reshape(pix.height, pix.width, pix.n)
                rasters.append(Raster(image.copy(), dpi=dpi))
        except Exception as e:
            raise DecodeFailure(f"Could not rasterize PDF {label}: {e}") from e
        finally:
            document.close()

        if not rasters:
            raise DecodeFailure(f"PDF has no pages: {label}")
        return rasters

    @staticmethod
    def _dpi_from_info(info):
        dpi_info = info.get('dpi')
        if dpi_info:
            # DPI info is a tuple (x_dpi, y_dpi), use x_dpi
            return int(round(float(dpi_info[0])))
        return None

    def read_dpi(self, handle, default=None):
        """
        Read DPI metadata from an encoded image.

        Args:
            handle: File path or encoded bytes
            default: Value returned when no DPI is recorded

        Returns:
            Horizontal DPI as an int, or default
        """
        try:
            source = io.BytesIO(handle) if isinstance(handle, (bytes, bytearray)) else handle
            with Image.open(source) as pil_image:
                dpi = self._dpi_from_info(pil_image.info)
        except Exception:
            return default
        return default if dpi is None else dpi

    def encode(self, raster, image_format='PNG'):
        """
        Encode a raster to bytes.

        PNG is the default and keeps every pixel as computed. Other Pillow
        formats are accepted for callers that want them.
        """
        pil_image = Image.fromarray(np.ascontiguousarray(raster.rgb))
        buffer = io.BytesIO()
        pil_image.save(buffer, format=image_format, dpi=(self.dpi, self.dpi))
        return buffer.getvalue()

    def save(self, raster, file_path):
        """Encode a raster to a file, format chosen from the extension"""
        pil_image = Image.fromarray(np.ascontiguousarray(raster.rgb))
        pil_image.save(file_path, dpi=(self.dpi, self.dpi))
        logging.info(f"Image saved to {file_path} @ {self.dpi} DPI")
