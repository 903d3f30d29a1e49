"""
Tests for image decoding, validation and encoding.
"""

import io

import numpy as np
import pytest
from PIL import Image

from scanlib.codec import ImageCodec
from scanlib.errors import DecodeFailure
from scanlib.raster import Raster


def test_decode_bytes(png_bytes):
    raster = ImageCodec().decode(png_bytes)
    assert raster.size == (64, 48)
    assert raster.rgb[0, 0].tolist() == [10, 120, 200]
    assert raster.data[:, :, 3].min() == 255


def test_decode_file_object(png_bytes):
    assert ImageCodec().decode(io.BytesIO(png_bytes)).size == (64, 48)


def test_decode_path_is_rgb(tmp_path):
    path = tmp_path / "photo.png"
    Image.new('RGB', (30, 20), (255, 0, 0)).save(path)
    raster = ImageCodec().decode(path)
    assert raster.size == (30, 20)
    assert raster.rgb[5, 5].tolist() == [255, 0, 0]


def test_png_keeps_every_pixel():
    rng = np.random.default_rng(3)
    raster = Raster(rng.integers(0, 256, size=(25, 40, 3), dtype=np.uint8))
    codec = ImageCodec()
    decoded = codec.decode(codec.encode(raster))
    assert np.array_equal(decoded.data, raster.data)


def test_empty_input_is_rejected(tmp_path):
    empty = tmp_path / "empty.jpg"
    empty.write_bytes(b'')
    with pytest.raises(DecodeFailure):
        ImageCodec().decode(str(empty))
    with pytest.raises(DecodeFailure):
        ImageCodec().decode(b'')


def test_size_limit(png_bytes):
    with pytest.raises(DecodeFailure, match="too large"):
        ImageCodec(max_bytes=10).decode(png_bytes)
    assert ImageCodec(max_bytes=None).decode(png_bytes).size == (64, 48)


def test_missing_file():
    with pytest.raises(DecodeFailure):
        ImageCodec().decode("/nonexistent/photo.jpg")


def test_corrupt_data():
    with pytest.raises(DecodeFailure):
        ImageCodec().decode(b'\x89PNG\r\n\x1a\n garbage')


def test_unsupported_handle():
    with pytest.raises(DecodeFailure):
        ImageCodec().decode(42)


def test_decode_failure_is_value_error():
    with pytest.raises(ValueError):
        ImageCodec().decode(b'')


def test_dpi_written_and_read(png_bytes):
    assert ImageCodec().read_dpi(png_bytes) == 300
    other = ImageCodec(dpi=150).encode(Raster.blank(4, 4))
    assert ImageCodec().read_dpi(other) == 150


def test_read_dpi_default():
    buffer = io.BytesIO()
    Image.new('RGB', (4, 4)).save(buffer, format='PNG')
    assert ImageCodec().read_dpi(buffer.getvalue(), default=72) == 72


def test_save(tmp_path):
    path = tmp_path / "out.png"
    ImageCodec().save(Raster.blank(8, 6, (1, 2, 3)), str(path))
    with Image.open(path) as image:
        assert image.size == (8, 6)
        assert image.getpixel((0, 0)) == (1, 2, 3)


def test_decode_records_dpi(png_bytes, tmp_path):
    assert ImageCodec().decode(png_bytes).dpi == 300

    path = tmp_path / "photo.png"
    Image.new('RGB', (10, 10)).save(path, dpi=(150, 150))
    assert ImageCodec().decode(str(path)).dpi == 150

    buffer = io.BytesIO()
    Image.new('RGB', (4, 4)).save(buffer, format='PNG')
    assert ImageCodec().decode(buffer.getvalue()).dpi is None


def test_pdf_pages_are_rasterized(pdf_bytes):
    pages = ImageCodec().decode_pages(pdf_bytes)
    assert [page.size for page in pages] == [(80, 60), (60, 80)]
    assert all(page.dpi == 144 for page in pages)
    assert np.allclose(pages[0].rgb[30, 40], (200, 30, 30), atol=8)
    assert np.allclose(pages[1].rgb[40, 30], (30, 30, 200), atol=8)


def test_pdf_scale(pdf_bytes):
    pages = ImageCodec(pdf_scale=1.0).decode_pages(pdf_bytes)
    assert pages[0].size == (40, 30)
    assert pages[0].dpi == 72


def test_pdf_path(pdf_bytes, tmp_path):
    path = tmp_path / "scan.pdf"
    path.write_bytes(pdf_bytes)
    assert len(ImageCodec().decode_pages(path)) == 2
    # Single-raster decode gives the first page
    assert ImageCodec().decode(path).size == (80, 60)


def test_images_have_one_page(png_bytes):
    assert len(ImageCodec().decode_pages(png_bytes)) == 1


def test_corrupt_pdf():
    with pytest.raises(DecodeFailure):
        ImageCodec().decode_pages(b'%PDF-1.4 not really a pdf')
