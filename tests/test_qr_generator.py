import io
import xml.etree.ElementTree as ET

import pytest
import qrcode
from PIL import Image

from qrsu.qr_generator import (
    BORDER,
    generate_qr_code,
    generate_svg_qr_code,
    get_qr_code_dimensions,
)

PAYLOAD = "https://qrsu.io/aB3dE"
TOO_LONG = "x" * 5000
SVG_NS = "{http://www.w3.org/2000/svg}"


def dark_module_count(data):
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_H, border=BORDER)
    qr.add_data(data)
    qr.make(fit=True)
    return sum(cell for row in qr.get_matrix() for cell in row)


def finder_pixel(size, data):
    """Pixel inside the top-left finder pattern, always dark"""
    modules = get_qr_code_dimensions(data)
    return int((BORDER + 0.5) * size / modules)


def test_png_is_opaque_by_default():
    image = Image.open(io.BytesIO(generate_qr_code(PAYLOAD, size=200, fmt="png")))

    assert image.format == "PNG"
    assert image.size == (200, 200)
    assert image.convert("RGBA").getpixel((0, 0)) == (255, 255, 255, 255)


def test_png_transparent_background():
    image = Image.open(io.BytesIO(generate_qr_code(PAYLOAD, size=200, transparent=True)))
    image = image.convert("RGBA")

    assert image.getpixel((0, 0))[3] == 0
    p = finder_pixel(200, PAYLOAD)
    assert image.getpixel((p, p)) == (0, 0, 0, 255)


def test_jpeg_ignores_transparency():
    image = Image.open(io.BytesIO(generate_qr_code(PAYLOAD, size=300, fmt="jpeg", transparent=True)))

    assert image.format == "JPEG"
    assert image.mode == "RGB"
    assert image.size == (300, 300)
    assert all(channel > 240 for channel in image.getpixel((0, 0)))


def test_bitmap_modules_are_crisp():
    image = Image.open(io.BytesIO(generate_qr_code(PAYLOAD, size=512))).convert("L")
    assert set(image.getdata()) <= {0, 255}


def test_format_is_case_insensitive():
    assert generate_qr_code(PAYLOAD, fmt="PNG").startswith(b"\x89PNG")


def test_svg_has_one_rect_per_dark_module():
    svg = generate_qr_code(PAYLOAD, size=200, fmt="svg")
    root = ET.fromstring(svg.encode("utf-8"))
    rects = root.findall(f"{SVG_NS}rect")

    assert root.get("width") == "200"
    assert root.get("height") == "200"
    assert rects[0].get("fill") == "white"
    assert rects[0].get("width") == "100%"
    assert len(rects) == dark_module_count(PAYLOAD) + 1
    assert all(rect.get("fill") == "black" for rect in rects[1:])


def test_svg_modules_scaled_to_size():
    svg = generate_svg_qr_code(PAYLOAD, size=330)
    root = ET.fromstring(svg.encode("utf-8"))
    module = root.findall(f"{SVG_NS}rect")[1]

    assert float(module.get("width")) == pytest.approx(330 / get_qr_code_dimensions(PAYLOAD))


def test_render_is_deterministic():
    assert generate_qr_code(PAYLOAD, fmt="png") == generate_qr_code(PAYLOAD, fmt="png")
    assert generate_qr_code(PAYLOAD, fmt="svg") == generate_qr_code(PAYLOAD, fmt="svg")


@pytest.mark.parametrize("fmt", ["png", "jpeg", "svg"])
def test_payload_too_long_returns_none(fmt):
    assert generate_qr_code(TOO_LONG, fmt=fmt) is None


def test_dimensions():
    # Smallest symbol (21 modules) plus the quiet zone on both sides
    assert get_qr_code_dimensions("a") == 21 + 2 * BORDER
    assert get_qr_code_dimensions(TOO_LONG) is None


def test_unknown_format_raises():
    with pytest.raises(ValueError):
        generate_qr_code(PAYLOAD, fmt="gif")


@pytest.mark.parametrize("fmt", ["png", "jpeg", "svg"])
def test_size_smaller_than_module_grid_returns_none(fmt):
    data = "https://example.com/" + "p" * 60
    modules = get_qr_code_dimensions(data)

    assert modules > 40
    assert generate_qr_code(data, size=40, fmt=fmt) is None
    assert generate_qr_code(data, size=modules, fmt=fmt) is not None


def test_svg_size_smaller_than_module_grid_returns_none():
    data = "https://example.com/" + "p" * 60
    assert generate_svg_qr_code(data, size=40) is None
