"""QR Code generator module for the short URL service"""
import io
from typing import List, Optional, Union

import qrcode
from qrcode.exceptions import DataOverflowError
from PIL import Image

FORMATS = ("png", "jpeg", "svg")
MEDIA_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "svg": "image/svg+xml",
}

# Quiet zone around the symbol, in modules
BORDER = 4

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)
CLEAR = (255, 255, 255, 0)


def _module_grid(data: str) -> Optional[List[List[bool]]]:
    """Encode data at the highest error correction level, None if it does not fit"""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=1,
        border=BORDER,
    )
    qr.add_data(data)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        print(f"[QR] Cannot encode {len(data)} characters: {e}")
        return None
    return qr.get_matrix()


def get_qr_code_dimensions(data: str) -> Optional[int]:
    """
    Get the number of modules per side for the QR code of given data

    Args:
        data: The data to encode

    Returns:
        int: Modules per side including the quiet zone, None if data is too long
    """
    grid = _module_grid(data)
    if grid is None:
        return None
    return len(grid)


def _fits(grid: List[List[bool]], size: int) -> bool:
    """Each module needs at least one pixel, otherwise rows and columns get dropped"""
    if size < len(grid):
        print(f"[QR] {len(grid)} modules do not fit in {size}px")
        return False
    return True


def _render_bitmap(grid: List[List[bool]], size: int, transparent: bool) -> Image.Image:
    modules = len(grid)
    mask = Image.new("L", (modules, modules))
    mask.putdata([255 if dark else 0 for row in grid for dark in row])

    # Nearest neighbour keeps module edges crisp
    mask = mask.resize((size, size), Image.Resampling.NEAREST)

    image = Image.new("RGBA", (size, size), CLEAR if transparent else WHITE)
    image.paste(BLACK, (0, 0, size, size), mask)
    return image


def _render_svg(grid: List[List[bool]], size: int) -> str:
    scale = size / len(grid)
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}" '
        f'viewBox="0 0 {size} {size}" shape-rendering="crispEdges">',
        '<rect x="0" y="0" width="100%" height="100%" fill="white"/>',
    ]
    for y, row in enumerate(grid):
        for x, dark in enumerate(row):
            if dark:
                parts.append(
                    f'<rect x="{x * scale:g}" y="{y * scale:g}" '
                    f'width="{scale:g}" height="{scale:g}" fill="black"/>'
                )
    parts.append("</svg>")
    return "\n".join(parts)


def generate_svg_qr_code(data: str, size: int = 200) -> Optional[str]:
    """Generate an SVG document for data, one rect per dark module"""
    grid = _module_grid(data)
    if grid is None or not _fits(grid, size):
        return None
    return _render_svg(grid, size)


def generate_qr_code(
    data: str,
    size: int = 200,
    fmt: str = "png",
    transparent: bool = False,
) -> Optional[Union[bytes, str]]:
    """
    Generate QR code for given data

    Args:
        data: The data to encode in QR code (URL)
        size: Width and height of the output in pixels
        fmt: Output format ("png", "jpeg", "svg")
        transparent: Leave light modules transparent; ignored for jpeg and svg

    Returns:
        bytes for png/jpeg, str for svg, None if the data cannot be encoded
        or the symbol has more modules per side than size
    """
    fmt = fmt.lower()
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported QR code format: {fmt}")
    if size <= 0:
        raise ValueError(f"QR code size must be positive, got {size}")

    grid = _module_grid(data)
    if grid is None or not _fits(grid, size):
        return None

    if fmt == "svg":
        return _render_svg(grid, size)

    image = _render_bitmap(grid, size, transparent and fmt == "png")

    img_buffer = io.BytesIO()
    if fmt == "jpeg":
        image.convert("RGB").save(img_buffer, format="JPEG", quality=95)
    else:
        image.save(img_buffer, format="PNG", optimize=True)

    return img_buffer.getvalue()
