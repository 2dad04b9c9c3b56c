"""
Label renderer.

Composes one label raster from a product code, name and price:

    +--------------------------------------------------+
    | USB Cable 1m                           Rs 650.00 |   name (left), price (right)
    |                                                  |
    |   ||| || ||| | |||| || | ||| || |||| | || |||    |   barcode, 28%..78% of height
    |   ||| || ||| | |||| || | ||| || |||| | || |||    |
    |                                                  |
    |                  4791234567890                   |   code text (bottom, centered)
    +--------------------------------------------------+

Every offset and font size is derived from the pixel size of the LabelSpec,
so the same layout works on 50x30mm and 100x50mm stock.

The barcode is encoded BEFORE the canvas is created. If encoding fails the
caller gets a RenderError and no image at all, never a half-drawn label.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from core.exceptions import EncodeError, RenderError
from models.label import LabelSpec, RenderedLabel
from modules.barcode_encoder import encode
from logging_config import get_logger


logger = get_logger(__name__)

ELLIPSIS = "..."
DEFAULT_CURRENCY_PREFIX = "Rs"

# Tried in order after any configured font path
BOLD_FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "arialbd.ttf", "Arial Bold.ttf")
REGULAR_FONT_CANDIDATES = ("DejaVuSans.ttf", "arial.ttf", "Arial.ttf")

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


# =============================================================================
# FONTS
# =============================================================================

@lru_cache(maxsize=64)
def load_font(candidates: Tuple[str, ...], size: int) -> Font:
    """
    Load the first available TrueType font from candidates at size.

    Falls back to Pillow's bundled font at the same size.
    """
    for candidate in candidates:
        if not candidate:
            continue
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    logger.debug(f"No TrueType font found in {candidates}, using Pillow default at {size}px")
    return ImageFont.load_default(size=size)


@dataclass(frozen=True)
class FontSet:
    """Font files for label text; empty paths use the built-in candidates."""

    bold_path: str = ""
    regular_path: str = ""

    def bold(self, size: int) -> Font:
        return load_font((self.bold_path,) + BOLD_FONT_CANDIDATES, size)

    def regular(self, size: int) -> Font:
        return load_font((self.regular_path,) + REGULAR_FONT_CANDIDATES, size)


# =============================================================================
# LAYOUT
# =============================================================================

@dataclass(frozen=True)
class LabelLayout:
    """Pixel layout of a label, derived from its spec."""

    width: int
    height: int
    pad: int
    header_font_size: int
    code_font_size: int
    barcode_top: int
    barcode_width: int
    barcode_height: int

    @property
    def text_width(self) -> int:
        """Room available for the name: canvas width minus padding on both sides."""
        return self.width - 2 * self.pad

    @classmethod
    def for_spec(cls, spec: LabelSpec) -> "LabelLayout":
        width, height = spec.pixel_size
        pad = max(10, width // 40)
        return cls(
            width=width,
            height=height,
            pad=pad,
            header_font_size=max(14, height // 10),
            code_font_size=max(12, height // 11),
            barcode_top=int(height * 0.28),
            barcode_width=width - 2 * pad,
            barcode_height=int(height * 0.50),
        )


# =============================================================================
# TEXT HELPERS
# =============================================================================

def fit_text(draw: ImageDraw.ImageDraw, text: Optional[str], font: Font, max_width: float) -> str:
    """
    Trim text so it fits max_width pixels.

    Characters are dropped from the end until the text fits, then the last
    three kept characters become "...". If the marker still overflows, more
    characters are dropped. Text that already fits is returned unchanged.
    """
    text = text or ""
    if not text:
        return ""

    trimmed = text
    while trimmed and draw.textlength(trimmed, font=font) > max_width:
        trimmed = trimmed[:-1]

    if trimmed == text:
        return text

    base = trimmed[:-3] if len(trimmed) > 3 else ""
    candidate = base + ELLIPSIS
    while base and draw.textlength(candidate, font=font) > max_width:
        base = base[:-1]
        candidate = base + ELLIPSIS
    return candidate


def has_currency_marker(price: str, prefix: str) -> bool:
    if prefix and price.startswith(prefix):
        return True
    return bool(price) and unicodedata.category(price[0]) == "Sc"


def format_price(price: Optional[str], prefix: str = DEFAULT_CURRENCY_PREFIX) -> str:
    """'650.00' -> 'Rs 650.00'; prices that already carry a marker are kept."""
    price = (price or "").strip()
    if not price:
        return ""
    if has_currency_marker(price, prefix):
        return price
    return f"{prefix} {price}" if prefix else price


# =============================================================================
# RENDERER
# =============================================================================

class LabelRenderer:
    """
    Renders product labels for a LabelSpec.

    Stateless apart from its font and currency settings; every call returns
    a new RenderedLabel.
    """

    def __init__(self, fonts: Optional[FontSet] = None, currency_prefix: str = DEFAULT_CURRENCY_PREFIX):
        self.fonts = fonts or FontSet()
        self.currency_prefix = currency_prefix

    def render(
        self,
        code: str,
        name: Optional[str],
        price: Optional[str],
        spec: LabelSpec,
        found: bool = True,
    ) -> RenderedLabel:
        """
        Render one label.

        Args:
            code: Barcode payload, also printed under the barcode
            name: Product name (trimmed with "..." if too wide)
            price: Display price; shown only when found is True
            spec: Label size and DPI
            found: False when the code is not in the catalog

        Returns:
            New RenderedLabel of spec.pixel_size

        Raises:
            RenderError: Empty code, or the barcode could not be encoded
        """
        code = (code or "").strip()
        if not code:
            raise RenderError("Cannot render a label without a code")

        layout = LabelLayout.for_spec(spec)

        try:
            matrix = encode(code, layout.barcode_width, layout.barcode_height, spec.symbology)
        except EncodeError as e:
            logger.warning(f"Label for {code!r} not rendered: {e.message}")
            raise RenderError(f"Barcode could not be encoded: {e.message}", code=code) from e

        canvas = Image.new("RGB", (layout.width, layout.height), "white")
        draw = ImageDraw.Draw(canvas)

        # Header: name left, price right, sharing one baseline
        header_font = self.fonts.bold(layout.header_font_size)
        ascent, _ = header_font.getmetrics()
        baseline = layout.pad + ascent

        name_text = fit_text(draw, name, header_font, layout.text_width)
        if name_text:
            draw.text((layout.pad, baseline), name_text, font=header_font, fill="black", anchor="ls")

        price_text = format_price(price, self.currency_prefix) if found else ""
        if price_text:
            draw.text(
                (layout.width - layout.pad, baseline),
                price_text,
                font=header_font,
                fill="black",
                anchor="rs",
            )

        # Barcode
        barcode_image = matrix.to_image()
        canvas.paste(barcode_image, ((layout.width - matrix.width) // 2, layout.barcode_top))

        # Code text
        code_font = self.fonts.regular(layout.code_font_size)
        code_width = draw.textlength(code, font=code_font)
        code_x = int((layout.width - code_width) // 2)
        draw.text((code_x, layout.height - layout.pad), code, font=code_font, fill="black", anchor="ls")

        logger.debug(f"Rendered label {code!r} at {layout.width}x{layout.height}px")
        return RenderedLabel.create(canvas, code, spec)


_default_renderer = LabelRenderer()


def render(
    code: str,
    name: Optional[str],
    price: Optional[str],
    spec: LabelSpec,
    found: bool = True,
) -> RenderedLabel:
    """Render with default fonts and currency prefix. See LabelRenderer.render."""
    return _default_renderer.render(code, name, price, spec, found=found)
