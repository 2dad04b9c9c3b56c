"""
Barcode encoder.

Turns a product code into a Code 128 module matrix that fits a pixel box.
The symbol itself (start code, charset switching, checksum, stop pattern)
comes from python-barcode; this module only sizes and places it.

Sizing rules:
    - Every module is a whole number of pixels wide, the largest that fits.
      Bars are never resampled, since fractional bar widths break scanning.
    - A 10-module quiet zone is kept on each side of the symbol.
    - The matrix is exactly the requested box; the symbol is centered in it
      and any leftover pixels become extra quiet zone.

Usage:
    matrix = encode("4791234567890", 442, 160)
    image = matrix.to_image()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import barcode
from barcode.errors import BarcodeError
from PIL import Image

from core.exceptions import EncodeError
from logging_config import get_logger


logger = get_logger(__name__)

SYMBOLOGY = "code128"
QUIET_ZONE_MODULES = 10
MAX_CODE128_ORDINAL = 127


@dataclass(frozen=True)
class BitMatrix:
    """
    Module matrix for a linear barcode, in pixels.

    All rows of a linear symbol are identical, so only one row is stored.
    True means a dark (bar) pixel.
    """

    width: int
    height: int
    row: Tuple[bool, ...]
    module_px: int

    def get(self, x: int, y: int) -> bool:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"({x}, {y}) outside {self.width}x{self.height} matrix")
        return self.row[x]

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def to_image(self) -> Image.Image:
        """Black bars on white, RGB, exactly width x height pixels."""
        line = Image.new("L", (self.width, 1), 255)
        line.putdata([0 if dark else 255 for dark in self.row])
        return line.resize((self.width, self.height), Image.Resampling.NEAREST).convert("RGB")


def check_payload(text: str, symbology: str = SYMBOLOGY) -> str:
    """
    Validate text for Code 128 (ASCII 0-127, non-empty).

    Returns:
        The text unchanged

    Raises:
        EncodeError: If the text is empty or has characters outside the set
    """
    if not text:
        raise EncodeError("Cannot encode an empty barcode payload", payload="", symbology=symbology)

    bad = sorted({ch for ch in text if ord(ch) > MAX_CODE128_ORDINAL})
    if bad:
        raise EncodeError(
            f"Characters not supported by {symbology}: {''.join(bad)!r}",
            payload=text,
            symbology=symbology,
        )
    return text


def build_modules(text: str, symbology: str = SYMBOLOGY) -> str:
    """
    Run the symbology encoder and return its module string ("1" = bar).

    Raises:
        EncodeError: If the payload is invalid or the library rejects it
    """
    check_payload(text, symbology)

    try:
        barcode_class = barcode.get_barcode_class(symbology)
        symbol = barcode_class(text)
        modules = "".join(symbol.build())
    except (BarcodeError, KeyError, ValueError) as e:
        raise EncodeError(
            f"{symbology} encoder rejected {text!r}: {e}",
            payload=text,
            symbology=symbology,
        ) from e

    return modules


def encode(text: str, target_width_px: int, target_height_px: int, symbology: str = SYMBOLOGY) -> BitMatrix:
    """
    Encode text into a matrix of exactly target_width_px x target_height_px.

    Args:
        text: Barcode payload
        target_width_px: Width of the box the barcode must fit in
        target_height_px: Height of the box (bar height)
        symbology: Barcode symbology name (only "code128" is supported)

    Returns:
        BitMatrix sized to the box

    Raises:
        EncodeError: Empty payload, unsupported characters, a non-positive
            box, or a symbol wider than the box at one pixel per module
    """
    if target_width_px <= 0 or target_height_px <= 0:
        raise EncodeError(
            f"Barcode box must be positive, got {target_width_px}x{target_height_px}",
            payload=text,
            symbology=symbology,
        )

    modules = build_modules(text, symbology)

    full_width = len(modules) + 2 * QUIET_ZONE_MODULES
    if full_width > target_width_px:
        raise EncodeError(
            f"{text!r} needs {full_width} modules, box is only {target_width_px}px wide",
            payload=text,
            symbology=symbology,
        )

    module_px = target_width_px // full_width
    left = (target_width_px - full_width * module_px) // 2 + QUIET_ZONE_MODULES * module_px

    row = [False] * target_width_px
    for index, bit in enumerate(modules):
        if bit == "1":
            start = left + index * module_px
            for x in range(start, start + module_px):
                row[x] = True

    logger.debug(
        f"Encoded {text!r}: {len(modules)} modules at {module_px}px "
        f"in {target_width_px}x{target_height_px}"
    )
    return BitMatrix(
        width=target_width_px,
        height=target_height_px,
        row=tuple(row),
        module_px=module_px,
    )
