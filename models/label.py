"""
Label and page data models.

LabelSpec is built once from configuration at startup and passed explicitly
to every render and print call. Everything derived from it (pixel size, page
geometry, placement) is recomputed on demand and never cached.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Tuple

from PIL import Image

from core.exceptions import InvalidSpecError
from modules.units import mm_to_pixels


SUPPORTED_SYMBOLOGIES = ("code128",)

DEFAULT_DPI = 203
"""Common thermal printer density (8 dots/mm)."""


@dataclass(frozen=True)
class LabelSpec:
    """
    Physical label stock and rendering resolution.

    Raises:
        InvalidSpecError: If width, height or dpi is not positive, or the
            symbology is not supported
    """

    width_mm: float
    height_mm: float
    dpi: int = DEFAULT_DPI
    symbology: str = "code128"

    def __post_init__(self):
        if self.width_mm <= 0 or self.height_mm <= 0:
            raise InvalidSpecError(
                "Label width and height must be positive",
                width_mm=self.width_mm,
                height_mm=self.height_mm,
            )
        if self.dpi <= 0:
            raise InvalidSpecError(
                f"Label DPI must be positive, got {self.dpi}",
                details={"dpi": self.dpi},
            )
        if self.symbology not in SUPPORTED_SYMBOLOGIES:
            raise InvalidSpecError(
                f"Unsupported barcode symbology: {self.symbology}",
                details={"supported": list(SUPPORTED_SYMBOLOGIES)},
            )
        # Sub-pixel stock would render to a zero-sized canvas
        width_px, height_px = self.pixel_size
        if width_px <= 0 or height_px <= 0:
            raise InvalidSpecError(
                f"Label is smaller than one pixel at {self.dpi} DPI",
                width_mm=self.width_mm,
                height_mm=self.height_mm,
            )

    @property
    def pixel_size(self) -> Tuple[int, int]:
        """(width_px, height_px) = round(mm / 25.4 x dpi) per axis."""
        return (
            mm_to_pixels(self.width_mm, self.dpi),
            mm_to_pixels(self.height_mm, self.dpi),
        )

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "LabelSpec":
        """Build the spec from a Flask config (or any mapping with the LABEL_* keys)."""
        return cls(
            width_mm=float(config.get("LABEL_WIDTH_MM", 58)),
            height_mm=float(config.get("LABEL_HEIGHT_MM", 40)),
            dpi=int(config.get("LABEL_DPI", DEFAULT_DPI)),
            symbology=config.get("LABEL_SYMBOLOGY", "code128"),
        )

    def to_dict(self) -> Dict[str, Any]:
        width_px, height_px = self.pixel_size
        return {
            "width_mm": self.width_mm,
            "height_mm": self.height_mm,
            "dpi": self.dpi,
            "symbology": self.symbology,
            "width_px": width_px,
            "height_px": height_px,
        }


@dataclass(frozen=True)
class RenderedLabel:
    """
    A finished label raster.

    Each render produces a new instance. Holders must not draw on ``image``;
    use copy_image() for anything that needs to modify pixels.
    """

    image: Image.Image
    code: str
    spec: LabelSpec
    rendered_at: datetime

    @classmethod
    def create(cls, image: Image.Image, code: str, spec: LabelSpec) -> "RenderedLabel":
        return cls(image=image, code=code, spec=spec, rendered_at=datetime.now(timezone.utc))

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    def copy_image(self) -> Image.Image:
        return self.image.copy()

    def to_png_bytes(self) -> bytes:
        """PNG with the label DPI embedded, so print tools size it correctly."""
        buf = io.BytesIO()
        self.image.save(buf, format="PNG", dpi=(self.spec.dpi, self.spec.dpi))
        return buf.getvalue()


@dataclass(frozen=True)
class PageGeometry:
    """
    One printed page, in points.

    The imageable rectangle is where the label may be drawn; its origin is
    relative to the page's top-left corner.
    """

    width_pt: float
    height_pt: float
    imageable_x: float
    imageable_y: float
    imageable_width: float
    imageable_height: float
    orientation: str = "portrait"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width_pt": self.width_pt,
            "height_pt": self.height_pt,
            "imageable_x": self.imageable_x,
            "imageable_y": self.imageable_y,
            "imageable_width": self.imageable_width,
            "imageable_height": self.imageable_height,
            "orientation": self.orientation,
        }


@dataclass(frozen=True)
class Placement:
    """
    Where a scaled image lands inside a target box.

    Offsets are relative to the box origin (the imageable rectangle for
    print, the preview canvas for screen).
    """

    scale: float
    offset_x: float
    offset_y: float
    width: float
    height: float


@dataclass(frozen=True)
class PrintReceipt:
    """Result of one print submission."""

    job_name: str
    pages: int
    destination: str
    submitted_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_name": self.job_name,
            "pages": self.pages,
            "destination": self.destination,
            "submitted_at": self.submitted_at.isoformat(),
        }
