"""
Page planner.

Maps a physical label (mm) onto a printed page (points) and decides where a
raster label lands on it. The same scale rule places the label in the
print page's imageable area and in an on-screen preview box, so preview and
print always show the same proportions:

    scale = min(box_width / image_width, box_height / image_height)

then the scaled image is centered in the box.
"""

from __future__ import annotations

from typing import Tuple, Union

from PIL import Image

from core.exceptions import InvalidSpecError
from models.label import LabelSpec, PageGeometry, Placement, RenderedLabel
from modules.units import mm_to_points, round_half_up


DEFAULT_MARGIN_MM = 2.0

ImageLike = Union[Image.Image, RenderedLabel, Tuple[int, int]]


def plan(spec: LabelSpec, margin_mm: float = DEFAULT_MARGIN_MM) -> PageGeometry:
    """
    Build the page for one label.

    Args:
        spec: Label stock size
        margin_mm: Inset applied to every side of the page

    Returns:
        PageGeometry in points, portrait

    Raises:
        InvalidSpecError: If width or height is not larger than twice the
            margin (no positive imageable area)
    """
    if margin_mm < 0:
        raise InvalidSpecError(f"Page margin cannot be negative, got {margin_mm}mm")

    if spec.width_mm <= 2 * margin_mm or spec.height_mm <= 2 * margin_mm:
        raise InvalidSpecError(
            f"{spec.width_mm}x{spec.height_mm}mm label leaves no printable area "
            f"inside a {margin_mm}mm margin",
            width_mm=spec.width_mm,
            height_mm=spec.height_mm,
            details={"margin_mm": margin_mm},
        )

    width_pt = mm_to_points(spec.width_mm)
    height_pt = mm_to_points(spec.height_mm)
    margin_pt = mm_to_points(margin_mm)

    return PageGeometry(
        width_pt=width_pt,
        height_pt=height_pt,
        imageable_x=margin_pt,
        imageable_y=margin_pt,
        imageable_width=width_pt - 2 * margin_pt,
        imageable_height=height_pt - 2 * margin_pt,
        orientation="portrait",
    )


def _image_size(image: ImageLike) -> Tuple[int, int]:
    if isinstance(image, RenderedLabel):
        return image.size
    if isinstance(image, Image.Image):
        return image.size
    width, height = image
    return int(width), int(height)


def fit_scale(image_width: float, image_height: float, box_width: float, box_height: float) -> float:
    """The one scale rule: largest factor that keeps the whole image inside the box."""
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image size must be positive, got {image_width}x{image_height}")
    if box_width <= 0 or box_height <= 0:
        raise ValueError(f"Box size must be positive, got {box_width}x{box_height}")
    return min(box_width / image_width, box_height / image_height)


def fit(image: ImageLike, geometry: PageGeometry) -> Placement:
    """
    Place an image in the page's imageable area.

    Offsets are exact points relative to the imageable origin, so leftover
    margin is identical on both sides of the constrained axis.
    """
    image_width, image_height = _image_size(image)
    scale = fit_scale(image_width, image_height, geometry.imageable_width, geometry.imageable_height)

    width = image_width * scale
    height = image_height * scale
    return Placement(
        scale=scale,
        offset_x=(geometry.imageable_width - width) / 2,
        offset_y=(geometry.imageable_height - height) / 2,
        width=width,
        height=height,
    )


def fit_box(image_width: int, image_height: int, box_width: int, box_height: int) -> Placement:
    """
    Place an image in a pixel box (screen preview).

    Drawn size rounds half up; offsets floor-divide the leftover, so an odd
    spare pixel goes to the right or bottom edge.
    """
    scale = fit_scale(image_width, image_height, box_width, box_height)

    width = max(1, round_half_up(image_width * scale))
    height = max(1, round_half_up(image_height * scale))
    return Placement(
        scale=scale,
        offset_x=(box_width - width) // 2,
        offset_y=(box_height - height) // 2,
        width=width,
        height=height,
    )


def preview_image(label: RenderedLabel, box_width: int, box_height: int) -> Image.Image:
    """Scale a label into a white box_width x box_height canvas for display."""
    placement = fit_box(label.size[0], label.size[1], box_width, box_height)
    scaled = label.image.resize(
        (int(placement.width), int(placement.height)),
        Image.Resampling.LANCZOS,
    )
    canvas = Image.new("RGB", (box_width, box_height), "white")
    canvas.paste(scaled, (int(placement.offset_x), int(placement.offset_y)))
    return canvas


class PagePlanner:
    """plan()/fit() bound to one page margin, as configured for the app."""

    def __init__(self, margin_mm: float = DEFAULT_MARGIN_MM):
        self.margin_mm = margin_mm

    def plan(self, spec: LabelSpec) -> PageGeometry:
        return plan(spec, self.margin_mm)

    def fit(self, image: ImageLike, geometry: PageGeometry) -> Placement:
        return fit(image, geometry)
