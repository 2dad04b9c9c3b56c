"""
Physical unit conversions for label layout.

    1 inch = 25.4 mm = 72 points
    pixels = inches x DPI

Pixel counts always round half up (not Python's half-to-even round()).
"""

from __future__ import annotations

import math

MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def mm_to_points(mm: float) -> float:
    return mm / MM_PER_INCH * POINTS_PER_INCH


def points_to_mm(points: float) -> float:
    return points / POINTS_PER_INCH * MM_PER_INCH


def mm_to_pixels(mm: float, dpi: float) -> int:
    """Millimeters to a whole pixel count at the given DPI."""
    return round_half_up(mm / MM_PER_INCH * dpi)


def points_to_pixels(points: float, dpi: float) -> float:
    """Points to (fractional) device pixels; callers round at the edge they draw."""
    return points / POINTS_PER_INCH * dpi


def pixels_to_points(pixels: float, dpi: float) -> float:
    return pixels / dpi * POINTS_PER_INCH
