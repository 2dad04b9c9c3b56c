"""
Core module for Label Station.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
"""

from .exceptions import (
    LabelStationError,
    CatalogLoadError,
    InvalidSpecError,
    EncodeError,
    RenderError,
    NoLabelError,
    PrintSubsystemError,
)

__all__ = [
    "LabelStationError",
    "CatalogLoadError",
    "InvalidSpecError",
    "EncodeError",
    "RenderError",
    "NoLabelError",
    "PrintSubsystemError",
]
