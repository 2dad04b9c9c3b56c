"""
Data models for Label Station.

This module contains immutable dataclasses for:
- Product / ProductCatalog: Code -> product table loaded from CSV
- LabelSpec: Label stock size, DPI and symbology
- RenderedLabel: A finished label raster
- PageGeometry / Placement: Printed page in points, and where the label lands
- PrintReceipt: Result of one print submission
- ScanResult / ScanEntry: One scan and its log line

All models are frozen so they can be handed between request threads and the
catalog refresh thread without locks.
"""

from .product import Product, ProductCatalog, CatalogLoadReport
from .label import LabelSpec, RenderedLabel, PageGeometry, Placement, PrintReceipt
from .scan import ScanResult, ScanEntry, NOT_FOUND_NAME

__all__ = [
    # Catalog models
    "Product",
    "ProductCatalog",
    "CatalogLoadReport",
    # Label models
    "LabelSpec",
    "RenderedLabel",
    "PageGeometry",
    "Placement",
    "PrintReceipt",
    # Scan models
    "ScanResult",
    "ScanEntry",
    "NOT_FOUND_NAME",
]
