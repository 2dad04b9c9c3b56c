"""
Services layer for Label Station.

This module contains the application services:
- CatalogService: Current product catalog, reload, optional refresh thread
- LabelStation: Scan -> lookup -> render -> print sequence and scan log

Thread Model:
    Main Thread (Flask)
    ├── Request threads call LabelStation (synchronous, short)
    └── CatalogService thread (optional file-change refresh loop)
"""

from .catalog_service import CatalogService
from .label_service import LabelStation, ScanLog

__all__ = [
    "CatalogService",
    "LabelStation",
    "ScanLog",
]
