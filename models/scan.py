"""
Scan data models.

A ScanResult is what one scan event resolved to. A ScanEntry is the
timestamped line kept in the scan log:

    2026-10-18 10:15:32 | 4791234567890 | USB Cable 1m | 650.00
    2026-10-18 10:15:40 | 0000000000000 | NOT_FOUND
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from models.product import Product


NOT_FOUND_NAME = "(NOT FOUND)"
"""Placeholder shown in the name field for unknown codes."""


@dataclass(frozen=True)
class ScanResult:
    """Outcome of looking up one scanned code."""

    code: str
    product: Optional[Product] = None

    @property
    def found(self) -> bool:
        return self.product is not None

    @property
    def name(self) -> str:
        return self.product.name if self.product else NOT_FOUND_NAME

    @property
    def price(self) -> str:
        return self.product.price if self.product else ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "found": self.found,
            "name": self.name,
            "price": self.price,
        }


@dataclass(frozen=True)
class ScanEntry:
    """One line of the scan log."""

    scanned_at: datetime
    code: str
    found: bool
    name: str = ""
    price: str = ""

    @classmethod
    def from_result(cls, result: ScanResult, scanned_at: datetime) -> "ScanEntry":
        return cls(
            scanned_at=scanned_at,
            code=result.code,
            found=result.found,
            name=result.product.name if result.product else "",
            price=result.product.price if result.product else "",
        )

    def format_line(self) -> str:
        ts = self.scanned_at.strftime("%Y-%m-%d %H:%M:%S")
        if not self.found:
            return f"{ts} | {self.code} | NOT_FOUND"
        return f"{ts} | {self.code} | {self.name} | {self.price}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scanned_at": self.scanned_at.isoformat(),
            "code": self.code,
            "found": self.found,
            "name": self.name,
            "price": self.price,
            "line": self.format_line(),
        }
