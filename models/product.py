"""
Product catalog data models.

The catalog is loaded from a plain comma-separated file:

    code,name,price
    4791234567890,USB Cable 1m,650.00
    ABC-1001,Glue Stick

Fields are split on every comma; there is no quoting, so a comma inside a
name splits the record. Product files are kept simple enough that this
never matters, and rows that come out malformed are skipped and counted.

Thread Safety:
    - Product and ProductCatalog are immutable
    - A reload builds a NEW ProductCatalog; nothing is updated in place
    - CatalogService swaps the reference, so readers see old or new, never a mix
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, TextIO, Union

from core.exceptions import CatalogLoadError
from logging_config import get_logger


logger = get_logger(__name__)

DELIMITER = ","

CatalogSource = Union[str, Path, TextIO]


@dataclass(frozen=True)
class Product:
    """A single catalog entry."""

    code: str
    """Lookup key, exactly as printed in the barcode (non-empty)."""

    name: str = ""
    """Display name (may be empty)."""

    price: str = ""
    """Display price, free-form text; never parsed as a number."""

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for JSON responses."""
        return {
            "code": self.code,
            "name": self.name,
            "price": self.price,
        }


@dataclass(frozen=True)
class CatalogLoadReport:
    """Summary of one catalog load."""

    source: str
    """Path or stream description the catalog was read from."""

    loaded: int = 0
    """Number of distinct products in the catalog."""

    skipped: int = 0
    """Malformed records (fewer than 2 fields, or empty code)."""

    duplicates: int = 0
    """Records that replaced an earlier record with the same code."""

    source_found: bool = True
    """False when the file did not exist and the catalog is empty."""

    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, object]:
        return {
            "source": self.source,
            "loaded": self.loaded,
            "skipped": self.skipped,
            "duplicates": self.duplicates,
            "source_found": self.source_found,
            "loaded_at": self.loaded_at.isoformat(),
        }


class ProductCatalog:
    """
    Immutable mapping from product code to Product.

    Build one with ProductCatalog.load(source) or ProductCatalog.empty().
    """

    def __init__(self, products: Mapping[str, Product], report: Optional[CatalogLoadReport] = None):
        self._products: Mapping[str, Product] = MappingProxyType(dict(products))
        self._report = report or CatalogLoadReport(source="<memory>", loaded=len(self._products))

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def empty(cls, source: str = "<none>") -> "ProductCatalog":
        """Catalog with no products (used before the first load and for missing files)."""
        return cls({}, CatalogLoadReport(source=source, source_found=False))

    @classmethod
    def load(cls, source: CatalogSource) -> "ProductCatalog":
        """
        Load a catalog from a CSV path or an open text stream.

        The first line is a header and is discarded. Each following line is
        split on commas: code, name and an optional price. Blank lines are
        ignored. Records with fewer than two fields or an empty code are
        skipped. A later record with the same code wins.

        Args:
            source: Path to a UTF-8 CSV file, or a readable text stream

        Returns:
            New ProductCatalog. Empty if the path does not exist.

        Raises:
            CatalogLoadError: If an existing file cannot be opened, read or decoded
        """
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                logger.info(f"Product file not found, using empty catalog: {path}")
                return cls.empty(str(path))

            try:
                with open(path, "r", encoding="utf-8") as stream:
                    return cls._read(stream, str(path))
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Failed to read product file {path}: {e}")
                raise CatalogLoadError(str(path), str(e)) from e

        description = getattr(source, "name", None) or "<stream>"
        try:
            return cls._read(source, str(description))
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read product stream {description}: {e}")
            raise CatalogLoadError(str(description), str(e)) from e

    @classmethod
    def _read(cls, stream: TextIO, description: str) -> "ProductCatalog":
        products: Dict[str, Product] = {}
        skipped = 0
        duplicates = 0

        header = stream.readline()
        if not header:
            return cls({}, CatalogLoadReport(source=description))

        for line_number, line in enumerate(stream, start=2):
            if not line.strip():
                continue

            parts = line.rstrip("\r\n").split(DELIMITER)
            if len(parts) < 2:
                logger.debug(f"{description}:{line_number}: skipped, fewer than 2 fields")
                skipped += 1
                continue

            code = parts[0].strip()
            if not code:
                logger.debug(f"{description}:{line_number}: skipped, empty code")
                skipped += 1
                continue

            name = parts[1].strip()
            price = parts[2].strip() if len(parts) >= 3 else ""

            if code in products:
                duplicates += 1
            products[code] = Product(code=code, name=name, price=price)

        report = CatalogLoadReport(
            source=description,
            loaded=len(products),
            skipped=skipped,
            duplicates=duplicates,
        )
        logger.info(
            f"Loaded {report.loaded} products from {description} "
            f"({skipped} skipped, {duplicates} duplicates)"
        )
        return cls(products, report)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def lookup(self, code: str) -> Optional[Product]:
        """
        Find a product by exact, case-sensitive code.

        The input is trimmed first. Returns None when there is no match;
        not finding a code is the normal case while scanning.
        """
        if code is None:
            return None
        key = code.strip()
        if not key:
            return None
        return self._products.get(key)

    @property
    def report(self) -> CatalogLoadReport:
        return self._report

    @property
    def codes(self) -> List[str]:
        return sorted(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.strip() in self._products

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products.values())

    def __repr__(self) -> str:
        return f"ProductCatalog({len(self)} products from {self._report.source!r})"
