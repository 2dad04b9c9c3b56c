"""
Catalog service with optional background refresh thread.

Owns the current ProductCatalog. Lookups read the current reference; a
reload builds a complete new catalog and then rebinds the reference in one
assignment, so a lookup running during a reload sees the whole old catalog
or the whole new one.

Sources:
    The first existing path in ``sources`` is loaded. Typically this is
    products.csv next to where the app runs, then the bundled sample.
    If none exists the catalog is empty; that is a normal state.

Thread Safety:
    - ProductCatalog is immutable
    - Reload swaps the reference; no locks on the read path
    - A lock serializes reloads so two reloads never interleave

Usage:
    catalog_service = CatalogService(["products.csv", "data/products.csv"])
    catalog_service.reload()
    product = catalog_service.lookup("4791234567890")

    # Optional: reload automatically when the file changes
    catalog_service.start()
    ...
    catalog_service.stop()
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from core.exceptions import CatalogLoadError
from models.product import Product, ProductCatalog
from logging_config import get_logger, set_thread_name


# Module logger
logger = get_logger(__name__)


class CatalogService:
    """
    Holder of the current product catalog.

    Attributes:
        refresh_interval_seconds: Seconds between file-change checks
        is_running: Whether the background refresh thread is active
    """

    def __init__(
        self,
        sources: Iterable[Union[str, Path]],
        refresh_interval_seconds: float = 0.0
    ):
        """
        Initialize catalog service.

        The catalog starts empty; call reload() to load it.

        Args:
            sources: Candidate CSV paths, in priority order
            refresh_interval_seconds: Seconds between file-change checks
                when the refresh thread runs
        """
        self._sources: List[Path] = [Path(s) for s in sources if s]
        self._refresh_interval = refresh_interval_seconds

        # Thread control
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._is_running = False
        self._reload_lock = threading.Lock()

        # Current catalog (atomic reference)
        self._catalog: ProductCatalog = ProductCatalog.empty()

        # (path, mtime) of the last successful load, for change detection
        self._loaded_signature: Optional[Tuple[str, float]] = None

        logger.info(f"CatalogService initialized (sources: {[str(s) for s in self._sources]})")

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def refresh_interval_seconds(self) -> float:
        return self._refresh_interval

    @property
    def catalog(self) -> ProductCatalog:
        """The current catalog. Hold on to it to read a consistent table."""
        return self._catalog

    def lookup(self, code: str) -> Optional[Product]:
        """Look up a code in the current catalog; None if not found."""
        return self._catalog.lookup(code)

    def active_source(self) -> Optional[Path]:
        """First source path that exists, or None."""
        for source in self._sources:
            if source.exists():
                return source
        return None

    def reload(self) -> ProductCatalog:
        """
        Load the catalog again and publish it.

        Returns:
            The newly published catalog

        Raises:
            CatalogLoadError: If the source exists but cannot be read. The
                previous catalog stays published.
        """
        with self._reload_lock:
            source = self.active_source()
            if source is None:
                fallback = str(self._sources[0]) if self._sources else "<none>"
                new_catalog = ProductCatalog.empty(fallback)
                signature = None
            else:
                signature = self._signature(source)
                new_catalog = ProductCatalog.load(source)

            # Atomic reference swap
            self._catalog = new_catalog
            self._loaded_signature = signature

        logger.info(f"Products loaded: {len(new_catalog)} from {new_catalog.report.source}")
        return new_catalog

    def start(self) -> None:
        """
        Start the background refresh thread.

        Does nothing when refresh_interval_seconds is not positive or the
        thread is already running.
        """
        if self._refresh_interval <= 0:
            logger.debug("Catalog refresh disabled")
            return

        if self._is_running:
            logger.warning("CatalogService already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._refresh_loop,
            name="Catalog",
            daemon=True
        )
        self._is_running = True
        self._thread.start()

        logger.info(f"Catalog refresh thread started (every {self._refresh_interval}s)")

    def stop(self) -> None:
        """Stop the background refresh thread. Safe to call multiple times."""
        if not self._is_running:
            return

        self._stop_event.set()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

            if self._thread.is_alive():
                logger.warning("Catalog thread did not stop cleanly")

        self._is_running = False
        self._thread = None

        logger.info("Catalog refresh thread stopped")

    def refresh_if_changed(self) -> bool:
        """
        Reload if the active source changed since the last load.

        Returns:
            True if a reload happened and succeeded
        """
        source = self.active_source()
        signature = self._signature(source) if source else None
        if signature == self._loaded_signature:
            return False

        try:
            self.reload()
        except CatalogLoadError as e:
            logger.warning(f"Catalog refresh failed, keeping previous catalog: {e}")
            return False
        return True

    def _refresh_loop(self) -> None:
        set_thread_name("Catalog")

        while not self._stop_event.wait(timeout=self._refresh_interval):
            self.refresh_if_changed()

        logger.debug("Catalog refresh loop exiting")

    @staticmethod
    def _signature(source: Path) -> Optional[Tuple[str, float]]:
        try:
            return (str(source), source.stat().st_mtime)
        except OSError:
            return None
