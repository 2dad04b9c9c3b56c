"""
Label station service.

The explicit call sequence behind the scan page:

    scan(raw)        -> trim, look up, log, render a preview
    preview(...)     -> render a label for a code or for manual entry (display only)
    print_label(...) -> print the given code, or the label of the last scan

Only scans change the current label. A failed render leaves the previous
good label in place, so nothing ever sees a half-drawn image; printing
without a code still follows the last scan and fails with RenderError
rather than printing an older product's label.

Thread Safety:
    - last_label and last_scan are replaced, never modified
    - ScanLog guards its deque with a lock
"""

from __future__ import annotations

import threading
from collections import deque
from datetime import datetime
from typing import List, Optional

from core.exceptions import NoLabelError, RenderError
from models.label import LabelSpec, PrintReceipt, RenderedLabel
from models.scan import ScanEntry, ScanResult
from modules.label_renderer import LabelRenderer
from modules.print_pipeline import PrintPipeline
from modules.print_surfaces import PrintSurface
from services.catalog_service import CatalogService
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class ScanLog:
    """Most recent scans, oldest first, bounded to max_entries."""

    def __init__(self, max_entries: int = 500):
        self._entries = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def append(self, entry: ScanEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def entries(self) -> List[ScanEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def as_text(self) -> str:
        return "".join(f"{entry.format_line()}\n" for entry in self.entries())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class LabelStation:
    """
    Scan -> lookup -> render -> print for one label printer.

    Attributes:
        spec: Label stock, fixed for the process
        scan_log: Recent scans
    """

    def __init__(
        self,
        catalog_service: CatalogService,
        spec: LabelSpec,
        surface: PrintSurface,
        renderer: Optional[LabelRenderer] = None,
        pipeline: Optional[PrintPipeline] = None,
        scan_log_size: int = 500,
    ):
        self.catalog_service = catalog_service
        self.spec = spec
        self.surface = surface
        self.renderer = renderer or LabelRenderer()
        self.pipeline = pipeline or PrintPipeline()
        self.scan_log = ScanLog(scan_log_size)

        self._last_label: Optional[RenderedLabel] = None
        self._last_scan: Optional[ScanResult] = None

    @property
    def last_label(self) -> Optional[RenderedLabel]:
        """Most recent successfully rendered label."""
        return self._last_label

    @property
    def last_scan(self) -> Optional[ScanResult]:
        return self._last_scan

    # -------------------------------------------------------------------------
    # Scan
    # -------------------------------------------------------------------------

    def resolve(self, code: str) -> ScanResult:
        """Look up a code without logging or rendering."""
        code = (code or "").strip()
        return ScanResult(code=code, product=self.catalog_service.lookup(code))

    def scan(self, raw: Optional[str]) -> Optional[ScanResult]:
        """
        Handle one scan event.

        Args:
            raw: Text typed by the scanner; surrounding whitespace (Enter, Tab) is trimmed

        Returns:
            ScanResult, or None if the scan was empty after trimming

        Note:
            The automatic preview may fail (e.g. a code with characters the
            barcode cannot encode). That is logged; the scan result is still
            returned and the previous label stays current.
        """
        code = (raw or "").strip()
        if not code:
            logger.debug("Empty scan ignored")
            return None

        result = self.resolve(code)
        self._last_scan = result
        self.scan_log.append(ScanEntry.from_result(result, datetime.now()))

        if result.found:
            logger.info(f"Scan {code}: found {result.name}")
        else:
            logger.info(f"Scan {code}: not found")

        try:
            self.render_result(result)
        except RenderError as e:
            logger.warning(f"Preview failed for scan {code}: {e.message}")

        return result

    # -------------------------------------------------------------------------
    # Render
    # -------------------------------------------------------------------------

    def _render(self, result: ScanResult) -> RenderedLabel:
        return self.renderer.render(
            result.code,
            result.name,
            result.price,
            self.spec,
            found=result.found,
        )

    def render_result(self, result: ScanResult) -> RenderedLabel:
        """Render the label for a lookup result and make it the current label."""
        label = self._render(result)
        self._last_label = label
        return label

    def preview(self, code: str, name: Optional[str] = None, price: Optional[str] = None) -> RenderedLabel:
        """
        Render a label for display only.

        With name or price given, they are used as typed (manual entry,
        treated as found). Otherwise the catalog decides. The current label
        is not changed; only scans decide what a plain print uses.

        Raises:
            RenderError: If the label cannot be rendered
        """
        if name is None and price is None:
            return self._render(self.resolve(code))

        return self.renderer.render(code, name or "", price or "", self.spec, found=True)

    # -------------------------------------------------------------------------
    # Print
    # -------------------------------------------------------------------------

    def print_label(self, code: Optional[str] = None) -> PrintReceipt:
        """
        Print one label.

        Args:
            code: Code to look up and print. When omitted, the label for
                the last scan is printed. The current label is reused when
                it belongs to that scan; otherwise the scan is rendered again.

        Returns:
            PrintReceipt

        Raises:
            NoLabelError: Nothing has been scanned yet
            RenderError: The label cannot be rendered
            PrintSubsystemError: The printer failed (not retried)
        """
        if code and code.strip():
            label = self._render(self.resolve(code))
        else:
            if self._last_scan is None:
                raise NoLabelError()
            label = self._last_label
            # A failed preview leaves an older product's label current
            if label is None or label.code != self._last_scan.code:
                label = self.render_result(self._last_scan)

        return self.pipeline.print_one(label, self.spec, self.surface)
