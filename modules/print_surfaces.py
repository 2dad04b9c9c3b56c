"""
Print surfaces.

A print surface is the boundary to whatever actually produces output. It is
handed a page geometry and a printable, asks the printable to paint page 0,
1, 2, ... until the printable answers NO_SUCH_PAGE, and emits one unit of
output per painted page.

Surfaces:
    FilePrintSurface  - virtual page: rasterizes each page at the label DPI
                        and writes a PDF or PNG file
    Win32PrintSurface - physical page: Windows printer device context
                        (pywin32), page coordinates converted with the
                        device's own DPI

Drawing contract:
    Printables draw through DrawingContext.draw_image(image, x, y, w, h)
    with every coordinate in points from the page's top-left corner.
    Pages are recorded first and replayed onto the device afterwards, so a
    surface only starts a device page for a page that exists.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, List, Mapping, Optional, Protocol

from PIL import Image

from core.exceptions import PrintSubsystemError
from models.label import PageGeometry, PrintReceipt
from modules.units import points_to_pixels, round_half_up
from logging_config import get_logger

# Windows printing helpers are only present on Windows
try:
    import win32print
    import win32ui
    from PIL import ImageWin
    WINDOWS_PRINTING_AVAILABLE = True
except ImportError:
    WINDOWS_PRINTING_AVAILABLE = False


logger = get_logger(__name__)

MAX_PAGES = 16
"""Upper bound on pages requested from one printable."""

# GetDeviceCaps indexes
LOGPIXELSX = 88
LOGPIXELSY = 90


# =============================================================================
# CONTRACT
# =============================================================================

class PageStatus(Enum):
    """Answer of a printable for one page index."""

    PAGE_EXISTS = "page_exists"
    NO_SUCH_PAGE = "no_such_page"


class DrawingContext(Protocol):
    """Drawing operations available to a printable, in points."""

    def draw_image(
        self,
        image: Image.Image,
        x_pt: float,
        y_pt: float,
        width_pt: float,
        height_pt: float,
    ) -> None:
        ...


class Printable(Protocol):
    """Something that can paint pages onto a DrawingContext."""

    def paint(self, context: DrawingContext, geometry: PageGeometry, page_index: int) -> PageStatus:
        ...


@dataclass
class DrawImageOp:
    image: Image.Image
    x_pt: float
    y_pt: float
    width_pt: float
    height_pt: float


@dataclass
class RecordedPage:
    """Drawing operations captured for one page."""

    ops: List[DrawImageOp] = field(default_factory=list)

    def draw_image(self, image, x_pt, y_pt, width_pt, height_pt) -> None:
        self.ops.append(DrawImageOp(image, x_pt, y_pt, width_pt, height_pt))


def record_pages(printable: Printable, geometry: PageGeometry) -> List[RecordedPage]:
    """
    Ask the printable for pages until it answers NO_SUCH_PAGE.

    Raises:
        PrintSubsystemError: If the printable produces no page, or more than
            MAX_PAGES pages
    """
    pages: List[RecordedPage] = []
    for page_index in range(MAX_PAGES + 1):
        page = RecordedPage()
        status = printable.paint(page, geometry, page_index)
        if status is PageStatus.NO_SUCH_PAGE:
            break
        pages.append(page)
    else:
        raise PrintSubsystemError(f"Printable did not stop after {MAX_PAGES} pages")

    if not pages:
        raise PrintSubsystemError("Printable produced no pages")
    return pages


class PrintSurface(ABC):
    """Output device for printables."""

    @property
    @abstractmethod
    def destination(self) -> str:
        """Human-readable description of where output goes."""

    @abstractmethod
    def submit(self, printable: Printable, geometry: PageGeometry, job_name: str) -> PrintReceipt:
        """
        Print every page the printable paints.

        Raises:
            PrintSubsystemError: If the device or spooler fails
        """


# =============================================================================
# VIRTUAL SURFACE (FILES)
# =============================================================================

def rasterize_page(page: RecordedPage, geometry: PageGeometry, dpi: int) -> Image.Image:
    """Replay a recorded page onto a white raster of the page size at dpi."""
    width_px = max(1, round_half_up(points_to_pixels(geometry.width_pt, dpi)))
    height_px = max(1, round_half_up(points_to_pixels(geometry.height_pt, dpi)))
    canvas = Image.new("RGB", (width_px, height_px), "white")

    for op in page.ops:
        x = round_half_up(points_to_pixels(op.x_pt, dpi))
        y = round_half_up(points_to_pixels(op.y_pt, dpi))
        w = max(1, round_half_up(points_to_pixels(op.width_pt, dpi)))
        h = max(1, round_half_up(points_to_pixels(op.height_pt, dpi)))
        # NEAREST keeps barcode bars hard-edged
        scaled = op.image.convert("RGB").resize((w, h), Image.Resampling.NEAREST)
        canvas.paste(scaled, (x, y))

    return canvas


def _safe_job_name(job_name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]+", "_", job_name).strip("_") or "label"


class FilePrintSurface(PrintSurface):
    """
    Writes each print job to a file in output_folder.

    PDF pages carry the physical page size (pixels at dpi), so the file
    prints at true size from any viewer.
    """

    FORMATS = ("pdf", "png")

    def __init__(self, output_folder, dpi: int, output_format: str = "pdf"):
        output_format = output_format.lower()
        if output_format not in self.FORMATS:
            raise ValueError(f"Unsupported print output format: {output_format}")
        self.output_folder = Path(output_folder)
        self.dpi = dpi
        self.output_format = output_format

    @property
    def destination(self) -> str:
        return str(self.output_folder)

    def submit(self, printable: Printable, geometry: PageGeometry, job_name: str) -> PrintReceipt:
        pages = record_pages(printable, geometry)
        images = [rasterize_page(page, geometry, self.dpi) for page in pages]

        submitted_at = datetime.now(timezone.utc)
        stamp = submitted_at.strftime("%Y%m%d-%H%M%S-%f")
        path = self.output_folder / f"{_safe_job_name(job_name)}-{stamp}.{self.output_format}"

        try:
            self.output_folder.mkdir(parents=True, exist_ok=True)
            if self.output_format == "pdf":
                images[0].save(
                    path,
                    format="PDF",
                    resolution=float(self.dpi),
                    save_all=True,
                    append_images=images[1:],
                )
            else:
                images[0].save(path, format="PNG", dpi=(self.dpi, self.dpi))
        except OSError as e:
            logger.error(f"Failed to write print output {path}: {e}")
            raise PrintSubsystemError(
                f"Could not write print output: {e}",
                destination=str(path),
                job_name=job_name,
            ) from e

        logger.info(f"Print job '{job_name}' written to {path} ({len(images)} page)")
        return PrintReceipt(
            job_name=job_name,
            pages=len(images),
            destination=str(path),
            submitted_at=submitted_at,
        )


# =============================================================================
# PHYSICAL SURFACE (WINDOWS SPOOLER)
# =============================================================================

class Win32PrintSurface(PrintSurface):
    """
    Prints through a Windows printer driver.

    The driver's own paper setting decides the physical stock; coordinates
    are relative to the driver's printable area and converted with the
    device DPI (LOGPIXELSX/LOGPIXELSY).
    """

    def __init__(self, printer_name: str = ""):
        self.printer_name = printer_name

    @property
    def destination(self) -> str:
        return self.printer_name or "(default printer)"

    def submit(self, printable: Printable, geometry: PageGeometry, job_name: str) -> PrintReceipt:
        if not WINDOWS_PRINTING_AVAILABLE:
            raise PrintSubsystemError(
                "Windows printing is not available on this system.",
                destination=self.destination,
                job_name=job_name,
            )

        pages = record_pages(printable, geometry)

        printer_name = self.printer_name or win32print.GetDefaultPrinter()
        hdc = win32ui.CreateDC()
        doc_started = False
        try:
            hdc.CreatePrinterDC(printer_name)
            dpi_x = hdc.GetDeviceCaps(LOGPIXELSX)
            dpi_y = hdc.GetDeviceCaps(LOGPIXELSY)

            hdc.StartDoc(job_name)
            doc_started = True
            for page in pages:
                hdc.StartPage()
                for op in page.ops:
                    self._draw(hdc, op, dpi_x, dpi_y)
                hdc.EndPage()
            hdc.EndDoc()
            doc_started = False
        except Exception as e:
            logger.error(f"Printer '{printer_name}' failed for job '{job_name}': {e}")
            if doc_started:
                hdc.AbortDoc()
            raise PrintSubsystemError(
                f"Printer '{printer_name}' failed: {e}",
                destination=printer_name,
                job_name=job_name,
            ) from e
        finally:
            hdc.DeleteDC()

        logger.info(f"Print job '{job_name}' sent to {printer_name} ({len(pages)} page)")
        return PrintReceipt(
            job_name=job_name,
            pages=len(pages),
            destination=printer_name,
            submitted_at=datetime.now(timezone.utc),
        )

    @staticmethod
    def _draw(hdc, op: DrawImageOp, dpi_x: int, dpi_y: int) -> None:
        x = round_half_up(points_to_pixels(op.x_pt, dpi_x))
        y = round_half_up(points_to_pixels(op.y_pt, dpi_y))
        w = max(1, round_half_up(points_to_pixels(op.width_pt, dpi_x)))
        h = max(1, round_half_up(points_to_pixels(op.height_pt, dpi_y)))

        image = op.image.convert("RGB").resize((w, h), Image.Resampling.NEAREST)
        dib = ImageWin.Dib(image)
        dib.draw(hdc.GetHandleOutput(), (x, y, x + w, y + h))


# =============================================================================
# FACTORY
# =============================================================================

def create_surface(config: Mapping[str, Any], dpi: Optional[int] = None) -> PrintSurface:
    """
    Build the configured print surface.

    Args:
        config: Flask config (PRINT_SURFACE, PRINTER_NAME, PRINT_OUTPUT_*)
        dpi: Raster density for the file surface (defaults to LABEL_DPI)

    Raises:
        ValueError: If PRINT_SURFACE names an unknown surface
    """
    kind = str(config.get("PRINT_SURFACE", "file")).lower()

    if kind == "file":
        return FilePrintSurface(
            output_folder=config.get("PRINT_OUTPUT_FOLDER", "output"),
            dpi=dpi or int(config.get("LABEL_DPI", 203)),
            output_format=config.get("PRINT_OUTPUT_FORMAT", "pdf"),
        )
    if kind == "win32":
        return Win32PrintSurface(printer_name=config.get("PRINTER_NAME", ""))

    raise ValueError(f"Unknown PRINT_SURFACE: {kind!r} (expected 'file' or 'win32')")
