"""
Print pipeline.

Sends one rendered label to a print surface as exactly one page:

    1. PagePlanner.plan(spec)           -> page size and imageable area (points)
    2. PagePlanner.fit(image, geometry) -> scale and centered offsets
    3. surface.submit(printable, ...)   -> surface paints page 0; page 1 is refused

Failures from the surface come back as PrintSubsystemError and are never
retried here.
"""

from __future__ import annotations

from typing import Optional, Union

from PIL import Image

from core.exceptions import PrintSubsystemError
from models.label import LabelSpec, PageGeometry, Placement, PrintReceipt, RenderedLabel
from modules.page_planner import PagePlanner
from modules.print_surfaces import DrawingContext, PageStatus, PrintSurface
from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_JOB_NAME = "Barcode Label"


class LabelPrintable:
    """A single-page printable that draws one image at a fixed placement."""

    def __init__(self, image: Image.Image, placement: Placement):
        self.image = image
        self.placement = placement

    def paint(self, context: DrawingContext, geometry: PageGeometry, page_index: int) -> PageStatus:
        if page_index > 0:
            return PageStatus.NO_SUCH_PAGE

        context.draw_image(
            self.image,
            geometry.imageable_x + self.placement.offset_x,
            geometry.imageable_y + self.placement.offset_y,
            self.placement.width,
            self.placement.height,
        )
        return PageStatus.PAGE_EXISTS


class PrintPipeline:
    """
    Prints labels one page at a time.

    Attributes:
        planner: PagePlanner holding the configured page margin
        job_name: Name shown in the spooler queue
    """

    def __init__(self, planner: Optional[PagePlanner] = None, job_name: str = DEFAULT_JOB_NAME):
        self.planner = planner or PagePlanner()
        self.job_name = job_name

    def print_one(
        self,
        image: Union[RenderedLabel, Image.Image],
        spec: LabelSpec,
        surface: PrintSurface,
    ) -> PrintReceipt:
        """
        Print one label on one page.

        Args:
            image: Rendered label (or any raster)
            spec: Label stock, used for the page size
            surface: Where the page goes

        Returns:
            PrintReceipt from the surface

        Raises:
            InvalidSpecError: If the label leaves no imageable area
            PrintSubsystemError: If the surface fails
        """
        raster = image.image if isinstance(image, RenderedLabel) else image

        geometry = self.planner.plan(spec)
        placement = self.planner.fit(raster, geometry)
        printable = LabelPrintable(raster, placement)

        logger.info(
            f"Printing '{self.job_name}' on {spec.width_mm}x{spec.height_mm}mm "
            f"to {surface.destination} (scale {placement.scale:.3f})"
        )

        try:
            receipt = surface.submit(printable, geometry, self.job_name)
        except PrintSubsystemError:
            raise
        except Exception as e:
            logger.error(f"Print surface {surface.destination} failed: {e}")
            raise PrintSubsystemError(
                f"Print failed: {e}",
                destination=surface.destination,
                job_name=self.job_name,
            ) from e

        return receipt


def print_one(
    image: Union[RenderedLabel, Image.Image],
    spec: LabelSpec,
    surface: PrintSurface,
) -> PrintReceipt:
    """Print with the default 2mm margin and job name. See PrintPipeline.print_one."""
    return PrintPipeline().print_one(image, spec, surface)
