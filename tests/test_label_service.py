"""
Unit tests for LabelStation and the scan log.

The catalog is loaded from a temp CSV and printing goes to a mock surface,
so these tests run without a printer.
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from core.exceptions import NoLabelError, PrintSubsystemError, RenderError
from models.label import LabelSpec, PrintReceipt
from models.product import Product
from models.scan import NOT_FOUND_NAME, ScanEntry, ScanResult
from modules.label_renderer import LabelRenderer
from services.catalog_service import CatalogService
from services.label_service import LabelStation, ScanLog


# Fixtures

@pytest.fixture
def catalog_service(tmp_path):
    path = tmp_path / "products.csv"
    path.write_text(
        "code,name,price\n"
        "4791234567890,USB Cable 1m,650.00\n"
        "ABC-1001,Glue Stick,\n",
        encoding="utf-8",
    )
    service = CatalogService([path])
    service.reload()
    return service


@pytest.fixture
def spec():
    return LabelSpec(width_mm=58, height_mm=40, dpi=203)


@pytest.fixture
def mock_surface():
    surface = MagicMock()
    surface.destination = "mock-printer"
    surface.submit.return_value = MagicMock(spec=PrintReceipt)
    return surface


@pytest.fixture
def station(catalog_service, spec, mock_surface):
    return LabelStation(
        catalog_service=catalog_service,
        spec=spec,
        surface=mock_surface,
        renderer=LabelRenderer(),
        scan_log_size=10,
    )


# Tests for scan models

class TestScanModels:
    """Test ScanResult and ScanEntry."""

    def test_found_result(self):
        result = ScanResult("A1", Product("A1", "Alpha", "5.00"))

        assert result.found is True
        assert result.to_dict() == {"code": "A1", "found": True, "name": "Alpha", "price": "5.00"}

    def test_not_found_result(self):
        result = ScanResult("ZZZ")

        assert result.found is False
        assert result.name == NOT_FOUND_NAME
        assert result.price == ""

    def test_log_lines(self):
        at = datetime(2026, 10, 18, 10, 15, 32)

        found = ScanEntry.from_result(ScanResult("A1", Product("A1", "Alpha", "5.00")), at)
        missing = ScanEntry.from_result(ScanResult("ZZZ"), at)

        assert found.format_line() == "2026-10-18 10:15:32 | A1 | Alpha | 5.00"
        assert missing.format_line() == "2026-10-18 10:15:32 | ZZZ | NOT_FOUND"


class TestScanLog:
    """Test the bounded scan log."""

    def test_bounded(self):
        log = ScanLog(max_entries=2)
        at = datetime(2026, 10, 18, 9, 0, 0)
        for code in ("A", "B", "C"):
            log.append(ScanEntry(at, code, False))

        assert len(log) == 2
        assert [e.code for e in log.entries()] == ["B", "C"]

    def test_text_and_clear(self):
        log = ScanLog()
        log.append(ScanEntry(datetime(2026, 10, 18, 9, 0, 0), "A", False))

        assert log.as_text() == "2026-10-18 09:00:00 | A | NOT_FOUND\n"

        log.clear()
        assert len(log) == 0
        assert log.as_text() == ""


# Tests for scanning

class TestScan:
    """Test LabelStation.scan."""

    def test_empty_scan_ignored(self, station):
        assert station.scan("") is None
        assert station.scan("  \t\n") is None
        assert station.scan(None) is None
        assert len(station.scan_log) == 0
        assert station.last_label is None

    def test_found_scan(self, station, spec):
        result = station.scan("4791234567890\n")

        assert result.found is True
        assert result.name == "USB Cable 1m"
        assert result.price == "650.00"
        assert station.last_label.code == "4791234567890"
        assert station.last_label.size == spec.pixel_size
        assert station.scan_log.entries()[0].format_line().endswith("| 4791234567890 | USB Cable 1m | 650.00")

    def test_not_found_scan(self, station):
        result = station.scan("0000000000000")

        assert result.found is False
        assert result.name == NOT_FOUND_NAME
        assert station.last_label.code == "0000000000000"
        assert station.scan_log.entries()[0].format_line().endswith("| 0000000000000 | NOT_FOUND")

    def test_failed_preview_keeps_previous_label(self, station):
        station.scan("ABC-1001")
        previous = station.last_label

        result = station.scan("ABC€")

        assert result is not None
        assert result.found is False
        assert station.last_label is previous
        assert len(station.scan_log) == 2

    def test_reload_visible_to_next_scan(self, station, catalog_service, tmp_path):
        (tmp_path / "products.csv").write_text("code,name,price\nNEW-1,New Item,1.00\n", encoding="utf-8")
        catalog_service.reload()

        assert station.scan("NEW-1").found is True
        assert station.scan("ABC-1001").found is False


# Tests for preview

class TestPreview:
    """Test LabelStation.preview."""

    def test_preview_from_catalog(self, station):
        label = station.preview("ABC-1001")

        assert label.code == "ABC-1001"
        assert station.last_label is None

    def test_manual_entry_shows_price(self, station, spec):
        label = station.preview("MANUAL-1", name="Hand Typed", price="99.00")
        expected = LabelRenderer().render("MANUAL-1", "Hand Typed", "99.00", spec, found=True)

        assert label.image.tobytes() == expected.image.tobytes()

    def test_preview_does_not_change_printed_label(self, station, mock_surface):
        """A manual-entry preview is display only; print follows the last scan."""
        station.scan("4791234567890")
        scanned = station.last_label

        station.preview("MANUAL-1", name="Hand Typed", price="99.00")
        station.print_label()

        assert station.last_label is scanned
        printable = mock_surface.submit.call_args[0][0]
        assert printable.image is scanned.image

    def test_preview_error(self, station):
        with pytest.raises(RenderError):
            station.preview("ABC€")


# Tests for printing

class TestPrintLabel:
    """Test LabelStation.print_label."""

    def test_nothing_scanned(self, station, mock_surface):
        with pytest.raises(NoLabelError):
            station.print_label()

        mock_surface.submit.assert_not_called()

    def test_prints_last_label(self, station, mock_surface):
        station.scan("4791234567890")

        receipt = station.print_label()

        assert receipt is mock_surface.submit.return_value
        mock_surface.submit.assert_called_once()
        printable = mock_surface.submit.call_args[0][0]
        assert printable.image is station.last_label.image

    def test_prints_given_code(self, station, mock_surface):
        station.scan("4791234567890")
        scanned = station.last_label

        station.print_label(code="ABC-1001")

        mock_surface.submit.assert_called_once()
        printable = mock_surface.submit.call_args[0][0]
        assert printable.image is not scanned.image
        assert station.last_label is scanned

    def test_unprintable_last_scan_raises_render_error(self, station, mock_surface):
        station.scan("ABC€")

        with pytest.raises(RenderError):
            station.print_label()

        mock_surface.submit.assert_not_called()

    def test_failed_scan_does_not_print_previous_product(self, station, mock_surface):
        """After a scan whose label cannot render, print refuses instead of reprinting the earlier one."""
        station.scan("ABC-1001")
        station.scan("Bé2")

        with pytest.raises(RenderError):
            station.print_label()

        mock_surface.submit.assert_not_called()
        assert station.last_label.code == "ABC-1001"

    def test_print_rerenders_stale_label(self, station, mock_surface):
        """The current label is replaced when it does not belong to the last scan."""
        station.scan("ABC-1001")
        station._last_scan = station.resolve("4791234567890")

        station.print_label()

        assert station.last_label.code == "4791234567890"
        printable = mock_surface.submit.call_args[0][0]
        assert printable.image is station.last_label.image

    def test_printer_failure(self, station, mock_surface):
        mock_surface.submit.side_effect = OSError("spooler down")
        station.scan("ABC-1001")

        with pytest.raises(PrintSubsystemError):
            station.print_label()

        assert mock_surface.submit.call_count == 1
