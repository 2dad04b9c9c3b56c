"""
Integration tests for the Flask routes.

Each test gets a fresh app built by create_app() with a temp product file
and a temp print output folder.
"""

import io
from unittest.mock import MagicMock

import pytest
from PIL import Image

from app import create_app
from core.exceptions import InvalidSpecError


# Fixtures

@pytest.fixture
def products_csv(tmp_path):
    path = tmp_path / "products.csv"
    path.write_text(
        "code,name,price\n"
        "4791234567890,USB Cable 1m,650.00\n"
        "ABC-1001,Glue Stick,\n"
        "4791234567913,Keyboard Cover,Rs 390.00\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def app(tmp_path, products_csv):
    """Create app with test configuration."""
    app = create_app("config.TestingConfig", overrides={
        "PRODUCTS_CSV": str(products_csv),
        "BUNDLED_PRODUCTS_CSV": "",
        "PRINT_OUTPUT_FOLDER": str(tmp_path / "output"),
        "PRINT_OUTPUT_FORMAT": "png",
    })
    yield app
    app.config["CATALOG_SERVICE"].stop()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def _png_size(data):
    with Image.open(io.BytesIO(data)) as image:
        return image.size


# Tests for app startup

class TestCreateApp:
    """Test the app factory."""

    def test_services_registered(self, app):
        assert "LABEL_STATION" in app.config
        assert len(app.config["CATALOG_SERVICE"].catalog) == 3

    def test_invalid_label_size_stops_startup(self, tmp_path):
        with pytest.raises(InvalidSpecError):
            create_app("config.TestingConfig", overrides={
                "LABEL_WIDTH_MM": 3,
                "PRODUCTS_CSV": "",
                "BUNDLED_PRODUCTS_CSV": "",
                "PRINT_OUTPUT_FOLDER": str(tmp_path),
            })

    def test_missing_product_file_starts_empty(self, tmp_path):
        app = create_app("config.TestingConfig", overrides={
            "PRODUCTS_CSV": str(tmp_path / "missing.csv"),
            "BUNDLED_PRODUCTS_CSV": "",
            "PRINT_OUTPUT_FOLDER": str(tmp_path),
        })

        assert len(app.config["CATALOG_SERVICE"].catalog) == 0


# Tests for the scan page

class TestIndex:
    """Test the scan page."""

    def test_index(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert b"Scan here" in response.data


# Tests for scanning

class TestScanRoute:
    """Test POST /scan."""

    def test_found(self, client):
        response = client.post("/scan", json={"code": "4791234567890\n"})

        data = response.get_json()
        assert response.status_code == 200
        assert data["found"] is True
        assert data["name"] == "USB Cable 1m"
        assert data["price"] == "650.00"
        assert data["ignored"] is False
        assert data["preview_ok"] is True

    def test_not_found(self, client):
        data = client.post("/scan", json={"code": "0000000000000"}).get_json()

        assert data["found"] is False
        assert data["name"] == "(NOT FOUND)"
        assert data["price"] == ""

    def test_form_post(self, client):
        data = client.post("/scan", data={"code": "ABC-1001"}).get_json()

        assert data["found"] is True
        assert data["name"] == "Glue Stick"

    def test_empty_scan_ignored(self, client):
        data = client.post("/scan", json={"code": "   "}).get_json()

        assert data == {"ignored": True}
        assert client.get("/api/scan_log").get_json()["count"] == 0

    def test_unencodable_scan_reports_preview_failure(self, client):
        data = client.post("/scan", json={"code": "ABC€"}).get_json()

        assert data["found"] is False
        assert data["preview_ok"] is False


# Tests for the label image

class TestLabelImage:
    """Test GET /label.png."""

    def test_full_size_png(self, client):
        response = client.get("/label.png?code=4791234567890")

        assert response.status_code == 200
        assert response.mimetype == "image/png"
        assert _png_size(response.data) == (464, 320)

    def test_fitted_preview(self, client):
        response = client.get("/label.png?code=ABC-1001&max_width=232&max_height=200")

        assert response.status_code == 200
        assert _png_size(response.data) == (232, 200)

    def test_manual_entry(self, client):
        response = client.get("/label.png", query_string={
            "code": "MANUAL-1",
            "name": "Hand Typed",
            "price": "10.00",
        })

        assert response.status_code == 200

    def test_code_required(self, client):
        response = client.get("/label.png")

        assert response.status_code == 400
        assert response.get_json()["ok"] is False

    @pytest.mark.parametrize("query", ["max_width=abc", "max_width=0", "max_height=99999"])
    def test_bad_box(self, client, query):
        response = client.get(f"/label.png?code=ABC-1001&{query}")

        assert response.status_code == 400

    def test_unencodable_code(self, client):
        response = client.get("/label.png", query_string={"code": "ABC€"})

        data = response.get_json()
        assert response.status_code == 422
        assert data["ok"] is False
        assert data["error_type"] == "RenderError"


# Tests for printing

class TestPrintRoute:
    """Test POST /print."""

    def test_print_without_scan(self, client):
        response = client.post("/print", json={})

        assert response.status_code == 409
        assert response.get_json()["error_type"] == "NoLabelError"

    def test_print_after_scan(self, client, tmp_path):
        client.post("/scan", json={"code": "4791234567890"})

        response = client.post("/print", json={})

        data = response.get_json()
        assert response.status_code == 200
        assert data["ok"] is True
        assert data["receipt"]["pages"] == 1
        assert len(list((tmp_path / "output").glob("*.png"))) == 1

    def test_print_after_unrenderable_scan(self, client, tmp_path):
        """Print reports the last scan's render error instead of printing the scan before it."""
        client.post("/scan", json={"code": "4791234567890"})
        client.post("/scan", json={"code": "ABC€"})

        response = client.post("/print", json={})

        assert response.status_code == 422
        assert response.get_json()["error_type"] == "RenderError"
        assert list((tmp_path / "output").glob("*.png")) == []

    def test_manual_preview_not_printed(self, app, client):
        """A manual-entry preview does not replace the scanned label."""
        client.post("/scan", json={"code": "4791234567890"})
        station = app.config["LABEL_STATION"]
        scanned = station.last_label

        response = client.get("/label.png", query_string={"code": "MANUAL-1", "name": "Hand Typed"})
        assert response.status_code == 200

        client.post("/print", json={})

        assert station.last_label is scanned

    def test_print_given_code(self, client, tmp_path):
        response = client.post("/print", json={"code": "ABC-1001"})

        assert response.status_code == 200
        assert response.get_json()["receipt"]["job_name"] == "Barcode Label"

    def test_printer_failure(self, app, client):
        surface = MagicMock()
        surface.destination = "broken-printer"
        surface.submit.side_effect = OSError("printer offline")
        app.config["LABEL_STATION"].surface = surface

        response = client.post("/print", json={"code": "ABC-1001"})

        data = response.get_json()
        assert response.status_code == 502
        assert data["error_type"] == "PrintSubsystemError"
        assert data["details"]["destination"] == "broken-printer"
        assert surface.submit.call_count == 1


# Tests for API endpoints

class TestApi:
    """Test catalog, scan log and health endpoints."""

    def test_catalog_summary(self, client):
        data = client.get("/api/catalog").get_json()

        assert data["count"] == 3
        assert data["report"]["loaded"] == 3
        assert data["refreshing"] is False

    def test_catalog_reload(self, client, products_csv):
        products_csv.write_text("code,name,price\nNEW-1,New Item,1.00\n", encoding="utf-8")

        data = client.post("/api/catalog/reload").get_json()

        assert data["ok"] is True
        assert data["count"] == 1
        assert client.post("/scan", json={"code": "NEW-1"}).get_json()["found"] is True

    def test_catalog_reload_failure_keeps_catalog(self, client, products_csv):
        products_csv.write_bytes(b"code,name,price\nA1,\xff,5\n")

        response = client.post("/api/catalog/reload")

        assert response.status_code == 500
        assert response.get_json()["error_type"] == "CatalogLoadError"
        assert client.get("/api/catalog").get_json()["count"] == 3

    def test_scan_log(self, client):
        client.post("/scan", json={"code": "4791234567890"})
        client.post("/scan", json={"code": "0000000000000"})

        data = client.get("/api/scan_log").get_json()

        assert data["count"] == 2
        assert data["entries"][0]["code"] == "4791234567890"
        lines = data["text"].splitlines()
        assert lines[0].endswith("| 4791234567890 | USB Cable 1m | 650.00")
        assert lines[1].endswith("| 0000000000000 | NOT_FOUND")

    def test_scan_log_clear(self, client):
        client.post("/scan", json={"code": "4791234567890"})

        assert client.post("/api/scan_log/clear").get_json() == {"ok": True}
        assert client.get("/api/scan_log").get_json()["count"] == 0

    def test_health(self, client, tmp_path):
        data = client.get("/health").get_json()

        assert data["status"] == "ok"
        assert data["label"]["width_px"] == 464
        assert data["products"] == 3
        assert data["print_destination"] == str(tmp_path / "output")

    def test_unknown_route(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.get_json()["ok"] is False
