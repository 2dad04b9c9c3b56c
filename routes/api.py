"""
API routes (AJAX endpoints).

Handles:
- /api/catalog         - Current catalog summary
- /api/catalog/reload  - Reload the product file
- /api/scan_log        - Recent scans
- /api/scan_log/clear  - Clear the scan log
- /health              - Health check endpoint
"""

from flask import (
    Blueprint,
    current_app,
    jsonify,
)

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/api/catalog", methods=["GET"])
def catalog():
    """Summary of the catalog currently in use."""
    catalog_service = current_app.config["CATALOG_SERVICE"]
    current = catalog_service.catalog

    return jsonify({
        "count": len(current),
        "report": current.report.to_dict(),
        "refreshing": catalog_service.is_running,
    })


@api_bp.route("/api/catalog/reload", methods=["POST"])
def reload_catalog():
    """
    Reload the product file.

    On a read error the previous catalog stays in use and the error handler
    reports CatalogLoadError.
    """
    catalog_service = current_app.config["CATALOG_SERVICE"]
    new_catalog = catalog_service.reload()

    return jsonify({
        "ok": True,
        "count": len(new_catalog),
        "report": new_catalog.report.to_dict(),
    })


@api_bp.route("/api/scan_log", methods=["GET"])
def scan_log():
    """Recent scans, oldest first."""
    station = current_app.config["LABEL_STATION"]
    entries = station.scan_log.entries()

    return jsonify({
        "count": len(entries),
        "entries": [entry.to_dict() for entry in entries],
        "text": station.scan_log.as_text(),
    })


@api_bp.route("/api/scan_log/clear", methods=["POST"])
def clear_scan_log():
    station = current_app.config["LABEL_STATION"]
    station.scan_log.clear()
    logger.info("Scan log cleared")
    return jsonify({"ok": True})


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check: app is up and reports the label stock in use."""
    station = current_app.config["LABEL_STATION"]
    catalog_service = current_app.config["CATALOG_SERVICE"]

    return jsonify({
        "status": "ok",
        "label": station.spec.to_dict(),
        "products": len(catalog_service.catalog),
        "print_destination": station.surface.destination,
    })
