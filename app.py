"""
Label Station - Flask Application Entry Point.

This is a slim app factory that:
1. Builds the label spec from configuration (fail-fast on bad stock sizes)
2. Loads the product catalog (optional refresh thread)
3. Creates the print surface and the label station
4. Registers route blueprints
5. Sets up error handlers

ARCHITECTURE:
    Main Thread
    ├── Config + LabelSpec (fixed for the process)
    ├── Flask request handling -> LabelStation (scan, preview, print)
    └── Cleanup on shutdown

    Catalog Thread (optional, CATALOG_REFRESH_SECONDS > 0)
    └── Reloads products.csv when it changes on disk

The catalog is swapped as a whole on reload; request threads never see a
partially loaded table.
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from logging_config import setup_logging, get_logger
from core.exceptions import (
    CatalogLoadError,
    EncodeError,
    InvalidSpecError,
    LabelStationError,
    NoLabelError,
    PrintSubsystemError,
    RenderError,
)
from models.label import LabelSpec
from modules.label_renderer import FontSet, LabelRenderer
from modules.page_planner import PagePlanner
from modules.print_pipeline import PrintPipeline
from modules.print_surfaces import create_surface
from services.catalog_service import CatalogService
from services.label_service import LabelStation
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)

# HTTP status per error type; anything else is a 500
ERROR_STATUS = {
    InvalidSpecError: 400,
    NoLabelError: 409,
    EncodeError: 422,
    RenderError: 422,
    PrintSubsystemError: 502,
    CatalogLoadError: 500,
}


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In PyInstaller bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def create_app(config_object: str = "config.Config", overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Application factory - creates and configures Flask app.

    FAIL-FAST: An unusable label size stops startup.

    Args:
        config_object: Import path of the config class
        overrides: Config values applied on top (tests, embedding)

    Returns:
        Configured Flask application

    Raises:
        InvalidSpecError: If the label size, DPI or page margin is unusable
    """
    # Load .env from base path (next to executable in production)
    base_path = _get_base_path()
    env_file = base_path / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting Label Station in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # LABEL SPEC (FAIL-FAST)
    # =========================================================================

    try:
        spec = LabelSpec.from_config(app.config)
        planner = PagePlanner(margin_mm=float(app.config.get("PAGE_MARGIN_MM", 2.0)))
        # Validate the page once now rather than on the first print
        planner.plan(spec)
    except InvalidSpecError as e:
        logger.error(f"FATAL: Cannot start application - {e}")
        raise

    width_px, height_px = spec.pixel_size
    logger.info(
        f"Label stock {spec.width_mm}x{spec.height_mm}mm at {spec.dpi} DPI "
        f"({width_px}x{height_px}px)"
    )

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    catalog_service = CatalogService(
        sources=[app.config.get("PRODUCTS_CSV"), app.config.get("BUNDLED_PRODUCTS_CSV")],
        refresh_interval_seconds=float(app.config.get("CATALOG_REFRESH_SECONDS", 0)),
    )
    try:
        catalog_service.reload()
    except CatalogLoadError as e:
        # The app still starts; the catalog stays empty until a reload works
        logger.error(f"Initial catalog load failed: {e}")
    catalog_service.start()
    app.config["CATALOG_SERVICE"] = catalog_service

    renderer = LabelRenderer(
        fonts=FontSet(
            bold_path=app.config.get("LABEL_FONT_BOLD", ""),
            regular_path=app.config.get("LABEL_FONT_REGULAR", ""),
        ),
        currency_prefix=app.config.get("CURRENCY_PREFIX", "Rs"),
    )
    pipeline = PrintPipeline(
        planner=planner,
        job_name=app.config.get("PRINT_JOB_NAME", "Barcode Label"),
    )
    surface = create_surface(app.config, dpi=spec.dpi)
    logger.info(f"Print destination: {surface.destination}")

    label_station = LabelStation(
        catalog_service=catalog_service,
        spec=spec,
        surface=surface,
        renderer=renderer,
        pipeline=pipeline,
        scan_log_size=int(app.config.get("SCAN_LOG_SIZE", 500)),
    )
    app.config["LABEL_STATION"] = label_station

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        catalog_service.stop()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(LabelStationError)
    def handle_label_station_error(e: LabelStationError):
        status = 500
        for error_type, error_status in ERROR_STATUS.items():
            if isinstance(e, error_type):
                status = error_status
                break

        if status >= 500:
            logger.error(f"{type(e).__name__}: {e}")
        else:
            logger.warning(f"{type(e).__name__}: {e}")

        return jsonify({
            "ok": False,
            "error": e.message,
            "error_type": type(e).__name__,
            "details": e.details,
        }), status

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({"ok": False, "error": "Not found"}), 404

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return jsonify({"ok": False, "error": "An unexpected error occurred. Please try again."}), 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
