"""
Configuration for Label Station.

Label size and DPI are read once at startup and stay fixed for the whole
process run. Change them in .env and restart to switch label stock.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # ==========================================================================
    # Label stock
    # ==========================================================================
    # Common thermal labels: 58x40mm, 50x30mm, 100x50mm.
    # LABEL_DPI: 203 for most thermal printers (8 dots/mm), 300 for high-res heads.
    # PAGE_MARGIN_MM: inset on every side of the printed page.
    # ==========================================================================
    LABEL_WIDTH_MM = float(os.environ.get("LABEL_WIDTH_MM", "58"))
    LABEL_HEIGHT_MM = float(os.environ.get("LABEL_HEIGHT_MM", "40"))
    LABEL_DPI = int(os.environ.get("LABEL_DPI", "203"))
    LABEL_SYMBOLOGY = "code128"
    PAGE_MARGIN_MM = float(os.environ.get("PAGE_MARGIN_MM", "2"))

    # Prefixed to prices that do not already carry it
    CURRENCY_PREFIX = os.environ.get("CURRENCY_PREFIX", "Rs")

    # Optional TrueType fonts; DejaVu or Pillow's bundled font when unset
    LABEL_FONT_BOLD = os.environ.get("LABEL_FONT_BOLD", "")
    LABEL_FONT_REGULAR = os.environ.get("LABEL_FONT_REGULAR", "")

    # ==========================================================================
    # Product catalog
    # ==========================================================================
    # PRODUCTS_CSV next to where the app runs is used first; the bundled
    # sample is the fallback. A missing file gives an empty catalog.
    # CATALOG_REFRESH_SECONDS > 0 reloads the file when it changes on disk.
    # ==========================================================================
    PRODUCTS_CSV = os.environ.get("PRODUCTS_CSV", "products.csv")
    BUNDLED_PRODUCTS_CSV = str(BASE_DIR / "data" / "products.csv")
    CATALOG_REFRESH_SECONDS = float(os.environ.get("CATALOG_REFRESH_SECONDS", "0"))

    # Number of scans kept in the in-memory scan log
    SCAN_LOG_SIZE = int(os.environ.get("SCAN_LOG_SIZE", "500"))

    # ==========================================================================
    # Printing
    # ==========================================================================
    # PRINT_SURFACE: "file" writes each label page to PRINT_OUTPUT_FOLDER,
    #                "win32" sends it to PRINTER_NAME (Windows only).
    # PRINTER_NAME: empty uses the system default printer.
    # ==========================================================================
    PRINT_SURFACE = os.environ.get("PRINT_SURFACE", "file")
    PRINTER_NAME = os.environ.get("PRINTER_NAME", "")
    PRINT_OUTPUT_FOLDER = os.environ.get(
        "PRINT_OUTPUT_FOLDER", str(BASE_DIR / "output")
    )
    PRINT_OUTPUT_FORMAT = os.environ.get("PRINT_OUTPUT_FORMAT", "pdf")
    PRINT_JOB_NAME = os.environ.get("PRINT_JOB_NAME", "Barcode Label")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    ENVIRONMENT = "testing"
    LABEL_WIDTH_MM = 58.0
    LABEL_HEIGHT_MM = 40.0
    LABEL_DPI = 203
    CATALOG_REFRESH_SECONDS = 0.0
    PRINT_SURFACE = "file"
