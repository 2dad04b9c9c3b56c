"""
Flask route blueprints for Label Station.

This module contains all route handlers organized by functionality:
- main: Scan page
- labels: Scan, label preview and print
- api: AJAX endpoints (catalog reload, scan log, health)

Each blueprint is registered with the Flask app in create_app().
"""

from .main import main_bp
from .labels import labels_bp
from .api import api_bp

__all__ = [
    "main_bp",
    "labels_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(main_bp)
    app.register_blueprint(labels_bp)
    app.register_blueprint(api_bp)
