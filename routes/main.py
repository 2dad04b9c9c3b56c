"""
Main routes (scan page).
"""

from flask import Blueprint, current_app, render_template

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    """
    Scan page.

    Keeps focus in the scan box so a wedge-mode scanner can type into it,
    and shows product details, the label preview and the scan log.
    """
    station = current_app.config["LABEL_STATION"]
    return render_template(
        "index.html",
        label=station.spec.to_dict(),
        product_count=len(station.catalog_service.catalog),
    )
