"""
Label routes.

Handles:
- POST /scan      - One scan event: lookup, log, auto preview
- GET  /label.png - Label preview image (optionally fitted into a box)
- POST /print     - Print one label

Errors raised by the label station (RenderError, PrintSubsystemError, ...)
are turned into JSON responses by the app's error handlers.
"""

import io

from flask import (
    Blueprint,
    current_app,
    jsonify,
    request,
    send_file,
)

from modules.page_planner import preview_image
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

labels_bp = Blueprint("labels", __name__)

MAX_PREVIEW_SIDE = 4000


def _station():
    return current_app.config["LABEL_STATION"]


def _request_value(name: str, default=None):
    """Read a value from a JSON body, form data or the query string."""
    data = request.get_json(silent=True)
    if isinstance(data, dict) and name in data:
        return data.get(name)
    if name in request.form:
        return request.form.get(name)
    return request.args.get(name, default)


def _box_dimension(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        return "invalid"
    if value <= 0 or value > MAX_PREVIEW_SIDE:
        return "invalid"
    return value


@labels_bp.route("/scan", methods=["POST"])
def scan():
    """
    Handle one scan from the scan box.

    Wedge-mode scanners type the code and press Enter; the page posts the
    text here. Empty scans are ignored.
    """
    station = _station()
    raw = _request_value("code", "")
    previous_label = station.last_label

    result = station.scan(raw)
    if result is None:
        return jsonify({"ignored": True})

    response = result.to_dict()
    response["ignored"] = False
    # Same label object means the preview render failed and the old one stayed
    response["preview_ok"] = station.last_label is not None and station.last_label is not previous_label
    return jsonify(response)


@labels_bp.route("/label.png", methods=["GET"])
def label_png():
    """
    Render a label preview as PNG.

    Query:
        code: Barcode payload (required)
        name, price: Manual entry; when either is present the catalog is skipped
        max_width, max_height: Fit the label into this pixel box

    The preview is display only; it never changes what POST /print uses.
    """
    code = (request.args.get("code") or "").strip()
    if not code:
        return jsonify({"ok": False, "error": "code is required"}), 400

    name = request.args.get("name")
    price = request.args.get("price")

    box_width = _box_dimension("max_width")
    box_height = _box_dimension("max_height")
    if "invalid" in (box_width, box_height):
        return jsonify({
            "ok": False,
            "error": f"max_width and max_height must be between 1 and {MAX_PREVIEW_SIDE}",
        }), 400

    label = _station().preview(code, name=name, price=price)

    if box_width is None and box_height is None:
        return send_file(io.BytesIO(label.to_png_bytes()), mimetype="image/png")

    width, height = label.size
    image = preview_image(label, box_width or width, box_height or height)
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    buf.seek(0)
    return send_file(buf, mimetype="image/png")


@labels_bp.route("/print", methods=["POST"])
def print_label():
    """
    Print one label.

    Body (JSON or form):
        code: optional; without it the label of the last scan is printed
    """
    code = _request_value("code")
    receipt = _station().print_label(code)

    logger.info(f"Printed label to {receipt.destination}")
    return jsonify({"ok": True, "receipt": receipt.to_dict()})
