"""
Ledger Mapper — Trial Balance Processing API.

Upload an ``.xlsx`` ledger export and receive the classified, balance-checked
trial balance as JSON or as a downloadable analysis workbook.
"""

from __future__ import annotations

import json
import logging
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, request, send_file
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename

from ledger_mapper import __version__
from ledger_mapper.config import PipelineConfig
from ledger_mapper.exceptions import LedgerMapperError
from ledger_mapper.exporter import XLSX_MIMETYPE, export_filename, export_workbook
from ledger_mapper.hints import label_confidence
from ledger_mapper.pipeline import TrialBalanceProcessor
from ledger_mapper.schema import TrialBalanceResult

# -------------------------------------------------------
# App Setup
# -------------------------------------------------------

app = Flask(__name__)

app.config["MAX_CONTENT_LENGTH"] = 10 * 1024 * 1024

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"xlsx"}

# -------------------------------------------------------
# Processor Setup
# -------------------------------------------------------

processor = TrialBalanceProcessor(config=PipelineConfig(log_level=logging.WARNING))

# -------------------------------------------------------
# Helpers
# -------------------------------------------------------

def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


class UploadError(ValueError):
    """The request does not carry a usable upload."""


def read_upload() -> Tuple[str, bytes, Optional[List[Dict[str, Any]]]]:
    """Return ``(filename, payload, label_hints)`` from the multipart request."""
    if "file" not in request.files:
        raise UploadError("No file uploaded")

    file = request.files["file"]

    if file.filename == "":
        raise UploadError("No file selected")

    if not allowed_file(file.filename):
        raise UploadError(
            f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    labels = None
    raw_labels = request.form.get("labels")
    if raw_labels:
        try:
            labels = json.loads(raw_labels)
        except json.JSONDecodeError as exc:
            raise UploadError(f"Invalid labels JSON: {exc.msg}") from exc
        if not isinstance(labels, list) or not all(isinstance(i, dict) for i in labels):
            raise UploadError("Labels must be a JSON list of objects")
        for item in labels:
            if label_confidence(item) is None:
                raise UploadError(
                    f"Label confidence must be a number: {item.get('confidence')!r}"
                )

    return secure_filename(file.filename), file.read(), labels


def review_counts(result: TrialBalanceResult) -> Dict[str, int]:
    return {
        "uncertain_count": len(result.uncertain_classifications),
        "unmatched_count": len(result.unmatched_entries),
    }


# -------------------------------------------------------
# Error handlers
# -------------------------------------------------------

@app.errorhandler(UploadError)
def handle_upload_error(exc: UploadError):
    return {"success": False, "error": str(exc)}, 400


@app.errorhandler(LedgerMapperError)
def handle_processing_error(exc: LedgerMapperError):
    logger.warning("Processing failed: %s", exc.message)
    return exc.to_dict(), 422


@app.errorhandler(RequestEntityTooLarge)
def handle_too_large(exc: RequestEntityTooLarge):
    return {"success": False, "error": "File exceeds the 10 MB limit"}, 413


# -------------------------------------------------------
# API
# -------------------------------------------------------

@app.route("/api/process", methods=["POST"])
def api_process():
    filename, payload, labels = read_upload()
    logger.info("Processing upload %s (%d bytes)", filename, len(payload))

    result = processor.process_file(payload, label_hints=labels)

    return {
        "success": True,
        "filename": filename,
        **review_counts(result),
        "needs_review": result.needs_review,
        "result": result.to_dict(),
    }, 200


@app.route("/api/export", methods=["POST"])
def api_export():
    filename, payload, labels = read_upload()
    logger.info("Exporting analysis for %s", filename)

    result = processor.process_file(payload, label_hints=labels)

    return send_file(
        BytesIO(export_workbook(result)),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=export_filename(),
    )


@app.route("/api/health", methods=["GET"])
def api_health():
    return {
        "status": "online",
        "version": __version__,
        "api": ["/api/process", "/api/export"],
        "methods": ["POST"],
    }, 200


if __name__ == "__main__":
    print("=" * 60)
    print("Ledger Mapper Server Running")
    print("http://localhost:5000")
    print("=" * 60)

    app.run(host="0.0.0.0", port=5000, debug=True)
