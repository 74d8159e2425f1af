"""
Tests for the Flask HTTP surface.
"""

from __future__ import annotations

import json
from io import BytesIO
from typing import Any, Callable

import openpyxl
import pytest

from app import app as flask_app


@pytest.fixture
def client():
    flask_app.config["TESTING"] = True
    with flask_app.test_client() as client:
        yield client


def _upload(payload: bytes, filename: str = "tb.xlsx", **form: Any) -> dict[str, Any]:
    return {"file": (BytesIO(payload), filename), **form}


# ======================================================================
# /api/process
# ======================================================================

class TestProcess:
    def test_success(
        self,
        client,
        xlsx_bytes: Callable[..., bytes],
        trial_balance_rows: list[list[Any]],
    ) -> None:
        resp = client.post(
            "/api/process",
            data=_upload(xlsx_bytes(trial_balance_rows)),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["uncertain_count"] == 0
        assert body["unmatched_count"] == 0
        assert body["result"]["is_balanced"] is True
        assert len(body["result"]["entries"]) == 4

    def test_labels_field(
        self,
        client,
        xlsx_bytes: Callable[..., bytes],
        trial_balance_rows: list[list[Any]],
    ) -> None:
        labels = json.dumps([
            {"text": "Account Name", "confidence": 0.9},
            {"text": "Debit", "confidence": 0.9},
            {"text": "Credit", "confidence": 0.9},
        ])
        resp = client.post(
            "/api/process",
            data=_upload(xlsx_bytes(trial_balance_rows), labels=labels),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        messages = [log["message"] for log in resp.get_json()["result"]["processing_logs"]]
        assert "Found required column labels via label hints" in messages

    def test_review_counts(self, client, xlsx_bytes: Callable[..., bytes]) -> None:
        payload = xlsx_bytes([
            ["Account Code", "Account Name", "Debit", "Credit"],
            ["9999", "Miscellaneous Gains", None, 40],
            ["1000", "Cash", 40, None],
        ])
        resp = client.post(
            "/api/process", data=_upload(payload), content_type="multipart/form-data"
        )
        body = resp.get_json()
        assert body["uncertain_count"] == 1
        assert body["unmatched_count"] == 1
        assert body["needs_review"] is True


# ======================================================================
# Upload errors
# ======================================================================

class TestUploadErrors:
    def test_no_file(self, client) -> None:
        resp = client.post("/api/process", data={}, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "No file uploaded"

    def test_wrong_extension(self, client) -> None:
        resp = client.post(
            "/api/process",
            data=_upload(b"a,b", filename="tb.csv"),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    def test_bad_labels(
        self,
        client,
        xlsx_bytes: Callable[..., bytes],
        trial_balance_rows: list[list[Any]],
    ) -> None:
        resp = client.post(
            "/api/process",
            data=_upload(xlsx_bytes(trial_balance_rows), labels="{not json"),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"].startswith("Invalid labels JSON")

    def test_non_numeric_label_confidence(
        self,
        client,
        xlsx_bytes: Callable[..., bytes],
        trial_balance_rows: list[list[Any]],
    ) -> None:
        labels = json.dumps([{"text": "Debit", "confidence": "n/a"}])
        resp = client.post(
            "/api/process",
            data=_upload(xlsx_bytes(trial_balance_rows), labels=labels),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Label confidence must be a number: 'n/a'"

    def test_labels_not_objects(
        self,
        client,
        xlsx_bytes: Callable[..., bytes],
        trial_balance_rows: list[list[Any]],
    ) -> None:
        resp = client.post(
            "/api/process",
            data=_upload(xlsx_bytes(trial_balance_rows), labels=json.dumps(["Debit"])),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Labels must be a JSON list of objects"


# ======================================================================
# Processing errors
# ======================================================================

class TestProcessingErrors:
    def test_no_table(self, client, xlsx_bytes: Callable[..., bytes]) -> None:
        resp = client.post(
            "/api/process",
            data=_upload(xlsx_bytes([["notes"], [1], [2]])),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 422
        body = resp.get_json()
        assert body["success"] is False
        assert body["error"] == "DetectionError"
        assert body["message"] == "No financial tables detected in the file"

    def test_corrupt_workbook(self, client) -> None:
        resp = client.post(
            "/api/process",
            data=_upload(b"not really a workbook"),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 422
        assert resp.get_json()["error"] == "WorkbookReadError"


# ======================================================================
# /api/export and /api/health
# ======================================================================

class TestExport:
    def test_download(
        self,
        client,
        xlsx_bytes: Callable[..., bytes],
        trial_balance_rows: list[list[Any]],
    ) -> None:
        resp = client.post(
            "/api/export",
            data=_upload(xlsx_bytes(trial_balance_rows)),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        assert resp.mimetype == (
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        disposition = resp.headers["Content-Disposition"]
        assert "financial-analysis-" in disposition
        wb = openpyxl.load_workbook(BytesIO(resp.data))
        assert wb.sheetnames[0] == "Trial Balance"


class TestHealth:
    def test_health(self, client) -> None:
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "online"
