from __future__ import annotations

import pytest
from starlette.testclient import TestClient

from conftest import FakeExtractionClient
from main import create_app
from models.inventory_models import CANONICAL_FIELDS, SessionMode
from services.extraction.extraction_client import TransportError
from utils.app_config import AppConfig


def _app(replies):
    fake = FakeExtractionClient(replies)
    app = create_app(extraction_client=fake, config=AppConfig(openai_api_key=None))
    return app, fake


def _upload(client, count, png):
    files = [("files", (f"label{i}.png", png, "image/png")) for i in range(count)]
    response = client.post("/api/images", files=files)
    assert response.status_code == 200
    return [image["id"] for image in response.json()["images"]]


def test_batch_with_one_transport_failure(png_bytes):
    app, fake = _app(['{"Chemical Name": "One"}', TransportError("boom"), '{"Chemical Name": "Three", "Grade": "ACS"}'])
    with TestClient(app) as client:
        ids = _upload(client, 3, png_bytes)

        response = client.post("/api/extractions", json={"custom_prompt": "Also include expiry"})
        assert response.status_code == 202
        assert response.json()["total"] == 3

        session = client.get("/api/session").json()
        assert session["mode"] == "idle"
        assert session["progress"] is None
        assert [row["Chemical Name"] for row in session["rows"]] == ["One", "Three"]
        assert session["columns"] == ["Chemical Name", "Grade"]
        assert [image["status"] for image in session["images"]] == ["extracted", "failed", "extracted"]
        assert session["notices"][0]["message"] == "Error extracting data from image 2. Please try again."
        assert session["notices"][0]["image_id"] == ids[1]
        assert session["last_batch"]["failed"] == [ids[1]]
        assert all(call["instruction"] == "Also include expiry" for call in fake.calls)


def test_rerun_only_retries_images_not_yet_extracted(png_bytes):
    app, fake = _app(['{"n": "1"}', "garbage", '{"n": "2"}'])
    with TestClient(app) as client:
        _upload(client, 2, png_bytes)
        client.post("/api/extractions")
        response = client.post("/api/extractions")
        assert response.json()["total"] == 1
        assert [row["n"] for row in client.get("/api/records").json()["rows"]] == ["1", "2"]
        assert len(fake.calls) == 3


def test_extraction_without_images_is_rejected():
    app, _ = _app([])
    with TestClient(app) as client:
        assert client.post("/api/extractions").status_code == 400


def test_removing_image_cascades_to_its_records(png_bytes):
    app, _ = _app(['{"n": "1"}', '{"n": "2"}'])
    with TestClient(app) as client:
        ids = _upload(client, 2, png_bytes)
        client.post("/api/extractions")
        client.post("/api/records/blank")

        response = client.delete(f"/api/images/{ids[0]}")
        assert response.json()["records_removed"] == 1
        rows = client.get("/api/records").json()["rows"]
        assert [row["n"] for row in rows] == ["2", ""]
        assert client.delete(f"/api/images/{ids[0]}").status_code == 404


def test_upload_validation(png_bytes):
    app, _ = _app([])
    with TestClient(app) as client:
        bad_type = client.post("/api/images", files=[("files", ("notes.txt", b"hello", "text/plain"))])
        assert bad_type.status_code == 415
        empty = client.post("/api/images", files=[("files", ("a.png", b"", "image/png"))])
        assert empty.status_code == 400
        assert client.get("/api/session").json()["images"] == []


def test_thumbnail_is_png(png_bytes):
    app, _ = _app([])
    with TestClient(app) as client:
        (image_id,) = _upload(client, 1, png_bytes)
        response = client.get(f"/api/images/{image_id}/thumbnail")
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content[:8] == b"\x89PNG\r\n\x1a\n"
        assert client.get("/api/images/missing/thumbnail").status_code == 404


def test_edit_cycle_and_stale_delete():
    app, _ = _app([])
    with TestClient(app) as client:
        client.post("/api/records/blank")
        client.post("/api/records/manual", json={"name": "Acetone"})

        assert client.post("/api/records/1/edit").json()["editing"] is True
        assert client.get("/api/session").json()["editing"]["index"] == 1
        client.patch("/api/records/edit", json={"field": "CAS Number", "value": "67-64-1"})
        committed = client.post("/api/records/edit/commit").json()
        assert committed["committed"] is True
        assert committed["rows"][1]["CAS Number"] == "67-64-1"
        assert committed["rows"][0]["CAS Number"] == ""

        client.post("/api/records/0/edit")
        client.patch("/api/records/edit", json={"field": "Formula", "value": "draft"})
        client.post("/api/records/edit/cancel")
        assert client.get("/api/records").json()["rows"][0]["Formula"] == ""
        assert client.patch("/api/records/edit", json={"field": "Formula", "value": "x"}).status_code == 409

        stale = client.delete("/api/records/7").json()
        assert stale["removed"] is False
        assert stale["count"] == 2
        assert client.delete("/api/records/-1").json()["removed"] is False


def test_replace_record_endpoint():
    app, _ = _app([])
    with TestClient(app) as client:
        client.post("/api/records/blank")
        response = client.put("/api/records/0", json={"fields": {"Chemical Name": "Water", "Purity": "99%"}})
        assert response.json()["updated"] is True
        assert response.json()["columns"] == list(CANONICAL_FIELDS) + ["Purity"]


def test_lookup_success_and_not_found_fallback():
    app, _ = _app(['{"Chemical Name": "Ethanol", "CAS Number": "64-17-5"}', "Unknown compound."])
    with TestClient(app) as client:
        found = client.post("/api/lookup", json={"query": "64-17-5", "mode": "cas"})
        assert found.status_code == 200
        assert found.json()["fields"]["Chemical Name"] == "Ethanol"
        assert found.json()["source_image_id"] is None

        missing = client.post("/api/lookup", json={"query": "64-17-5", "mode": "cas"})
        assert missing.status_code == 404
        body = missing.json()
        assert body["fallback"]["body"] == {"name": "64-17-5"}
        # Nothing is added until the fallback is requested explicitly.
        assert client.get("/api/records").json()["count"] == 1

        manual = client.post("/api/records/manual", json=body["fallback"]["body"])
        assert manual.json()["fields"]["Chemical Name"] == "64-17-5"
        assert client.get("/api/records").json()["count"] == 2
        assert client.get("/api/session").json()["mode"] == "idle"


def test_blank_lookup_query_is_bad_request():
    app, _ = _app([])
    with TestClient(app) as client:
        assert client.post("/api/lookup", json={"query": "  ", "mode": "name"}).status_code == 400


def test_export_download_and_empty_export():
    app, _ = _app([])
    with TestClient(app) as client:
        assert client.get("/api/export").status_code == 409
        client.post("/api/records/manual", json={"name": "Ethanol"})
        response = client.get("/api/export")
        assert response.status_code == 200
        assert 'filename="chemical_labels_data.xlsx"' in response.headers["content-disposition"]
        assert response.content[:2] == b"PK"


def test_clear_session(png_bytes):
    app, _ = _app([])
    with TestClient(app) as client:
        _upload(client, 2, png_bytes)
        client.post("/api/records/blank")
        assert client.delete("/api/session").json() == {"cleared": True}
        session = client.get("/api/session").json()
        assert session["images"] == [] and session["rows"] == [] and session["columns"] == []


def test_health_reports_session():
    app, _ = _app([])
    with TestClient(app) as client:
        assert client.get("/health").json() == {"ok": True, "session_ready": True, "mode": "idle"}


def test_missing_api_key_fails_startup(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    app = create_app(config=AppConfig(openai_api_key=None))
    with pytest.raises(RuntimeError):
        with TestClient(app):
            pass


def test_busy_session_returns_conflict(png_bytes):
    app, fake = _app(['{"Chemical Name": "Ethanol"}'])
    with TestClient(app) as client:
        _upload(client, 1, png_bytes)
        session = app.state.session
        session.mode = SessionMode.EXTRACTING

        assert client.post("/api/extractions").status_code == 409
        assert client.post("/api/lookup", json={"query": "64-17-5", "mode": "cas"}).status_code == 409
        assert client.delete("/api/session").status_code == 409
        assert client.get("/api/session").json()["progress"] == "Processing ..."
        assert fake.calls == []

        session.mode = SessionMode.SEARCHING
        assert client.post("/api/extractions").status_code == 409


def test_record_routes_report_unexpected_errors_as_server_errors(monkeypatch):
    app, _ = _app([])
    with TestClient(app) as client:
        client.post("/api/records/blank")

        def broken_columns():
            raise RuntimeError("columns unavailable")

        monkeypatch.setattr(app.state.session.store, "columns", broken_columns)
        response = client.get("/api/records")
        assert response.status_code == 500
        assert response.json()["detail"] == "columns unavailable"
        assert client.delete("/api/records/0").status_code == 500
