from pathlib import Path

import fitz
import pytest
from fastapi.testclient import TestClient

from web.app import create_app, parse_target_size_mb
from pdf_merge_compress.settings import Settings


def _settings(tmp_path: Path, **overrides) -> Settings:
    values = dict(
        host="127.0.0.1",
        port=3000,
        logs_dir=tmp_path / "logs",
        static_dir=tmp_path / "missing-static",
        default_target_mb=9.0,
        max_files=20,
        max_file_size=100 * 1024 * 1024,
        process_timeout=0.0,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def client(tmp_path):
    return TestClient(create_app(_settings(tmp_path)))


def _files(*buffers):
    return [("pdfs", (f"doc{i}.pdf", data, "application/pdf")) for i, data in enumerate(buffers)]


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 9.0), ("", 9.0), ("abc", 9.0), ("0", 9.0), ("-1", 9.0), ("nan", 9.0), ("inf", 9.0),
     ("2.5", 2.5), (" 4 ", 4.0)],
)
def test_parse_target_size_mb(raw, expected):
    assert parse_target_size_mb(raw, 9.0) == expected


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert "timestamp" in body


def test_index_page_is_served(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "PDF Merge" in response.text


def test_merge_compress_returns_pdf(client, make_text_pdf):
    response = client.post(
        "/api/merge-compress",
        files=_files(make_text_pdf(["one"]), make_text_pdf(["two"])),
        data={"targetSize": "1"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "merged-compressed.pdf" in response.headers["content-disposition"]
    doc = fitz.open(stream=response.content, filetype="pdf")
    assert doc.page_count == 2
    doc.close()


def test_missing_files_is_bad_request(client):
    response = client.post("/api/merge-compress", data={"targetSize": "1"})
    assert response.status_code == 400
    assert response.json() == {"error": "No PDF files uploaded"}


def test_malformed_upload_is_reported(client, make_text_pdf):
    response = client.post("/api/merge-compress", files=_files(make_text_pdf(["ok"]), b"nope"))

    assert response.status_code == 400
    error = response.json()["error"]
    assert error.startswith("Failed to process PDFs:")
    assert "#2" in error


def test_too_many_files(tmp_path, make_text_pdf):
    client = TestClient(create_app(_settings(tmp_path, max_files=1)))
    pdf = make_text_pdf(["x"])

    response = client.post("/api/merge-compress", files=_files(pdf, pdf))

    assert response.status_code == 400


def test_oversized_file(tmp_path, make_text_pdf):
    client = TestClient(create_app(_settings(tmp_path, max_file_size=10)))

    response = client.post("/api/merge-compress", files=_files(make_text_pdf(["x"])))

    assert response.status_code == 413
