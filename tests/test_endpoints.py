"""Tests for the HTTP API (detector replaced with a canned one)."""

import csv
import io

import httpx
import pytest

from app.api.v1.endpoints import get_detector
from app.config import settings
from app.main import app
from app.services.detector import Detector
from tests._helpers import StubFetcher, make_page

WEBFLOW_HTML = '<meta name="generator" content="Webflow">'


@pytest.fixture
def stub_fetcher():
    return StubFetcher({
        "https://studio.webflow.io": make_page("https://studio.webflow.io", WEBFLOW_HTML),
        "https://plain.com": make_page("https://plain.com"),
    })


@pytest.fixture
async def client(stub_fetcher):
    app.dependency_overrides[get_detector] = lambda: Detector(fetcher=stub_fetcher)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "active", "version": settings.VERSION}


class TestDetectEndpoint:
    async def test_detect(self, client):
        resp = await client.get("/api/v1/detect", params={"url": "studio.webflow.io"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["bucket"] == "platform-assisted"
        assert data["platform"] == "Webflow"
        assert data["url"] == "studio.webflow.io"
        assert data["platform_signals"][0]["matched_value"] == "studio.webflow.io"

    async def test_fetch_failure_is_200_unknown(self, client):
        resp = await client.get("/api/v1/detect", params={"url": "down.example"})
        assert resp.status_code == 200
        assert resp.json()["bucket"] == "unknown"
        assert resp.json()["error"]

    async def test_missing_url(self, client):
        resp = await client.get("/api/v1/detect")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Missing ?url= parameter"


class TestBatchJson:
    async def test_batch(self, client):
        resp = await client.post("/api/v1/batch", json={"urls": ["studio.webflow.io", "plain.com", ""]})
        assert resp.status_code == 200
        results = resp.json()["results"]
        assert [r["bucket"] for r in results] == ["platform-assisted", "no-ai-signals", "unknown"]
        assert results[2]["error"] == "empty_url"
        assert results[1]["original_row"] == {"url": "plain.com"}

    async def test_empty_list(self, client):
        resp = await client.post("/api/v1/batch", json={"urls": []})
        assert resp.status_code == 400

    async def test_invalid_json(self, client):
        resp = await client.post("/api/v1/batch", content=b"{not json", headers={"content-type": "application/json"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid JSON body"

    async def test_too_large(self, client, monkeypatch):
        monkeypatch.setattr(settings, "MAX_BATCH_SIZE", 2)
        resp = await client.post("/api/v1/batch", json={"urls": ["a.com", "b.com", "c.com"]})
        assert resp.status_code == 413


class TestBatchCsv:
    async def test_csv_round_trip(self, client):
        upload = "company,Website\nStudio,studio.webflow.io\nPlain,plain.com\n"
        resp = await client.post("/api/v1/batch", files={"file": ("sites.csv", upload, "text/csv")})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "results.csv" in resp.headers["content-disposition"]
        rows = list(csv.DictReader(io.StringIO(resp.text)))
        assert [r["company"] for r in rows] == ["Studio", "Plain"]
        assert [r["ai_bucket"] for r in rows] == ["platform-assisted", "no-ai-signals"]
        assert rows[0]["ai_platform"] == "Webflow"

    async def test_url_column_override(self, client):
        upload = "name,homepage\nStudio,studio.webflow.io\n"
        resp = await client.post(
            "/api/v1/batch",
            files={"file": ("sites.csv", upload, "text/csv")},
            data={"url_column": "HOMEPAGE"},
        )
        assert resp.status_code == 200
        assert list(csv.DictReader(io.StringIO(resp.text)))[0]["ai_platform"] == "Webflow"

    async def test_unknown_column(self, client):
        upload = "name,notes\nStudio,hi\n"
        resp = await client.post("/api/v1/batch", files={"file": ("sites.csv", upload, "text/csv")})
        assert resp.status_code == 400
        assert "Available: name, notes" in resp.json()["detail"]

    async def test_no_rows(self, client):
        resp = await client.post("/api/v1/batch", files={"file": ("sites.csv", "url\n", "text/csv")})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "CSV has no data rows"

    async def test_missing_file_field(self, client):
        resp = await client.post("/api/v1/batch", files={"other": ("x.csv", "url\na.com\n", "text/csv")})
        assert resp.status_code == 400
