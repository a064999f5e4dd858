"""Tests for privacy_analyzer.app: the background service HTTP API."""

from __future__ import annotations

from unittest import mock

import pytest
from fastapi import testclient

from privacy_analyzer import app as app_module
from privacy_analyzer.extension import background, store

SENDER = {"tab": {"id": 7, "url": "https://example.com/"}}


@pytest.fixture()
def service() -> background.BackgroundService:
    return background.BackgroundService(store.TabReportStore(clock=lambda: 1767270645123))


@pytest.fixture()
def client(service: background.BackgroundService) -> testclient.TestClient:
    return testclient.TestClient(app_module.create_app(service))


def _post_tracker(client: testclient.TestClient, **data: object) -> None:
    message = {"type": "TRACKER_DETECTED", "data": {"url": "https://example.com/", "timestamp": 1767270645123, **data}}
    response = client.post("/api/messages", json={"message": message, "sender": SENDER})
    assert response.status_code == 200


# ── /api/messages ───────────────────────────────────────────────


class TestMessages:
    """Tests for POST /api/messages."""

    def test_tracker_detected(self, client: testclient.TestClient, service: background.BackgroundService) -> None:
        _post_tracker(client, thirdPartyDomains=["t.io"])
        assert service.store.get(7)[0].third_party_domains == ["t.io"]

    def test_acknowledged(self, client: testclient.TestClient) -> None:
        message = {"type": "CANVAS_FINGERPRINT", "data": {"method": "toDataURL"}}
        response = client.post("/api/messages", json={"message": message, "sender": SENDER})
        assert response.json() == {"ok": True}

    def test_get_trackers(self, client: testclient.TestClient) -> None:
        _post_tracker(client, fingerprintingAPIs=["navigator.plugins"])
        response = client.post("/api/messages", json={"message": {"type": "GET_TRACKERS", "tabId": 7}})

        trackers = response.json()["trackers"]
        assert len(trackers) == 1
        assert trackers[0]["fingerprintingAPIs"] == ["navigator.plugins"]
        assert trackers[0]["summary"]["totalFingerprintingAPIs"] == 1

    def test_invalid_message_is_bad_request(self, client: testclient.TestClient) -> None:
        response = client.post("/api/messages", json={"message": {"type": "NOPE"}})
        assert response.status_code == 400
        assert "error" in response.json()


# ── /api/tabs ───────────────────────────────────────────────────


class TestTabs:
    """Tests for tab teardown and export."""

    def test_remove_tab(self, client: testclient.TestClient, service: background.BackgroundService) -> None:
        _post_tracker(client)
        response = client.delete("/api/tabs/7")
        assert response.json() == {"removed": True}
        assert service.store.get(7) == []

    def test_remove_unknown_tab(self, client: testclient.TestClient) -> None:
        assert client.delete("/api/tabs/99").json() == {"removed": False}

    def test_export(self, client: testclient.TestClient) -> None:
        _post_tracker(client, thirdPartyDomains=["t.io"])
        client.post(
            "/api/messages",
            json={"message": {"type": "CANVAS_FINGERPRINT", "data": {"method": "getImageData"}}, "sender": SENDER},
        )

        with mock.patch.dict("os.environ", {"EXTENSION_VERSION": "3.1.0"}):
            response = client.get("/api/tabs/7/export", params={"browserName": "Chrome", "browserVersion": "126"})

        assert response.status_code == 200
        body = response.json()
        assert body["url"] == "https://example.com/"
        assert body["extensionVersion"] == "3.1.0"
        assert body["browser"] == {"name": "Chrome", "version": "126"}
        assert body["thirdPartyDomains"] == ["t.io"]
        assert [e["method"] for e in body["canvasDetections"]] == ["getImageData"]
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="privacy-report-')
        assert disposition.endswith('.json"')

    def test_export_unknown_tab(self, client: testclient.TestClient) -> None:
        assert client.get("/api/tabs/99/export").status_code == 404


# ── /api/analyze ────────────────────────────────────────────────


class TestAnalyze:
    """Tests for POST /api/analyze."""

    def test_analyze_html(self, client: testclient.TestClient, tracker_page_html: str) -> None:
        response = client.post("/api/analyze", json={"url": "https://example.com/", "html": tracker_page_html})

        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["totalThirdPartyDomains"] == 1
        assert summary["totalEvalPatterns"] == 1
        assert summary["totalFingerprintingAPIs"] >= 1

    def test_invalid_url(self, client: testclient.TestClient) -> None:
        response = client.post("/api/analyze", json={"url": "not-a-url", "html": ""})
        assert response.status_code == 400
