import asyncio

import pytest
from fastapi.testclient import TestClient

from naolametric.config import settings
from naolametric.main import app
from naolametric.services.naolib_api import NaolibUnreachableError, naolib_api_service
from naolametric.services.stop_directory import StopDirectoryStore


def test_health_reports_not_ready_before_first_load(monkeypatch):
    monkeypatch.setattr('naolametric.main.stop_directory', StopDirectoryStore(client=None, popular_codes=[]))

    client = TestClient(app)
    response = client.get('/health')

    assert response.status_code == 503
    assert response.text == "Cache not ready"


def test_health_ok_once_directory_loaded(monkeypatch, make_store):
    store, _ = asyncio.run(make_store())
    monkeypatch.setattr('naolametric.main.stop_directory', store)

    client = TestClient(app)
    response = client.get('/health')

    assert response.status_code == 200
    assert response.text == "OK"


def test_info_endpoint_returns_expected_shape(monkeypatch, make_store):
    store, _ = asyncio.run(make_store())
    monkeypatch.setattr('naolametric.main.stop_directory', store)

    client = TestClient(app)
    payload = client.get('/info').json()

    assert payload['name'] == 'NaoLaMetric'
    assert {endpoint['path'] for endpoint in payload['endpoints']} >= {'/', '/stops', '/popular-stops', '/health'}
    assert payload['directory']['ready'] is True
    assert payload['directory']['generation'] == 0
    assert payload['directory']['stop_count'] == 7


def test_strict_startup_failure_still_closes_http_client(monkeypatch):
    class DownClient:
        async def fetch_all_stops(self):
            raise NaolibUnreachableError("down")

    calls = []

    async def fake_startup():
        calls.append("startup")

    async def fake_shutdown():
        calls.append("shutdown")

    monkeypatch.setattr(settings, "directory_strict_startup", True)
    monkeypatch.setattr('naolametric.main.stop_directory', StopDirectoryStore(client=DownClient(), popular_codes=[]))
    monkeypatch.setattr(naolib_api_service, "startup", fake_startup)
    monkeypatch.setattr(naolib_api_service, "shutdown", fake_shutdown)

    with pytest.raises(NaolibUnreachableError):
        with TestClient(app):
            pass

    assert calls == ["startup", "shutdown"]
