import asyncio

import pytest
from fastapi.testclient import TestClient

from naolametric.main import app
from naolametric.routers.stops import clamp_stops_limit
from naolametric.services.stop_directory import StopDirectoryStore


@pytest.fixture
def populated_store(monkeypatch, make_store):
    store, _ = asyncio.run(make_store(popular_codes=["COMM", "GONE", "GSNO"]))
    monkeypatch.setattr('naolametric.routers.stops.stop_directory', store)
    monkeypatch.setattr('naolametric.main.stop_directory', store)
    return store


def test_clamp_stops_limit():
    assert clamp_stops_limit(None) == 10
    assert clamp_stops_limit("abc") == 10
    assert clamp_stops_limit("0") == 1
    assert clamp_stops_limit("9999") == 500


def test_search_stops(populated_store):
    client = TestClient(app)
    response = client.get('/stops', params={"search": "gare", "limit": "2"})

    assert response.status_code == 200
    payload = response.json()
    assert [stop["code"] for stop in payload] == ["GMAR", "GSNO"]
    assert payload[1]["name"] == "Gare Nord - Jardin des Plantes"


def test_search_stops_by_code(populated_store):
    client = TestClient(app)
    response = client.get('/stops?search=comm')

    assert response.json()[0] == {"code": "COMM", "name": "Commerce", "lines": ["1", "2", "3", "C1"]}


def test_search_stops_before_first_load(monkeypatch):
    monkeypatch.setattr(
        'naolametric.routers.stops.stop_directory',
        StopDirectoryStore(client=None, popular_codes=[]),
    )

    client = TestClient(app)
    response = client.get('/stops?search=gare')

    assert response.status_code == 503
    assert response.json() == {"error": "Cache not ready"}


def test_popular_stops_resolved_against_directory(populated_store):
    client = TestClient(app)
    response = client.get('/popular-stops')

    assert response.status_code == 200
    assert [stop["code"] for stop in response.json()] == ["COMM", "GSNO"]


@pytest.mark.parametrize("raw_limit, expected", [("000000002", 2), ("99999999999", 7)])
def test_search_stops_clamps_unusual_limits(populated_store, raw_limit, expected):
    client = TestClient(app)
    response = client.get('/stops', params={"search": "", "limit": raw_limit})

    assert response.status_code == 200
    assert len(response.json()) == expected


def test_search_stops_long_query_matches_nothing(populated_store):
    client = TestClient(app)
    response = client.get('/stops', params={"search": "a" * 101})

    assert response.status_code == 200
    assert response.json() == []
