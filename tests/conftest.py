import pytest

from naolametric.services.naolib_api import NaolibAPIService
from naolametric.services.stop_directory import StopDirectoryStore

STOPS_PAYLOAD = [
    {
        "codeLieu": "COMM",
        "libelle": "Commerce",
        "distance": None,
        "ligne": [{"numLigne": "1"}, {"numLigne": "2"}, {"numLigne": "3"}, {"numLigne": "C1"}],
    },
    {"codeLieu": "GSNO", "libelle": "Gare Nord - Jardin des Plantes", "ligne": [{"numLigne": "1"}]},
    {"codeLieu": "GSSU", "libelle": "Gare Sud", "ligne": [{"numLigne": "C5"}]},
    {"codeLieu": "HVNA", "libelle": "Hôtel de Ville", "ligne": [{"numLigne": "2"}, {"numLigne": "C1"}]},
    {"codeLieu": "BJOI", "libelle": "Beaujoire", "ligne": [{"numLigne": "1"}]},
    {"codeLieu": "GAREN", "libelle": "La Garenne", "ligne": [{"numLigne": "86"}]},
    {"codeLieu": "GMAR", "libelle": "Gare Maritime", "ligne": [{"numLigne": "N1"}]},
]


def passage(line: str, temps: str, sens: int = 1, terminus: str = "Beaujoire") -> dict:
    return {
        "sens": sens,
        "terminus": terminus,
        "infotrafic": False,
        "temps": temps,
        "dernierDepart": "false",
        "tempsReel": "true",
        "ligne": {"numLigne": line, "typeLigne": 1},
        "arret": {"codeArret": "COMM1"},
    }


@pytest.fixture
def stops_payload():
    return [dict(item) for item in STOPS_PAYLOAD]


@pytest.fixture
def make_naolib_service(monkeypatch):
    """Build a NaolibAPIService whose _get_json answers from in-memory payloads."""

    def factory(stops=None, arrivals=None, error=None):
        service = NaolibAPIService()
        calls: list[str] = []

        async def fake_get_json(path: str, params=None):
            calls.append(path)
            if error is not None:
                raise error
            if path == "/arrets.json":
                return STOPS_PAYLOAD if stops is None else stops
            if path.startswith("/tempsattente.json/"):
                code = path.rsplit("/", 1)[-1]
                return (arrivals or {}).get(code, [])
            raise AssertionError(f"Unexpected path {path}")

        monkeypatch.setattr(service, "_get_json", fake_get_json)
        service.calls = calls
        return service

    return factory


@pytest.fixture
def make_store(make_naolib_service):
    """Populated StopDirectoryStore backed by a fake Naolib service."""

    async def factory(stops=None, arrivals=None, popular_codes=None):
        service = make_naolib_service(stops=stops, arrivals=arrivals)
        store = StopDirectoryStore(client=service, popular_codes=popular_codes)
        await store.refresh()
        return store, service

    return factory


@pytest.fixture
def make_passage():
    return passage
