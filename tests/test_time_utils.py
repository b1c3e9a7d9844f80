import pytest

from naolametric.utils.time import current_timestamp_iso, parse_wait_minutes


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Proche", 0),
        ("proche ", 0),
        ("5mn", 5),
        ("12 mn", 12),
        ("1h05", 65),
        (">1h", 60),
        ("7", 7),
        ("-3", 0),
    ],
)
def test_parse_wait_minutes_known_formats(raw, expected):
    assert parse_wait_minutes(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "horaire", "bientôt"])
def test_parse_wait_minutes_rejects_unknown_values(raw):
    assert parse_wait_minutes(raw) is None


def test_current_timestamp_is_utc_iso():
    assert current_timestamp_iso().endswith("+00:00")
