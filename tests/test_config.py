import pytest

from spotter.config import Settings, parse_duration
from spotter.exceptions import ConfigurationError


@pytest.mark.parametrize("text,seconds", [
    ("30s", 30.0),
    ("500ms", 0.5),
    ("1m30s", 90.0),
    ("2h", 7200.0),
    ("1.5s", 1.5),
    ("250us", 0.00025),
    ("10", 10.0),
    ("0.25", 0.25),
])
def test_parse_duration(text, seconds):
    assert parse_duration(text) == pytest.approx(seconds)


@pytest.mark.parametrize("text", ["", "abc", "10x", "s", "5s junk", "-1", "inf"])
def test_invalid_duration(text):
    with pytest.raises(ConfigurationError):
        parse_duration(text)


def test_total_requests():
    assert Settings(url="x", clients=4, requests=25).total_requests == 100


@pytest.mark.parametrize("kwargs", [
    {"requests": 0},
    {"clients": -1},
    {"redirects": -2},
    {"request_timeout": -1},
    {"max_idle_per_host": 0},
])
def test_validate_rejects(kwargs):
    with pytest.raises(ConfigurationError):
        Settings(url="x", **kwargs).validate()


def test_settings_are_immutable():
    settings = Settings(url="x")
    with pytest.raises(AttributeError):
        settings.clients = 5


def test_zero_timeout_is_allowed():
    Settings(url="x", request_timeout=0).validate()
