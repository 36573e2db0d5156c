import json
from datetime import datetime, timedelta
from functools import partial

import pytest

from app import create_app
from errors import NotFound
from forecast import decode_weather
from history import HistoryStore
from models import db


def paris_payload(**overrides):
    payload = {
        "coord": {"lon": 2.35, "lat": 48.85},
        "weather": [{"id": 500, "main": "Rain", "description": "light rain", "icon": "10d"}],
        "base": "stations",
        "main": {"temp": 281.2, "feels_like": 279.4, "temp_min": 280.0, "temp_max": 282.5, "pressure": 1012, "humidity": 81},
        "clouds": {"all": 75},
        "dt": 1765533600,
        "sys": {"country": "FR"},
        "timezone": 3600,
        "id": 2988507,
        "name": "Paris",
        "cod": 200,
    }
    payload.update(overrides)
    return payload


# Controllable "now" for the history policy.
class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


# Stands in for WeatherClient; records calls and answers from canned payloads.
class FakeWeatherClient:
    def __init__(self):
        self.calls = []
        self.payload = paris_payload()
        self.error = None

    def _answer(self):
        if self.error is not None:
            raise self.error
        return decode_weather(json.dumps(self.payload))

    def fetch_by_city(self, city):
        self.calls.append(("city", city))
        if city.lower() != self.payload["name"].lower() and self.error is None:
            raise NotFound()
        return self._answer()

    def fetch_by_coordinates(self, latitude, longitude):
        self.calls.append(("coordinates", latitude, longitude))
        return self._answer()


@pytest.fixture()
def clock():
    return FakeClock(datetime(2025, 12, 12, 10, 0, 0))


@pytest.fixture()
def weather():
    return FakeWeatherClient()


# Creates a Flask app with a temporary SQLite database for tests.
@pytest.fixture()
def app(tmp_path, monkeypatch, weather, clock):
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    app = create_app(client=weather, history=partial(HistoryStore, clock=clock))
    app.config.update(TESTING=True)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()

@pytest.fixture()
def client(app):
    return app.test_client()

@pytest.fixture()
def store(app, clock):
    return HistoryStore(db.session, clock=clock)
