from datetime import date, datetime, timezone

import requests

import lookups
from icons import AppIcon, WeatherIcon, icon_for_app, weather_icon
from sun import sun_times


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload


def _slot(when, tmax, tmin, icon="01d"):
    ts = int(when.replace(tzinfo=timezone.utc).timestamp())
    return {"dt": ts, "main": {"temp_max": tmax, "temp_min": tmin}, "weather": [{"description": "sky", "icon": icon}]}


def test_forecast_one_entry_per_day_without_today():
    data = {
        "city": {"timezone": 0},
        "list": [
            _slot(datetime(2024, 10, 19, 12), 20.4, 10.6),
            _slot(datetime(2024, 10, 19, 15), 22, 11),
            _slot(datetime(2024, 10, 20, 0), 18.5, 9.4, "10n"),
            _slot(datetime(2024, 10, 20, 12), 30, 1),
            _slot(datetime(2024, 10, 21, 12), 17, 8),
        ],
    }
    days = lookups.summarize_forecast(data)
    assert [d["date"] for d in days] == ["2024-10-20", "2024-10-21"]
    assert days[0]["day"] == "SUN"
    assert days[0]["temp_max"] == 18
    assert days[0]["icon_variant"] == "rain"


def test_forecast_uses_city_offset():
    # 23:00 UTC is already the next day at UTC+2
    data = {
        "city": {"timezone": 7200},
        "list": [_slot(datetime(2024, 10, 19, 12), 1, 0), _slot(datetime(2024, 10, 19, 23), 2, 0)],
    }
    assert [d["date"] for d in lookups.summarize_forecast(data)] == ["2024-10-20"]


def test_current_weather_conversion(monkeypatch):
    payload = {
        "name": "Rotterdam",
        "main": {"temp": 12.6, "feels_like": 11.2, "temp_min": 10.1, "temp_max": 14.5, "humidity": 80, "pressure": 1012},
        "weather": [{"description": "light rain", "icon": "10d"}],
        "wind": {"speed": 5, "deg": 200},
    }
    monkeypatch.setattr(lookups, "OPENWEATHER_API_KEY", "k")
    monkeypatch.setattr(lookups.requests, "get", lambda *a, **kw: FakeResponse(payload))
    current = lookups.current_weather(51.9, 4.5)
    assert current["city"] == "Rotterdam"
    assert current["temp"] == 13
    assert current["wind_speed"] == 18
    assert current["icon_variant"] == "rain"


def test_weather_endpoint_without_key(client, monkeypatch):
    monkeypatch.setattr(lookups, "OPENWEATHER_API_KEY", None)
    resp = client.get("/api/weather", params={"lat": 1, "lon": 2})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Unable to fetch weather data"


def test_weather_endpoint_upstream_error(client, monkeypatch):
    monkeypatch.setattr(lookups, "OPENWEATHER_API_KEY", "k")
    monkeypatch.setattr(lookups.requests, "get", lambda *a, **kw: FakeResponse({}, status_code=401))
    assert client.get("/api/weather", params={"lat": 1, "lon": 2}).status_code == 502


def test_ip_lookup_falls_back(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(lookups.requests, "get", boom)
    assert lookups.public_ip() == "Unable to detect"
    assert lookups.reverse_geocode(1, 2)["label"] == "Location detected"


class HtmlResponse(FakeResponse):
    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


def test_non_json_body_falls_back(client, monkeypatch):
    monkeypatch.setattr(lookups.requests, "get", lambda *a, **kw: HtmlResponse(None))
    assert lookups.public_ip() == "Unable to detect"
    resp = client.get("/api/geocode", params={"lat": 1, "lon": 2})
    assert resp.status_code == 200
    assert resp.json()["label"] == "Location detected"
    assert client.get("/api/control-centre", params={"lat": 1, "lon": 2}).json()["ip"] == "Unable to detect"


def test_place_from_address():
    assert lookups.place_from_address({"town": "Delft", "country": "Netherlands"})["label"] == "Delft, Netherlands"
    assert lookups.place_from_address({})["label"] == "Unknown, Unknown"


def test_control_centre(client, monkeypatch):
    def fake_get(url, params=None, headers=None, timeout=None):
        if url == lookups.IPIFY_URL:
            return FakeResponse({"ip": "203.0.113.9"})
        return FakeResponse({"address": {"village": "Hallstatt", "country": "Austria"}})

    monkeypatch.setattr(lookups.requests, "get", fake_get)
    body = client.get("/api/control-centre", params={"lat": 47.56, "lon": 13.65}).json()
    assert body["ip"] == "203.0.113.9"
    assert body["location"] == "Hallstatt, Austria"
    assert body["config"]["showReboot"] is True


def test_icon_variants():
    assert icon_for_app("Bookmark Manager") is AppIcon.layers
    assert icon_for_app("") is AppIcon.folder
    assert weather_icon("01n") is WeatherIcon.clear
    assert weather_icon("11d") is WeatherIcon.thunderstorm
    assert weather_icon("50d") is WeatherIcon.cloudy


def test_sun_times_at_equinox():
    sunrise, sunset = sun_times(0.0, 0.0, date(2024, 3, 20))
    length = (sunset - sunrise).total_seconds() / 3600
    assert 11.9 < length < 12.3
    assert sunrise.hour == 6


def test_sun_times_long_summer_day():
    sunrise, sunset = sun_times(51.5, -0.12, date(2024, 6, 21))
    assert (sunset - sunrise).total_seconds() / 3600 > 16
    # London sunrise is around 03:43 UTC
    assert sunrise.hour == 3


def test_polar_day_is_clamped():
    sunrise, sunset = sun_times(80.0, 0.0, date(2024, 6, 21))
    assert abs((sunset - sunrise).total_seconds() / 3600 - 24) < 1e-3
