"""Third-party lookups: OpenWeather, ipify and Nominatim reverse geocoding."""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from icons import weather_icon

logger = logging.getLogger("portfolio.lookups")

OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY")
OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5"
IPIFY_URL = "https://api.ipify.org"
NOMINATIM_URL = "https://nominatim.openstreetmap.org/reverse"
USER_AGENT = "phone-os-portfolio/1.0"
TIMEOUT = 8
FORECAST_DAYS = 5


class LookupFailed(Exception):
    pass


def _get_json(url: str, params: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Any:
    try:
        resp = requests.get(url, params=params, headers=headers, timeout=TIMEOUT)
    except requests.RequestException as exc:
        raise LookupFailed(str(exc)) from exc
    if resp.status_code != 200:
        raise LookupFailed(f"{url} returned {resp.status_code}")
    try:
        return resp.json()
    except ValueError as exc:
        raise LookupFailed(f"{url} returned a non-JSON body") from exc


def _weather_params(lat: float, lon: float) -> Dict[str, Any]:
    if not OPENWEATHER_API_KEY:
        raise LookupFailed("OPENWEATHER_API_KEY not set")
    return {"lat": lat, "lon": lon, "units": "metric", "appid": OPENWEATHER_API_KEY}


# Weather
def current_weather(lat: float, lon: float) -> Dict[str, Any]:
    data = _get_json(f"{OPENWEATHER_URL}/weather", _weather_params(lat, lon))
    main = data["main"]
    conditions = data["weather"][0]
    wind = data.get("wind", {})
    return {
        "city": data.get("name", ""),
        "temp": round(main["temp"]),
        "feels_like": round(main["feels_like"]),
        "temp_min": round(main["temp_min"]),
        "temp_max": round(main["temp_max"]),
        "humidity": main.get("humidity"),
        "pressure": main.get("pressure"),
        "description": conditions.get("description", ""),
        "icon": conditions.get("icon", ""),
        "icon_variant": weather_icon(conditions.get("icon", "")).value,
        # m/s -> km/h
        "wind_speed": round(wind.get("speed", 0) * 3.6),
        "wind_deg": wind.get("deg"),
    }


def summarize_forecast(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """One entry per local calendar day from the 3-hourly list, today dropped."""
    offset = timedelta(seconds=(data.get("city") or {}).get("timezone", 0))
    daily: List[Dict[str, Any]] = []
    seen = set()
    for item in data.get("list", []):
        when = datetime.fromtimestamp(item["dt"], tz=timezone.utc) + offset
        day = when.date()
        if day in seen or len(daily) >= FORECAST_DAYS:
            continue
        seen.add(day)
        conditions = item["weather"][0]
        daily.append({
            "date": day.isoformat(),
            "day": when.strftime("%a").upper(),
            "temp_max": round(item["main"]["temp_max"]),
            "temp_min": round(item["main"]["temp_min"]),
            "description": conditions.get("description", ""),
            "icon": conditions.get("icon", ""),
            "icon_variant": weather_icon(conditions.get("icon", "")).value,
        })
    return daily[1:]


def forecast(lat: float, lon: float) -> List[Dict[str, Any]]:
    return summarize_forecast(_get_json(f"{OPENWEATHER_URL}/forecast", _weather_params(lat, lon)))


def uv_index(lat: float, lon: float) -> Dict[str, Any]:
    params = _weather_params(lat, lon)
    params.pop("units")
    data = _get_json(f"{OPENWEATHER_URL}/uvi", params)
    return {"uvi": data.get("value"), "date": data.get("date_iso")}


# Network / location
def public_ip() -> str:
    try:
        return _get_json(IPIFY_URL, {"format": "json"}).get("ip") or "Unable to detect"
    except LookupFailed as exc:
        logger.warning("IP lookup failed: %s", exc)
        return "Unable to detect"


def place_from_address(address: Dict[str, Any]) -> Dict[str, str]:
    city = address.get("city") or address.get("town") or address.get("village") or "Unknown"
    country = address.get("country") or "Unknown"
    return {
        "city": city,
        "state": address.get("state", ""),
        "country": country,
        "label": f"{city}, {country}",
    }


def reverse_geocode(lat: float, lon: float) -> Dict[str, str]:
    try:
        data = _get_json(
            NOMINATIM_URL,
            {"lat": lat, "lon": lon, "format": "json", "zoom": 10, "addressdetails": 1},
            headers={"User-Agent": USER_AGENT},
        )
    except LookupFailed as exc:
        logger.warning("Reverse geocoding failed: %s", exc)
        return {"city": "Unknown Location", "state": "", "country": "", "label": "Location detected"}
    return place_from_address(data.get("address") or {})
