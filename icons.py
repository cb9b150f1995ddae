"""Closed icon sets used by the home screen and the weather viewer."""

from enum import Enum


class AppIcon(str, Enum):
    trending_up = "TrendingUp"
    bar_chart = "BarChart"
    pie_chart = "PieChart"
    line_chart = "LineChart"
    target = "Target"
    award = "Award"
    lightbulb = "Lightbulb"
    layers = "Layers"
    folder = "Folder"


# first keyword found in the lower-cased app name wins
APP_ICON_KEYWORDS = (
    ("calculator", AppIcon.target),
    ("bookmark", AppIcon.layers),
    ("goip", AppIcon.trending_up),
    ("growth", AppIcon.trending_up),
    ("performance", AppIcon.bar_chart),
    ("insights", AppIcon.pie_chart),
    ("metrics", AppIcon.line_chart),
    ("goals", AppIcon.target),
    ("achievements", AppIcon.award),
    ("innovation", AppIcon.lightbulb),
    ("strategy", AppIcon.layers),
)


def icon_for_app(name: str) -> AppIcon:
    lowered = (name or "").lower()
    for keyword, icon in APP_ICON_KEYWORDS:
        if keyword in lowered:
            return icon
    return AppIcon.folder


class WeatherIcon(str, Enum):
    clear = "clear"
    partly_cloudy = "partly_cloudy"
    rain = "rain"
    thunderstorm = "thunderstorm"
    snow = "snow"
    cloudy = "cloudy"


_WEATHER_CODES = {
    "01": WeatherIcon.clear,
    "02": WeatherIcon.partly_cloudy,
    "03": WeatherIcon.partly_cloudy,
    "04": WeatherIcon.partly_cloudy,
    "09": WeatherIcon.rain,
    "10": WeatherIcon.rain,
    "11": WeatherIcon.thunderstorm,
    "13": WeatherIcon.snow,
}


def weather_icon(code: str) -> WeatherIcon:
    """Map an OpenWeather icon code such as "10d" to its variant."""
    return _WEATHER_CODES.get((code or "")[:2], WeatherIcon.cloudy)
