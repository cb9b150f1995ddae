"""Approximate sunrise and sunset for the clock viewer.

Low-precision solar position (a few minutes of error), good enough for a
display widget. Results are UTC.
"""

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple

J2000 = date(2000, 1, 1)


def _hours(value: float) -> timedelta:
    return timedelta(hours=value)


def sun_times(lat: float, lng: float, on: date) -> Tuple[datetime, datetime]:
    n = (on - J2000).days + 0.0008 - lng / 360.0
    mean_long = (280.460 + 0.9856474 * n) % 360
    anomaly = math.radians((357.528 + 0.9856003 * n) % 360)
    ecliptic = math.radians(
        (mean_long + 1.915 * math.sin(anomaly) + 0.020 * math.sin(2 * anomaly)) % 360
    )
    obliquity = math.radians(23.439 - 0.0000004 * n)

    right_ascension = math.degrees(
        math.atan2(math.cos(obliquity) * math.sin(ecliptic), math.cos(ecliptic))
    )
    declination = math.asin(math.sin(obliquity) * math.sin(ecliptic))

    # equation of time in degrees, folded into [-180, 180)
    eot = (mean_long - right_ascension + 180) % 360 - 180
    transit = 12 - lng / 15 - eot / 15

    phi = math.radians(lat)
    cos_h = (math.sin(math.radians(-0.833)) - math.sin(phi) * math.sin(declination)) / (
        math.cos(phi) * math.cos(declination)
    )
    # polar day / night clamp to a 24h or 0h day
    hour_angle = math.degrees(math.acos(max(-1.0, min(1.0, cos_h))))

    midnight = datetime.combine(on, time(0), tzinfo=timezone.utc)
    sunrise = midnight + _hours(transit - hour_angle / 15)
    sunset = midnight + _hours(transit + hour_angle / 15)
    return sunrise, sunset
