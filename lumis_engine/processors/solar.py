"""Solar geometry and expected outdoor illuminance.

Simplified NOAA solar position:
    Julian century → mean longitude / anomaly → equation of centre
    → apparent longitude → declination and equation of time
    → true solar time → hour angle → zenith / altitude / azimuth

Expected clear-sky lux uses the Kasten–Young air mass, 120 000 lux of
direct sun at the zenith, a 0.7 transmittance base and a 15 % diffuse
share, then scales for cloud cover and UV.

All times are interpreted as UTC.  Naive datetimes are treated as UTC.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone

from pydantic import BaseModel

from lumis_engine.foundation.clock import ensure_aware

MAX_DIRECT_LUX = 120_000.0
DIFFUSE_FRACTION = 0.15
CIVIL_TWILIGHT_ALTITUDE = -6.0
HORIZON_ALTITUDE = -0.5
NIGHT_TYPICAL_LUX = 10.0


class SolarPosition(BaseModel):
    altitude: float  # degrees above the horizon
    azimuth: float   # degrees clockwise from north
    zenith: float    # degrees from vertical

    model_config = {"frozen": True}


class ExpectedLuxRange(BaseModel):
    min: float
    max: float
    typical: float

    model_config = {"frozen": True}


def _julian_day(when: datetime) -> float:
    when = ensure_aware(when).astimezone(timezone.utc)
    a = (14 - when.month) // 12
    y = when.year + 4800 - a
    m = when.month + 12 * a - 3
    jdn = (
        when.day
        + (153 * m + 2) // 5
        + 365 * y
        + y // 4
        - y // 100
        + y // 400
        - 32045
    )
    hour = when.hour + when.minute / 60 + when.second / 3600
    return jdn + (hour - 12) / 24


def solar_position(latitude: float, longitude: float, when: datetime) -> SolarPosition:
    """Sun altitude, azimuth and zenith for a place and instant."""
    when = ensure_aware(when).astimezone(timezone.utc)
    jc = (_julian_day(when) - 2451545.0) / 36525.0

    mean_lon = (280.46646 + jc * (36000.76983 + jc * 0.0003032)) % 360
    mean_anom = (357.52911 + jc * (35999.05029 - 0.0001537 * jc)) % 360
    m_rad = math.radians(mean_anom)

    centre = (
        math.sin(m_rad) * (1.914602 - jc * (0.004817 + 0.000014 * jc))
        + math.sin(2 * m_rad) * (0.019993 - 0.000101 * jc)
        + math.sin(3 * m_rad) * 0.000289
    )
    true_lon = mean_lon + centre
    omega = 125.04 - 1934.136 * jc
    apparent_lon = true_lon - 0.00569 - 0.00478 * math.sin(math.radians(omega))
    obliquity = 23.439 - 0.0000004 * jc

    declination = math.degrees(
        math.asin(math.sin(math.radians(obliquity)) * math.sin(math.radians(apparent_lon)))
    )
    eq_time = 4 * (mean_lon - 0.0057183 - apparent_lon + centre)

    true_solar_minutes = (
        when.hour * 60
        + when.minute
        + when.second / 60
        + when.microsecond / 60_000_000
        + eq_time
        + 4 * longitude
    )
    hour_angle = true_solar_minutes / 4 - 180

    lat_rad = math.radians(latitude)
    dec_rad = math.radians(declination)
    cos_zenith = (
        math.sin(lat_rad) * math.sin(dec_rad)
        + math.cos(lat_rad) * math.cos(dec_rad) * math.cos(math.radians(hour_angle))
    )
    zenith_rad = math.acos(max(-1.0, min(1.0, cos_zenith)))
    zenith = math.degrees(zenith_rad)
    altitude = 90 - zenith

    denom = math.cos(lat_rad) * math.sin(zenith_rad)
    if abs(denom) < 1e-12:
        azimuth = 180.0
    else:
        cos_az = (math.sin(lat_rad) * math.cos(zenith_rad) - math.sin(dec_rad)) / denom
        azimuth = math.degrees(math.acos(max(-1.0, min(1.0, cos_az))))
    if hour_angle > 0:
        azimuth = 360 - azimuth

    return SolarPosition(altitude=altitude, azimuth=azimuth, zenith=zenith)


def expected_lux(
    latitude: float,
    longitude: float,
    when: datetime,
    cloud_cover_percent: float = 0.0,
    uv_index: float = 0.0,
) -> ExpectedLuxRange:
    """Plausible outdoor illuminance band for the sun's current position."""
    pos = solar_position(latitude, longitude, when)

    if pos.altitude < CIVIL_TWILIGHT_ALTITUDE:
        return ExpectedLuxRange(min=0.0, max=1.0, typical=0.0)

    if pos.altitude < 0:
        twilight = NIGHT_TYPICAL_LUX * (pos.altitude + 6) / 6
        return ExpectedLuxRange(min=max(0.0, twilight * 0.5), max=twilight * 2, typical=twilight)

    air_mass = 1 / (
        math.cos(math.radians(pos.zenith)) + 0.50572 * (96.07995 - pos.zenith) ** -1.6364
    )
    transmittance = 0.7 ** (air_mass ** 0.678)
    direct = MAX_DIRECT_LUX * math.sin(math.radians(pos.altitude)) * transmittance
    clear_sky = direct + direct * DIFFUSE_FRACTION

    cloud_factor = 1 - (cloud_cover_percent / 100) * 0.85
    uv_bonus = 1.0 + uv_index * 0.05 if uv_index > 0 else 1.0
    typical = clear_sky * cloud_factor * uv_bonus

    return ExpectedLuxRange(min=max(0.0, typical * 0.5), max=typical * 1.8, typical=typical)


def validate_solar_lux(
    measured_lux: float,
    latitude: float,
    longitude: float,
    when: datetime,
    cloud_cover_percent: float = 0.0,
    uv_index: float = 0.0,
) -> int:
    """Confidence (0–100) that *measured_lux* fits the sky at this place and time."""
    expected = expected_lux(latitude, longitude, when, cloud_cover_percent, uv_index)

    if expected.typical < NIGHT_TYPICAL_LUX:
        if measured_lux > 500:
            return 0    # bright light at night: lamp or flashlight
        if measured_lux < 50:
            return 100
        return 50

    if expected.min <= measured_lux <= expected.max:
        return 100

    if measured_lux < expected.min:
        return 60 if measured_lux / expected.min > 0.3 else 20

    excess = measured_lux / expected.max
    if excess < 1.5:
        return 80   # reflections, snow
    if excess < 3:
        return 40
    return 10


def is_daytime(latitude: float, longitude: float, when: datetime) -> bool:
    return solar_position(latitude, longitude, when).altitude > CIVIL_TWILIGHT_ALTITUDE


def sun_times(latitude: float, longitude: float, day: date) -> tuple[datetime, datetime]:
    """Approximate UTC sunrise and sunset by scanning the day in 15-minute steps.

    Falls back to 06:00 / 18:00 UTC when no crossing is found (polar day/night).
    """
    midnight = datetime.combine(day, time(0, 0), tzinfo=timezone.utc)
    sunrise: datetime | None = None
    sunset: datetime | None = None

    for step in range(96):
        instant = midnight + timedelta(minutes=15 * step)
        altitude = solar_position(latitude, longitude, instant).altitude
        if altitude > HORIZON_ALTITUDE and sunrise is None:
            sunrise = instant
        if altitude < HORIZON_ALTITUDE and sunrise is not None and sunset is None:
            sunset = instant
            break

    return (
        sunrise or midnight + timedelta(hours=6),
        sunset or midnight + timedelta(hours=18),
    )


def minutes_since_sunrise(latitude: float, longitude: float, when: datetime) -> float:
    when = ensure_aware(when).astimezone(timezone.utc)
    sunrise, _ = sun_times(latitude, longitude, when.date())
    return (when - sunrise).total_seconds() / 60.0
