"""
Prayer times calculation using the NOAA/Meeus solar series and the Kemenag RI (MABIMS) method.
Fajr: -20°, Isha: -18°, Dhuha: +4.5°, Sunrise/Maghrib: -0.8333° minus horizon dip,
Asr: Shafi (shadow = 1 × object + noon shadow). Ihtiyati: ±2 minutes.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date as Date, datetime, timedelta, timezone
from enum import Enum
from typing import Mapping

from elevation import ElevationCorrection, correction_minutes, horizon_dip_degrees

log = logging.getLogger(__name__)

# Kemenag/MABIMS sun altitudes (degrees, negative = below horizon)
FAJR_ANGLE = -20.0
ISHA_ANGLE = -18.0
DHUHA_ANGLE = 4.5
SUNRISE_SUNSET_ANGLE = -0.8333

IHTIYATI_MINUTES = 2
IMSAK_MINUTES = 10
DHUHA_OFFSET_MINUTES = 33


class InvalidLocationError(ValueError):
    """Coordinates or elevation out of range."""


class InvalidTimezoneError(ValueError):
    """UTC offset outside (-24, 24) hours."""


class Prayer(str, Enum):
    IMSAK = "imsak"
    FAJR = "fajr"
    SUNRISE = "sunrise"
    DHUHA = "dhuha"
    DHUHR = "dhuhr"
    ASR = "asr"
    MAGHRIB = "maghrib"
    ISHA = "isha"
    HALF_NIGHT = "half_night"
    LAST_THIRD = "last_third"


class DhuhaMethod(str, Enum):
    SUN_ANGLE = "sun_angle"
    SUNRISE_OFFSET = "sunrise_offset"


# Markers used for current/next prayer lookup, in daily order
_DAILY_PRAYERS = (
    Prayer.FAJR,
    Prayer.SUNRISE,
    Prayer.DHUHR,
    Prayer.ASR,
    Prayer.MAGHRIB,
    Prayer.ISHA,
)


@dataclass(frozen=True)
class Location:
    latitude: float  # degrees, negative for South
    longitude: float  # degrees, negative for West
    elevation: float = 0.0  # meters above sea level

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidLocationError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidLocationError(f"longitude out of range: {self.longitude}")
        if not math.isfinite(self.elevation) or self.elevation < 0:
            raise InvalidLocationError(f"elevation must be >= 0 m: {self.elevation}")

    @property
    def horizon_dip(self) -> float:
        return horizon_dip_degrees(self.elevation)


@dataclass(frozen=True)
class SolarState:
    julian_day: float
    julian_century: float
    declination: float  # degrees
    equation_of_time: float  # minutes


def kemenag_adjustments(ihtiyati: int = IHTIYATI_MINUTES) -> dict[Prayer, int]:
    """Ihtiyati per prayer. Sunrise is moved earlier, everything else later."""
    return {
        Prayer.FAJR: ihtiyati,
        Prayer.SUNRISE: -ihtiyati,
        Prayer.DHUHR: ihtiyati,
        Prayer.ASR: ihtiyati,
        Prayer.MAGHRIB: ihtiyati,
        Prayer.ISHA: ihtiyati,
    }


@dataclass(frozen=True)
class CalculationConfig:
    elevation_correction: ElevationCorrection = ElevationCorrection.TABLE
    adjustments: Mapping[Prayer, int] = field(default_factory=kemenag_adjustments, hash=False)
    dhuha_method: DhuhaMethod = DhuhaMethod.SUN_ANGLE
    asr_shadow_factor: int = 1  # 1 = Shafi, 2 = Hanafi


@dataclass(frozen=True)
class PrayerSchedule:
    """One day of prayer times at one location. None marks an undefined time."""

    date: Date
    location: Location
    timezone_offset: float  # hours
    solar: SolarState
    elevation_correction_minutes: int
    imsak: datetime | None
    fajr: datetime | None
    sunrise: datetime | None
    dhuha: datetime | None
    dhuhr: datetime | None
    asr: datetime | None
    maghrib: datetime | None
    isha: datetime | None
    half_night: datetime | None
    last_third: datetime | None
    # Solved times before elevation minutes and ihtiyati
    raw: Mapping[Prayer, datetime | None] = field(default_factory=dict, hash=False)

    def as_dict(self) -> dict[str, datetime | None]:
        return {prayer.value: getattr(self, prayer.value) for prayer in Prayer}

    def time_for(self, prayer: Prayer) -> datetime | None:
        return getattr(self, Prayer(prayer).value)

    @property
    def is_complete(self) -> bool:
        return all(t is not None for t in self.as_dict().values())

    def is_ordered(self) -> bool:
        """Check imsak < fajr <= sunrise < dhuha < dhuhr < asr < maghrib < isha < half_night < last_third.

        Incomplete schedules are never considered ordered.
        """
        if not self.is_complete:
            return False
        return (
            self.imsak < self.fajr <= self.sunrise < self.dhuha < self.dhuhr
            < self.asr < self.maghrib < self.isha < self.half_night < self.last_third
        )

    @property
    def night_duration(self) -> timedelta | None:
        """Maghrib to the following Fajr."""
        next_fajr = _next_fajr(self.fajr, self.maghrib)
        if next_fajr is None:
            return None
        return next_fajr - self.maghrib

    def current_prayer(self, when: datetime) -> Prayer | None:
        """Latest daily prayer whose time has started at `when`, None before Fajr."""
        current = None
        for prayer in _DAILY_PRAYERS:
            t = self.time_for(prayer)
            if t is not None and t <= when:
                current = prayer
        return current

    def next_prayer(self, when: datetime) -> Prayer | None:
        """First daily prayer still ahead of `when`, None after Isha."""
        for prayer in _DAILY_PRAYERS:
            t = self.time_for(prayer)
            if t is not None and t > when:
                return prayer
        return None


def _deg2rad(d: float) -> float:
    return d * math.pi / 180.0


def _rad2deg(r: float) -> float:
    return r * 180.0 / math.pi


def _normalize_angle_360(degrees: float) -> float:
    """Normalize angle to [0, 360)."""
    d = degrees % 360.0
    return d if d >= 0 else d + 360.0


def _julian_date(year: int, month: int, day: int, hour_utc: float = 0.0) -> float:
    """Julian date at given UTC time (default 0h UTC)."""
    if month <= 2:
        year -= 1
        month += 12
    A = math.floor(year / 100)
    B = 2 - A + math.floor(A / 4)
    jd = math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1)) + day + B - 1524.5
    jd += hour_utc / 24.0
    return jd


def _julian_century(jd: float) -> float:
    return (jd - 2451545.0) / 36525.0


def _mean_longitude(T: float) -> float:
    """Geometric mean longitude of the sun (degrees)."""
    return _normalize_angle_360(280.46646 + T * (36000.76983 + 0.0003032 * T))


def _mean_anomaly(T: float) -> float:
    """Geometric mean anomaly of the sun (degrees)."""
    return 357.52911 + T * (35999.05029 - 0.0001537 * T)


def _eccentricity(T: float) -> float:
    """Eccentricity of earth's orbit."""
    return 0.016708634 - T * (0.000042037 + 0.0000001267 * T)


def _equation_of_center(T: float) -> float:
    M = _deg2rad(_mean_anomaly(T))
    return (
        math.sin(M) * (1.914602 - T * (0.004817 + 0.000014 * T))
        + math.sin(2 * M) * (0.019993 - 0.000101 * T)
        + math.sin(3 * M) * 0.000289
    )


def _omega(T: float) -> float:
    return 125.04 - 1934.136 * T


def _apparent_longitude(T: float) -> float:
    true_longitude = _mean_longitude(T) + _equation_of_center(T)
    return true_longitude - 0.00569 - 0.00478 * math.sin(_deg2rad(_omega(T)))


def _obliquity(T: float) -> float:
    """Obliquity of the ecliptic corrected for nutation (degrees)."""
    seconds = 21.448 - T * (46.8150 + T * (0.00059 - T * 0.001813))
    mean = 23.0 + (26.0 + seconds / 60.0) / 60.0
    return mean + 0.00256 * math.cos(_deg2rad(_omega(T)))


def _sun_declination(T: float) -> float:
    sin_decl = math.sin(_deg2rad(_obliquity(T))) * math.sin(_deg2rad(_apparent_longitude(T)))
    return _rad2deg(math.asin(sin_decl))


def _equation_of_time(T: float) -> float:
    """Equation of time in minutes (apparent minus mean solar time)."""
    y = math.tan(_deg2rad(_obliquity(T) / 2)) ** 2
    L0 = _deg2rad(_mean_longitude(T))
    e = _eccentricity(T)
    M = _deg2rad(_mean_anomaly(T))

    eot = (
        y * math.sin(2 * L0)
        - 2 * e * math.sin(M)
        + 4 * e * y * math.sin(M) * math.cos(2 * L0)
        - 0.5 * y * y * math.sin(4 * L0)
        - 1.25 * e * e * math.sin(2 * M)
    )
    return _rad2deg(eot) * 4.0


def compute_solar_state(day: Date) -> SolarState:
    """Sun declination and equation of time at 0h UTC of the given date."""
    jd = _julian_date(day.year, day.month, day.day)
    T = _julian_century(jd)
    return SolarState(
        julian_day=jd,
        julian_century=T,
        declination=_sun_declination(T),
        equation_of_time=_equation_of_time(T),
    )


def solve_hour_angle(
    altitude_deg: float,
    lat_deg: float,
    decl_deg: float,
) -> float | None:
    """
    Hour angle (degrees) when the sun is at the given altitude.
    altitude_deg: signed, negative = below horizon (e.g. -20 for Fajr).
    Returns None if the sun never reaches that altitude (polar day/night).
    """
    lat_r = _deg2rad(lat_deg)
    decl_r = _deg2rad(decl_deg)
    # sin(altitude) = sin(lat)*sin(decl) + cos(lat)*cos(decl)*cos(omega)
    cos_omega = (math.sin(_deg2rad(altitude_deg)) - math.sin(lat_r) * math.sin(decl_r)) / (
        math.cos(lat_r) * math.cos(decl_r)
    )
    if not -1 <= cos_omega <= 1:
        log.debug("sun never reaches %.4f° at lat %.4f, decl %.4f", altitude_deg, lat_deg, decl_deg)
        return None
    return _rad2deg(math.acos(cos_omega))


def asr_altitude(lat_deg: float, decl_deg: float, shadow_factor: int = 1) -> float | None:
    """Sun altitude for Asr: shadow = shadow_factor × object + noon shadow."""
    phi_minus_d = abs(lat_deg - decl_deg)
    if phi_minus_d >= 90:
        return None
    shadow_ratio = shadow_factor + math.tan(_deg2rad(phi_minus_d))
    return _rad2deg(math.atan(1.0 / shadow_ratio))


def solar_noon(equation_of_time: float, lng_deg: float, timezone_offset_hours: float) -> float:
    """Solar noon (Dhuhr) in local clock time as decimal hours."""
    return 12.0 - equation_of_time / 60.0 - lng_deg / 15.0 + timezone_offset_hours


def _clock_time(noon: float, hour_angle: float | None, after_noon: bool) -> float | None:
    """Decimal hours from solar noon and hour angle (degrees / 15 = hours)."""
    if hour_angle is None:
        return None
    if after_noon:
        return noon + hour_angle / 15.0
    return noon - hour_angle / 15.0


def _to_datetime(day: Date, hours: float | None, tz: timezone) -> datetime | None:
    """Decimal hours past local midnight as an aware datetime; may spill into adjacent days."""
    if hours is None:
        return None
    return datetime(day.year, day.month, day.day, tzinfo=tz) + timedelta(hours=hours)


def _shift(t: datetime | None, minutes: float) -> datetime | None:
    if t is None:
        return None
    return t + timedelta(minutes=minutes)


def _next_fajr(fajr: datetime | None, maghrib: datetime | None) -> datetime | None:
    """Fajr ending the night that starts at maghrib; borrowed from the next day when earlier."""
    if fajr is None or maghrib is None:
        return None
    if fajr < maghrib:
        return fajr + timedelta(days=1)
    return fajr


def compute_schedule(
    location: Location,
    day: Date,
    timezone_offset_hours: float,
    config: CalculationConfig | None = None,
) -> PrayerSchedule:
    """
    Get Kemenag prayer times for one day.
    timezone_offset_hours: local - UTC (e.g. 7.0 for WIB).
    Times the sun never reaches come back as None, together with every time derived from them.
    """
    if not -24.0 < timezone_offset_hours < 24.0:
        raise InvalidTimezoneError(f"timezone offset out of range: {timezone_offset_hours} h")
    if config is None:
        config = CalculationConfig()
    adjustments = config.adjustments
    tz = timezone(timedelta(hours=timezone_offset_hours))
    lat = location.latitude

    solar = compute_solar_state(day)
    decl = solar.declination
    noon = solar_noon(solar.equation_of_time, location.longitude, timezone_offset_hours)

    # Sunrise and maghrib see the lowered horizon
    horizon = SUNRISE_SUNSET_ANGLE - location.horizon_dip
    omega_horizon = solve_hour_angle(horizon, lat, decl)

    asr_alt = asr_altitude(lat, decl, config.asr_shadow_factor)
    omega_asr = solve_hour_angle(asr_alt, lat, decl) if asr_alt is not None else None

    raw_hours = {
        Prayer.FAJR: _clock_time(noon, solve_hour_angle(FAJR_ANGLE, lat, decl), after_noon=False),
        Prayer.SUNRISE: _clock_time(noon, omega_horizon, after_noon=False),
        Prayer.DHUHA: _clock_time(noon, solve_hour_angle(DHUHA_ANGLE, lat, decl), after_noon=False),
        Prayer.DHUHR: noon,
        Prayer.ASR: _clock_time(noon, omega_asr, after_noon=True),
        Prayer.MAGHRIB: _clock_time(noon, omega_horizon, after_noon=True),
        Prayer.ISHA: _clock_time(noon, solve_hour_angle(ISHA_ANGLE, lat, decl), after_noon=True),
    }
    raw = {prayer: _to_datetime(day, hours, tz) for prayer, hours in raw_hours.items()}

    correction = correction_minutes(location.elevation, config.elevation_correction)

    def adjusted(prayer: Prayer, elevation_minutes: int = 0) -> datetime | None:
        return _shift(raw[prayer], elevation_minutes + adjustments.get(prayer, 0))

    fajr = adjusted(Prayer.FAJR)
    # Sunrise earlier, maghrib later
    sunrise = adjusted(Prayer.SUNRISE, -correction)
    dhuhr = adjusted(Prayer.DHUHR)
    asr = adjusted(Prayer.ASR)
    maghrib = adjusted(Prayer.MAGHRIB, correction)
    isha = adjusted(Prayer.ISHA)

    if DhuhaMethod(config.dhuha_method) is DhuhaMethod.SUNRISE_OFFSET:
        dhuha = _shift(sunrise, DHUHA_OFFSET_MINUTES)
    else:
        dhuha = _shift(raw[Prayer.DHUHA], correction)

    imsak = _shift(fajr, -IMSAK_MINUTES)

    half_night = last_third = None
    next_fajr = _next_fajr(fajr, maghrib)
    if next_fajr is not None:
        night = next_fajr - maghrib
        half_night = maghrib + night / 2
        last_third = maghrib + night * 2 / 3

    return PrayerSchedule(
        date=day,
        location=location,
        timezone_offset=timezone_offset_hours,
        solar=solar,
        elevation_correction_minutes=correction,
        imsak=imsak,
        fajr=fajr,
        sunrise=sunrise,
        dhuha=dhuha,
        dhuhr=dhuhr,
        asr=asr,
        maghrib=maghrib,
        isha=isha,
        half_night=half_night,
        last_third=last_third,
        raw={prayer: t for prayer, t in raw.items() if prayer is not Prayer.DHUHA},
    )


def format_time(t: datetime | None) -> str:
    """Local 'HH:MM' rounded to the nearest minute, '--:--' when undefined."""
    if t is None:
        return "--:--"
    return (t + timedelta(seconds=30)).strftime("%H:%M")
