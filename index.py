import logging
import os
from datetime import datetime, timedelta

from fastapi import FastAPI, HTTPException, Query

from elevation import ElevationCorrection, correction_minutes
from prayer_times import (
    CalculationConfig,
    DhuhaMethod,
    InvalidLocationError,
    Location,
    compute_schedule,
    compute_solar_state,
    format_time,
    kemenag_adjustments,
)

log = logging.getLogger(__name__)

# WIB (UTC+7) unless configured otherwise
DEFAULT_TIMEZONE_OFFSET = int(os.getenv("KEMENAG_TIMEZONE_OFFSET_MINUTES", "420"))
DEFAULT_ELEVATION_CORRECTION = ElevationCorrection(os.getenv("KEMENAG_ELEVATION_CORRECTION", "table"))
MAX_DAYS = int(os.getenv("KEMENAG_MAX_DAYS", "31"))

app = FastAPI(
    title="Kemenag Prayer Times API",
    description="API service for calculating Islamic prayer times with the Kemenag RI method",
    version="1.0.0"
)

@app.get("/")
def root():
    return {
        "service": "Kemenag Prayer Times API",
        "status": "online",
        "endpoints": {
            "/api/timesForGPS": "Get prayer times for GPS coordinates",
            "/api/solarState": "Get solar declination and equation of time for a date",
        }
    }

def _parse_date(date: str):
    try:
        return datetime.strptime(date, "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(status_code=422, detail=f"date must be YYYY-MM-DD, got {date!r}")

@app.get("/api/timesForGPS")
def get_times_for_gps(
    lat: float,
    lng: float,
    date: str,
    days: int = Query(1, ge=1, le=MAX_DAYS),
    timezoneOffset: int = Query(DEFAULT_TIMEZONE_OFFSET, ge=-1439, le=1439), # Minutes east of UTC, e.g., 420
    elevation: float = 0.0,
    elevationCorrection: ElevationCorrection = DEFAULT_ELEVATION_CORRECTION,
    ihtiyati: int = 2,
    dhuhaMethod: DhuhaMethod = DhuhaMethod.SUN_ANGLE,
):
    # Convert minutes to hours (e.g., 420 -> 7.0)
    offset_hours = timezoneOffset / 60.0
    start_date = _parse_date(date)
    try:
        location = Location(latitude=lat, longitude=lng, elevation=elevation)
    except InvalidLocationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    config = CalculationConfig(
        elevation_correction=elevationCorrection,
        adjustments=kemenag_adjustments(ihtiyati),
        dhuha_method=dhuhaMethod,
    )
    log.debug("times for %s from %s, %d day(s), UTC%+.2f", location, start_date, days, offset_hours)

    response_times = {}
    complete = {}
    correction = correction_minutes(location.elevation, elevationCorrection)

    for i in range(days):
        current_day = start_date + timedelta(days=i)
        date_key = current_day.strftime("%Y-%m-%d")

        schedule = compute_schedule(location, current_day, offset_hours, config)
        if not schedule.is_complete:
            log.warning("incomplete schedule for %s on %s", location, date_key)

        response_times[date_key] = {
            name: format_time(t) for name, t in schedule.as_dict().items()
        }
        complete[date_key] = schedule.is_complete

    return {
        "times": response_times,
        "complete": complete,
        "elevationCorrectionMinutes": correction,
    }

@app.get("/api/solarState")
def get_solar_state(date: str):
    solar = compute_solar_state(_parse_date(date))
    return {
        "date": date,
        "julianDay": solar.julian_day,
        "julianCentury": solar.julian_century,
        "declination": solar.declination,
        "equationOfTime": solar.equation_of_time,
    }
