from datetime import date

import pytest
from fastapi.testclient import TestClient

from index import app
from prayer_times import Location, compute_schedule, format_time


@pytest.fixture
def client():
    return TestClient(app)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "online"
    assert "/api/timesForGPS" in body["endpoints"]


def test_times_for_bandung(client):
    response = client.get(
        "/api/timesForGPS",
        params={
            "lat": -6.9179131,
            "lng": 107.6072436,
            "date": "2026-02-01",
            "timezoneOffset": 420,
            "elevation": 708,
        },
    )
    assert response.status_code == 200
    body = response.json()
    expected = compute_schedule(Location(-6.9179131, 107.6072436, 708), date(2026, 2, 1), 7.0)
    times = body["times"]["2026-02-01"]
    assert times == {name: format_time(t) for name, t in expected.as_dict().items()}
    assert body["complete"]["2026-02-01"] is True
    assert body["elevationCorrectionMinutes"] == 2


def test_multiple_days(client):
    response = client.get(
        "/api/timesForGPS",
        params={"lat": -6.2088, "lng": 106.8456, "date": "2026-02-27", "days": 3},
    )
    assert response.status_code == 200
    assert list(response.json()["times"]) == ["2026-02-27", "2026-02-28", "2026-03-01"]


def test_options_are_passed_through(client):
    params = {"lat": -6.9179131, "lng": 107.6072436, "date": "2026-02-01", "elevation": 708}
    default = client.get("/api/timesForGPS", params=params).json()
    plain = client.get(
        "/api/timesForGPS",
        params={**params, "elevationCorrection": "none", "ihtiyati": 0, "dhuhaMethod": "sunrise_offset"},
    ).json()
    assert plain["elevationCorrectionMinutes"] == 0
    assert plain["times"]["2026-02-01"]["dhuhr"] != default["times"]["2026-02-01"]["dhuhr"]


def test_undefined_times_are_placeholders(client):
    response = client.get(
        "/api/timesForGPS",
        params={"lat": 51.5074, "lng": -0.1278, "date": "2026-06-21", "timezoneOffset": 60},
    )
    body = response.json()
    assert body["complete"]["2026-06-21"] is False
    assert body["times"]["2026-06-21"]["fajr"] == "--:--"
    assert body["times"]["2026-06-21"]["isha"] == "--:--"
    assert body["times"]["2026-06-21"]["sunrise"] != "--:--"


@pytest.mark.parametrize(
    "params",
    [
        {"lat": 95, "lng": 0, "date": "2026-02-01"},
        {"lat": 0, "lng": 0, "date": "2026-02-01", "elevation": -10},
        {"lat": 0, "lng": 0, "date": "01/02/2026"},
        {"lat": 0, "lng": 0, "date": "2026-02-01", "days": 0},
        {"lat": -6.9, "lng": 107.6, "date": "2026-02-01", "timezoneOffset": 1500},
        {"lat": -6.9, "lng": 107.6, "date": "2026-02-01", "timezoneOffset": -1440},
        {"lat": 0, "lng": 0, "date": "2026-02-01", "elevationCorrection": "guess"},
    ],
)
def test_invalid_requests(client, params):
    assert client.get("/api/timesForGPS", params=params).status_code == 422


def test_solar_state(client):
    response = client.get("/api/solarState", params={"date": "1992-10-13"})
    assert response.status_code == 200
    body = response.json()
    assert body["julianDay"] == 2448908.5
    assert body["declination"] == pytest.approx(-7.785, abs=0.01)


def test_solar_state_bad_date(client):
    assert client.get("/api/solarState", params={"date": "yesterday"}).status_code == 422


def test_correction_minutes_for_multiple_days(client):
    params = {"lat": -6.9179131, "lng": 107.6072436, "date": "2026-02-01", "days": 3, "elevation": 708}
    assert client.get("/api/timesForGPS", params=params).json()["elevationCorrectionMinutes"] == 2
    formula = client.get("/api/timesForGPS", params={**params, "elevationCorrection": "formula"}).json()
    assert formula["elevationCorrectionMinutes"] == 3
