"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from sondeprofile.models import NormalizedFrame

LAUNCH_TIME = datetime(2026, 3, 1, 11, 0, 0, tzinfo=timezone.utc)


def _iso(ts: datetime) -> str:
    return ts.isoformat().replace("+00:00", "Z")


@pytest.fixture
def launch_time():
    return LAUNCH_TIME


@pytest.fixture
def raw_frame():
    """A single valid ascending SondeHub frame."""
    return {
        "frame": 1234,
        "serial": "T1234567",
        "datetime": "2026-03-01T11:20:00.000000Z",
        "time_received": "2026-03-01T11:20:01.250000Z",
        "lat": -34.95,
        "lon": 138.52,
        "alt": 5200.0,
        "pressure": 530.0,
        "temp": -12.5,
        "humidity": 45.0,
        "heading": 90.0,
        "vel_h": 12.0,
        "vel_v": 5.2,
        "subtype": "RS41-SGP",
    }


@pytest.fixture
def make_raw(launch_time):
    """Factory for the i-th frame of a flight, one second apart."""

    def _make(i: int, vel_v: float | None = 5.0, **overrides) -> dict:
        frame = {
            "frame": i,
            "serial": "T1234567",
            "datetime": _iso(launch_time + timedelta(seconds=i)),
            "lat": -34.95,
            "lon": 138.52,
            "alt": 20.0 * i,
            "pressure": max(1000.0 - 2.0 * i, 5.0),
            "temp": 20.0 - 0.1 * i,
            "humidity": 60.0,
            "heading": 45.0,
            "vel_h": 6.0,
            "vel_v": vel_v,
        }
        frame.update(overrides)
        return frame

    return _make


@pytest.fixture
def burst_flight(make_raw):
    """301 ascending frames, 11 descending, then 5 late descending frames.

    Returns (frames, index of the 11th descending frame).
    """
    frames = [make_raw(i, vel_v=5.0) for i in range(301)]
    frames += [make_raw(i, vel_v=-2.0) for i in range(301, 312)]
    frames += [make_raw(i, vel_v=-8.0) for i in range(312, 317)]
    return frames, 311


@pytest.fixture
def make_level():
    """Factory for a NormalizedFrame profile level."""
    counter = iter(range(10_000))

    def _make(
        pressure_hpa: float,
        altitude_m: float | None,
        temperature_c: float,
        dewpoint_c: float | None = None,
    ) -> NormalizedFrame:
        return NormalizedFrame(
            key=next(counter),
            temperature_c=temperature_c,
            relative_humidity_pct=50.0,
            dewpoint_c=temperature_c - 10 if dewpoint_c is None else dewpoint_c,
            pressure_hpa=pressure_hpa,
            altitude_m=altitude_m,
        )

    return _make


@pytest.fixture
def standard_profile(make_level):
    """Realistic mid-latitude ascent, 20°C/10°C at 1000 hPa up to 300 hPa."""
    return [
        make_level(1000, 110, 20.0, 10.0),
        make_level(925, 760, 15.5, 8.0),
        make_level(850, 1460, 11.0, 3.0),
        make_level(700, 3010, 1.0, -9.0),
        make_level(500, 5570, -16.0, -30.0),
        make_level(400, 7190, -27.0, -42.0),
        make_level(300, 9160, -42.0, -55.0),
    ]


@pytest.fixture
def superadiabatic_profile(make_level):
    """20°C/10°C at 1000 hPa with a superadiabatic layer in the lowest 100 m."""
    return [
        make_level(1000, 10, 20.0, 10.0),
        make_level(988, 110, 18.5, 9.5),
        make_level(925, 760, 14.3, 7.0),
        make_level(850, 1500, 9.5, 2.0),
        make_level(700, 3000, 0.0, -10.0),
        make_level(500, 5600, -17.0, -30.0),
        make_level(400, 7200, -28.0, -42.0),
        make_level(300, 9200, -44.0, -55.0),
    ]


@pytest.fixture
def inversion_profile(make_level):
    """Temperature increases with altitude throughout and stays hot."""
    return [
        make_level(1000, 110, 51.0, 10.0),
        make_level(925, 760, 52.0, 10.0),
        make_level(850, 1460, 53.5, 10.0),
        make_level(700, 3010, 55.0, 10.0),
        make_level(500, 5570, 57.0, 10.0),
        make_level(400, 7190, 58.5, 10.0),
        make_level(300, 9160, 60.0, 10.0),
    ]
