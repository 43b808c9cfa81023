"""SondeHub v2 API client for sites, recent flights and telemetry history."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import requests

from sondeprofile.models import Site, SondeSummary

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.v2.sondehub.org"
SYNOPTIC_HOURS = (0, 6, 12, 18)
SYNOPTIC_WINDOW_HOURS = 3


def _parse_ts(value: Any) -> datetime | None:
    """Parse an ISO timestamp (trailing Z allowed), assuming UTC when naive."""
    if not value or not isinstance(value, str):
        return None
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def launch_label(value: datetime | str | None) -> str:
    """Label a flight by its first packet time.

    Flights within 3 hours of a synoptic hour are labelled with that period,
    e.g. ``2026-01-05 00Z (23:12Z)``; launches just before 00Z belong to the
    next day's 00Z. Other flights get ``YYYY-MM-DD HH:MMZ``.
    """
    ts = value if isinstance(value, datetime) else _parse_ts(value)
    if ts is None:
        return "unknown"
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)

    hours = ts.hour + ts.minute / 60
    closest = None
    min_dist = float("inf")
    for syn in SYNOPTIC_HOURS:
        dist = abs(hours - syn)
        wrap_dist = min(dist, 24 - dist)
        if wrap_dist < min_dist:
            min_dist = wrap_dist
            closest = syn

    label_date = ts.date()
    in_window = closest is not None and min_dist <= SYNOPTIC_WINDOW_HOURS
    if in_window and closest == 0 and (24 - hours) <= SYNOPTIC_WINDOW_HOURS:
        label_date += timedelta(days=1)

    time_part = f"{ts.hour:02d}:{ts.minute:02d}Z"
    if in_window:
        return f"{label_date.isoformat()} {closest:02d}Z ({time_part})"
    return f"{label_date.isoformat()} {time_part}"


class SondeHubClient:
    """Client for the SondeHub radiosonde REST API."""

    def __init__(self, api_base: str = DEFAULT_API_BASE, timeout: int = 30):
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def _get(self, path: str, params: dict[str, object] | None = None) -> Any:
        resp = self.session.get(
            f"{self.api_base}{path}", params=params, timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def list_sites(self) -> list[Site]:
        """All launch sites, sorted by station name."""
        logger.info("Fetching SondeHub sites")
        data = self._get("/sites") or {}
        sites = [
            Site(
                id=str(site_id),
                name=(info or {}).get("station_name") or str(site_id),
                position=(info or {}).get("position"),
            )
            for site_id, info in data.items()
        ]
        sites.sort(key=lambda s: s.name)
        return sites

    def list_sondes(self, site_id: str, last: int = 43200) -> list[SondeSummary]:
        """Flights seen at a site within the last ``last`` seconds, newest first."""
        logger.info("Fetching sondes for site %s (last %ds)", site_id, last)
        data = self._get(f"/sondes/site/{site_id}", params={"last": last}) or {}
        sondes = []
        for serial, info in data.items():
            ts = _parse_ts((info or {}).get("datetime"))
            sondes.append(SondeSummary(serial=serial, timestamp=ts, label=launch_label(ts)))

        epoch = datetime.fromtimestamp(0, tz=timezone.utc)
        sondes.sort(key=lambda s: s.timestamp or epoch, reverse=True)
        return sondes

    def fetch_history(self, serial: str, last: int = 43200) -> list[dict[str, Any]]:
        """Raw telemetry frames for one sonde, oldest first."""
        logger.info("Fetching telemetry for %s (last %ds)", serial, last)
        data = self._get(f"/sonde/{serial}", params={"last": last})
        if not isinstance(data, list):
            logger.warning("Unexpected history payload for %s: %s", serial, type(data).__name__)
            return []

        # The burst detector needs chronological order
        epoch = datetime.fromtimestamp(0, tz=timezone.utc)

        def _frame_time(frame: Any) -> datetime:
            if not isinstance(frame, dict):
                return epoch
            return _parse_ts(frame.get("datetime")) or epoch

        data.sort(key=_frame_time)
        return data
