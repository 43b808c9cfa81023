"""Plain-text summaries of the latest frame and the convection curve."""

from __future__ import annotations

from datetime import datetime, timezone

from sondeprofile.models import ConvectionResult, NormalizedFrame

DEFAULT_TRACKER_URL = "https://sondehub.org"


def format_utc(dt: datetime | None) -> str:
    """Format as ``YYYY-MM-DD HH:MM:SSZ``; em-dash placeholder when missing."""
    if dt is None:
        return "—"
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M:%SZ")


def tracker_link(serial: str | None, tracker_url: str = DEFAULT_TRACKER_URL) -> str:
    """SondeHub tracker URL for a sonde, or the tracker home page."""
    base = tracker_url.rstrip("/")
    return f"{base}/{serial}" if serial else f"{base}/"


def format_latest(
    frame: NormalizedFrame | None,
    serial: str | None = None,
    tracker_url: str = DEFAULT_TRACKER_URL,
) -> str:
    """Time / altitude / temperature / dewpoint block for the newest frame."""
    if frame is None:
        rows = [("Time", "—"), ("Altitude", "—"), ("Temperature", "—"), ("Dewpoint", "—")]
    else:
        rows = [
            ("Time", format_utc(frame.timestamp)),
            ("Altitude", f"{frame.altitude_m:.0f} m" if frame.altitude_m is not None else "—"),
            ("Temperature", f"{frame.temperature_c:.1f}°C"),
            ("Dewpoint", f"{frame.dewpoint_c:.1f}°C"),
        ]

    lines = [f"  {name:<12} {value}" for name, value in rows]
    link_label = f"View {serial} on SondeHub tracker" if serial else "View in SondeHub tracker"
    lines.append(f"  {link_label}: {tracker_link(serial, tracker_url)}")
    return "\n".join(lines)


def format_convection(result: ConvectionResult, step: int = 5) -> str:
    """Convection table every ``step`` °C, or the reason nothing was found."""
    header = f"Convection estimate ({result.method.value})"
    if not result.crossings:
        return f"{header}: {result.message or 'no data'}"

    lines = [header, f"  {'Sfc temp':>8}  {'Top (ft)':>8}"]
    for c in result.crossings:
        if c.temp_c % step == 0 or c is result.crossings[0] or c is result.crossings[-1]:
            lines.append(f"  {c.temp_c:>6}°C  {round(c.feet):>8}")
    return "\n".join(lines)
