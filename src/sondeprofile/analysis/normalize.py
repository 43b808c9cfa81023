"""Convert raw SondeHub frames into validated sounding samples.

Bad frames are dropped (None), never raised: one faulty packet must not stop
a history load or the live feed.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime

from sondeprofile.analysis.thermodynamics import dewpoint_from_rh, pressure_from_altitude
from sondeprofile.config import PipelineConfig
from sondeprofile.models import NormalizedFrame, RawFrame

logger = logging.getLogger(__name__)


def _finite(value: float | None) -> float | None:
    """Return value if it is a finite number, else None."""
    if value is None or not math.isfinite(value):
        return None
    return value


def normalize_frame(
    raw: RawFrame,
    descent_cutoff: datetime | None = None,
    config: PipelineConfig | None = None,
) -> NormalizedFrame | None:
    """Validate one raw frame and derive dewpoint, pressure and wind.

    Returns None when the frame has no key, is newer than the descent cutoff,
    is not clearly ascending, lacks pressure or temperature, or fails the
    humidity/temperature plausibility limits.
    """
    config = config or PipelineConfig()
    quality = config.quality

    key = raw.frame
    if key is None or key == "":
        logger.debug("Dropping frame without key")
        return None

    timestamp = raw.timestamp
    if descent_cutoff is not None and timestamp is not None and timestamp > descent_cutoff:
        logger.debug("Dropping frame %s after descent cutoff", key)
        return None

    # Pre-launch, ground and descent packets
    vel_v = _finite(raw.vel_v)
    if vel_v is not None and vel_v < config.flight_phase.ascent_rate_threshold:
        return None

    temp = _finite(raw.temp)
    humidity = _finite(raw.humidity)
    altitude = _finite(raw.alt)
    pressure = _finite(raw.pressure)
    if pressure is None and altitude is not None:
        pressure = _finite(pressure_from_altitude(altitude))

    if pressure is None or temp is None:
        logger.debug("Dropping frame %s: no pressure or temperature", key)
        return None
    # 0% humidity shows up until the sonde has its calibration data
    if humidity is not None and humidity < quality.min_humidity_pct:
        return None
    if temp < quality.min_temperature_c:
        return None

    dewpoint = dewpoint_from_rh(temp, min(humidity, 100.0) if humidity is not None else None)
    if dewpoint is None or not math.isfinite(dewpoint):
        logger.debug("Dropping frame %s: no dewpoint", key)
        return None

    heading = _finite(raw.heading)
    wind_direction = (heading + 180) % 360 if heading is not None else None

    return NormalizedFrame(
        key=key,
        temperature_c=temp,
        relative_humidity_pct=humidity,
        dewpoint_c=dewpoint,
        pressure_hpa=pressure,
        altitude_m=altitude,
        timestamp=timestamp or raw.time_received,
        lat=raw.lat,
        lon=raw.lon,
        wind_direction_deg=wind_direction,
        wind_speed=_finite(raw.vel_h),
        vertical_speed_ms=vel_v,
    )
