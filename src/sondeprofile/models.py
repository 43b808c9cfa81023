"""Pydantic v2 models for sondeprofile."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RawFrame(BaseModel):
    """One telemetry frame as delivered by SondeHub (history or live feed).

    Field names follow the SondeHub payload; anything else is ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    frame: Optional[Union[int, str]] = None
    serial: Optional[str] = None
    timestamp: Optional[datetime] = Field(default=None, alias="datetime")
    time_received: Optional[datetime] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    alt: Optional[float] = None
    pressure: Optional[float] = None
    temp: Optional[float] = None
    humidity: Optional[float] = None
    heading: Optional[float] = None
    vel_h: Optional[float] = None
    vel_v: Optional[float] = None

    @field_validator("timestamp", "time_received")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class NormalizedFrame(BaseModel):
    """A validated sounding sample derived from a RawFrame."""

    key: Union[int, str]
    temperature_c: float
    relative_humidity_pct: float
    dewpoint_c: float
    pressure_hpa: float
    altitude_m: Optional[float] = None
    timestamp: Optional[datetime] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    wind_direction_deg: Optional[float] = None  # direction the wind blows from
    wind_speed: Optional[float] = None
    vertical_speed_ms: Optional[float] = None


class FrameVerdict(str, Enum):
    """Flight-phase classification of a single raw frame."""

    ASCENDING = "ascending"
    DESCENDING = "descending"
    BURST = "burst"
    AMBIGUOUS = "ambiguous"
    POST_BURST = "post_burst"


class ConvectionMethod(str, Enum):
    """Available convection-height estimators."""

    TEMPLE = "temple"
    PARCEL = "parcel"


class ConvectionCrossing(BaseModel):
    """Estimated thermal top for one surface temperature."""

    temp_c: int
    feet: float


class ConvectionResult(BaseModel):
    """Convection-height curve plus the domain it was scanned over."""

    method: ConvectionMethod
    crossings: list[ConvectionCrossing] = Field(default_factory=list)
    min_temp: int = 0
    max_temp: int = 50
    max_feet: float = 20000
    message: Optional[str] = None  # reason shown when crossings is empty

    def at(self, temp_c: float) -> Optional[float]:
        """Linearly interpolate the thermal top (ft) at a surface temperature."""
        if not self.crossings:
            return None
        temp_c = max(self.min_temp, min(self.max_temp, temp_c))
        pts = self.crossings
        if temp_c <= pts[0].temp_c:
            return pts[0].feet
        for a, b in zip(pts, pts[1:]):
            if a.temp_c <= temp_c <= b.temp_c:
                if b.temp_c == a.temp_c:
                    return a.feet
                frac = (temp_c - a.temp_c) / (b.temp_c - a.temp_c)
                return a.feet + (b.feet - a.feet) * frac
        return pts[-1].feet


class Site(BaseModel):
    """A radiosonde launch site known to SondeHub."""

    id: str
    name: str
    position: Optional[Any] = None


class SondeSummary(BaseModel):
    """A recent flight at a site, as listed by SondeHub."""

    serial: str
    timestamp: Optional[datetime] = None
    label: str = "unknown"
