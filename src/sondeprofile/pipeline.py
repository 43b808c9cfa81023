"""Session pipeline — shared by CLI and live-feed consumers.

Binds the core state for one flight (telemetry store, flight-phase state,
descent cutoff) into an explicit SoundingSession. History loads and live
messages both go through detector → normalizer → store. Switching flights
calls reset(), which replaces all state and the session id so late live
messages from the previous flight are ignored.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Union

from pydantic import ValidationError

from sondeprofile.analysis.convection import estimate_convection
from sondeprofile.analysis.flight_phase import FlightPhaseDetector, FlightPhaseState
from sondeprofile.analysis.normalize import normalize_frame
from sondeprofile.config import PipelineConfig
from sondeprofile.models import (
    ConvectionMethod,
    ConvectionResult,
    FrameVerdict,
    NormalizedFrame,
    RawFrame,
)
from sondeprofile.storage.telemetry import TelemetryStore, decimate, profile_levels

logger = logging.getLogger(__name__)

LivePayload = Union[str, bytes, Mapping[str, Any], RawFrame]


@dataclass
class LiveUpdate:
    """Outcome of processing one live message."""

    frame: NormalizedFrame | None = None
    render_due: bool = False  # redraw cadence reached
    retire: bool = False  # burst detected, drop the live subscription


class SoundingSession:
    """All mutable state for the currently selected flight."""

    def __init__(self, config: PipelineConfig | None = None, serial: str | None = None):
        self.config = config or PipelineConfig()
        self.store = TelemetryStore()
        self.reset(serial)

    def reset(self, serial: str | None = None) -> None:
        """Discard all state and start a new session for ``serial``."""
        self.serial = serial
        self.session_id = uuid.uuid4().hex
        self.store.clear()
        self.phase = FlightPhaseDetector(self.config.flight_phase, FlightPhaseState())
        self.live_count = 0
        logger.debug("Session %s started for %s", self.session_id, serial or "-")

    @property
    def descent_cutoff(self) -> datetime | None:
        return self.phase.cutoff

    @property
    def latest_frame(self) -> NormalizedFrame | None:
        return self.store.latest

    @property
    def live_should_run(self) -> bool:
        """Whether a live subscription is still worth keeping open."""
        return self.serial is not None and self.descent_cutoff is None

    def _ingest(self, raw: RawFrame) -> NormalizedFrame | None:
        verdict = self.phase.observe(raw)
        if verdict != FrameVerdict.ASCENDING:
            return None
        frame = normalize_frame(raw, self.descent_cutoff, self.config)
        if frame is not None:
            self.store.upsert(frame)
        return frame

    def load_history(
        self, frames: Iterable[Mapping[str, Any] | RawFrame], serial: str | None = None,
    ) -> int:
        """Reset and process a chronologically ordered history batch.

        Returns the number of frames in the store afterwards.
        """
        self.reset(serial if serial is not None else self.serial)
        skipped = 0
        for record in frames:
            try:
                raw = record if isinstance(record, RawFrame) else RawFrame.model_validate(record)
            except ValidationError:
                skipped += 1
                logger.debug("Skipping malformed history frame", exc_info=True)
                continue
            self._ingest(raw)

        if skipped:
            logger.warning("Skipped %d malformed history frames", skipped)
        logger.info(
            "History loaded for %s: %d PTU frames%s",
            self.serial or "-", len(self.store),
            " (burst detected)" if self.descent_cutoff else "",
        )
        return len(self.store)

    def process_live(self, payload: LivePayload, session_id: str | None = None) -> LiveUpdate:
        """Apply one live message to this session.

        Messages tagged with another session id or another serial are ignored.
        Parse failures are logged and dropped; the subscription stays open.
        """
        if session_id is not None and session_id != self.session_id:
            logger.debug("Ignoring live message for stale session %s", session_id)
            return LiveUpdate(retire=not self.live_should_run)

        try:
            if isinstance(payload, RawFrame):
                raw = payload
            elif isinstance(payload, (str, bytes)):
                raw = RawFrame.model_validate(json.loads(payload))
            else:
                raw = RawFrame.model_validate(payload)
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
            logger.warning("Live parse error: %s", exc)
            return LiveUpdate(retire=not self.live_should_run)

        if raw.serial is not None and self.serial is not None and raw.serial != self.serial:
            logger.debug("Ignoring live frame for %s (session %s)", raw.serial, self.serial)
            return LiveUpdate(retire=not self.live_should_run)

        frame = self._ingest(raw)
        render_due = False
        if frame is not None:
            self.live_count += 1
            every = self.config.profile.live_render_every
            render_due = every > 0 and self.live_count % every == 0

        retire = not self.live_should_run
        if retire and frame is None:
            logger.info("Flight %s appears to be descending; live feed can stop", self.serial)
        return LiveUpdate(frame=frame, render_due=render_due, retire=retire)

    def profile(self) -> list[NormalizedFrame]:
        """Pressure-ordered frames down to the profile top (300 hPa)."""
        return profile_levels(
            self.store.ordered_by_pressure_descending(),
            self.config.profile.min_pressure_hpa,
        )

    def sounding(self, decimated: bool = True) -> list[NormalizedFrame]:
        """Frames for sounding display, optionally decimated for rendering."""
        frames = self.profile()
        if decimated:
            return decimate(frames, self.config.profile.decimate_factor)
        return frames

    def convection(self, method: ConvectionMethod | None = None) -> ConvectionResult:
        """Convection-height curve from the full (undecimated) profile."""
        method = method or self.config.profile.convection_method
        return estimate_convection(
            self.profile(), method, self.config.profile.min_pressure_hpa,
        )
