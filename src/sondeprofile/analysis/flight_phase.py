"""Balloon burst detection over a chronologically ordered frame stream.

A sonde is considered to have burst once it has climbed for more than
``min_ascent_frames`` packets and then reported more than
``descent_run_frames`` consecutive clearly-descending packets. The timestamp
of the frame that completes that run becomes the descent cutoff; it is frozen
for the rest of the session, and every later frame is excluded from the
ascent profile.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

from sondeprofile.config import FlightPhaseConfig
from sondeprofile.models import FrameVerdict, RawFrame

logger = logging.getLogger(__name__)


@dataclass
class FlightPhaseState:
    """Counters carried from the history load into live processing."""

    ascent_count: int = 0
    descent_run: int = 0
    cutoff: datetime | None = None

    @property
    def burst_found(self) -> bool:
        return self.cutoff is not None


class FlightPhaseDetector:
    """Classifies frames one at a time and freezes the descent cutoff.

    Frames must be fed oldest first; out-of-order delivery corrupts the
    ascent/descent counters.
    """

    def __init__(
        self,
        config: FlightPhaseConfig | None = None,
        state: FlightPhaseState | None = None,
    ):
        self.config = config or FlightPhaseConfig()
        self.state = state or FlightPhaseState()

    @property
    def cutoff(self) -> datetime | None:
        return self.state.cutoff

    def observe(self, raw: RawFrame) -> FrameVerdict:
        """Update counters with one frame and return its classification.

        Only ASCENDING frames should go on to normalization.
        """
        state = self.state
        cfg = self.config
        ts = raw.timestamp

        if state.cutoff is not None and ts is not None and ts > state.cutoff:
            return FrameVerdict.POST_BURST

        v = raw.vel_v
        is_number = v is not None and math.isfinite(v)

        if is_number and v > cfg.ascent_rate_threshold:
            state.ascent_count += 1
            state.descent_run = 0
            return FrameVerdict.ASCENDING

        if (
            state.cutoff is None
            and state.ascent_count > cfg.min_ascent_frames
            and is_number
            and v < cfg.descent_rate_threshold
        ):
            state.descent_run += 1
            if state.descent_run > cfg.descent_run_frames and ts is not None:
                state.cutoff = ts
                logger.info(
                    "Burst detected after %d ascending frames, descent cutoff %s",
                    state.ascent_count, ts.isoformat(),
                )
                return FrameVerdict.BURST
            return FrameVerdict.DESCENDING

        # Somewhere between ascending and descending (ground, apogee)
        return FrameVerdict.AMBIGUOUS
