"""In-memory telemetry store for one flight session."""

from __future__ import annotations

import math
from typing import Sequence, TypeVar, Union

from sondeprofile.models import NormalizedFrame

T = TypeVar("T")


class TelemetryStore:
    """Normalized frames keyed by frame id.

    Re-inserting a key replaces the stored frame, so live packets that repeat
    a history frame never create duplicates.
    """

    def __init__(self):
        self._frames: dict[Union[int, str], NormalizedFrame] = {}
        self._latest: NormalizedFrame | None = None

    def __len__(self) -> int:
        return len(self._frames)

    def __contains__(self, key: object) -> bool:
        return key in self._frames

    @property
    def latest(self) -> NormalizedFrame | None:
        """Most recently upserted frame."""
        return self._latest

    def upsert(self, frame: NormalizedFrame) -> None:
        self._frames[frame.key] = frame
        self._latest = frame

    def clear(self) -> None:
        self._frames.clear()
        self._latest = None

    def ordered_by_pressure_descending(self) -> list[NormalizedFrame]:
        """Snapshot of all frames, surface (highest pressure) first."""
        return sorted(self._frames.values(), key=lambda f: f.pressure_hpa, reverse=True)


def profile_levels(
    frames: Sequence[NormalizedFrame], min_pressure_hpa: float = 300,
) -> list[NormalizedFrame]:
    """Frames with a finite pressure at or below the top of the profile."""
    return [
        f for f in frames
        if math.isfinite(f.pressure_hpa) and f.pressure_hpa >= min_pressure_hpa
    ]


def decimate(frames: Sequence[T], factor: int = 1) -> list[T]:
    """Keep every ``factor``-th element, always including the first and last.

    When the last element does not fall on the stride it takes the place of
    the final stride sample, unless that sample is the first element. That
    sample is dropped so the output stays within ceil(n / factor) points.
    """
    frames = list(frames)
    if not frames or factor <= 1:
        return frames

    kept = frames[::factor]
    if (len(frames) - 1) % factor:
        if len(kept) > 1:
            kept[-1] = frames[-1]
        else:
            kept.append(frames[-1])
    return kept
