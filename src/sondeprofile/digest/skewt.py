"""Skew-T log-P rendering of a radiosonde ascent using MetPy."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import matplotlib

matplotlib.use("agg")
import matplotlib.pyplot as plt  # noqa: E402
import metpy.calc as mpcalc  # noqa: E402
import numpy as np  # noqa: E402
from matplotlib.transforms import blended_transform_factory  # noqa: E402
from metpy.plots import SkewT  # noqa: E402
from metpy.units import units  # noqa: E402

if TYPE_CHECKING:
    from matplotlib.axes import Axes

from sondeprofile.analysis.thermodynamics import M_TO_FT, altitude_from_pressure  # noqa: E402
from sondeprofile.models import NormalizedFrame  # noqa: E402

logger = logging.getLogger(__name__)

P_BOTTOM = 1050
P_TOP = 300

_ALTITUDE_LABELS: list[int] = [925, 850, 700, 500, 400, 300]

_C = dict(
    temp="#d62728",
    dewpt="#2ca02c",
    parcel="#1f1f1f",
    barb="#555555",
)


def _draw_altitude_labels(ax: Axes, frames: Sequence[NormalizedFrame]) -> None:
    """Observed altitude (ft) at standard levels on the right edge."""
    pressures = np.array([f.pressure_hpa for f in frames])
    heights_m = np.array([
        f.altitude_m if f.altitude_m is not None else (altitude_from_pressure(f.pressure_hpa) or 0.0)
        for f in frames
    ])
    trans = blended_transform_factory(ax.transAxes, ax.transData)
    for p_hpa in _ALTITUDE_LABELS:
        if not (pressures.min() <= p_hpa <= pressures.max()):
            continue
        # np.interp needs increasing x
        alt_ft = float(np.interp(p_hpa, pressures[::-1], heights_m[::-1])) * M_TO_FT
        ax.text(
            1.02, p_hpa, f"{alt_ft:,.0f} ft", transform=trans,
            fontsize=8, va="center", ha="left", color="#777777",
        )


def generate_skewt(
    frames: Sequence[NormalizedFrame],
    label: str,
    output_path: Path,
) -> Path:
    """Plot temperature, dewpoint, surface parcel and wind barbs to a PNG.

    Args:
        frames: Pressure-ordered (surface first) sounding, usually decimated.
        label: Title label (sonde serial).
        output_path: Where to save the PNG.

    Returns:
        Path to the saved PNG.
    """
    frames = sorted(
        (f for f in frames if math.isfinite(f.pressure_hpa) and math.isfinite(f.temperature_c)),
        key=lambda f: f.pressure_hpa, reverse=True,
    )
    if len(frames) < 2:
        logger.warning("Insufficient PTU frames for Skew-T of %s", label)
        raise ValueError(f"Need at least 2 frames with pressure and temperature, got {len(frames)}")

    pressure = np.array([f.pressure_hpa for f in frames]) * units.hPa
    temperature = np.array([f.temperature_c for f in frames]) * units.degC
    dewpoint = np.array([f.dewpoint_c for f in frames]) * units.degC

    fig = plt.figure(figsize=(9, 9))
    skew = SkewT(fig, rotation=45)

    skew.plot(pressure, temperature, color=_C["temp"], linewidth=2.5, label="Temperature")
    skew.plot(pressure, dewpoint, color=_C["dewpt"], linewidth=2.5, label="Dewpoint")

    has_wind = all(f.wind_speed is not None and f.wind_direction_deg is not None for f in frames)
    if has_wind:
        speed = np.array([f.wind_speed for f in frames]) * units("m/s")
        direction = np.array([f.wind_direction_deg for f in frames]) * units.degree
        u_wind, v_wind = mpcalc.wind_components(speed, direction)
        skew.plot_barbs(pressure, u_wind.to("knot"), v_wind.to("knot"), color=_C["barb"])

    try:
        prof = mpcalc.parcel_profile(pressure, temperature[0], dewpoint[0])
        skew.plot(pressure, prof, color=_C["parcel"], linewidth=1.5,
                  linestyle="--", label="Parcel")
    except Exception:
        logger.debug("Could not compute parcel profile for %s", label)

    skew.plot_dry_adiabats(linewidth=0.5, alpha=0.25)
    skew.plot_moist_adiabats(linewidth=0.5, alpha=0.25)
    skew.plot_mixing_lines(linewidth=0.5, alpha=0.25)

    try:
        _draw_altitude_labels(skew.ax, frames)
    except Exception:
        logger.debug("Could not draw altitude labels for %s", label)

    skew.ax.set_ylim(P_BOTTOM, P_TOP)
    skew.ax.set_xlim(-50, 45)
    skew.ax.set_xlabel("Temperature (°C)")
    skew.ax.set_ylabel("Pressure (hPa)")
    skew.ax.legend(loc="upper left", fontsize=8, framealpha=0.8)

    title = label
    if frames[-1].timestamp is not None:
        title += f"  ·  {frames[-1].timestamp.strftime('%Y-%m-%d %H:%MZ')}"
    fig.suptitle(title, fontsize=14, fontweight="bold", y=0.98)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150, bbox_inches="tight", facecolor="white")
    plt.close(fig)

    return output_path
