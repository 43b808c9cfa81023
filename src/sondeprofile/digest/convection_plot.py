"""Thermal-top vs surface temperature chart."""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("agg")
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.ticker import FuncFormatter  # noqa: E402

from sondeprofile.models import ConvectionResult  # noqa: E402

logger = logging.getLogger(__name__)


def generate_convection_plot(
    result: ConvectionResult,
    output_path: Path,
    *,
    label: str | None = None,
    surface_temp_c: float | None = None,
) -> Path:
    """Plot the convection curve over the scan domain to a PNG.

    An optional surface temperature is marked with its interpolated height.
    Raises ValueError when the result has no crossings.
    """
    if not result.crossings:
        raise ValueError(result.message or "No convection crossings to plot")

    temps = [c.temp_c for c in result.crossings]
    feet = [c.feet for c in result.crossings]

    fig, ax = plt.subplots(figsize=(9, 5))
    ax.plot(temps, feet, color="#0a78d0", linewidth=2)

    ax.set_xlim(result.min_temp, result.max_temp)
    ax.set_ylim(0, result.max_feet)
    ax.xaxis.set_major_formatter(FuncFormatter(lambda v, _: f"{v:.0f}°C"))
    ax.yaxis.set_major_formatter(FuncFormatter(lambda v, _: f"{round(v / 100) / 10}k ft"))
    ax.grid(True, color="#e6edf5", linestyle="--", linewidth=0.8)
    ax.set_xlabel("Surface temperature (°C)")
    ax.set_ylabel("Altitude (ft)")

    if surface_temp_c is not None:
        top = result.at(surface_temp_c)
        if top is not None:
            ax.axvline(surface_temp_c, color="#0a78d0", linestyle=(0, (4, 3)), linewidth=1)
            ax.annotate(
                f"{surface_temp_c:.1f}°C → {round(top)} ft",
                (surface_temp_c, top), xytext=(8, -4), textcoords="offset points",
                fontsize=9, color="#333333",
            )

    title = f"Thermal tops ({result.method.value})"
    if label:
        title = f"{label}  ·  {title}"
    ax.set_title(title, fontsize=12, fontweight="bold")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150, bbox_inches="tight", facecolor="white")
    plt.close(fig)

    return output_path
