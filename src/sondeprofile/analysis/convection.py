"""Thermal-top estimates as a function of surface temperature.

Two estimators over a surface-first profile limited to 300 hPa and below:

- parcel: lift a surface parcel (observed surface moisture, varied
  temperature) along the dry adiabat to the LCL and the moist adiabat above,
  and report where its virtual temperature first drops to the environment's.
- temple: Peter Temple's graphical method, long used by glider pilots. Works
  on temperature/altitude pairs only and projects the dry adiabat
  (3 °C per 1000 ft) through the profile.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np

from sondeprofile.analysis.thermodynamics import (
    KAPPA,
    KELVIN,
    M_TO_FT,
    altitude_from_pressure,
    lcl_pressure,
    mixing_ratio,
    parcel_temp_from_theta_e,
    theta_e,
    virtual_temperature_k,
)
from sondeprofile.models import (
    ConvectionCrossing,
    ConvectionMethod,
    ConvectionResult,
    NormalizedFrame,
)
from sondeprofile.storage.telemetry import profile_levels

logger = logging.getLogger(__name__)

MIN_SURFACE_TEMP_C = 0
MAX_SURFACE_TEMP_C = 50
MAX_FEET = 20000

INSUFFICIENT_DATA = "Insufficient data for convection estimate"
NO_INTERSECTION = "No intersection found across temperature range"

# Temple method constants
TEMPLE_F = 0.9999955
TEMPLE_DRY_LAPSE_PER_FT = 0.003


def _level_altitude_m(frame: NormalizedFrame) -> float:
    """Sensor altitude, else ISA altitude from pressure, else 0."""
    if frame.altitude_m is not None and math.isfinite(frame.altitude_m):
        return frame.altitude_m
    return altitude_from_pressure(frame.pressure_hpa) or 0.0


def _surface_first(
    frames: Sequence[NormalizedFrame], min_pressure_hpa: float,
) -> list[NormalizedFrame]:
    levels = profile_levels(frames, min_pressure_hpa)
    levels.sort(key=lambda f: f.pressure_hpa, reverse=True)
    return levels


def _result(method: ConvectionMethod, crossings: list[ConvectionCrossing]) -> ConvectionResult:
    return ConvectionResult(
        method=method,
        crossings=crossings,
        min_temp=MIN_SURFACE_TEMP_C,
        max_temp=MAX_SURFACE_TEMP_C,
        max_feet=MAX_FEET,
        message=None if crossings else NO_INTERSECTION,
    )


def _insufficient(method: ConvectionMethod) -> ConvectionResult:
    return ConvectionResult(
        method=method,
        min_temp=MIN_SURFACE_TEMP_C,
        max_temp=MAX_SURFACE_TEMP_C,
        max_feet=MAX_FEET,
        message=INSUFFICIENT_DATA,
    )


def parcel_crossings(
    frames: Sequence[NormalizedFrame], min_pressure_hpa: float = 300,
) -> ConvectionResult:
    """Parcel/virtual-temperature intersection for surface temps 0..50 °C.

    Surface moisture is held at the observed dewpoint; only the surface
    temperature is swept. Temperatures with no positive-to-non-positive
    buoyancy change get no crossing.
    """
    env = _surface_first(frames, min_pressure_hpa)
    if not env:
        return _insufficient(ConvectionMethod.PARCEL)

    sfc = env[0]
    if not (math.isfinite(sfc.temperature_c) and math.isfinite(sfc.dewpoint_c)):
        return _insufficient(ConvectionMethod.PARCEL)

    # Environment virtual temperature and altitude per level
    env_tv: list[float] = []
    env_alt: list[float] = []
    for lvl in env:
        w_env = (
            mixing_ratio(lvl.pressure_hpa, lvl.dewpoint_c)
            if math.isfinite(lvl.dewpoint_c) else 0.0
        )
        env_tv.append(virtual_temperature_k(lvl.temperature_c, w_env))
        env_alt.append(_level_altitude_m(lvl))

    p_sfc = sfc.pressure_hpa
    w_sfc = mixing_ratio(p_sfc, sfc.dewpoint_c)
    crossings: list[ConvectionCrossing] = []

    for t in range(MIN_SURFACE_TEMP_C, MAX_SURFACE_TEMP_C + 1):
        thetae = theta_e(t, sfc.dewpoint_c, p_sfc)
        p_lcl = lcl_pressure(t, sfc.dewpoint_c, p_sfc)

        last_diff: float | None = None
        last_alt = 0.0
        crossing_ft: float | None = None
        for lvl, tv_env, alt in zip(env, env_tv, env_alt):
            if lvl.pressure_hpa >= p_lcl:
                parcel_t = (t + KELVIN) * (lvl.pressure_hpa / p_sfc) ** KAPPA - KELVIN
                w_parcel = w_sfc
            else:
                parcel_t = parcel_temp_from_theta_e(thetae, lvl.pressure_hpa)
                w_parcel = mixing_ratio(lvl.pressure_hpa, parcel_t)

            diff = virtual_temperature_k(parcel_t, w_parcel) - tv_env
            if last_diff is not None and last_diff > 0 and diff <= 0:
                frac = last_diff / (last_diff - diff)
                crossing_ft = (last_alt + frac * (alt - last_alt)) * M_TO_FT
                break
            last_diff, last_alt = diff, alt

        if crossing_ft is not None:
            crossings.append(ConvectionCrossing(temp_c=t, feet=crossing_ft))

    logger.debug("Parcel method: %d crossings over %d levels", len(crossings), len(env))
    return _result(ConvectionMethod.PARCEL, crossings)


def temple_crossings(
    frames: Sequence[NormalizedFrame], min_pressure_hpa: float = 300,
) -> ConvectionResult:
    """Temple graphical method for surface temps 1..50 °C.

    For each profile segment the dry-adiabat-adjusted temperature
    d = f*(T + 0.003*h) is mapped linearly to height; a surface temperature
    whose f*temp falls within the segment gets height f*l. Segments are
    scanned from the surface up and later matches overwrite earlier ones, so
    the highest matching segment wins.
    """
    profile = [
        (lvl.temperature_c, _level_altitude_m(lvl) * M_TO_FT)
        for lvl in _surface_first(frames, min_pressure_hpa)
    ]
    profile = [(t, h) for t, h in profile if math.isfinite(t) and math.isfinite(h)]
    if len(profile) < 2:
        return _insufficient(ConvectionMethod.TEMPLE)

    f = TEMPLE_F
    heights = np.zeros(MAX_SURFACE_TEMP_C + 1)

    for (t_prev, h_prev), (t, h) in zip(profile, profile[1:]):
        d1 = f * (t_prev + TEMPLE_DRY_LAPSE_PER_FT * h_prev)
        l1 = h_prev / f
        d2 = f * (t + TEMPLE_DRY_LAPSE_PER_FT * h)
        l2 = h / f
        if d2 == d1:
            continue
        m = (l2 - l1) / (d2 - d1)
        for temp in range(MAX_SURFACE_TEMP_C, 0, -1):
            l = m * f * temp + l1 - m * d1  # noqa: E741
            if l1 <= l <= l2:
                heights[temp] = f * l

    crossings = [
        ConvectionCrossing(temp_c=temp, feet=float(feet))
        for temp, feet in enumerate(heights)
        if math.isfinite(feet) and 0 < feet <= MAX_FEET
    ]
    logger.debug("Temple method: %d crossings over %d levels", len(crossings), len(profile))
    return _result(ConvectionMethod.TEMPLE, crossings)


def estimate_convection(
    frames: Sequence[NormalizedFrame],
    method: ConvectionMethod = ConvectionMethod.TEMPLE,
    min_pressure_hpa: float = 300,
) -> ConvectionResult:
    """Run the selected convection-height estimator."""
    if method == ConvectionMethod.PARCEL:
        return parcel_crossings(frames, min_pressure_hpa)
    return temple_crossings(frames, min_pressure_hpa)
