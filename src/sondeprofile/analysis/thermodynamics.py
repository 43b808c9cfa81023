"""Thermodynamic derivations for radiosonde profiles.

Plain-number functions with no state. Out-of-domain input yields None rather
than raising, so a bad sample never stops the stream.
"""

from __future__ import annotations

import math

M_TO_FT = 3.28084
KELVIN = 273.15

# International Standard Atmosphere
G0 = 9.80665  # m/s^2
M_AIR = 0.0289644  # kg/mol
R_GAS = 8.3144598  # J/(mol·K)
LAPSE = 0.0065  # K/m
T0 = 288.15  # K
P0 = 1013.25  # hPa
MIN_ALTITUDE_M = -50.0

# Magnus constants for dewpoint inversion
MAGNUS_A = 17.27
MAGNUS_B = 237.7  # °C

KAPPA = 0.286  # R/cp
EPSILON = 0.622  # Rd/Rv

PARCEL_SEARCH_MIN_C = -80.0
PARCEL_SEARCH_MAX_C = 60.0
PARCEL_SEARCH_ITERATIONS = 30


def pressure_from_altitude(altitude_m: float) -> float | None:
    """ISA pressure (hPa) at a geometric altitude, clamped to -50 m below.

    None above the top of the ISA temperature profile (~44.3 km), where the
    base of the power goes non-positive.
    """
    h = max(altitude_m, MIN_ALTITUDE_M)
    base = 1 - LAPSE * h / T0
    if base <= 0:
        return None
    return P0 * base ** (G0 * M_AIR / (R_GAS * LAPSE))


def altitude_from_pressure(pressure_hpa: float | None) -> float | None:
    """ISA altitude (m) for a pressure, or None for non-finite/non-positive input."""
    if pressure_hpa is None or not math.isfinite(pressure_hpa) or pressure_hpa <= 0:
        return None
    ratio = (pressure_hpa / P0) ** (R_GAS * LAPSE / (G0 * M_AIR))
    return (T0 / LAPSE) * (1 - ratio)


def dewpoint_from_rh(temp_c: float, rh_pct: float | None) -> float | None:
    """Derive dewpoint from temperature and RH using the Magnus formula.

    alpha = ln(RH/100) + a*T / (b + T)
    Td = b*alpha / (a - alpha)
    """
    if rh_pct is None or rh_pct <= 0 or MAGNUS_B + temp_c == 0:
        return None
    alpha = math.log(rh_pct / 100.0) + (MAGNUS_A * temp_c) / (MAGNUS_B + temp_c)
    if alpha == MAGNUS_A:
        return None
    return (MAGNUS_B * alpha) / (MAGNUS_A - alpha)


def sat_vapor_pressure(temp_c: float) -> float:
    """Saturation vapor pressure (hPa), Bolton (1980)."""
    return 6.112 * math.exp((17.67 * temp_c) / (temp_c + 243.5))


def mixing_ratio(pressure_hpa: float, dewpoint_c: float) -> float:
    """Water vapor mixing ratio (kg/kg) at a pressure and dewpoint."""
    e = sat_vapor_pressure(dewpoint_c)
    return EPSILON * e / max(pressure_hpa - e, 1e-6)


def _lcl_temperature_k(t_k: float, td_k: float) -> float:
    # Bolton (1980) eq. 15
    return 1 / (1 / (td_k - 56) + math.log(t_k / td_k) / 800) + 56


def lcl_pressure(temp_c: float, dewpoint_c: float, pressure_hpa: float) -> float:
    """Pressure (hPa) of the lifted condensation level."""
    t = temp_c + KELVIN
    td = dewpoint_c + KELVIN
    t_lcl = _lcl_temperature_k(t, td)
    return pressure_hpa * (t_lcl / t) ** (1 / KAPPA)


def theta_e(temp_c: float, dewpoint_c: float, pressure_hpa: float) -> float:
    """Equivalent potential temperature (K), Bolton (1980)."""
    t = temp_c + KELVIN
    td = dewpoint_c + KELVIN
    w = mixing_ratio(pressure_hpa, dewpoint_c)
    t_lcl = _lcl_temperature_k(t, td)
    theta = t * (1000 / pressure_hpa) ** KAPPA
    return theta * math.exp((3.376 / t_lcl - 0.00254) * w * 1000 * (1 + 0.81 * w))


def parcel_temp_from_theta_e(thetae: float, pressure_hpa: float) -> float:
    """Temperature (°C) of a saturated parcel with the given theta-e at a pressure.

    Bisection on the moist adiabat; the parcel is taken as saturated, so
    theta-e is evaluated with dewpoint equal to temperature.
    """
    low, high = PARCEL_SEARCH_MIN_C, PARCEL_SEARCH_MAX_C
    for _ in range(PARCEL_SEARCH_ITERATIONS):
        mid = (low + high) / 2
        # theta-e rises monotonically with temperature along an isobar
        if theta_e(mid, mid, pressure_hpa) > thetae:
            high = mid
        else:
            low = mid
    return (low + high) / 2


def virtual_temperature_k(temp_c: float, mixing_ratio_kgkg: float) -> float:
    """Virtual temperature (K) from temperature and mixing ratio."""
    return (temp_c + KELVIN) * (1 + 0.61 * mixing_ratio_kgkg)
