"""Radiosonde soundings and thermal-top estimates from SondeHub telemetry."""

__version__ = "0.1.0"
