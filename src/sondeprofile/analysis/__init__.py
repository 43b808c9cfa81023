"""Telemetry analysis — normalization, burst detection, thermodynamics, convection.

Pure functions and small state machines over plain numbers; no I/O.
"""
