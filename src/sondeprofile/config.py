"""Pipeline configuration schema and YAML loading."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel

from sondeprofile.models import ConvectionMethod

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "configs"


class SondeHubConfig(BaseModel):
    """SondeHub endpoints and fetch defaults."""

    api_base: str = "https://api.v2.sondehub.org"
    tracker_url: str = "https://sondehub.org"
    timeout: int = 30
    default_site: str = "94672"
    range_seconds: int = 43200


class FlightPhaseConfig(BaseModel):
    """Burst detection thresholds."""

    ascent_rate_threshold: float = 3.5  # m/s
    min_ascent_frames: int = 300
    descent_rate_threshold: float = -1.0  # m/s
    descent_run_frames: int = 10


class QualityConfig(BaseModel):
    """Sensor plausibility limits applied during normalization."""

    min_humidity_pct: float = 0.5
    min_temperature_c: float = -272.0


class ProfileConfig(BaseModel):
    """Sounding extraction and rendering cadence."""

    min_pressure_hpa: float = 300
    decimate_factor: int = 25
    live_render_every: int = 30
    convection_method: ConvectionMethod = ConvectionMethod.TEMPLE


class PipelineConfig(BaseModel):
    """Top-level configuration."""

    sondehub: SondeHubConfig = SondeHubConfig()
    flight_phase: FlightPhaseConfig = FlightPhaseConfig()
    quality: QualityConfig = QualityConfig()
    profile: ProfileConfig = ProfileConfig()


def load_config(path: Path | str | None = None) -> PipelineConfig:
    """Load pipeline configuration from YAML.

    Resolution order:
    1. Explicit path parameter
    2. SONDEPROFILE_CONFIG environment variable
    3. configs/default.yaml

    Sections or keys missing from the file keep their defaults.
    """
    config_path = Path(
        path or os.environ.get("SONDEPROFILE_CONFIG") or CONFIG_DIR / "default.yaml"
    )
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return PipelineConfig.model_validate(data)
