"""CLI entry point: list sites and flights, build a sounding for one sonde."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import requests
from dotenv import load_dotenv

from sondeprofile.config import PipelineConfig, load_config
from sondeprofile.digest.text import format_convection, format_latest
from sondeprofile.fetch.sondehub import SondeHubClient
from sondeprofile.models import ConvectionMethod
from sondeprofile.pipeline import SoundingSession

logger = logging.getLogger(__name__)


def _client(config: PipelineConfig) -> SondeHubClient:
    return SondeHubClient(config.sondehub.api_base, timeout=config.sondehub.timeout)


def run_sites(config: PipelineConfig) -> None:
    """Print all SondeHub launch sites."""
    for site in _client(config).list_sites():
        print(f"  {site.id:<8} {site.name}")


def run_sondes(config: PipelineConfig, site_id: str, last: int) -> None:
    """Print recent flights at a site, newest first."""
    sondes = _client(config).list_sondes(site_id, last)
    if not sondes:
        print(f"No sondes found for site {site_id} in the selected window")
        return
    for sonde in sondes:
        print(f"  {sonde.serial} · {sonde.label}")


def run_sounding(
    config: PipelineConfig,
    serial: str | None,
    site_id: str,
    last: int,
    method: ConvectionMethod,
    skewt_path: Path | None = None,
    convection_path: Path | None = None,
) -> SoundingSession:
    """Fetch a sonde's history, build the sounding and convection estimate."""
    client = _client(config)

    if serial is None:
        sondes = client.list_sondes(site_id, last)
        if not sondes:
            print(f"No sondes found for site {site_id} in the selected window")
            sys.exit(1)
        serial = sondes[0].serial

    print(f"Sonde: {serial}")
    session = SoundingSession(config, serial)
    count = session.load_history(client.fetch_history(serial, last), serial=serial)
    if not count:
        print("No PTU frames to plot for this sonde")
        sys.exit(1)

    print(f"History loaded ({count} PTU frames)")
    if session.descent_cutoff is not None:
        print("Flight appears to be descending or ended; live feed not needed.")
    print()
    print(format_latest(session.latest_frame, serial, config.sondehub.tracker_url))
    print()

    result = session.convection(method)
    print(format_convection(result))

    if skewt_path is not None:
        try:
            from sondeprofile.digest.skewt import generate_skewt

            generate_skewt(session.sounding(), serial, skewt_path)
            print(f"\n  Skew-T saved: {skewt_path}")
        except ValueError as exc:
            print(f"\n  Skew-T skipped: {exc}")

    if convection_path is not None:
        try:
            from sondeprofile.digest.convection_plot import generate_convection_plot

            generate_convection_plot(result, convection_path, label=serial)
            print(f"  Convection plot saved: {convection_path}")
        except ValueError as exc:
            print(f"  Convection plot skipped: {exc}")

    return session


def main() -> None:
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="sondeprofile",
        description="Radiosonde soundings and thermal-top estimates from SondeHub",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Pipeline config YAML (default: env SONDEPROFILE_CONFIG or configs/default.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sites", help="List SondeHub launch sites")

    sondes_parser = subparsers.add_parser("sondes", help="List recent flights at a site")
    sondes_parser.add_argument("--site", help="Site id (default from config)")
    sondes_parser.add_argument("--last", type=int, help="Window in seconds (default from config)")

    sounding_parser = subparsers.add_parser(
        "sounding", help="Build the sounding and convection estimate for one sonde"
    )
    sounding_parser.add_argument(
        "serial", nargs="?", default=None,
        help="Sonde serial (default: newest flight at --site)",
    )
    sounding_parser.add_argument("--site", help="Site id (default from config)")
    sounding_parser.add_argument("--last", type=int, help="Window in seconds (default from config)")
    sounding_parser.add_argument(
        "--method", choices=[m.value for m in ConvectionMethod], default=None,
        help="Convection estimator (default from config: temple)",
    )
    sounding_parser.add_argument("--skewt", type=Path, help="Write a Skew-T PNG here")
    sounding_parser.add_argument(
        "--convection-plot", type=Path, help="Write the convection curve PNG here"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except FileNotFoundError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    site_id = getattr(args, "site", None) or config.sondehub.default_site
    last = getattr(args, "last", None) or config.sondehub.range_seconds

    try:
        if args.command == "sites":
            run_sites(config)
        elif args.command == "sondes":
            run_sondes(config, site_id, last)
        elif args.command == "sounding":
            method = ConvectionMethod(args.method) if args.method else config.profile.convection_method
            run_sounding(
                config, args.serial, site_id, last, method,
                skewt_path=args.skewt, convection_path=args.convection_plot,
            )
    except requests.RequestException as exc:
        logger.debug("SondeHub request failed", exc_info=True)
        print(f"Error: SondeHub request failed: {exc}")
        sys.exit(1)
