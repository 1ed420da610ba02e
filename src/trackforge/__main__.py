"""
Command-line entrypoint.

Usage:
    python -m trackforge features ./fit_files ./training_data.csv
    python -m trackforge enhance ./strava_tcx_data ./enhanced_tcx
    python -m trackforge enhance run.tcx run_enhanced.tcx --seed 7
    python -m trackforge download            # needs STRAVA_ACCESS_TOKEN

Settings come from the environment / .env (see trackforge.config) and are
read once here. Exit status is 1 only when nothing usable was produced.
"""
import argparse
import asyncio
import logging
import random
import sys
from pathlib import Path
from typing import List, Optional

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def _run_features(args: argparse.Namespace) -> int:
    from trackforge.config import get_settings
    from trackforge.features.converter import FitFeatureConverter

    settings = get_settings()
    if not args.fit_dir.is_dir():
        logger.error("FIT directory not found: %s", args.fit_dir)
        return 1

    converter = FitFeatureConverter(settings.processing_config())
    rows = converter.convert_directory(args.fit_dir, args.output_csv)
    return 0 if rows else 1


def _run_enhance(args: argparse.Namespace) -> int:
    from trackforge.config import get_settings
    from trackforge.tcx.enhancer import TcxEnhancer
    from trackforge.tcx.reader import TcxParseError

    settings = get_settings()
    enhancer = TcxEnhancer(
        speed_config=settings.speed_config(),
        arena=settings.arena_config(),
        total_distance=settings.total_distance_meters(),
        rng=random.Random(args.seed) if args.seed is not None else None,
        synthesize_speed=not args.fill_only,
    )

    if args.input.is_dir():
        written = enhancer.convert_directory(args.input, args.output)
        return 0 if written else 1

    try:
        enhancer.convert_file(args.input, args.output)
    except TcxParseError as exc:
        logger.error("Could not enhance %s: %s", exc.source, exc)
        return 1
    logger.info("Wrote %s", args.output)
    return 0


async def _run_download(args: argparse.Namespace) -> int:
    from trackforge.config import get_settings
    from trackforge.strava.client import StravaClient

    settings = get_settings()
    if not settings.strava_access_token:
        logger.error("STRAVA_ACCESS_TOKEN is not set.")
        return 1

    output_dir = args.output_dir or Path(settings.strava_tcx_output_dir)
    client = StravaClient(settings.strava_access_token)
    summary = await client.download_all_tcx(output_dir, activity_type=args.activity_type)
    return 0 if summary.succeeded else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trackforge")
    commands = parser.add_subparsers(dest="command", required=True)

    features = commands.add_parser("features", help="FIT files → one feature CSV")
    features.add_argument("fit_dir", type=Path)
    features.add_argument("output_csv", type=Path)

    enhance = commands.add_parser("enhance", help="Rebuild TCX files with synthesized tracks")
    enhance.add_argument("input", type=Path, help="a .tcx file or a directory of them")
    enhance.add_argument("output", type=Path, help="output file, or directory when input is one")
    enhance.add_argument("--seed", type=int, default=None, help="seed for reproducible output")
    enhance.add_argument(
        "--fill-only", action="store_true",
        help="only fill missing fields; no HR speed model or distance rescaling",
    )

    download = commands.add_parser("download", help="Download TCX exports from Strava")
    download.add_argument("--output-dir", type=Path, default=None)
    download.add_argument("--activity-type", default="Run")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "features":
        return _run_features(args)
    if args.command == "enhance":
        return _run_enhance(args)
    return asyncio.run(_run_download(args))


if __name__ == "__main__":
    sys.exit(main())
