"""CLI entrypoint."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv as _load_dotenv

from school_ranker import config
from school_ranker.geo import band_label, format_distance
from school_ranker.geocoding import build_geocoder
from school_ranker.http import RequestMetrics
from school_ranker.models import Institution, ReferencePosition
from school_ranker.pipeline import RankerError, run
from school_ranker.reporting import atomic_write_text
from school_ranker.tabular import SAMPLE_CSV


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    _load_dotenv(dotenv_path=env_path, override=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rank schools by distance from a reference position")
    parser.add_argument("--input", type=str, default=None, help="Semicolon-delimited schools file")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--address", type=str, default=None, help="Reference address (geocoded)")
    group.add_argument(
        "--coords",
        nargs=2,
        type=float,
        metavar=("LAT", "LON"),
        default=None,
        help="Reference latitude and longitude",
    )
    parser.add_argument("--level", choices=config.LEVEL_FILTERS, default="all")
    parser.add_argument("--sector", choices=config.SECTOR_FILTERS, default="all")
    parser.add_argument("--out", type=str, default=None, help="Output directory")
    parser.add_argument("--no-write", action="store_true", help="Do not write output files")
    parser.add_argument("--show", type=int, default=10, help="Print the first N results (default: 10)")
    parser.add_argument("--config", type=str, default=None, help="Path to ranker_config.json")
    parser.add_argument(
        "--write-sample",
        type=str,
        default=None,
        metavar="PATH",
        help="Write the built-in sample dataset to PATH and exit",
    )
    parser.add_argument("--preflight", action="store_true", help="Run offline checks only")
    return parser.parse_args(argv)


def build_position(args: argparse.Namespace) -> Optional[ReferencePosition]:
    if args.address is not None:
        return ReferencePosition.from_address(args.address)
    if args.coords is not None:
        return ReferencePosition.from_coordinates(args.coords[0], args.coords[1])
    return None


def format_result_line(rank_number: int, inst: Institution) -> str:
    parts = [f"{rank_number:>3}. {inst.name}"]
    if inst.distance is not None:
        parts.append(f"{format_distance(inst.distance)} ({band_label(inst.distance)})")
    if inst.type:
        parts.append(inst.type)
    if inst.address:
        parts.append(inst.address)
    return " | ".join(parts)


def run_preflight(input_path: Optional[str]) -> int:
    ok = True
    print(f"Geocoder: {config.GEOCODER_URL}")
    print(f"User-Agent: {config.GEOCODER_USER_AGENT}")
    print(f"Output dir: {config.OUTPUT_DIR}")
    data_path = input_path or config.DEFAULT_DATA_PATH
    if data_path:
        exists = Path(data_path).exists()
        print(f"Data file: {data_path} (exists={exists})")
        ok = ok and exists
    else:
        print("Data file: not configured")
    print("Preflight: PASS" if ok else "Preflight: FAIL")
    return 0 if ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    args = parse_args(argv)
    config.load_ranker_config(args.config)
    config.apply_env_overrides()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.write_sample:
        atomic_write_text(args.write_sample, SAMPLE_CSV)
        print(f"Sample written to {args.write_sample}")
        return 0

    if args.preflight:
        return run_preflight(args.input)

    input_path = args.input or config.DEFAULT_DATA_PATH
    if not input_path:
        print("Missing --input (or default_data_path in ranker_config.json)", file=sys.stderr)
        return 1
    if not os.path.exists(input_path):
        print(f"Input missing: {input_path}", file=sys.stderr)
        return 1

    output_dir = args.out or config.OUTPUT_DIR
    metrics = RequestMetrics()
    try:
        position = build_position(args)
        geocoder = build_geocoder(metrics) if position is not None and position.needs_geocoding else None
        result = run(
            input_path,
            position=position,
            geocoder=geocoder,
            level=args.level,
            sector=args.sector,
            output_dir=output_dir,
            write_outputs=not args.no_write,
        )
    except (RankerError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if result.position is not None and result.position.address:
        print(f"Reference: {result.position.address}")
    for idx, inst in enumerate(result.results[: max(0, args.show)], start=1):
        print(format_result_line(idx, inst))
    print(f"{len(result.results)} of {len(result.institutions)} institutions shown")
    if not args.no_write:
        print(f"Done. Results written to {output_dir}/results.csv and {output_dir}/results.json")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
