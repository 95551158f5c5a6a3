#!/usr/bin/env python3
"""
Registry Validation Suite
=========================
Validates the DeFi JSON registries (tokens, price feeds, price sources,
curators, vaults, custom warnings and points) and repairs what can be
repaired mechanically.

Usage:
    python main.py validate [--registry NAME ...] [--no-remote] [--data-dir DIR]
    python main.py transform checksum-tokens --input tokens.json --output tokens.json
    python main.py migrate-feeds --tokens tokens.json --chainlink 1=feeds.json --output price-feeds.json
    python main.py migrate-vaults --input whitelist.json --output vaults-listing.json

Exit codes: 0 all checks passed, 1 violations found, 2 run aborted.
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from config.registries import REGISTRY_NAMES
from core.engine import ValidationEngine
from core.errors import RegistryError
from core.migration import build_token_list, migrate_feeds, migrate_vaults_whitelist
from core.transforms import TRANSFORMS, TransformReport
from ui.terminal import renderer
from utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_ABORTED = 2


def read_json(path: str | Path) -> Any:
    """
    Raises:
        RegistryError: the file is missing or not valid JSON
    """
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise RegistryError(f"File not found: {path}") from e
    except json.JSONDecodeError as e:
        raise RegistryError(f"Invalid JSON in {path}: {e}") from e


def read_json_array(path: str | Path) -> list:
    data = read_json(path)
    if not isinstance(data, list):
        raise RegistryError(f"{path} must contain a JSON array")
    return data


def write_json(path: str | Path, data: Any):
    Path(path).write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def parse_chain_file(value: str) -> tuple[int, str]:
    """CHAIN_ID=FILE argument"""
    chain_id, sep, path = value.partition("=")
    if not sep or not chain_id.strip().isdigit() or not path:
        raise argparse.ArgumentTypeError(f"expected CHAIN_ID=FILE, got {value!r}")
    return int(chain_id), path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate and repair the DeFi registries")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    commands = parser.add_subparsers(dest="command", required=True)

    validate = commands.add_parser("validate", help="Run the validation suite")
    validate.add_argument(
        "--registry", action="append", choices=REGISTRY_NAMES, dest="registries",
        help="Registry to validate (repeatable, default all)",
    )
    validate.add_argument("--no-remote", action="store_true", help="Skip every network-bound check")
    validate.add_argument("--data-dir", default=None, help="Directory holding the registry files")
    validate.add_argument("--verbose", action="store_true", help="List passing and skipped checks")

    transform = commands.add_parser("transform", help="Apply a repair transform to a registry file")
    transform.add_argument("name", choices=sorted(TRANSFORMS))
    transform.add_argument("--input", required=True)
    transform.add_argument("--output", required=True)

    feeds = commands.add_parser("migrate-feeds", help="Convert vendor feed lists to the price-feed schema")
    feeds.add_argument("--tokens", action="append", required=True, help="Token list(s) used to resolve symbols")
    feeds.add_argument("--chainlink", action="append", type=parse_chain_file, default=[], metavar="CHAIN_ID=FILE")
    feeds.add_argument("--redstone", action="append", type=parse_chain_file, default=[], metavar="CHAIN_ID=FILE")
    feeds.add_argument("--output", required=True)

    vaults = commands.add_parser("migrate-vaults", help="Convert the legacy vaults whitelist to a listing")
    vaults.add_argument("--input", required=True)
    vaults.add_argument("--output", required=True)

    return parser


# ==================== COMMANDS ====================

def run_validate(args: argparse.Namespace) -> int:
    engine = ValidationEngine(data_dir=args.data_dir)
    report = asyncio.run(engine.run(registries=args.registries, remote=not args.no_remote))
    renderer.render(report, verbose=args.verbose)
    return EXIT_OK if report.ok else EXIT_VIOLATIONS


def _finish_transform(records: list, report: TransformReport, output: str) -> int:
    write_json(output, records)
    renderer.render_transform(report)
    logger.info(f"[green]Wrote {len(records)} records to {output}[/green]")
    return EXIT_OK


def run_transform(args: argparse.Namespace) -> int:
    records = read_json_array(args.input)
    result, report = TRANSFORMS[args.name](records)
    return _finish_transform(result, report, args.output)


def run_migrate_feeds(args: argparse.Namespace) -> int:
    tokens = build_token_list(*(read_json_array(path) for path in args.tokens))
    chainlink = {chain_id: read_json_array(path) for chain_id, path in args.chainlink}
    redstone = {chain_id: read_json_array(path) for chain_id, path in args.redstone}
    result, report = migrate_feeds(tokens, chainlink=chainlink, redstone=redstone)
    return _finish_transform(result, report, args.output)


def run_migrate_vaults(args: argparse.Namespace) -> int:
    whitelist = read_json(args.input)
    if not isinstance(whitelist, dict):
        raise RegistryError(f"{args.input} must contain a JSON object")
    result, report = migrate_vaults_whitelist(whitelist)
    return _finish_transform(result, report, args.output)


COMMANDS = {
    "validate": run_validate,
    "transform": run_transform,
    "migrate-feeds": run_migrate_feeds,
    "migrate-vaults": run_migrate_vaults,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        return COMMANDS[args.command](args)
    except RegistryError as e:
        logger.error(f"[red]Aborted: {e}[/red]")
        return EXIT_ABORTED
    except KeyboardInterrupt:
        logger.info("\n[yellow]Interrupted[/yellow]")
        return EXIT_ABORTED


if __name__ == "__main__":
    sys.exit(main())
