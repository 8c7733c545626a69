"""Command-line interface for sipmeta: build SIP folders from a siegfried results file."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from sipmeta.assembly import (
    AgencyLoader,
    Batch,
    DisposalRuleLoader,
    ExtensionClassifier,
    GlobalAccess,
    Loader,
    PathFunc,
    SeriesLoader,
    SiegfriedLoader,
    decompress,
    index_path,
    manifest_copy,
    progress,
)
from sipmeta.assembly.batch import Action
from sipmeta.config import ConfigLoadError, ConfigValidationError, load_config
from sipmeta.config.schema import LOG_FORMATS, LOG_LEVELS
from sipmeta.observability import setup_logging, shutdown_logging
from sipmeta.ui.render import CLIRenderer, create_renderer
from sipmeta.utils.hashing import supported_algorithms

PROGRESS_EVERY: Final[int] = 1


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sipmeta",
        description=(
            "sipmeta — build SIP folders (metadata.json, manifest.json, versions/) "
            "from a siegfried results file.\n\n"
            "Examples:\n"
            "  sipmeta results.yaml --output out\n"
            "  sipmeta results.yaml --agency 15 --agency-name 'State Archives' --series 42\n"
            "  sipmeta results.json --access 3 --effect Early --execute 2030-01-01\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("results", help="siegfried results file (YAML or JSON)")
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./sipmeta.toml if present).",
    )
    parser.add_argument(
        "--blacklist",
        default=None,
        help="Comma-separated PUIDs to skip, e.g. x-fmt/111,fmt/10",
    )
    parser.add_argument("--agency", type=int, default=None, help="Agency ID, e.g. 15")
    parser.add_argument("--agency-name", default=None, help="Agency name")
    parser.add_argument("--series", type=int, default=None, help="Series ID, e.g. 15")
    parser.add_argument("--authority", default=None, help="Disposal authority, e.g. GA28")
    parser.add_argument(
        "--class", dest="disposal_class", default=None, help="Disposal class, e.g. 1.1.1"
    )
    parser.add_argument("--access", type=int, default=None, help="Access direction ID, e.g. 15")
    parser.add_argument("--effect", default=None, help="Access direction effect, e.g. Early")
    parser.add_argument(
        "--execute", default=None, help="Access rule execution date, e.g. 2015-01-31"
    )
    parser.add_argument("--output", default=None, help="Output directory (default: .)")
    parser.add_argument(
        "--content",
        default=None,
        help="Directory holding every content file (default: each file's own directory).",
    )
    parser.add_argument("--start", type=int, default=None, help="First object to write")
    parser.add_argument(
        "--sample", type=int, default=None, help="Number of objects to write (-1 for all)"
    )
    parser.add_argument(
        "--decompress",
        action="store_true",
        default=False,
        help="Expand lone zip/tar objects into a second version.",
    )
    parser.add_argument(
        "--hash",
        dest="hash_algorithm",
        choices=sorted(supported_algorithms()),
        default=None,
        help="Hash algorithm for files extracted by --decompress.",
    )
    parser.add_argument("--log-format", choices=sorted(LOG_FORMATS), default=None)
    parser.add_argument("--log-level", choices=list(LOG_LEVELS), default=None)
    parser.add_argument("--json", action="store_true", help="Emit a JSON summary")
    parser.add_argument(
        "--verbose", "-v", action="store_true", default=False, help="Show detailed output."
    )
    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, build the SIPs and return a process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    try:
        config = _load_effective_config(namespace)
        handle = setup_logging(config["logging"])
        try:
            return _cmd_build(namespace, config)
        finally:
            shutdown_logging(handle)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code


def _cmd_build(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    results_path = Path(args.results).expanduser()
    if not results_path.is_file():
        raise CLIError(f"results file not found: {results_path}", exit_code=2)

    batch = Batch.from_loaders(
        *_build_loaders(results_path, config),
        capacity=config["batch"]["capacity"],
    )

    output = config["output"]
    output_dir = Path(output["dir"])
    output_dir.mkdir(parents=True, exist_ok=True)
    written = batch.sample(
        output["sample_start"],
        output["sample_size"],
        output_dir,
        *_build_actions(args, config),
    )

    payload: dict[str, object] = {
        "command": "build",
        "results": str(results_path),
        "output": str(output_dir),
        "objects_loaded": len(batch),
        "objects_written": len(written),
    }
    if args.json:
        _emit_json(payload)
        return 0

    renderer = _get_renderer(args)
    renderer.heading("sipmeta")
    renderer.kv("Results", results_path)
    renderer.kv("Output", output_dir)
    renderer.kv("Objects loaded", len(batch))
    renderer.kv("Objects written", len(written))
    if not written:
        renderer.warning("no objects were written")
    if renderer.verbose and written:
        renderer.section("Object folders:")
        renderer.items([str(path) for path in written])
    return 0


def _build_loaders(results_path: Path, config: Mapping[str, Any]) -> list[Loader]:
    loaders: list[Loader] = [
        SiegfriedLoader(results_path, blacklist=tuple(config["identification"]["blacklist"]))
    ]
    agency = config["agency"]
    if agency["id"] > 0:
        loaders.append(AgencyLoader(agency["name"], agency["id"]))
    series = config["series"]
    if series["id"] > 0:
        loaders.append(SeriesLoader(series["id"]))
    disposal = config["disposal"]
    if disposal["authority"]:
        loaders.append(DisposalRuleLoader(disposal["authority"], disposal["class"]))
    access = config["access"]
    if access["direction"] > 0:
        loaders.append(
            GlobalAccess(
                access["direction"],
                access["description"],
                access["execute_date"],
                scope=access["scope"],
                publish=access["publish"],
            )
        )
    return loaders


def _build_actions(args: argparse.Namespace, config: Mapping[str, Any]) -> list[Action]:
    content_dir = config["output"]["content_dir"]
    path_func: PathFunc = _fixed_path(Path(content_dir)) if content_dir else index_path
    actions: list[Action] = [manifest_copy(path_func)]
    if args.decompress:
        identification = config["identification"]
        actions.append(
            decompress(
                ExtensionClassifier(identification["format_map"]),
                hash_algorithm=identification["hash_algorithm"],
            )
        )
    actions.append(progress(PROGRESS_EVERY))
    return actions


def _fixed_path(directory: Path) -> PathFunc:
    def path_func(batch: Batch, key: str) -> Path:
        return directory

    return path_func


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    try:
        return load_config(args.config_path, cli_overrides=_cli_overrides(args))
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _cli_overrides(args: argparse.Namespace) -> dict[str, object]:
    blacklist = None
    if args.blacklist is not None:
        blacklist = [item.strip() for item in args.blacklist.split(",") if item.strip()]
    return {
        "identification.blacklist": blacklist,
        "identification.hash_algorithm": args.hash_algorithm,
        "agency.id": args.agency,
        "agency.name": args.agency_name,
        "series.id": args.series,
        "disposal.authority": args.authority,
        "disposal.class": args.disposal_class,
        "access.direction": args.access,
        "access.description": args.effect,
        "access.execute_date": args.execute,
        "output.dir": args.output,
        "output.content_dir": args.content,
        "output.sample_start": args.start,
        "output.sample_size": args.sample,
        "logging.format": args.log_format,
        "logging.level": args.log_level,
    }


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(verbose=bool(getattr(args, "verbose", False)))


__all__ = ["CLIError", "build_parser", "run_cli"]
