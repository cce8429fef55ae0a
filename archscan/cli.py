"""CLI entrypoints for archscan commands."""

from __future__ import annotations

import argparse
import json
import sys
import traceback
from datetime import UTC, datetime
from pathlib import Path

from .config import ConfigError, load_config
from .errors import IngestError
from .logging import configure_logging
from .pipeline import run_analysis
from .validation import validate_output_dir


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .archscan.yml (defaults to the current directory, never the input).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="archscan",
        description="Safely ingest a source archive or directory and summarize its architecture.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug-level logs (with thread names) to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a directory or .zip/.jar archive.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_config_option(analyze_parser)
    analyze_parser.add_argument("path", help="Directory or archive to analyze.")
    analyze_parser.add_argument(
        "--output",
        default=None,
        help="Directory for the JSON report (prints to stdout when omitted).",
    )
    analyze_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of analyzer threads (overrides analysis.workers).",
    )
    analyze_parser.add_argument(
        "--no-parser",
        action="store_true",
        help="Skip structured parsing and use textual scanning only.",
    )
    analyze_parser.add_argument(
        "--debug",
        action="store_true",
        help="Show tracebacks for fatal errors.",
    )

    limits_parser = subparsers.add_parser(
        "limits",
        help="Print the resource limits that would apply to a run.",
    )
    _add_verbose_option(limits_parser, suppress_default=True)
    _add_config_option(limits_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for archscan commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "analyze":
        _run_analyze(parser, args)
    elif args.command == "limits":
        try:
            config = load_config(args.config)
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")
        for name, value in config.resource_limits().describe().items():
            print(f"{name}: {value}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_analyze(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    debug = bool(args.debug)
    try:
        output_dir = validate_output_dir(args.output) if args.output is not None else None
        config = load_config(args.config)
        result = run_analysis(
            args.path,
            config=config,
            workers=args.workers,
            use_parser=not args.no_parser,
        )
    except (IngestError, ConfigError, ValueError) as exc:
        if debug:
            traceback.print_exc()
        parser.exit(1, f"archscan analyze failed: {exc}\n")
    except Exception as exc:  # pragma: no cover - unexpected failure
        if debug:
            traceback.print_exc()
        parser.exit(1, f"archscan analyze failed: {exc}\nRun with --debug for details.\n")

    report = json.dumps(result.model.to_dict(), indent=2)
    if output_dir is None:
        print(report)
        return

    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    report_path = output_dir / f"analysis-{stamp}.json"
    report_path.write_text(report + "\n", encoding="utf-8")
    print(f"Analysis written to {_relativize(report_path)}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
