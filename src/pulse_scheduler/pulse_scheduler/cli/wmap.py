# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""``pulse-wmap``: inspect, validate and convert workflow map files."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError
from rich.console import Console

from pulse_scheduler.config import load_and_validate_config
from pulse_scheduler.logconfig import configure_logging
from pulse_scheduler.wmap import WorkflowMap, WorkflowMapError, dumps, loads, sample_workflow_map

from .errors import show_error, show_success

LOGGER = logging.getLogger(__name__)

console = Console()

FORMATS = ["json", "yaml"]
STDIN = "-"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for workflow map commands."""
    parser = argparse.ArgumentParser(
        description="Workflow map tools",
        prog="pulse-wmap",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level (default: PULSE_WMAP_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(
        dest="action",
        help="Action to perform",
        required=True,
    )

    render_parser = subparsers.add_parser(
        "render",
        help="Print the human-readable rendering of a workflow map",
    )
    render_parser.add_argument("path", help="Workflow map file, or '-' for stdin")
    _add_input_format(render_parser)

    validate_parser = subparsers.add_parser(
        "validate",
        help="Check that workflow map files decode cleanly",
        description=(
            "Decode each workflow map file and report malformed content, "
            "wrong field types and invalid metric namespaces."
        ),
    )
    validate_parser.add_argument("paths", nargs="+", help="Workflow map files")
    _add_input_format(validate_parser)
    validate_parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only output errors",
    )

    convert_parser = subparsers.add_parser(
        "convert",
        help="Re-serialize a workflow map as JSON or YAML",
    )
    convert_parser.add_argument("path", help="Workflow map file, or '-' for stdin")
    _add_input_format(convert_parser)
    convert_parser.add_argument(
        "--to",
        choices=FORMATS,
        default=None,
        help="Output format (default: PULSE_WMAP_OUTPUT_FORMAT or yaml)",
    )

    sample_parser = subparsers.add_parser("sample", help="Print a sample workflow map")
    sample_parser.add_argument(
        "--format",
        choices=FORMATS,
        default=None,
        help="Output format (default: PULSE_WMAP_OUTPUT_FORMAT or yaml)",
    )

    return parser


def _add_input_format(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--input-format",
        choices=FORMATS,
        default=None,
        help="Input format (default: json for *.json files, yaml otherwise)",
    )


def detect_format(path: str) -> str:
    return "json" if Path(path).suffix.lower() == ".json" else "yaml"


def read_source(path: str, input_format: Optional[str] = None) -> Tuple[bytes, str]:
    """Return the raw payload at *path* and the format to decode it with."""
    if path == STDIN:
        return sys.stdin.buffer.read(), input_format or "yaml"
    return Path(path).read_bytes(), input_format or detect_format(path)


def emit(text: str):
    # rich expands tabs, which would alter rendered maps
    sys.stdout.write(text)
    sys.stdout.flush()


def load_map(path: str, input_format: Optional[str] = None) -> WorkflowMap:
    payload, fmt = read_source(path, input_format)
    LOGGER.debug("Decoding %s as %s", path, fmt)
    return loads(payload, fmt)


def cmd_render(args: argparse.Namespace) -> int:
    try:
        wmap = load_map(args.path, args.input_format)
    except (OSError, WorkflowMapError) as e:
        show_error(f"Cannot render {args.path}", e)
        return 1
    emit(wmap.render())
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    failed = 0
    for path in args.paths:
        try:
            load_map(path, args.input_format)
        except (OSError, WorkflowMapError) as e:
            failed += 1
            show_error(f"Invalid workflow map: {path}", e, source=path)
            continue
        if not args.quiet:
            show_success(f"{path}: valid")

    if failed:
        console.print(
            f"\nValidation complete: [red]{failed} of {len(args.paths)} "
            f"file{'s' if len(args.paths) != 1 else ''} invalid[/red]"
        )
        return 1
    return 0


def cmd_convert(args: argparse.Namespace, output_format: str, json_indent: int) -> int:
    try:
        wmap = load_map(args.path, args.input_format)
        text = dumps(wmap, args.to or output_format, indent=json_indent)
    except (OSError, WorkflowMapError) as e:
        show_error(f"Cannot convert {args.path}", e)
        return 1
    emit(text + "\n")
    return 0


def cmd_sample(args: argparse.Namespace, output_format: str, json_indent: int) -> int:
    emit(dumps(sample_workflow_map(), args.format or output_format, indent=json_indent) + "\n")
    return 0


def dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate command handler."""
    try:
        cfg = load_and_validate_config()
    except ValidationError as e:
        show_error("Invalid PULSE_WMAP_* configuration", e)
        return 1
    configure_logging(args.log_level or cfg.log_level)

    if args.action == "render":
        return cmd_render(args)
    if args.action == "validate":
        return cmd_validate(args)
    if args.action == "convert":
        return cmd_convert(args, cfg.output_format, cfg.json_indent)
    if args.action == "sample":
        return cmd_sample(args, cfg.output_format, cfg.json_indent)
    console.print(f"[red]Unknown action: {args.action}[/red]")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for ``pulse-wmap``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    return dispatch(args)


if __name__ == "__main__":
    sys.exit(main())
