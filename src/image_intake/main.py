"""Main module for the image intake CLI."""

import sys
import json
import argparse
from typing import List, Optional

from . import __version__
from .core import (
    BatchSizeExceeded,
    ConfigurationError,
    ImageIntakeError,
    ImageFormat,
    IntakeConfig,
    PipelineFactory,
    ProgressEvent,
    get_logger,
    read_orientation,
    sources_from_paths,
    with_error_handling,
)
from .core.error_handling import format_file_size
from .core.logging_config import set_debug_logging

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_ITEM_FAILURES = 2


def build_parser() -> argparse.ArgumentParser:
    """
    Build the ``image-intake`` argument parser.

    Returns:
        An ``ArgumentParser`` with ``process``, ``inspect`` and ``version``
        subcommands.
    """
    parser = argparse.ArgumentParser(
        prog="image-intake",
        description="Image intake - validate, orient and optimize image uploads",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate and optimize a batch with default settings
  image-intake process photo1.jpg photo2.png

  # Smaller output, forced to WebP
  image-intake process *.jpg --max-dimension 1024 --quality 0.7 --format webp

  # Show the camera orientation recorded in a JPEG
  image-intake inspect photo1.jpg
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    process_parser = subparsers.add_parser(
        "process", help="Run files through the intake pipeline and report outcomes"
    )
    process_parser.add_argument("files", nargs="+", help="Image files to process")
    process_parser.add_argument(
        "--max-dimension",
        type=int,
        default=None,
        help="Longest side of the output in pixels (default: 2000)",
    )
    process_parser.add_argument(
        "--quality",
        type=float,
        default=None,
        help="Lossy quality between 0 and 1 (default: 0.85)",
    )
    process_parser.add_argument(
        "--format",
        type=str,
        default=None,
        choices=[fmt.value for fmt in ImageFormat],
        help="Output format (default: same kind as the input)",
    )
    process_parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    process_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    inspect_parser = subparsers.add_parser(
        "inspect", help="Print EXIF orientation metadata for JPEG files"
    )
    inspect_parser.add_argument("files", nargs="+", help="Image files to inspect")

    subparsers.add_parser("version", help="Show version information")

    return parser


def run_process(args: argparse.Namespace) -> int:
    """Run the ``process`` subcommand and return the exit code."""
    logger = get_logger("cli")

    config = IntakeConfig.create(
        max_dimension=args.max_dimension,
        quality=args.quality,
        output_format=args.format,
        debug=args.debug,
    )
    if config.debug:
        set_debug_logging(True)

    sources = sources_from_paths(args.files)
    orchestrator = PipelineFactory.create_orchestrator(config=config)

    def on_progress(event: ProgressEvent) -> None:
        logger.debug(f"[{event.index + 1}/{event.total}] {event.name}: {event.phase.value}")

    try:
        report = orchestrator.process(sources, on_progress=on_progress)
    except BatchSizeExceeded as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_REJECTED

    if args.json:
        payload = report.model_dump(
            mode="json", exclude={"outcomes": {"__all__": {"encoded": {"data"}}}}
        )
        print(json.dumps(payload, indent=2))
    else:
        for outcome in report.outcomes:
            if outcome.success and outcome.encoded is not None:
                encoded = outcome.encoded
                print(
                    f"OK    {outcome.name}: {encoded.width}x{encoded.height} {encoded.format.value}, "
                    f"{format_file_size(encoded.original_size)} -> {format_file_size(encoded.encoded_size)}"
                )
            else:
                detail = ""
                validation = outcome.validation
                if validation is not None and not validation.valid:
                    declared = validation.content_type or "unknown type"
                    detail = f" [{declared}, {format_file_size(validation.size)}]"
                print(f"FAIL  {outcome.name}: {outcome.error}{detail}")
        print(
            f"{report.success_count} succeeded, {report.failure_count} failed, "
            f"{report.total_count} total"
        )

    return EXIT_ITEM_FAILURES if report.failure_count else EXIT_OK


@with_error_handling
def run_inspect(args: argparse.Namespace) -> int:
    """Run the ``inspect`` subcommand and return the exit code."""
    for source in sources_from_paths(args.files):
        metadata = read_orientation(source.read_bytes())
        if metadata is None:
            print(f"{source.name}: no EXIF orientation data")
            continue
        fields = [f"orientation={metadata.orientation}"]
        if metadata.make:
            fields.append(f"make={metadata.make}")
        if metadata.model:
            fields.append(f"model={metadata.model}")
        if metadata.captured_at:
            fields.append(f"captured_at={metadata.captured_at}")
        print(f"{source.name}: {' '.join(fields)}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the ``image-intake`` command-line interface.

    Parses arguments, dispatches to the selected subcommand and exits with
    its status code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "process":
        try:
            sys.exit(run_process(args))
        except ConfigurationError as e:
            print(f"Invalid configuration: {e}", file=sys.stderr)
            sys.exit(EXIT_REJECTED)
        except OSError as e:
            print(f"Cannot read input: {e}", file=sys.stderr)
            sys.exit(EXIT_REJECTED)

    elif args.command == "inspect":
        try:
            sys.exit(run_inspect(args))
        except ImageIntakeError as e:
            print(f"Cannot read input: {e}", file=sys.stderr)
            sys.exit(EXIT_REJECTED)

    elif args.command == "version":
        print("Image Intake CLI")
        print(f"Version {__version__}")
        print("Validation, EXIF orientation correction and optimization for image uploads")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
