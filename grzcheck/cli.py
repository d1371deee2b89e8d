"""Command-line entry point for checking sequencing files."""

from __future__ import annotations

import argparse
import sys
from itertools import chain
from pathlib import Path

from .checker import EarlyExitError, run_check

_DESCRIPTION = """\
Checks integrity of sequencing files (FASTQ, BAM).

Use --fastq-paired for paired-end FASTQ, --fastq-single for single-end FASTQ,
--bam for BAM files, or --raw for only calculating checksums of any file.
These flags can be used multiple times.

By default, the tool will exit immediately after the first error is found.
Use --continue-on-error to check all files regardless of errors.
"""


def _parse_bool(text: str) -> bool:
    if text == "true":
        return True
    if text == "false":
        return False
    raise argparse.ArgumentTypeError(f"invalid value '{text}': expected true or false")


def _parse_threads(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid thread count '{text}'") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"invalid thread count '{text}'")
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the command."""
    parser = argparse.ArgumentParser(
        prog="grz-check",
        description=_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--show-progress",
        type=_parse_bool,
        default=None,
        metavar="BOOL",
        help="Show progress bars during processing (true or false).",
    )
    parser.add_argument(
        "--fastq-paired",
        nargs=4,
        action="append",
        default=[],
        metavar=("FQ1_PATH", "FQ2_PATH", "FQ1_READ_LEN", "FQ2_READ_LEN"),
        help="A paired-end FASTQ sample. Read length: >0 fixed, 0 auto-detect, <0 skip.",
    )
    parser.add_argument(
        "--fastq-single",
        nargs=2,
        action="append",
        default=[],
        metavar=("FQ_PATH", "READ_LEN"),
        help="A single-end FASTQ sample. Read length: >0 fixed, 0 auto-detect, <0 skip.",
    )
    parser.add_argument(
        "--bam",
        action="append",
        default=[],
        type=Path,
        metavar="BAM_PATH",
        help="A single BAM file to validate.",
    )
    parser.add_argument(
        "--raw",
        action="append",
        default=[],
        type=Path,
        metavar="FILE_PATH",
        help="A file for which to only calculate the SHA256 checksum.",
    )
    parser.add_argument(
        "--output",
        required=True,
        type=Path,
        help="Path to write the JSON Lines report.",
    )
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Continue processing all files even if an error is found.",
    )
    parser.add_argument(
        "--threads",
        type=_parse_threads,
        default=None,
        help="Number of threads to use for processing.",
    )
    return parser


def main(argv=None) -> int:
    """Run the checks; return 0 on success and 1 on any error."""
    args = build_parser().parse_args(argv)
    try:
        run_check(
            list(chain.from_iterable(args.fastq_paired)),
            list(chain.from_iterable(args.fastq_single)),
            args.bam,
            args.raw,
            args.output,
            args.continue_on_error,
            args.show_progress,
            threads=args.threads,
        )
    except (EarlyExitError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())