"""Checksum-only check for arbitrary files."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from pathlib import Path

from .common import CheckError, CheckOutcome, check_file
from .models import FileReport

_CHUNK_SIZE = 1 << 16


@dataclass(frozen=True)
class RawJob:
    """A file to checksum, with its size in bytes."""

    path: Path
    size: int


def _consume(reader) -> CheckOutcome:
    try:
        for _ in iter(partial(reader.read, _CHUNK_SIZE), b""):
            pass
    except OSError as exc:
        raise CheckError(f"Failed to read file: {exc}") from exc
    return CheckOutcome()


def check_raw(path, file_pb=None, global_pb=None) -> FileReport:
    """Read the whole file and report only its SHA-256 checksum."""
    return check_file(path, file_pb, global_pb, False, _consume)