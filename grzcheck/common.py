"""Shared machinery for opening, hashing and checking a file."""

from __future__ import annotations

import bz2
import gzip
import io
import lzma
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import zstandard

from .hashing import HashingReader
from .models import FileReport, Stats
from .progress import DualProgressReader

_GZIP_MAGIC = b"\x1f\x8b"
_BZIP2_MAGIC = b"BZh"
_XZ_MAGIC = b"\xfd7zXZ\x00"
_ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"

_READ_ERRORS = (OSError, EOFError, zlib.error, lzma.LZMAError, zstandard.ZstdError)


@dataclass
class CheckOutcome:
    """What a format-specific check found in a file."""

    stats: Stats | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class CheckError(Exception):
    """A check could not complete; the message goes into the report."""


def open_decompressed(stream):
    """Return a reader yielding the decompressed content of ``stream``.

    Gzip, bzip2, xz and zstd are recognised by their magic bytes; anything
    else is passed through unchanged.
    """
    buffered = stream if hasattr(stream, "peek") else io.BufferedReader(stream)
    head = buffered.peek(6)[:6]
    if head.startswith(_GZIP_MAGIC):
        return gzip.GzipFile(fileobj=buffered, mode="rb")
    if head.startswith(_BZIP2_MAGIC):
        return bz2.BZ2File(buffered)
    if head.startswith(_XZ_MAGIC):
        return lzma.LZMAFile(buffered)
    if head.startswith(_ZSTD_MAGIC):
        return zstandard.ZstdDecompressor().stream_reader(
            buffered, read_across_frames=True
        )
    return buffered


def check_file(
    path,
    file_pb,
    global_pb,
    decompress: bool,
    logic: Callable[[io.RawIOBase], CheckOutcome],
) -> FileReport:
    """Open ``path``, run ``logic`` over its content and build a report.

    The SHA-256 checksum covers the raw bytes read from disk. ``logic`` may
    raise :class:`CheckError` to fail the file with that message.
    """
    path = Path(path)
    if file_pb is not None:
        file_pb.set_postfix_str(path.name, refresh=False)

    try:
        handle = open(path, "rb")
    except OSError as exc:
        return FileReport.from_error(path, f"Failed to open file for reading: {exc}")

    with handle:
        hashing = HashingReader(handle)
        progress = DualProgressReader(hashing, file_pb, global_pb)
        if decompress:
            try:
                reader = open_decompressed(progress)
            except _READ_ERRORS as exc:
                return FileReport.from_error(path, f"Failed to decompress file: {exc}")
        else:
            reader = progress

        try:
            outcome = logic(reader)
        except CheckError as exc:
            return FileReport.from_error(path, str(exc))
        except _READ_ERRORS as exc:
            return FileReport.from_error(path, f"Failed to read file: {exc}")

    return FileReport(
        path=path,
        stats=outcome.stats,
        sha256=hashing.hexdigest(),
        errors=list(outcome.errors),
        warnings=list(outcome.warnings),
    )