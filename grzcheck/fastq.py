"""FASTQ parsing and the per-file FASTQ check."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from itertools import count
from pathlib import Path
from typing import Iterator

from .common import CheckError, CheckOutcome, check_file
from .models import FileReport, Stats

_CHUNK_SIZE = 1 << 16


class LengthMode(enum.Enum):
    """How read lengths in a FASTQ file are validated."""

    FIXED = "fixed"
    AUTO = "auto"
    SKIP = "skip"


@dataclass(frozen=True)
class ReadLengthCheck:
    """A read-length policy: an expected length, auto-detection, or none."""

    mode: LengthMode
    length: int | None = None

    @classmethod
    def fixed(cls, length: int) -> ReadLengthCheck:
        """Every read must have exactly ``length`` bases."""
        if length <= 0:
            raise ValueError(f"fixed read length must be positive, got {length}")
        return cls(LengthMode.FIXED, length)

    @classmethod
    def auto(cls) -> ReadLengthCheck:
        """Every read must have the length of the first read."""
        return cls(LengthMode.AUTO)

    @classmethod
    def skip(cls) -> ReadLengthCheck:
        """Read lengths are not checked."""
        return cls(LengthMode.SKIP)


@dataclass(frozen=True)
class FastqRecord:
    """One FASTQ record; ``name`` is the header line without its ``@``."""

    name: bytes
    sequence: bytes
    quality: bytes


class FastqParseError(Exception):
    """The FASTQ content is malformed."""


def _strip_cr(line: bytes) -> bytes:
    return line[:-1] if line.endswith(b"\r") else line


def _iter_lines(stream) -> Iterator[bytes]:
    pending = b""
    while True:
        chunk = stream.read(_CHUNK_SIZE)
        if not chunk:
            break
        lines = (pending + chunk).split(b"\n")
        pending = lines.pop()
        for line in lines:
            yield _strip_cr(line)
    if pending:
        yield _strip_cr(pending)


def iter_fastq(stream) -> Iterator[FastqRecord]:
    """Yield the records of an uncompressed FASTQ stream.

    Raises :class:`FastqParseError` on a malformed or truncated record.
    """
    lines = _iter_lines(stream)
    for header in lines:
        if not header.startswith(b"@"):
            raise FastqParseError("invalid name prefix")
        sequence = next(lines, None)
        separator = next(lines, None)
        quality = next(lines, None)
        if quality is None:
            raise FastqParseError("unexpected end of file")
        if not separator.startswith(b"+"):
            raise FastqParseError("invalid description prefix")
        if len(quality) != len(sequence):
            raise FastqParseError("sequence and quality scores length mismatch")
        yield FastqRecord(name=header[1:], sequence=sequence, quality=quality)


@dataclass(frozen=True)
class FastqCheckJob:
    """A single FASTQ file or a pair of them, with length policies and sizes."""

    fq1: Path
    fq1_length_check: ReadLengthCheck
    fq1_size: int
    fq2: Path | None = None
    fq2_length_check: ReadLengthCheck | None = None
    fq2_size: int | None = None


def _count_leniently(records: Iterator[FastqRecord]) -> int:
    """Count remaining records; a malformed record counts once and ends the count."""
    total = 0
    while True:
        try:
            next(records)
        except StopIteration:
            return total
        except FastqParseError:
            return total + 1
        total += 1


def _validate(reader, length_check: ReadLengthCheck) -> CheckOutcome:
    records = iter_fastq(reader)
    try:
        first = next(records, None)
    except FastqParseError as exc:
        raise CheckError(f"Failed to parse first record: {exc}") from exc
    if first is None:
        return CheckOutcome(errors=["File is empty. Expected at least one record."])

    read_length = len(first.sequence)
    num_reads = 1

    if length_check.mode is LengthMode.FIXED and length_check.length != read_length:
        return CheckOutcome(
            stats=Stats(num_records=num_reads, read_length=read_length),
            errors=[
                f"Provided read length ({length_check.length}) does not match "
                f"first read's length ({read_length})."
            ],
        )

    if length_check.mode is LengthMode.SKIP:
        num_reads += _count_leniently(records)
    else:
        for number in count(2):
            try:
                record = next(records)
            except StopIteration:
                break
            except FastqParseError as exc:
                raise CheckError(f"Failed to parse record #{number}: {exc}") from exc
            num_reads += 1
            if len(record.sequence) != read_length:
                return CheckOutcome(
                    stats=Stats(num_records=num_reads, read_length=read_length),
                    errors=[
                        f"Found inconsistent read length at record #{number}. "
                        f"Expected {read_length}, but got {len(record.sequence)}."
                    ],
                )

    return CheckOutcome(stats=Stats(num_records=num_reads, read_length=read_length))


def check_single_fastq(
    path, length_check: ReadLengthCheck, file_pb=None, global_pb=None
) -> FileReport:
    """Check one (possibly compressed) FASTQ file against a read-length policy."""
    return check_file(
        path, file_pb, global_pb, True, lambda reader: _validate(reader, length_check)
    )