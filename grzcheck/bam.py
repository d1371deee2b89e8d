"""BAM parsing (over BGZF) and the per-file BAM check."""

from __future__ import annotations

import io
import struct
import zlib
from dataclasses import dataclass, field
from itertools import count
from pathlib import Path
from typing import Iterator

from .common import CheckError, CheckOutcome, check_file
from .models import FileReport, Stats

_BAM_MAGIC = b"BAM\x01"
_INT32 = struct.Struct("<i")
_BGZF_FIXED = struct.Struct("<BBBBIBBH")
_BGZF_TRAILER = struct.Struct("<II")
_SUBFIELD = struct.Struct("<BBH")
_RECORD_FIXED = struct.Struct("<iiBBHHHiiii")

_FLAG_SECONDARY = 0x100
_CIGAR_HARD_CLIP = 5


class BamFormatError(Exception):
    """The BAM or BGZF content is malformed."""


def _read_exact(stream, size: int) -> bytes:
    parts = []
    remaining = size
    while remaining:
        chunk = stream.read(remaining)
        if not chunk:
            break
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)


def _require(stream, size: int, what: str) -> bytes:
    data = _read_exact(stream, size)
    if len(data) < size:
        raise BamFormatError(f"unexpected end of file while reading {what}")
    return data


def _bgzf_block_size(extra: bytes) -> int:
    view = memoryview(extra)
    while len(view) >= _SUBFIELD.size:
        si1, si2, slen = _SUBFIELD.unpack_from(view)
        payload = view[_SUBFIELD.size : _SUBFIELD.size + slen]
        if (si1, si2) == (66, 67) and slen == 2 and len(payload) == 2:
            return struct.unpack("<H", payload)[0] + 1
        view = view[_SUBFIELD.size + slen :]
    raise BamFormatError("missing BGZF block size")


def _iter_bgzf_blocks(stream) -> Iterator[bytes]:
    while True:
        fixed = _read_exact(stream, _BGZF_FIXED.size)
        if not fixed:
            return
        if len(fixed) < _BGZF_FIXED.size:
            raise BamFormatError("unexpected end of file while reading BGZF header")
        id1, id2, method, flags, _mtime, _xfl, _os, xlen = _BGZF_FIXED.unpack(fixed)
        if (id1, id2) != (0x1F, 0x8B) or method != 8 or flags != 4:
            raise BamFormatError("invalid BGZF header")
        extra = _require(stream, xlen, "BGZF extra field")
        cdata_size = _bgzf_block_size(extra) - xlen - 19
        if cdata_size < 0:
            raise BamFormatError("invalid BGZF block size")
        cdata = _require(stream, cdata_size, "BGZF block data")
        crc, isize = _BGZF_TRAILER.unpack(_require(stream, 8, "BGZF trailer"))
        try:
            data = zlib.decompress(cdata, -15)
        except zlib.error as exc:
            raise BamFormatError(f"invalid BGZF block data: {exc}") from exc
        if len(data) != isize or zlib.crc32(data) != crc:
            raise BamFormatError("BGZF block checksum mismatch")
        yield data


class _BgzfReader(io.RawIOBase):
    """Decompress a BGZF stream block by block."""

    def __init__(self, inner):
        super().__init__()
        self._blocks = _iter_bgzf_blocks(inner)
        self._pending = memoryview(b"")

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            block = next(self._blocks, None)
            if block is None:
                return 0
            self._pending = memoryview(block)
        view = memoryview(buffer).cast("B")
        size = min(len(view), len(self._pending))
        view[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


@dataclass
class BamHeader:
    """The parts of a BAM header that can carry sample information."""

    text: str = ""
    reference_sequences: dict[str, int] = field(default_factory=dict)
    read_groups: list[str] = field(default_factory=list)
    programs: list[str] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True when there are no references, read groups, programs or comments."""
        return not (
            self.reference_sequences or self.read_groups or self.programs or self.comments
        )


@dataclass(frozen=True)
class BamRecord:
    """The fields of an alignment record that the check inspects.

    ``cigar`` holds the raw encoded operations (length << 4 | kind).
    """

    name: str | None
    flags: int
    cigar: tuple[int, ...] = ()

    def is_secondary(self) -> bool:
        return bool(self.flags & _FLAG_SECONDARY)

    def has_hard_clip(self) -> bool:
        return any(op & 0xF == _CIGAR_HARD_CLIP for op in self.cigar)


def _parse_header_text(text: str, binary_refs) -> BamHeader:
    header = BamHeader(text=text)
    for line in text.splitlines():
        tag, _, rest = line.partition("\t")
        if tag == "@CO":
            header.comments.append(rest)
            continue
        fields = dict(item.split(":", 1) for item in rest.split("\t") if ":" in item)
        if tag == "@SQ":
            try:
                length = int(fields.get("LN", "0"))
            except ValueError as exc:
                raise BamFormatError(f"invalid reference sequence length: {exc}") from exc
            header.reference_sequences.setdefault(fields.get("SN", ""), length)
        elif tag == "@RG":
            header.read_groups.append(fields.get("ID", ""))
        elif tag == "@PG":
            header.programs.append(fields.get("ID", ""))
    for name, length in binary_refs:
        header.reference_sequences.setdefault(name, length)
    return header


def read_bam_header(stream) -> BamHeader:
    """Read the header from a decompressed BAM stream."""
    if _require(stream, 4, "magic number") != _BAM_MAGIC:
        raise BamFormatError("invalid BAM magic number")
    (text_size,) = _INT32.unpack(_require(stream, 4, "header text length"))
    if text_size < 0:
        raise BamFormatError("invalid header text length")
    raw_text = _require(stream, text_size, "header text")
    try:
        text = raw_text.rstrip(b"\0").decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BamFormatError(f"invalid header text: {exc}") from exc

    (ref_count,) = _INT32.unpack(_require(stream, 4, "reference count"))
    if ref_count < 0:
        raise BamFormatError("invalid reference count")
    references = []
    for _ in range(ref_count):
        (name_size,) = _INT32.unpack(_require(stream, 4, "reference name length"))
        if name_size < 0:
            raise BamFormatError("invalid reference name length")
        name = _require(stream, name_size, "reference name").rstrip(b"\0")
        (length,) = _INT32.unpack(_require(stream, 4, "reference length"))
        references.append((name.decode("ascii", "replace"), length))
    return _parse_header_text(text, references)


def _parse_record(block: bytes) -> BamRecord:
    (
        _ref_id,
        _pos,
        name_size,
        _mapq,
        _bin,
        cigar_count,
        flags,
        seq_length,
        _next_ref_id,
        _next_pos,
        _tlen,
    ) = _RECORD_FIXED.unpack_from(block)
    if seq_length < 0:
        raise BamFormatError("invalid sequence length")
    name_end = _RECORD_FIXED.size + name_size
    needed = name_end + 4 * cigar_count + (seq_length + 1) // 2 + seq_length
    if needed > len(block):
        raise BamFormatError("record fields exceed record size")
    raw_name = block[_RECORD_FIXED.size : name_end].split(b"\0", 1)[0]
    name = None if raw_name in (b"", b"*") else raw_name.decode("ascii", "replace")
    cigar = struct.unpack_from(f"<{cigar_count}I", block, name_end)
    return BamRecord(name=name, flags=flags, cigar=cigar)


def iter_bam_records(stream) -> Iterator[BamRecord]:
    """Yield the alignment records following the header of a decompressed BAM stream."""
    while True:
        size_bytes = _read_exact(stream, 4)
        if not size_bytes:
            return
        if len(size_bytes) < 4:
            raise BamFormatError("unexpected end of file while reading record size")
        (block_size,) = _INT32.unpack(size_bytes)
        if block_size < _RECORD_FIXED.size:
            raise BamFormatError("invalid record size")
        yield _parse_record(_require(stream, block_size, "record"))


@dataclass(frozen=True)
class BamCheckJob:
    """A BAM file to check, with its size in bytes."""

    path: Path
    size: int


def _validate(reader) -> CheckOutcome:
    stream = io.BufferedReader(_BgzfReader(reader))
    try:
        header = read_bam_header(stream)
    except BamFormatError as exc:
        raise CheckError(f"Failed to read BAM header: {exc}") from exc

    warnings = []
    if not header.is_empty():
        warnings.append(
            "Detected a header in BAM file, ensure it contains no private information!"
        )

    num_records = 0
    secondary_count = 0
    first_secondary = None
    hard_clip_count = 0
    first_hard_clip = None

    records = iter_bam_records(stream)
    for number in count(1):
        try:
            record = next(records)
        except StopIteration:
            break
        except BamFormatError as exc:
            raise CheckError(f"Failed to parse record #{number}: {exc}") from exc
        num_records = number
        if record.is_secondary():
            secondary_count += 1
            if first_secondary is None:
                first_secondary = (number, record.name or "")
        elif record.has_hard_clip():
            hard_clip_count += 1
            if first_hard_clip is None:
                first_hard_clip = (number, record.name or "")

    if num_records == 0:
        return CheckOutcome(errors=["File is empty. Expected at least one record."])

    if first_secondary is not None:
        number, name = first_secondary
        warnings.append(
            f"File contains {secondary_count} secondary alignment(s). "
            f"First detected at record #{number} ('{name}')."
        )
    if first_hard_clip is not None:
        number, name = first_hard_clip
        warnings.append(
            f"File contains {hard_clip_count} primary alignment(s) with hard-clipped "
            f"bases. First detected at record #{number} ('{name}')."
        )

    return CheckOutcome(stats=Stats(num_records=num_records), warnings=warnings)


def check_bam(path, file_pb=None, global_pb=None) -> FileReport:
    """Check one BAM file: readable header and records, plus content warnings."""
    return check_file(path, file_pb, global_pb, False, _validate)