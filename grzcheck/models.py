"""Result records produced by the file checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Stats:
    """Record count and, where known, the read length of a checked file."""

    num_records: int
    read_length: int | None = None


@dataclass
class FileReport:
    """Outcome of checking one file."""

    path: Path
    stats: Stats | None = None
    sha256: str | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    @classmethod
    def from_error(cls, path, error: str) -> FileReport:
        """Build a report for a file whose check failed with a single error."""
        return cls(path=path, errors=[error])

    def is_ok(self) -> bool:
        """True when the check recorded no errors."""
        return not self.errors


@dataclass
class PairReport:
    """Outcome of checking a pair of FASTQ files, plus errors about the pair."""

    fq1_report: FileReport
    fq2_report: FileReport | None = None
    pair_errors: list[str] = field(default_factory=list)

    def is_error(self) -> bool:
        """True when either file or the pairing itself has an error."""
        return (
            not self.fq1_report.is_ok()
            or bool(self.pair_errors)
            or (self.fq2_report is not None and not self.fq2_report.is_ok())
        )