"""Run the file checks in parallel and write the JSON Lines report."""

from __future__ import annotations

import enum
import json
import re
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Union

from tqdm import tqdm

from .bam import BamCheckJob, check_bam
from .fastq import FastqCheckJob, LengthMode, ReadLengthCheck, check_single_fastq
from .models import FileReport, PairReport
from .raw import RawJob, check_raw

Job = Union[FastqCheckJob, BamCheckJob, RawJob]

_INTEGER = re.compile(r"[+-]?[0-9]+")
_OK_MESSAGE = "✓ OK"
_ERROR_MESSAGE = "✗ ERROR"


class ResultKind(enum.Enum):
    """Which kind of check produced a result."""

    PAIRED_FASTQ = "paired_fastq"
    SINGLE_FASTQ = "single_fastq"
    BAM = "bam"
    CHECKSUM = "checksum"


@dataclass
class CheckResult:
    """The report of one job, tagged with the kind of check that made it."""

    kind: ResultKind
    report: FileReport | PairReport

    def is_error(self) -> bool:
        """True when the job found any error."""
        if isinstance(self.report, PairReport):
            return self.report.is_error()
        return not self.report.is_ok()

    def primary_path(self) -> Path:
        """The file the result is about; the first file of a pair."""
        if isinstance(self.report, PairReport):
            return self.report.fq1_report.path
        return self.report.path


class EarlyExitError(Exception):
    """A check failed while running in fail-fast mode."""

    def __init__(self, result: CheckResult, message: str | None = None):
        super().__init__(message or "A validation error occurred, exiting.")
        self.result = result


def parse_read_length(text: str) -> ReadLengthCheck:
    """Turn a read-length argument into a policy.

    Negative skips the check, zero auto-detects, positive fixes the length.
    """
    text = text.strip() if isinstance(text, str) else str(text)
    if not _INTEGER.fullmatch(text):
        raise ValueError("Invalid read length. Must be an integer.")
    value = int(text)
    if value < 0:
        return ReadLengthCheck.skip()
    if value == 0:
        return ReadLengthCheck.auto()
    return ReadLengthCheck.fixed(value)


def _length_for(value: str, path: str) -> ReadLengthCheck:
    try:
        return parse_read_length(value)
    except ValueError as exc:
        raise ValueError(
            f"Invalid read length '{value}' for file '{path}': {exc}"
        ) from exc


def _chunks(items: list, size: int) -> Iterator[tuple]:
    """Yield complete chunks of ``size`` items; a short remainder is dropped."""
    iterator = iter(items)
    return zip(*([iterator] * size))


def create_jobs(
    paired: Iterable[str],
    single: Iterable[str],
    bam: Iterable,
    raw: Iterable,
) -> tuple[list[Job], int]:
    """Build the check jobs and the total number of bytes they will read."""
    jobs: list[Job] = []
    total_bytes = 0

    for fq1, fq2, len1, len2 in _chunks(list(paired), 4):
        fq1_check = _length_for(len1, fq1)
        fq2_check = _length_for(len2, fq2)
        fq1_path, fq2_path = Path(fq1), Path(fq2)
        fq1_size = fq1_path.stat().st_size
        fq2_size = fq2_path.stat().st_size
        total_bytes += fq1_size + fq2_size
        jobs.append(
            FastqCheckJob(
                fq1=fq1_path,
                fq1_length_check=fq1_check,
                fq1_size=fq1_size,
                fq2=fq2_path,
                fq2_length_check=fq2_check,
                fq2_size=fq2_size,
            )
        )

    for fq, length in _chunks(list(single), 2):
        check = _length_for(length, fq)
        path = Path(fq)
        size = path.stat().st_size
        total_bytes += size
        jobs.append(FastqCheckJob(fq1=path, fq1_length_check=check, fq1_size=size))

    for entry in bam:
        path = Path(entry)
        size = path.stat().st_size
        total_bytes += size
        jobs.append(BamCheckJob(path=path, size=size))

    for entry in raw:
        path = Path(entry)
        try:
            size = path.stat().st_size
        except OSError as exc:
            raise OSError(f"Could not get metadata for {path}: {exc}") from exc
        total_bytes += size
        jobs.append(RawJob(path=path, size=size))

    return jobs, total_bytes


class _SharedBar:
    """Serialise updates to a progress bar shared between worker threads."""

    def __init__(self, bar: tqdm):
        self._bar = bar
        self._lock = threading.Lock()

    def update(self, count: int) -> None:
        with self._lock:
            self._bar.update(count)


def _option_repr(value) -> str:
    return "None" if value is None else f"Some({value})"


class _Runner:
    """Runs single jobs, each with its own progress bar."""

    def __init__(self, main_bar: tqdm, disable):
        self._main = _SharedBar(main_bar)
        self._disable = disable

    def _bar(self, total: int, prefix: str) -> tqdm:
        return tqdm(
            total=total,
            desc=prefix,
            unit="B",
            unit_scale=True,
            unit_divisor=1024,
            leave=False,
            disable=self._disable,
        )

    @staticmethod
    def _finish(bar: tqdm, report: FileReport) -> None:
        bar.set_postfix_str(_OK_MESSAGE if report.is_ok() else _ERROR_MESSAGE)
        bar.close()

    def _check_fastq(self, path, check, size, prefix) -> FileReport:
        bar = self._bar(size, prefix)
        report = check_single_fastq(path, check, bar, self._main)
        self._finish(bar, report)
        return report

    def process(self, job: Job) -> CheckResult:
        if isinstance(job, FastqCheckJob):
            return self._process_fastq(job)
        if isinstance(job, BamCheckJob):
            bar = self._bar(job.size, "Checking BAM")
            report = check_bam(job.path, bar, self._main)
            self._finish(bar, report)
            return CheckResult(ResultKind.BAM, report)
        bar = self._bar(job.size, "Checksum")
        report = check_raw(job.path, bar, self._main)
        self._finish(bar, report)
        return CheckResult(ResultKind.CHECKSUM, report)

    def _process_fastq(self, job: FastqCheckJob) -> CheckResult:
        fq1_report = self._check_fastq(
            job.fq1, job.fq1_length_check, job.fq1_size, "Checking R1"
        )
        if job.fq2 is None or job.fq2_size is None or job.fq2_length_check is None:
            return CheckResult(ResultKind.SINGLE_FASTQ, fq1_report)

        fq2_report = self._check_fastq(
            job.fq2, job.fq2_length_check, job.fq2_size, "Checking R2"
        )
        pair_errors = []
        stats1, stats2 = fq1_report.stats, fq2_report.stats
        if stats1 is not None and stats2 is not None:
            if stats1.num_records != stats2.num_records:
                pair_errors.append(
                    f"Mismatched read counts: {stats1.num_records} vs {stats2.num_records}"
                )
            both_auto = (
                job.fq1_length_check.mode is LengthMode.AUTO
                and job.fq2_length_check.mode is LengthMode.AUTO
            )
            if both_auto and stats1.read_length != stats2.read_length:
                pair_errors.append(
                    "Mismatched read lengths in auto-detect mode: "
                    f"{_option_repr(stats1.read_length)} vs "
                    f"{_option_repr(stats2.read_length)}"
                )
        return CheckResult(
            ResultKind.PAIRED_FASTQ,
            PairReport(fq1_report=fq1_report, fq2_report=fq2_report, pair_errors=pair_errors),
        )


def _fastq_entry(report: FileReport, pair_errors: list[str]) -> dict:
    stats = report.stats
    ok = report.is_ok() and not pair_errors
    return {
        "check_type": "fastq",
        "data": {
            "path": str(report.path),
            "status": "OK" if ok else "ERROR",
            "num_records": stats.num_records if stats else None,
            "read_length": stats.read_length if stats else None,
            "checksum": report.sha256,
            "errors": [*report.errors, *pair_errors],
            "warnings": list(report.warnings),
        },
    }


def _json_entries(result: CheckResult) -> Iterator[dict]:
    report = result.report
    if isinstance(report, PairReport):
        yield _fastq_entry(report.fq1_report, report.pair_errors)
        if report.fq2_report is not None:
            yield _fastq_entry(report.fq2_report, report.pair_errors)
        return
    status = "OK" if report.is_ok() else "ERROR"
    if result.kind is ResultKind.SINGLE_FASTQ:
        yield _fastq_entry(report, [])
    elif result.kind is ResultKind.BAM:
        yield {
            "check_type": "bam",
            "data": {
                "path": str(report.path),
                "status": status,
                "num_records": report.stats.num_records if report.stats else None,
                "checksum": report.sha256,
                "errors": list(report.errors),
                "warnings": list(report.warnings),
            },
        }
    else:
        yield {
            "check_type": "raw",
            "data": {
                "path": str(report.path),
                "status": status,
                "checksum": report.sha256,
                "errors": list(report.errors),
                "warnings": list(report.warnings),
            },
        }


def write_jsonl_report(results: Iterable[CheckResult], stream) -> None:
    """Write one JSON object per checked file to a text stream."""
    for result in results:
        for entry in _json_entries(result):
            stream.write(json.dumps(entry, ensure_ascii=False, separators=(",", ":")))
            stream.write("\n")
    stream.flush()


def _progress_disable(show_progress):
    if show_progress is None:
        return None
    return not show_progress


def run_check(
    paired,
    single,
    bam,
    raw,
    output,
    continue_on_error: bool,
    show_progress=None,
) -> None:
    """Check all given files and write a JSON Lines report to ``output``.

    In fail-fast mode the first failing job is written to the report and
    :class:`EarlyExitError` is raised.
    """
    paired, single, bam, raw = list(paired), list(single), list(bam), list(raw)
    if not (paired or single or bam or raw):
        raise ValueError(
            "No input files provided. Use --paired, --single, --bam, or --checksum-only."
        )

    jobs, total_bytes = create_jobs(paired, single, bam, raw)
    output = Path(output)
    disable = _progress_disable(show_progress)

    try:
        report_file = open(output, "w", encoding="utf-8")
    except OSError as exc:
        raise OSError(f"Failed to create report file at {output}: {exc}") from exc

    main_bar = tqdm(
        total=total_bytes,
        desc="Overall",
        unit="B",
        unit_scale=True,
        unit_divisor=1024,
        leave=False,
        disable=disable,
    )
    runner = _Runner(main_bar, disable)

    with report_file, main_bar:
        with ThreadPoolExecutor() as pool:
            futures = [pool.submit(runner.process, job) for job in jobs]
            failed = None
            if not continue_on_error:
                for future in as_completed(futures):
                    result = future.result()
                    if result.is_error():
                        failed = result
                        for other in futures:
                            other.cancel()
                        break

        if failed is not None:
            write_jsonl_report([failed], report_file)
            main_bar.set_postfix_str(f"Error found. See report: {output}")
            raise EarlyExitError(
                failed,
                f"An error occurred in {failed.primary_path()}. See report for details. "
                "Aborting due to fail-fast mode.",
            )

        results = [future.result() for future in futures]
        write_jsonl_report(results, report_file)
        num_failed = sum(1 for result in results if result.is_error())
        if num_failed:
            main_bar.set_postfix_str(
                f"Processing complete. {num_failed} pairs/files failed. See report: {output}"
            )
        else:
            main_bar.set_postfix_str(f"All checks passed! Report written to {output}")