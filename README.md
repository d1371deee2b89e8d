# grzcheck

Checks the integrity of sequencing files and records a SHA-256 checksum
for each one. It reads:

- **paired-end FASTQ**: two files per sample, each with its own read-length setting;
- **single-end FASTQ**: one file with its read-length setting;
- **BAM**: the BGZF-compressed binary alignment format;
- **any other file**: only the checksum is computed.

FASTQ files may be plain text or compressed with gzip, bzip2, xz or zstd.
The compression is detected from the file's magic bytes. The checksum
always covers the bytes as stored on disk, not the decompressed content.

Results go to a JSON Lines report with one line per file checked.

## Installation

```
pip install .
```

## Command line

```
grz-check --output report.jsonl \
    --fastq-paired sample_R1.fastq.gz sample_R2.fastq.gz 150 150 \
    --fastq-single other.fastq.gz 0 \
    --bam reads.bam \
    --raw metadata.json
```

Each input option may be given more than once.

Options:

- `--output PATH` (required): where to write the JSON Lines report.
- `--fastq-paired FQ1_PATH FQ2_PATH FQ1_READ_LEN FQ2_READ_LEN`: a paired-end sample.
- `--fastq-single FQ_PATH READ_LEN`: a single-end sample.
- `--bam BAM_PATH`: a BAM file to validate.
- `--raw FILE_PATH`: a file to checksum only.
- `--continue-on-error`: check every file even when errors are found.
- `--show-progress true|false`: turn progress bars on or off. When left
  out, progress bars are shown only on a terminal.
- `--threads N`: a non-negative integer, handed on to `run_check` as `threads`.

On failure the command prints `Error: <message>` to standard error and
exits with status 1.

### Read length

| value | meaning |
|-------|---------|
| `> 0` | every read must have exactly this length |
| `0`   | auto-detect: every read must have the first read's length |
| `< 0` | no length check; the reads are only counted |

For a pair, both files must have the same number of records. If both
files use auto-detect, they must also have the same read length.

### Fail-fast mode

Without `--continue-on-error`, the run stops at the first job that fails.
Only that job's result is written to the report, and
`grzcheck.checker.EarlyExitError` is raised (the command exits with 1).

### Report format

Each line is a JSON object:

```json
{"check_type":"fastq","data":{"path":"...","status":"OK","num_records":2,"read_length":4,"checksum":"<sha256>","errors":[],"warnings":[]}}
```

`check_type` is `fastq`, `bam` or `raw`:

- `bam` entries have no `read_length`.
- `raw` entries have only `path`, `status`, `checksum`, `errors` and `warnings`.
- For a pair, errors about the pair are added to the entries of both files,
  and both are marked `ERROR`.

A file with no records fails with `File is empty. Expected at least one
record.` A BAM file still passes when it has a header, secondary
alignments or hard-clipped primary alignments, but its entry carries a
warning for each of these.

## Library use

```python
from pathlib import Path
from grzcheck.checker import run_check

run_check(
    paired=["r1.fastq.gz", "r2.fastq.gz", "4", "4"],
    single=[],
    bam=[],
    raw=[Path("notes.txt")],
    output=Path("report.jsonl"),
    continue_on_error=True,
    show_progress=False,
)
```

Single files can be checked directly; each call returns a
`grzcheck.models.FileReport` with `path`, `stats`, `sha256`, `errors`
and `warnings`:

```python
from grzcheck.bam import check_bam
from grzcheck.fastq import ReadLengthCheck, check_single_fastq
from grzcheck.raw import check_raw

report = check_single_fastq("reads.fastq.gz", ReadLengthCheck.auto())
print(report.is_ok(), report.stats, report.sha256)
```

`ReadLengthCheck.fixed(n)`, `ReadLengthCheck.auto()` and
`ReadLengthCheck.skip()` select the length policy. The parsers are
available too: `grzcheck.fastq.iter_fastq` yields `FastqRecord`s from an
uncompressed stream, and `grzcheck.bam.read_bam_header` and
`grzcheck.bam.iter_bam_records` read a decompressed BAM stream.

## What it does not do

- `run_check` has no setting for the number of workers; files are
  checked on a thread pool of the default size.
- BAM files are only read sequentially; indexes, sorting and reference
  sequences are not checked.