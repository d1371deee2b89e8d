import gzip
import json

import pytest

from grzcheck.cli import build_parser, main

EXPECTED_CHECKSUM = "cf57fcf9d6d7fb8fd7d8c30527c8f51026aa1d99ad77cc769dd0c757d4fe8667"


def _gz(path, content):
    with gzip.open(path, "wb") as handle:
        handle.write(content.encode())


def _records(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


def test_raw_checksum_via_command(tmp_path):
    source = tmp_path / "raw.txt"
    source.write_text("some file contents")
    output = tmp_path / "report.jsonl"

    code = main(["--raw", str(source), "--output", str(output), "--show-progress", "false"])

    assert code == 0
    records = _records(output)
    assert len(records) == 1
    assert records[0]["data"]["checksum"] == EXPECTED_CHECKSUM


def test_paired_and_single_flags_are_combined(tmp_path):
    fastq = "@SEQ1\nACGT\n+\nFFFF\n@SEQ2\nTGCA\n+\nFFFF\n"
    for name in ("r1.fastq.gz", "r2.fastq.gz", "s.fastq.gz"):
        _gz(tmp_path / name, fastq)
    output = tmp_path / "report.jsonl"

    code = main(
        [
            "--fastq-paired", str(tmp_path / "r1.fastq.gz"), str(tmp_path / "r2.fastq.gz"), "4", "4",
            "--fastq-single", str(tmp_path / "s.fastq.gz"), "0",
            "--output", str(output),
            "--show-progress", "false",
            "--threads", "2",
        ]
    )

    assert code == 0
    records = _records(output)
    assert len(records) == 3
    assert {r["data"]["status"] for r in records} == {"OK"}
    assert {r["data"]["num_records"] for r in records} == {2}


def test_parser_collects_repeated_flags():
    args = build_parser().parse_args(
        ["--bam", "a.bam", "--bam", "b.bam", "--output", "o", "--show-progress", "true"]
    )
    assert [str(p) for p in args.bam] == ["a.bam", "b.bam"]
    assert args.show_progress is True
    assert args.continue_on_error is False


def test_no_inputs_is_an_error(tmp_path, capsys):
    code = main(["--output", str(tmp_path / "out.jsonl")])
    assert code == 1
    assert "No input files provided" in capsys.readouterr().err


def test_output_is_required():
    with pytest.raises(SystemExit) as info:
        main(["--raw", "x"])
    assert info.value.code == 2


def test_invalid_show_progress_value_is_rejected(tmp_path):
    with pytest.raises(SystemExit) as info:
        main(["--raw", "x", "--output", str(tmp_path / "o"), "--show-progress", "maybe"])
    assert info.value.code == 2


def test_fail_fast_error_returns_one(tmp_path, capsys):
    bad = tmp_path / "badlen.fastq.gz"
    _gz(bad, "@SEQ1\nACGT\n+\nFFFF\n@SEQ2\nTCG\n+\nFFF\n")
    output = tmp_path / "report.jsonl"

    code = main(["--fastq-single", str(bad), "0", "--output", str(output), "--show-progress", "false"])

    assert code == 1
    assert "Aborting due to fail-fast mode" in capsys.readouterr().err
    assert _records(output)[0]["data"]["status"] == "ERROR"


def test_continue_on_error_returns_zero_with_errors_in_report(tmp_path):
    bad = tmp_path / "badlen.fastq.gz"
    _gz(bad, "@SEQ1\nACGT\n+\nFFFF\n@SEQ2\nTCG\n+\nFFF\n")
    output = tmp_path / "report.jsonl"

    code = main(
        ["--fastq-single", str(bad), "0", "--output", str(output),
         "--continue-on-error", "--show-progress", "false"]
    )

    assert code == 0
    errors = _records(output)[0]["data"]["errors"]
    assert any("Found inconsistent read length" in e for e in errors)


def test_invalid_read_length_is_reported(tmp_path, capsys):
    fq = tmp_path / "s.fastq.gz"
    _gz(fq, "@SEQ1\nACGT\n+\nFFFF\n")

    code = main(["--fastq-single", str(fq), "abc", "--output", str(tmp_path / "o")])

    assert code == 1
    assert "Invalid read length 'abc' for file" in capsys.readouterr().err