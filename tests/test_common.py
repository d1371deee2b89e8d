import bz2
import gzip
import hashlib
import io
import lzma

import pytest
import zstandard

from grzcheck.common import CheckError, CheckOutcome, check_file, open_decompressed
from grzcheck.models import Stats

CONTENT = b"some file contents"
CONTENT_SHA256 = "cf57fcf9d6d7fb8fd7d8c30527c8f51026aa1d99ad77cc769dd0c757d4fe8667"


class FakeBar:
    def __init__(self):
        self.n = 0
        self.postfix = None

    def update(self, count):
        self.n += count

    def set_postfix_str(self, text, refresh=True):
        self.postfix = text


def _read_all(reader):
    data = reader.read()
    return CheckOutcome(stats=Stats(num_records=len(data)))


def test_plain_file_checksum(tmp_path):
    path = tmp_path / "raw.txt"
    path.write_bytes(CONTENT)
    report = check_file(path, None, None, False, _read_all)
    assert report.is_ok()
    assert report.sha256 == CONTENT_SHA256
    assert report.stats == Stats(num_records=len(CONTENT))


def test_gzip_file_decompressed_and_raw_hashed(tmp_path):
    path = tmp_path / "data.gz"
    compressed = gzip.compress(CONTENT)
    path.write_bytes(compressed)
    seen = []

    def logic(reader):
        seen.append(reader.read())
        return CheckOutcome()

    report = check_file(path, None, None, True, logic)
    assert seen == [CONTENT]
    assert report.sha256 == hashlib.sha256(compressed).hexdigest()


def test_missing_file(tmp_path):
    report = check_file(tmp_path / "absent", None, None, False, _read_all)
    assert report.errors[0].startswith("Failed to open file for reading:")
    assert report.sha256 is None
    assert not report.is_ok()


def test_check_error_becomes_report_error(tmp_path):
    path = tmp_path / "x"
    path.write_bytes(CONTENT)

    def logic(reader):
        raise CheckError("bad record")

    report = check_file(path, None, None, False, logic)
    assert report.errors == ["bad record"]
    assert report.stats is None
    assert report.sha256 is None


def test_outcome_fields_preserved(tmp_path):
    path = tmp_path / "x"
    path.write_bytes(CONTENT)

    def logic(reader):
        reader.read()
        return CheckOutcome(stats=Stats(1, 4), errors=["e"], warnings=["w"])

    report = check_file(path, None, None, False, logic)
    assert report.errors == ["e"]
    assert report.warnings == ["w"]
    assert report.stats == Stats(1, 4)
    assert report.sha256 == CONTENT_SHA256


def test_progress_bars_and_message(tmp_path):
    path = tmp_path / "sample.txt"
    path.write_bytes(CONTENT)
    file_bar, global_bar = FakeBar(), FakeBar()
    check_file(path, file_bar, global_bar, False, _read_all)
    assert file_bar.postfix == "sample.txt"
    assert file_bar.n == len(CONTENT)
    assert global_bar.n == len(CONTENT)


def test_corrupt_gzip_reports_read_error(tmp_path):
    path = tmp_path / "bad.gz"
    path.write_bytes(b"\x1f\x8bgarbage that is not gzip")
    report = check_file(path, None, None, True, _read_all)
    assert report.errors[0].startswith("Failed to read file:")
    assert report.sha256 is None


@pytest.mark.parametrize(
    "encode",
    [
        gzip.compress,
        bz2.compress,
        lzma.compress,
        lambda data: zstandard.ZstdCompressor().compress(data),
        lambda data: data,
    ],
)
def test_open_decompressed_round_trip(encode):
    payload = b"@SEQ1\nACGT\n+\nFFFF\n" * 20
    reader = open_decompressed(io.BytesIO(encode(payload)))
    assert reader.read() == payload


def test_open_decompressed_short_input_is_plain():
    reader = open_decompressed(io.BytesIO(b"ab"))
    assert reader.read() == b"ab"