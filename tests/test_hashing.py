import hashlib
import io

from grzcheck.hashing import HashingReader

CONTENT = b"some file contents"
CONTENT_SHA256 = "cf57fcf9d6d7fb8fd7d8c30527c8f51026aa1d99ad77cc769dd0c757d4fe8667"


def test_full_read_digest():
    reader = HashingReader(io.BytesIO(CONTENT))
    assert reader.read() == CONTENT
    assert reader.hexdigest() == CONTENT_SHA256


def test_chunked_read_digest():
    reader = HashingReader(io.BytesIO(CONTENT))
    while reader.read(3):
        pass
    assert reader.hexdigest() == CONTENT_SHA256


def test_partial_read_hashes_only_consumed_bytes():
    reader = HashingReader(io.BytesIO(CONTENT))
    assert reader.read(4) == b"some"
    assert reader.hexdigest() == hashlib.sha256(b"some").hexdigest()


def test_shared_hasher_is_updated():
    hasher = hashlib.sha256()
    reader = HashingReader(io.BytesIO(CONTENT), hasher)
    reader.read()
    assert hasher.hexdigest() == CONTENT_SHA256


def test_readinto_hashes():
    reader = HashingReader(io.BytesIO(CONTENT))
    buffered = io.BufferedReader(reader, buffer_size=5)
    assert buffered.read() == CONTENT
    assert reader.hexdigest() == CONTENT_SHA256
    assert reader.readable() is True