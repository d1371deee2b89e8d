import io

from grzcheck.progress import DualProgressReader


class FakeBar:
    def __init__(self):
        self.n = 0
        self.calls = 0

    def update(self, count):
        self.n += count
        self.calls += 1


def test_read_advances_both_bars():
    data = b"0123456789" * 10
    file_bar, global_bar = FakeBar(), FakeBar()
    reader = DualProgressReader(io.BytesIO(data), file_bar, global_bar)
    assert reader.read(30) == data[:30]
    assert file_bar.n == 30
    assert global_bar.n == 30
    assert reader.read() == data[30:]
    assert file_bar.n == len(data)
    assert global_bar.n == len(data)


def test_eof_does_not_update():
    bar = FakeBar()
    reader = DualProgressReader(io.BytesIO(b""), bar, None)
    assert reader.read(10) == b""
    assert bar.calls == 0


def test_readinto_fills_buffer_and_counts():
    bar = FakeBar()
    reader = DualProgressReader(io.BytesIO(b"abcdef"), None, bar)
    buffer = bytearray(4)
    assert reader.readinto(buffer) == 4
    assert bytes(buffer) == b"abcd"
    assert reader.readinto(buffer) == 2
    assert bytes(buffer[:2]) == b"ef"
    assert bar.n == 6


def test_buffered_wrapping_reads_everything():
    data = bytes(range(256)) * 50
    file_bar, global_bar = FakeBar(), FakeBar()
    buffered = io.BufferedReader(DualProgressReader(io.BytesIO(data), file_bar, global_bar))
    assert buffered.read() == data
    assert file_bar.n == len(data) == global_bar.n
    assert buffered.readable() is True


def test_no_bars():
    reader = DualProgressReader(io.BytesIO(b"xyz"))
    assert reader.read() == b"xyz"