import os
import tempfile

import pytest

from jpegrecover.carver import CloseReason, JpegCarver
from jpegrecover.rawio import RawDevice, RawMedium, to_raw_if_drive
from jpegrecover.signatures import BLOCK_SIZE, JPEG
from jpegrecover.sink import ArtifactCreationError, DirectorySink, MemorySink
from jpegrecover.utils import format_duration, format_progress, progress_percent

def _write_image(tmp: str, data: bytes) -> str:
    path = os.path.join(tmp, 'image.bin')
    with open(path, 'wb') as f:
        f.write(data)
    return path

def test_medium_reads_blocks_in_order():
    data = bytes(range(256)) * 4 + b'tail'
    with tempfile.TemporaryDirectory() as tmp:
        with RawMedium(_write_image(tmp, data)) as medium:
            assert medium.total_size() == len(data)
            first = medium.read_block()
            second = medium.read_block()
            last = medium.read_block()
            end = medium.read_block()
    assert first.data == data[:BLOCK_SIZE] and not first.final and first.fault is None
    assert second.data == data[BLOCK_SIZE:2 * BLOCK_SIZE] and not second.final
    assert last.data == b'tail' and last.final
    assert end.data == b'' and end.final

def test_medium_skip_moves_forward():
    data = b'\x01' * BLOCK_SIZE + b'\x02' * BLOCK_SIZE
    with tempfile.TemporaryDirectory() as tmp:
        with RawMedium(_write_image(tmp, data)) as medium:
            medium.skip(BLOCK_SIZE)
            got = medium.read_block()
            assert medium.position == 2 * BLOCK_SIZE
    assert got.data == b'\x02' * BLOCK_SIZE

def test_medium_turns_os_errors_into_faults():
    class BadSector(RawDevice):
        def __init__(self):
            self.path = 'bad'
            self.fd = None
            self.handle = None

        def read_at(self, offset, size):
            raise OSError(5, "Input/output error")

    medium = RawMedium('bad', device=BadSector())
    got = medium.read_block()
    assert isinstance(got.fault, OSError)
    assert got.data == b''
    assert medium.position == 0

class _PhysicalDrive(RawDevice):
    """Fixed-length drive that errors on reads past its last sector."""

    def __init__(self, data: bytes):
        self.path = 'drive'
        self.fd = None
        self.handle = None
        self.data = data
        self.reads = []

    @property
    def length(self):
        return len(self.data)

    def read_at(self, offset, size):
        self.reads.append((offset, size))
        if offset >= len(self.data):
            raise OSError(27, "File too large")
        return self.data[offset:offset + size]

def test_medium_stops_at_device_length():
    drive = _PhysicalDrive(b'\x01' * BLOCK_SIZE * 4)
    medium = RawMedium('drive', device=drive)
    got = [medium.read_block() for _ in range(5)]
    assert [g.fault for g in got] == [None] * 5
    assert [len(g.data) for g in got] == [BLOCK_SIZE] * 4 + [0]
    assert [g.final for g in got] == [False, False, False, True, True]
    assert all(off < len(drive.data) for off, _ in drive.reads)

def test_medium_clamps_last_read_to_length():
    drive = _PhysicalDrive(b'\x02' * (BLOCK_SIZE + 10))
    medium = RawMedium('drive', device=drive)
    medium.read_block()
    tail = medium.read_block()
    assert tail.data == b'\x02' * 10 and tail.final
    assert drive.reads[-1] == (BLOCK_SIZE, 10)

def test_scan_of_drive_erroring_past_end_terminates():
    data = (b'\x00' * BLOCK_SIZE
            + b'\xFF\xD8\xFF' + b'\x11' * (BLOCK_SIZE - 3)
            + b'\x22' * BLOCK_SIZE
            + b'\x33' * BLOCK_SIZE)
    medium = RawMedium('drive', device=_PhysicalDrive(data))
    sink = MemorySink()
    report = JpegCarver(stop_flag=lambda: medium.position > 100 * BLOCK_SIZE).scan(medium, sink)
    assert not report.cancelled
    assert report.faults == []
    assert report.scanned == len(data)
    assert len(report.results) == 1
    assert report.results[0].reason is CloseReason.END_OF_MEDIUM
    assert sink.contents()['recovered_000.jpg'] == data[BLOCK_SIZE:]

def test_open_missing_medium_raises():
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(OSError):
            RawMedium(os.path.join(tmp, 'missing.img'))

def test_to_raw_if_drive_leaves_image_paths_alone():
    if os.name == 'nt':
        assert to_raw_if_drive('e:') == r'\\.\E:'
    assert to_raw_if_drive('/tmp/disk.img') == '/tmp/disk.img'

def test_signature_ends_guards_short_blocks():
    assert JPEG.starts(b'\xFF\xD8\xFF\xE0')
    assert not JPEG.starts(b'\xFF\xD8')
    assert JPEG.ends(b'\x00\xFF\xD9')
    assert JPEG.ends(b'\xFF\xD9')
    assert not JPEG.ends(b'\xD9')
    assert not JPEG.ends(b'')

def test_directory_sink_names_and_writes():
    with tempfile.TemporaryDirectory() as tmp:
        out_dir = os.path.join(tmp, 'out')
        sink = DirectorySink(out_dir)
        assert sink.name_for(7) == 'recovered_007.jpg'
        assert sink.name_for(1234) == 'recovered_1234.jpg'
        h = sink.create(7)
        sink.append(h, b'abc')
        sink.append(h, b'def')
        path = sink.path_for(h)
        sink.finalize(h)
        assert path == os.path.join(out_dir, 'recovered_007.jpg')
        with open(path, 'rb') as f:
            assert f.read() == b'abcdef'

def test_directory_sink_creation_failure():
    with tempfile.TemporaryDirectory() as tmp:
        blocker = os.path.join(tmp, 'not_a_dir')
        with open(blocker, 'wb') as f:
            f.write(b'x')
        sink = DirectorySink(blocker)
        with pytest.raises(ArtifactCreationError):
            sink.create(0)

def test_memory_sink():
    sink = MemorySink(fail_at=2)
    h = sink.create(0)
    sink.append(h, b'\xFF\xD8\xFF')
    sink.finalize(h)
    sink.create(1)
    with pytest.raises(ArtifactCreationError):
        sink.create(2)
    assert sink.contents() == {'recovered_000.jpg': b'\xFF\xD8\xFF', 'recovered_001.jpg': b''}
    assert sink.finalized == ['recovered_000.jpg']

def test_progress_helpers():
    assert progress_percent(256, 512) == 50.0
    assert progress_percent(10, 0) == 0.0
    assert format_progress(1, 3) == 'Progress: 33.33%'
    assert format_duration(5) == '5s'
    assert format_duration(125) == '2m 05s'
    assert format_duration(3 * 3600 + 7 * 60) == '3h 07m'
