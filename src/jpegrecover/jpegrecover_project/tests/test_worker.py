import os
import tempfile

import pytest

pytest.importorskip("PySide6.QtCore")

from jpegrecover.carver import CloseReason
from jpegrecover.signatures import BLOCK_SIZE
from jpegrecover.worker import Worker

def _image(tmp: str) -> str:
    data = (b'\xFF\xD8\xFF\xDB' + b'\x01' * (BLOCK_SIZE - 4)
            + b'\x02' * (BLOCK_SIZE - 2) + b'\xFF\xD9')
    path = os.path.join(tmp, 'img.raw')
    with open(path, 'wb') as f:
        f.write(data)
    return path

def test_worker_emits_results_and_report():
    with tempfile.TemporaryDirectory() as tmp:
        w = Worker(_image(tmp), os.path.join(tmp, 'out'))
        found, done, progress, errors = [], [], [], []
        w.found.connect(found.append)
        w.done.connect(done.append)
        w.progress.connect(lambda cur, total: progress.append((cur, total)))
        w.error.connect(errors.append)
        w.run()
        assert errors == []
        assert len(found) == 1 and found[0].reason is CloseReason.FOOTER
        assert done[0].results == found
        assert progress[-1] == (2 * BLOCK_SIZE, 2 * BLOCK_SIZE)
        assert os.path.isfile(os.path.join(tmp, 'out', 'recovered_000.jpg'))

def test_worker_stop_before_run_cancels():
    with tempfile.TemporaryDirectory() as tmp:
        w = Worker(_image(tmp), os.path.join(tmp, 'out'))
        done = []
        w.done.connect(done.append)
        w.stop()
        w.run()
        assert done[0].cancelled
        assert done[0].results == []

def test_worker_reports_open_errors():
    with tempfile.TemporaryDirectory() as tmp:
        w = Worker(os.path.join(tmp, 'missing.img'), tmp)
        errors, done = [], []
        w.error.connect(errors.append)
        w.done.connect(done.append)
        w.run()
        assert errors and 'Failed to open raw device' in errors[0]
        assert done == [None]
