from __future__ import annotations
import threading, traceback

from PySide6.QtCore import Signal, Slot, QObject

from .carver import JpegCarver
from .rawio import RawMedium
from .sink import DirectorySink

class Worker(QObject):
    progress = Signal(object, object)   # byte offsets overflow a Qt int
    found    = Signal(object)
    status   = Signal(str)
    error    = Signal(str)
    done     = Signal(object)

    def __init__(self, src: str, out: str):
        """
        Create a new worker.

        Parameters
        ----------
        src : str
            Source image or raw device path.
        out : str
            Directory where recovered JPEG files will be written.
        """
        super().__init__()
        self.src = src
        self.out = out
        self._pause = threading.Event()
        self._stop = threading.Event()

    @Slot()
    def run(self):
        """
        Run the scan; meant to be started from a QThread.
        """
        report = None
        try:
            self.status.emit("Initializing...")
            carver = JpegCarver(
                progress_cb=lambda cur, total: self.progress.emit(cur, total),
                found_cb=self.found.emit,
                stop_flag=self._stop.is_set,
                pause_flag=self._pause.is_set,
            )
            with RawMedium(self.src) as medium:
                self.status.emit("Scanning…")
                report = carver.scan(medium, DirectorySink(self.out))
            self.status.emit("Stopped" if report.cancelled else "Done")
        except Exception:
            self.error.emit(traceback.format_exc())
        self.done.emit(report)

    def pause(self, yes: bool):
        if yes:
            self._pause.set()
        else:
            self._pause.clear()

    def stop(self):
        self._stop.set()
