from __future__ import annotations
import os, time
from typing import Optional

from PySide6.QtCore import Qt, Slot, QThread, QTimer
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QLabel, QLineEdit, QPushButton,
    QFileDialog, QProgressBar, QTableWidget, QTableWidgetItem,
    QGridLayout, QHBoxLayout, QVBoxLayout, QMessageBox
)

from .rawio import to_raw_if_drive
from .utils import format_duration, progress_percent
from .worker import Worker

_ASSET_DIR = os.path.join(os.path.dirname(__file__), "assets")
_LOGO = os.path.join(_ASSET_DIR, "logo.png")

APP_NAME = "JPEG Recover"
PB_STEPS = 1000
QSS = """
*{font-family: 'Segoe UI','Inter','Roboto'; font-size:10.5pt;}
QMainWindow{background:#0F1115;}
QWidget{color:#E6E9EF;background:#0F1115;}
QLabel#Brand{color:#7BF79E;font-weight:700;font-size:18pt;}
QFrame#Card{background:#171A21;border:1px solid #232733;border-radius:12px;}
QLineEdit{background:#0B0D11;border:1px solid #2A3040;border-radius:6px;padding:6px;}
QPushButton{background:#232733;border:1px solid #2F3542;border-radius:8px;padding:8px 14px;}
QPushButton#Primary{background:qlineargradient(x1:0,y1:0,x2:1,y2:0,stop:0 #22D3EE,stop:1 #3B82F6);border:none;color:white;font-weight:600;}
QProgressBar{border:1px solid #2A3040;border-radius:8px;background:#0B0D11;text-align:center;color:#AAB1BD;height:18px;}
QProgressBar::chunk{background:qlineargradient(x1:0,y1:0,x2:1,y2:0,stop:0 #22D3EE,stop:1 #3B82F6);border-radius:8px;}
QHeaderView::section{background:#171A21;border:1px solid #232733;padding:6px;}
QTableWidget{gridline-color:#232733;selection-background-color:#3B82F6;}
"""

class Main(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle(APP_NAME)
        self.setMinimumSize(900, 560)
        self._build_ui()
        self._wire()
        self._reset_state()

    def _build_ui(self):
        root = QWidget(self)
        self.setCentralWidget(root)
        outer = QVBoxLayout(root)
        outer.setContentsMargins(12,12,12,12)
        outer.setSpacing(10)

        brand_row = QHBoxLayout()
        if os.path.exists(_LOGO):
            logo = QLabel()
            pix = QPixmap(_LOGO)
            if not pix.isNull():
                logo.setPixmap(pix.scaledToHeight(28, Qt.SmoothTransformation))
                brand_row.addWidget(logo)
        self.lblBrand = QLabel(f" {APP_NAME}", objectName="Brand")
        brand_row.addWidget(self.lblBrand)
        brand_row.addStretch(1)
        outer.addLayout(brand_row)

        io_card = QWidget(objectName="Card")
        io = QGridLayout(io_card)
        io.setContentsMargins(12,12,12,12)
        self.edSrc = QLineEdit()
        self.edOut = QLineEdit()
        self.btnFile = QPushButton("File…")
        self.btnDrive = QPushButton("Drive…")
        self.btnOut = QPushButton("Browse")
        io.addWidget(QLabel("Source"), 0, 0)
        io.addWidget(self.edSrc, 0, 1, 1, 3)
        io.addWidget(self.btnFile, 0, 4)
        io.addWidget(self.btnDrive, 0, 5)
        io.addWidget(QLabel("Output"), 1, 0)
        io.addWidget(self.edOut, 1, 1, 1, 3)
        io.addWidget(self.btnOut, 1, 4)
        self.btnStart = QPushButton("Start Scan", objectName="Primary")
        self.btnPause = QPushButton("Pause")
        self.btnStop = QPushButton("Stop")
        self.btnPause.setEnabled(False)
        self.btnStop.setEnabled(False)
        io.addWidget(self.btnStart, 2, 3)
        io.addWidget(self.btnPause, 2, 4)
        io.addWidget(self.btnStop, 2, 5)
        outer.addWidget(io_card)

        self.pb = QProgressBar()
        self.pb.setMinimum(0)
        self.pb.setMaximum(PB_STEPS)
        outer.addWidget(self.pb)

        self.tbl = QTableWidget(0, 6)
        self.tbl.setHorizontalHeaderLabels(["#","name","start","length","status","path"])
        self.tbl.horizontalHeader().setStretchLastSection(True)
        outer.addWidget(self.tbl, 1)

        self.lblTip = QLabel("Tip: only JPEGs starting on a 512-byte sector are found. Use Drive… to scan a whole volume (needs admin).")
        self.lblTip.setStyleSheet("color:#9AA3B2")
        outer.addWidget(self.lblTip)

    def _wire(self):
        self.btnFile.clicked.connect(self._pick_file)
        self.btnDrive.clicked.connect(self._pick_drive)
        self.btnOut.clicked.connect(self._pick_out)
        self.btnStart.clicked.connect(self._start)
        self.btnPause.clicked.connect(self._toggle_pause)
        self.btnStop.clicked.connect(self._stop)
        self._eta_timer = QTimer(self)
        self._eta_timer.setInterval(750)
        self._eta_timer.timeout.connect(self._refresh_eta)

    def _reset_state(self):
        self._thread: Optional[QThread] = None
        self._worker: Optional[Worker]  = None
        self._last_prog = (0, time.time())
        self._cur = 0
        self._total = 0
        self.pb.setValue(0)
        self.tbl.setRowCount(0)
        self.setWindowTitle(f"{APP_NAME} Ready")

    def _pick_file(self):
        p, _ = QFileDialog.getOpenFileName(self, "Choose disk IMAGE file", "", "Images (*.img *.dd *.bin *.raw *.iso);;All files (*.*)")
        if p:
            self.edSrc.setText(p)

    def _pick_drive(self):
        d = QFileDialog.getExistingDirectory(self, r"Choose DRIVE ROOT (select E:\ to scan \\.\E:)")
        if d:
            self.edSrc.setText(to_raw_if_drive(d))

    def _pick_out(self):
        p = QFileDialog.getExistingDirectory(self, "Choose output folder")
        if p:
            self.edOut.setText(p)

    def _start(self):
        src = self.edSrc.text().strip()
        out = self.edOut.text().strip()
        if not src:
            QMessageBox.warning(self, "Missing", r"Pick an image, or pick a drive (\\.\E:)")
            return
        if not out:
            QMessageBox.warning(self, "Missing", "Choose an output folder")
            return
        self.tbl.setRowCount(0)
        self._cur = 0; self._total = 0
        self.pb.setValue(0)
        self._eta_timer.start()
        self.btnStart.setEnabled(False); self.btnPause.setEnabled(True); self.btnStop.setEnabled(True)
        self._thread = QThread(self)
        self._worker = Worker(src, out)
        self._worker.moveToThread(self._thread)
        self._thread.started.connect(self._worker.run)
        self._worker.progress.connect(self._on_progress)
        self._worker.found.connect(self._on_found)
        self._worker.status.connect(lambda s: self.setWindowTitle(f"{APP_NAME} • {s}"))
        self._worker.error.connect(self._on_error)
        self._worker.done.connect(self._on_done)
        self._thread.start()

    def _toggle_pause(self):
        if not self._worker:
            return
        if self.btnPause.text() == "Pause":
            self._worker.pause(True)
            self.btnPause.setText("Resume")
        else:
            self._worker.pause(False)
            self.btnPause.setText("Pause")

    def _stop(self):
        if self._worker:
            self._worker.stop()

    @Slot(object, object)
    def _on_progress(self, cur: int, total: int):
        self._cur = cur; self._total = total
        pct = min(100.0, progress_percent(cur, total))
        self.pb.setValue(int(pct * PB_STEPS / 100))

    @Slot(object)
    def _on_found(self, r):
        row = self.tbl.rowCount()
        self.tbl.insertRow(row)
        def _set(c, v):
            self.tbl.setItem(row, c, QTableWidgetItem(str(v)))
        _set(0, r.ordinal)
        _set(1, r.name)
        _set(2, r.start)
        _set(3, r.size)
        _set(4, r.reason.value)
        _set(5, r.out_path or "")

    @Slot(object)
    def _on_done(self, report):
        self._eta_timer.stop()
        self.btnStart.setEnabled(True); self.btnPause.setEnabled(False); self.btnStop.setEnabled(False)
        self.btnPause.setText("Pause")
        if report is not None:
            self.setWindowTitle(f"{APP_NAME} • {len(report.results)} recovered, "
                                f"{len(report.completed)} complete, {len(report.faults)} bad sectors")
        if self._thread:
            self._thread.quit(); self._thread.wait(1500)
        self._thread = None; self._worker = None

    @Slot(str)
    def _on_error(self, msg: str):
        self._eta_timer.stop()
        QMessageBox.critical(self, "Error", msg)

    def _refresh_eta(self):
        if self._total <= 0 or self._cur <= 0:
            return
        now = time.time()
        cur, last_ts = self._last_prog
        dt = max(0.001, now - last_ts)
        spd = max(1, self._cur - cur) / dt
        rem = max(0, self._total - self._cur)
        eta_s = int(rem / spd) if spd > 0 else 0
        pct = progress_percent(self._cur, self._total)
        self.setWindowTitle(f"{APP_NAME} • {pct:.1f}% • {self._cur/1e9:.2f}/{self._total/1e9:.2f} GB • {spd/1e6:.1f} MB/s • ETA {format_duration(eta_s)}")
        self._last_prog = (self._cur, now)

def main() -> int:
    app = QApplication([])
    app.setStyleSheet(QSS)
    w = Main()
    w.show()
    return app.exec()

if __name__ == "__main__":
    raise SystemExit(main())
