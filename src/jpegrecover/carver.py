import time, logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from .signatures import BLOCK_SIZE, FileSignature, JPEG

logger = logging.getLogger(__name__)

class CloseReason(Enum):
    FOOTER = "completed"
    SUPERSEDED = "superseded"
    END_OF_MEDIUM = "end of medium"
    CANCELLED = "cancelled"
    ABORTED = "aborted"

@dataclass
class CarveResult:
    ordinal: int
    name: str
    start: int
    end: int
    reason: CloseReason
    out_path: Optional[str] = None

    @property
    def size(self) -> int:
        return self.end - self.start

    @property
    def completed(self) -> bool:
        return self.reason is CloseReason.FOOTER

@dataclass
class ScanReport:
    total: int = 0
    scanned: int = 0
    blocks: int = 0
    faults: List[int] = field(default_factory=list)
    results: List[CarveResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def completed(self) -> List[CarveResult]:
        return [r for r in self.results if r.completed]

    @property
    def unterminated(self) -> List[CarveResult]:
        return [r for r in self.results if not r.completed]

@dataclass
class _OpenArtifact:
    handle: Any
    ordinal: int
    name: str
    start: int
    written: int = 0

class JpegCarver:
    """
    Block-aligned JPEG carver.

    The medium is read one sector at a time. A sector starting with the
    JPEG header opens a new artifact (closing any open one first); while
    an artifact is open every sector is appended to it, and a sector
    whose last two bytes are the JPEG footer closes it. Headers and
    footers that are not sector-aligned this way are never seen.
    """
    def __init__(
        self,
        signature: FileSignature = JPEG,
        progress_cb: Optional[Callable[[int, int], None]] = None,
        found_cb: Optional[Callable[[CarveResult], None]] = None,
        stop_flag: Optional[Callable[[], bool]] = None,
        pause_flag: Optional[Callable[[], bool]] = None,
    ):
        self.signature = signature
        self.progress_cb = progress_cb or (lambda a,b: None)
        self.found_cb = found_cb or (lambda r: None)
        self.stop_flag = stop_flag or (lambda: False)
        self.pause_flag = pause_flag or (lambda: False)
        self._next_ordinal = 0
        self._open: Optional[_OpenArtifact] = None

    # ---- artifact lifecycle ----
    def _start(self, sink, offset: int) -> _OpenArtifact:
        ordinal = self._next_ordinal
        self._next_ordinal += 1
        handle = sink.create(ordinal)
        art = _OpenArtifact(handle=handle, ordinal=ordinal, name=sink.name_for(ordinal), start=offset)
        self._open = art
        logger.info("JPEG header found at 0x%x, creating %s", offset, art.name)
        return art

    def _close(self, sink, report: ScanReport, reason: CloseReason) -> None:
        art = self._open
        if art is None:
            return
        self._open = None
        out_path = sink.path_for(art.handle)
        sink.finalize(art.handle)
        res = CarveResult(ordinal=art.ordinal, name=art.name, start=art.start,
                          end=art.start + art.written, reason=reason, out_path=out_path)
        report.results.append(res)
        if res.completed:
            logger.info("JPEG file recovery completed: %s (%d bytes)", res.name, res.size)
        else:
            logger.info("Recovered unterminated JPEG file: %s (%d bytes, %s)",
                        res.name, res.size, reason.value)
        if reason is not CloseReason.ABORTED:
            self.found_cb(res)

    # ---- main scan loop ----
    def scan(self, source, sink) -> ScanReport:
        """Scan ``source`` to the end, writing artifacts through ``sink``.

        Read faults skip exactly one block and never end the scan. Errors
        raised by the sink (artifact creation, running out of space) are
        propagated after the open artifact has been finalized.
        """
        self._next_ordinal = 0
        self._open = None
        report = ScanReport(total=source.total_size() or 0)
        sig = self.signature
        cur = 0
        reason = CloseReason.END_OF_MEDIUM
        logger.debug("scanning %d bytes in %d-byte blocks", report.total, BLOCK_SIZE)

        try:
            while True:
                if self.stop_flag():
                    report.cancelled = True
                    reason = CloseReason.CANCELLED
                    break
                while self.pause_flag() and not self.stop_flag():
                    self.progress_cb(cur, report.total)
                    time.sleep(0.05)

                got = source.read_block(BLOCK_SIZE)
                if got.fault is not None:
                    # the faulty sector is not recovered and not appended
                    logger.warning("Error reading from disk at 0x%x: %s; skipping bad sector", cur, got.fault)
                    source.skip(BLOCK_SIZE)
                    report.faults.append(cur)
                    cur += BLOCK_SIZE
                    self.progress_cb(cur, report.total)
                    continue

                block = got.data
                if not block:
                    break
                report.blocks += 1

                if sig.starts(block):
                    if self._open is not None:
                        self._close(sink, report, CloseReason.SUPERSEDED)
                    art = self._start(sink, cur)
                    sink.append(art.handle, block)
                    art.written += len(block)
                elif self._open is not None:
                    art = self._open
                    sink.append(art.handle, block)
                    art.written += len(block)
                    if sig.ends(block):
                        self._close(sink, report, CloseReason.FOOTER)

                cur += len(block)
                self.progress_cb(cur, report.total)
                if got.final:
                    break
            if report.cancelled:
                logger.info("Scan stopped at 0x%x", cur)
            else:
                logger.info("End of disk/image reached at 0x%x", cur)
        except BaseException:
            # the error is what gets reported; the artifact is only finalized
            reason = CloseReason.ABORTED
            raise
        finally:
            self._close(sink, report, reason)
            report.scanned = cur
        return report
