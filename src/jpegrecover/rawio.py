import os, ctypes, logging
from dataclasses import dataclass
from typing import Optional

from .signatures import BLOCK_SIZE

logger = logging.getLogger(__name__)

def to_raw_if_drive(path: str) -> str:
    p = (path or "").strip()
    if os.name == "nt":
        if len(p) >= 2 and p[1] == ":" and p[0].isalpha():
            drive = p[0].upper()
            return r"\\.\%s:" % drive
    return path

GENERIC_READ  = 0x80000000
OPEN_EXISTING = 3
FILE_SHARE_READ  = 0x00000001
FILE_SHARE_WRITE = 0x00000002
FILE_ATTRIBUTE_NORMAL = 0x00000080
INVALID_HANDLE_VALUE = ctypes.c_void_p(-1).value
IOCTL_DISK_GET_LENGTH_INFO = 0x0007405c

class LARGE_INTEGER(ctypes.Structure):
    _fields_ = [("QuadPart", ctypes.c_longlong)]

class RawDevice:
    """Read-only handle on a raw device or image file.

    Windows device paths (``\\\\.\\E:``) go through ``CreateFileW`` and
    ``ReadFile`` so that reads and the length query work on volumes
    without a filesystem. Everywhere else a plain descriptor and
    ``os.pread`` are used.
    """

    def __init__(self, path: str):
        self.path = path
        self.handle = None
        self.fd = None  # type: Optional[int]
        if os.name == "nt":
            self._open()
        else:
            flags = os.O_RDONLY
            if hasattr(os, 'O_BINARY'):
                flags |= os.O_BINARY  # type: ignore
            try:
                self.fd = os.open(self.path, flags)
            except OSError as e:
                raise OSError(e.errno, f"Failed to open raw device: {self.path}: {e.strerror}") from e

    def _open(self):
        from ctypes import wintypes
        CreateFileW = ctypes.windll.kernel32.CreateFileW
        CreateFileW.argtypes = [
            wintypes.LPCWSTR, wintypes.DWORD, wintypes.DWORD,
            wintypes.LPVOID, wintypes.DWORD, wintypes.DWORD, wintypes.HANDLE
        ]
        CreateFileW.restype = wintypes.HANDLE
        handle = CreateFileW(
            self.path,
            GENERIC_READ,
            FILE_SHARE_READ | FILE_SHARE_WRITE,
            None,
            OPEN_EXISTING,
            FILE_ATTRIBUTE_NORMAL,
            None
        )
        if handle == INVALID_HANDLE_VALUE or handle is None:
            raise OSError("Failed to open raw device: %s" % self.path)
        self.handle = handle

    @property
    def length(self) -> Optional[int]:
        if os.name == "nt":
            from ctypes import wintypes
            out = LARGE_INTEGER()
            bytes_ret = wintypes.DWORD(0)
            ok = ctypes.windll.kernel32.DeviceIoControl(
                self.handle,
                IOCTL_DISK_GET_LENGTH_INFO,
                None, 0,
                ctypes.byref(out), ctypes.sizeof(out),
                ctypes.byref(bytes_ret),
                None
            )
            if ok:
                return int(out.QuadPart)
            # plain image files do not answer the disk ioctl
            try:
                return os.path.getsize(self.path)
            except OSError:
                return None
        else:
            if self.fd is None:
                return None
            # st_size is 0 for block devices; seeking to the end is not
            try:
                return os.lseek(self.fd, 0, os.SEEK_END)
            except OSError as e:
                logger.debug("length query failed for %s: %s", self.path, e)
                return None

    def read_at(self, offset: int, size: int) -> bytes:
        if os.name == "nt":
            from ctypes import wintypes
            SetFilePointerEx = ctypes.windll.kernel32.SetFilePointerEx
            SetFilePointerEx.argtypes = [
                wintypes.HANDLE, LARGE_INTEGER, ctypes.POINTER(LARGE_INTEGER), wintypes.DWORD
            ]
            SetFilePointerEx.restype = wintypes.BOOL
            newpos = LARGE_INTEGER(offset)
            ok = SetFilePointerEx(self.handle, newpos, None, 0)
            if not ok:
                raise OSError("[SetFilePointerEx] failed at 0x%x" % offset)
            ReadFile = ctypes.windll.kernel32.ReadFile
            ReadFile.argtypes = [
                wintypes.HANDLE, wintypes.LPVOID, wintypes.DWORD,
                ctypes.POINTER(wintypes.DWORD), wintypes.LPVOID
            ]
            ReadFile.restype = wintypes.BOOL
            buf = (ctypes.c_ubyte * size)()
            read = wintypes.DWORD(0)
            ok = ReadFile(self.handle, ctypes.byref(buf), size, ctypes.byref(read), None)
            if not ok:
                raise OSError("[ReadFile] failed at 0x%x" % offset)
            return bytes(buf[:read.value])
        else:
            try:
                return os.pread(self.fd, size, offset)
            except OSError as e:
                raise OSError(e.errno, f"pread failed at 0x{offset:x}: {e.strerror}") from e

    def close(self):
        if os.name == "nt":
            if getattr(self, 'handle', None):
                ctypes.windll.kernel32.CloseHandle(self.handle)
                self.handle = None
        else:
            if getattr(self, 'fd', None) is not None:
                os.close(self.fd)
                self.fd = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __del__(self):
        try:
            self.close()
        except OSError:
            pass

@dataclass(frozen=True)
class BlockRead:
    """Outcome of one block read.

    ``data`` shorter than the requested length always comes with
    ``final`` set; an empty ``data`` with ``final`` is end-of-medium.
    A ``fault`` means the device reported an I/O error for the block.
    """
    data: bytes = b""
    final: bool = False
    fault: Optional[OSError] = None

class RawMedium:
    """Sequential, forward-only block source over a :class:`RawDevice`."""

    def __init__(self, path: str, device: Optional[RawDevice] = None):
        self.path = to_raw_if_drive(path)
        self.device = device if device is not None else RawDevice(self.path)
        self.position = 0
        self._total: Optional[int] = None

    def total_size(self) -> Optional[int]:
        if self._total is None:
            self._total = self.device.length
        return self._total

    def read_block(self, max_len: int = BLOCK_SIZE) -> BlockRead:
        # raw drives fail reads past their last sector instead of returning b""
        total = self.total_size()
        size = max_len
        if total is not None:
            if self.position >= total:
                return BlockRead(final=True)
            size = min(max_len, total - self.position)
        try:
            data = self.device.read_at(self.position, size)
        except OSError as e:
            return BlockRead(fault=e)
        self.position += len(data)
        final = len(data) < max_len or (total is not None and self.position >= total)
        return BlockRead(data=data, final=final)

    def skip(self, n: int) -> None:
        self.position += n

    def close(self):
        self.device.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
