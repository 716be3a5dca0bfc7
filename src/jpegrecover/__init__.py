"""
JPEG Recover core package.

Carves JPEG images out of a raw disk or disk image by scanning it one
512-byte sector at a time for the JPEG start and end markers, without
looking at any filesystem metadata. The modules here are import-light:
the Qt front end (``gui_qt`` and ``worker``) is not imported by this
package so that the carver and CLI work without PySide6 loaded.
"""

__version__ = "0.1.0"

# Re-export common classes for convenience
from .carver import JpegCarver, CarveResult, CloseReason, ScanReport
from .rawio import RawDevice, RawMedium, BlockRead
from .signatures import BLOCK_SIZE, JPEG, FileSignature
from .sink import ArtifactCreationError, DirectorySink, MemorySink

__all__ = [
    'JpegCarver',
    'CarveResult',
    'CloseReason',
    'ScanReport',
    'RawDevice',
    'RawMedium',
    'BlockRead',
    'BLOCK_SIZE',
    'JPEG',
    'FileSignature',
    'ArtifactCreationError',
    'DirectorySink',
    'MemorySink',
]
