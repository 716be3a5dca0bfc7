"""
Output sinks for carved artifacts.

The carver never names or opens output files itself. It asks a sink to
``create`` an artifact for an ordinal, ``append`` blocks to it and
``finalize`` it when the artifact closes. Two sinks are provided:
:class:`DirectorySink` writes ``recovered_NNN.jpg`` files into a
folder, and :class:`MemorySink` keeps everything in memory, which is
handy for previews and for tests.
"""

from __future__ import annotations

import os
import logging
from collections import OrderedDict
from typing import BinaryIO, Dict, Optional

logger = logging.getLogger(__name__)

class ArtifactCreationError(OSError):
    """Raised when a sink cannot create storage for a new artifact."""

class DirectorySink:
    """Write each artifact to its own file inside ``output_dir``."""

    def __init__(self, output_dir: str, ext: str = "jpg", prefix: str = "recovered_") -> None:
        """Create a sink.

        Parameters
        ----------
        output_dir: str
            Folder receiving the recovered files. Created on the first
            artifact if it does not exist yet.
        ext: str, optional
            File extension, without the dot.
        prefix: str, optional
            Prefix placed before the zero-padded ordinal.
        """
        self.output_dir = output_dir
        self.ext = ext
        self.prefix = prefix

    def name_for(self, ordinal: int) -> str:
        return f"{self.prefix}{ordinal:03d}.{self.ext}"

    def create(self, ordinal: int) -> BinaryIO:
        out_path = os.path.join(self.output_dir, self.name_for(ordinal))
        try:
            os.makedirs(self.output_dir, exist_ok=True)
            fo = open(out_path, "wb")
        except OSError as e:
            raise ArtifactCreationError(e.errno, f"Error creating recovered file {out_path}: {e.strerror}") from e
        logger.debug("created %s", out_path)
        return fo

    def append(self, handle: BinaryIO, data: bytes) -> None:
        handle.write(data)

    def finalize(self, handle: BinaryIO) -> None:
        handle.close()

    def path_for(self, handle: BinaryIO) -> Optional[str]:
        return getattr(handle, "name", None)

class MemorySink:
    """Keep artifacts in memory, keyed by file name.

    ``fail_at`` makes :meth:`create` raise :class:`ArtifactCreationError`
    for that ordinal, mimicking a full or read-only output volume.
    """

    def __init__(self, ext: str = "jpg", prefix: str = "recovered_", fail_at: Optional[int] = None) -> None:
        self.ext = ext
        self.prefix = prefix
        self.fail_at = fail_at
        self.artifacts: "OrderedDict[str, bytearray]" = OrderedDict()
        self.finalized: list = []

    def name_for(self, ordinal: int) -> str:
        return f"{self.prefix}{ordinal:03d}.{self.ext}"

    def create(self, ordinal: int) -> str:
        name = self.name_for(ordinal)
        if self.fail_at is not None and ordinal == self.fail_at:
            raise ArtifactCreationError(f"Error creating recovered file {name}")
        self.artifacts[name] = bytearray()
        return name

    def append(self, handle: str, data: bytes) -> None:
        self.artifacts[handle] += data

    def finalize(self, handle: str) -> None:
        self.finalized.append(handle)

    def path_for(self, handle: str) -> Optional[str]:
        return None

    def contents(self) -> Dict[str, bytes]:
        return {name: bytes(buf) for name, buf in self.artifacts.items()}
