"""
File persistence for the encoded nota document.

The service only talks to a `Persistence`: raw bytes in at startup, encoded
snapshots out after each change, and a final `close()` at shutdown.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class Persistence(Protocol):
    """Where the encoded document lives."""

    def load_raw(self) -> bytes:
        """
        Read the stored document.

        Returns:
            The raw bytes, or b"" if nothing has been stored yet.
        """
        ...

    def persist(self, data: bytes, message: str) -> None:
        """
        Store a new snapshot.

        Args:
            data: Encoded document
            message: Short description of the change (used as commit message)

        Raises:
            OSError or GitSyncError on failure.
        """
        ...

    def close(self) -> None:
        """Flush anything pending. Called once at shutdown."""
        ...


class FileStorage:
    """Plain file on disk, written atomically."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load_raw(self) -> bytes:
        if not self.path.exists():
            logger.info("Data file %s does not exist yet, starting empty", self.path)
            return b""
        return self.path.read_bytes()

    def persist(self, data: bytes, message: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write atomically (write to temp, then rename)
        temp_path = self.path.with_name(self.path.name + ".tmp")
        temp_path.write_bytes(data)
        temp_path.replace(self.path)
        logger.debug("Saved %d bytes to %s (%s)", len(data), self.path, message)

    def close(self) -> None:
        pass
