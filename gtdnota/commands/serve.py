"""Serve command implementation - run the MCP stdio tool server."""

import logging
from pathlib import Path

from rich.console import Console

from ..mcp.server import serve
from ..service import NotaService
from ..storage import FileStorage, Persistence
from ..sync import SyncedStorage

logger = logging.getLogger(__name__)


def run_serve(data_file: Path, sync_git: bool = False) -> int:
    """Serve the data file over stdio until the client disconnects.

    stdout carries the protocol stream; diagnostics go to stderr only.
    """
    console = Console(stderr=True)

    persistence: Persistence = FileStorage(data_file)
    if sync_git:
        persistence = SyncedStorage(persistence)

    opened = NotaService.open(persistence)
    if not opened.ok:
        console.print(opened.error.message, style="bold red")
        return 1

    service = opened.value
    logger.info("Serving %s (%d notas, git sync %s)", data_file, len(service.store), "on" if sync_git else "off")
    try:
        return serve(service)
    finally:
        service.close()
