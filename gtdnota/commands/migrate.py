"""Migrate command implementation - rewrite a data file in the current format."""

import sys
from pathlib import Path

from rich.console import Console

from ..persistence import CURRENT_VERSION, decode, encode, load_document
from ..storage import FileStorage


def run_migrate(data_file: Path, dry_run: bool = False) -> int:
    """Load a data file of any supported version and write it back as the current version.

    Args:
        data_file: Path to the TOML data file
        dry_run: Print the migrated document to stdout instead of writing it

    Returns:
        Exit code (0 = success, 1 = file could not be loaded or written)
    """
    console = Console(stderr=True)
    storage = FileStorage(data_file)
    try:
        raw = storage.load_raw()
    except OSError as e:
        console.print(f"Failed to read {data_file}: {e}", style="bold red")
        return 1

    loaded = load_document(raw)
    if not loaded.ok:
        console.print(loaded.error.message, style="bold red")
        return 1
    # Refuses documents the store would reject (duplicate ids)
    decoded = decode(raw)
    if not decoded.ok:
        console.print(decoded.error.message, style="bold red")
        return 1

    data = encode(decoded.value.all())
    source_version = loaded.value.source_version

    if dry_run:
        sys.stdout.write(data.decode("utf-8"))
        console.print(
            f"Dry run: format_version {source_version} -> {CURRENT_VERSION}, {len(decoded.value)} nota(s)",
            style="dim",
        )
        return 0

    try:
        storage.persist(data, f"Migrate to format_version {CURRENT_VERSION}")
    except OSError as e:
        console.print(f"Failed to write {data_file}: {e}", style="bold red")
        return 1
    console.print(
        f"✓ Migrated {data_file} from format_version {source_version} to {CURRENT_VERSION} "
        f"({len(decoded.value)} nota(s))",
        style="bold green",
    )
    return 0
