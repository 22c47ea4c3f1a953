"""List command implementation - filtered listing of a data file."""

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..persistence.codec import nota_to_record
from ..service import NotaService
from ..storage import FileStorage


def run_list(
    data_file: Path,
    status: str | None = None,
    date: str | None = None,
    keyword: str | None = None,
    project: str | None = None,
    context: str | None = None,
    exclude_notes: bool = False,
    output_json: bool = False,
) -> int:
    """Print notas matching the filters. Read-only: the file is never written."""
    console = Console(stderr=True)

    opened = NotaService.open(FileStorage(data_file))
    if not opened.ok:
        console.print(opened.error.message, style="bold red")
        return 2

    result = opened.value.query(
        status=status,
        date=date,
        keyword=keyword,
        project=project,
        context=context,
        exclude_notes=exclude_notes,
    )
    if not result.ok:
        console.print(result.error.message, style="bold red")
        return 1

    notas = list(result.value)
    if output_json:
        print(json.dumps([nota_to_record(n) for n in notas], indent=2, ensure_ascii=False))
        return 0

    if not notas:
        console.print("No items found", style="dim")
        return 0

    table = Table(title=f"Found {len(notas)} item(s)")
    table.add_column("ID", style="bold")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Project")
    table.add_column("Context")
    table.add_column("Start")
    for nota in notas:
        table.add_row(
            nota.id,
            nota.title,
            nota.status.value,
            nota.project or "",
            nota.context or "",
            nota.start_date.isoformat() if nota.start_date else "",
        )
    Console().print(table)
    return 0
