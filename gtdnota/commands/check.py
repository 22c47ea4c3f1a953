"""Check command implementation - report integrity problems in a data file."""

import json
from collections import defaultdict
from pathlib import Path

from rich.console import Console

from ..integrity import IntegrityFinding, check_integrity
from ..persistence import load_document
from ..storage import FileStorage


def run_check(data_file: Path, fail_on: str = "error", output_json: bool = False) -> int:
    """Run integrity rules over a data file without modifying it.

    Args:
        data_file: Path to the TOML data file
        fail_on: Exit with error if this level or higher found ("error" or "warning")
        output_json: Output results as JSON instead of human-readable

    Returns:
        Exit code (0 = clean, 1 = findings at or above fail_on, 2 = unreadable file)
    """
    console = Console(stderr=True)

    try:
        raw = FileStorage(data_file).load_raw()
    except OSError as e:
        console.print(f"Failed to read {data_file}: {e}", style="bold red")
        return 2

    loaded = load_document(raw)
    if not loaded.ok:
        console.print(loaded.error.message, style="bold red")
        return 2

    document = loaded.value
    results = check_integrity(document.notas)

    level_order = {"error": 0, "warning": 1, "info": 2}
    results.sort(key=lambda r: (level_order.get(r.level, 99), r.rule, r.nota_id))

    counts = {"error": 0, "warning": 0, "info": 0}
    for r in results:
        counts[r.level] = counts.get(r.level, 0) + 1

    if output_json:
        output = {
            "findings": [r.to_dict() for r in results],
            "summary": {
                "notas": len(document.notas),
                "format_version": document.source_version,
                "errors": counts["error"],
                "warnings": counts["warning"],
                "info": counts["info"],
            },
        }
        print(json.dumps(output, indent=2))
    else:
        _print_human_output(console, results, counts, len(document.notas))

    if fail_on == "warning":
        if counts["error"] > 0 or counts["warning"] > 0:
            return 1
    else:
        if counts["error"] > 0:
            return 1
    return 0


def _print_human_output(console: Console, results: list[IntegrityFinding], counts: dict[str, int], total: int) -> None:
    console.print(f"Checked {total} nota(s)", style="dim")

    by_rule: dict[str, list[IntegrityFinding]] = defaultdict(list)
    for r in results:
        by_rule[r.rule].append(r)

    for rule_id, rule_results in sorted(by_rule.items()):
        console.print(f"\n  Rule: {rule_id}", style="bold")
        for r in rule_results:
            if r.level == "error":
                prefix_style = "bold red"
                prefix = "ERROR"
            elif r.level == "warning":
                prefix_style = "yellow"
                prefix = "WARN"
            else:
                prefix_style = "dim"
                prefix = "INFO"
            console.print(f"    {prefix}: {r.nota_id} - {r.message}", style=prefix_style)

    console.print()
    if counts["error"] == 0 and counts["warning"] == 0:
        console.print("✓ No problems found", style="bold green")
    else:
        style = "bold red" if counts["error"] else "yellow"
        console.print(f"{counts['error']} error(s), {counts['warning']} warning(s)", style=style)
