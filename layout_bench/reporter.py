from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table


def _fmt_count(value: Optional[int]) -> str:
    return "-" if value is None else f"{value:,}"


def _fmt_memory(value: Optional[int]) -> str:
    if not value:
        return "N/A"
    return f"{value / (1024 * 1024):.2f}"


def print_results(results: List[Dict[str, Any]], console: Optional[Console] = None) -> None:
    """
    Render trial reports as a rich table, in the order they ran.

    Complex trials show how many documents survived decoding; failed trials show
    the storage error instead of timings.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No results to display.[/yellow]")
        return

    table = Table(
        title="Storage Layout Benchmark Results",
        box=box.ROUNDED,
        caption="flat = per-attribute columns, document = serialized JSON",
    )
    table.add_column("Scale", justify="right", style="magenta")
    table.add_column("Trial", style="cyan", no_wrap=True)
    table.add_column("Returned", justify="right")
    table.add_column("Processed", justify="right")
    table.add_column("Duration (ms)", justify="right", style="bold green")
    table.add_column("Peak Memory (MB)", justify="right", style="yellow")
    table.add_column("Status", style="red")

    for res in results:
        scale = _fmt_count(res.get("scale", res.get("count_requested")))
        trial = res.get("representation", "unknown")
        if res.get("error"):
            table.add_row(scale, trial, "-", "-", "-", "-", f"FAILED: {res['error']}")
            continue

        processed = res.get("records_processed")
        status = "ok"
        if res.get("records_dropped"):
            status = f"{res['records_dropped']} dropped"
        elif res.get("decode_failures"):
            status = f"{res['decode_failures']} undecodable"

        table.add_row(
            scale,
            trial,
            _fmt_count(res.get("records_returned")),
            _fmt_count(processed),
            f"{res.get('duration_ms', 0):,}",
            _fmt_memory(res.get("peak_rss_bytes")),
            status,
        )

    console.print(table)


__all__ = ["print_results"]
