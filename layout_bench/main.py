from __future__ import annotations

import json
import sys
from typing import List, Optional

import typer

from layout_bench.config import get_settings
from layout_bench.domain.errors import StorageError
from layout_bench.domain.models import Representation, Variant
from layout_bench.reporter import print_results
from layout_bench.service import BenchmarkService
from layout_bench.storage import available_backends, create_backend
from layout_bench.utils.logging import configure_logging

app = typer.Typer(help="Flat vs document storage layout benchmark CLI.")

BackendOption = typer.Option(
    None,
    "--backend",
    "-b",
    help="Storage backend (postgres, memory). Defaults to STORAGE_BACKEND.",
)


def _service(backend: Optional[str]) -> BenchmarkService:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    name = backend or settings.storage_backend
    if name not in available_backends():
        raise typer.BadParameter(
            f"Unknown backend '{name}'. Available: {', '.join(available_backends())}",
            param_hint="--backend",
        )
    try:
        return BenchmarkService(create_backend(name), settings=settings)
    except StorageError as exc:
        typer.echo(f"Storage unavailable: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _parse_scales(raw: Optional[str]) -> Optional[List[int]]:
    if raw is None:
        return None
    try:
        scales = [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise typer.BadParameter(f"Scales must be comma-separated integers: {raw}") from exc
    if not scales or any(scale <= 0 for scale in scales):
        raise typer.BadParameter("Scales must be positive integers.", param_hint="--scales")
    return scales


def _emit(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"backend={settings.storage_backend} scales={settings.benchmark_scales} "
        f"generate_count={settings.generate_count}"
    )


@app.command()
def generate(
    count: int = typer.Argument(..., min=1, help="Number of records to insert."),
    variant: Variant = typer.Option(Variant.SIMPLE, "--variant", "-v", help="Record content."),
    representation: Representation = typer.Option(
        Representation.FLAT, "--representation", "-r", help="Storage layout to write."
    ),
    stop_on_error: bool = typer.Option(
        False, "--stop-on-error", help="Abort on the first failed write instead of counting it."
    ),
    backend: Optional[str] = BackendOption,
) -> None:
    """
    Insert synthesized records into one representation.
    """
    service = _service(backend)
    try:
        report = service.generate(variant, representation, count, stop_on_error=stop_on_error)
    except StorageError as exc:
        typer.echo(f"Generation aborted: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    _emit(report)


@app.command()
def benchmark(
    representation: Representation = typer.Argument(..., help="flat or document."),
    count: int = typer.Argument(..., min=1, help="Maximum records to fetch."),
    backend: Optional[str] = BackendOption,
) -> None:
    """
    Time one fetch+decode of the newest COUNT records.
    """
    service = _service(backend)
    try:
        result = service.benchmark(representation, count)
    except StorageError as exc:
        typer.echo(f"Benchmark failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    _emit(result)


@app.command("complex")
def complex_processing(
    count: int = typer.Argument(..., min=1, help="Maximum documents to fetch."),
    backend: Optional[str] = BackendOption,
) -> None:
    """
    Time fetch plus analytics over the newest COUNT documents.
    """
    service = _service(backend)
    try:
        result = service.benchmark_complex(count)
    except StorageError as exc:
        typer.echo(f"Complex benchmark failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    _emit(result)


@app.command()
def sweep(
    scales: Optional[str] = typer.Option(
        None, "--scales", "-s", help="Comma-separated scales (default from settings)."
    ),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Write results JSON."),
    backend: Optional[str] = BackendOption,
) -> None:
    """
    Run the full sweep across scales for flat, document and complex trials.
    """
    service = _service(backend)
    results = service.run_full_sweep(_parse_scales(scales), persist=persist)
    print_results(results)


@app.command()
def autorun(
    count: Optional[int] = typer.Option(
        None, "--count", "-c", min=1, help="Records per representation (default GENERATE_COUNT)."
    ),
    scales: Optional[str] = typer.Option(None, "--scales", "-s", help="Comma-separated scales."),
    backend: Optional[str] = BackendOption,
) -> None:
    """
    Clear the store, generate both datasets, then run the sweep.
    """
    service = _service(backend)
    try:
        results = service.startup(count=count, scales=_parse_scales(scales))
    except StorageError as exc:
        typer.echo(f"Autorun failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    print_results(results)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
