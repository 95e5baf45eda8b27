"""Command-line interface for the Docmost to Docusaurus exporter."""

from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import AppConfig, ensure_config, format_duration
from .errors import ConfigError, LockError, PartialSyncError
from .health import HealthChecker, HealthServer
from .local.transliterate import transliterate as transliterate_text
from .lock import FileLock
from .logger import setup_logging
from .reconcile.actions import ReconcileResult
from .reconcile.pipeline import reconcile as reconcile_tree
from .sync.scheduler import Scheduler
from .sync.service import SyncReport, SyncService, create_client

app = typer.Typer(help="Export Docmost spaces into Docusaurus-ready Markdown trees.")
console = Console()
logger = logging.getLogger(__name__)

SIGNAL_POLL_INTERVAL = 0.5


def _format_report(report: SyncReport) -> None:
    table = Table(title="Docmost Sync Summary")
    table.add_column("Space")
    table.add_column("Files", justify="right")
    table.add_column("Changes", justify="right")
    table.add_column("Warnings", justify="right")
    table.add_column("Result")
    for result in report.spaces:
        outcome = (
            f"[green]published[/green] {result.directory}"
            if result.published
            else f"[red]failed[/red] {result.error}"
        )
        table.add_row(
            result.name,
            str(result.files_written),
            str(result.actions),
            str(result.warnings),
            outcome,
        )
    console.print(table)


def _format_reconcile(result: ReconcileResult) -> None:
    table = Table(title=f"Reconcile Summary ({len(result.rounds)} round(s))")
    table.add_column("Pass")
    table.add_column("Changes", justify="right")
    table.add_column("Warnings", justify="right")
    for round_number, results in enumerate(result.rounds, start=1):
        for pass_result in results:
            if not pass_result.actions and not pass_result.warnings:
                continue
            name = pass_result.name
            if len(result.rounds) > 1:
                name = f"{round_number}: {name}"
            table.add_row(name, str(len(pass_result.actions)), str(len(pass_result.warnings)))
    console.print(table)
    console.print(f"{result.action_count} change(s), {len(result.warnings)} warning(s).")


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a configuration TOML file",
    ),
) -> None:
    ctx.obj = {"config_path": config_path}


def _build_run(config: AppConfig, checker: Optional[HealthChecker]):
    output = config.sync.output_dir.resolve()

    def _run(cancel: threading.Event) -> SyncReport:
        if checker is not None:
            checker.set_running(True)
        client = create_client(
            base_url=str(config.credentials.base_url),
            email=config.credentials.email,
            password=config.credentials.password,
        )
        try:
            service = SyncService(client, output, converge=config.sync.converge)
            report = service.run(cancel)
            _format_report(report)
            if report.failed_spaces:
                raise PartialSyncError(report.failed_spaces)
        except Exception as exc:
            if checker is not None:
                checker.update_sync_status(exc)
            raise
        else:
            if checker is not None:
                checker.update_sync_status(None)
            return report
        finally:
            client.close()
            if checker is not None:
                checker.set_running(False)

    return _run


def _wait_for_scheduler(scheduler: Scheduler) -> None:
    """Run the scheduler in a worker thread until it ends or a signal arrives."""

    stop = threading.Event()

    def _handle_signal(signum, frame) -> None:  # noqa: ARG001 - signal handler signature
        logger.info("Received signal: %s", signal.Signals(signum).name)
        stop.set()

    previous = {
        signum: signal.signal(signum, _handle_signal)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }
    worker = threading.Thread(target=scheduler.start, name="scheduler", daemon=True)
    worker.start()
    try:
        while worker.is_alive() and not stop.wait(SIGNAL_POLL_INTERVAL):
            pass
        if stop.is_set():
            scheduler.shutdown()
        worker.join(timeout=1.0)
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


@app.command()
def sync(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory that receives one published folder per space (env: OUTPUT_DIR)",
    ),
    once: bool = typer.Option(False, "--once", help="Run once and exit, ignoring any interval"),
    interval: Optional[str] = typer.Option(
        None, "--interval", "-i", help="Time between runs, e.g. 30m or 1h (env: SYNC_INTERVAL)"
    ),
    base_url: Optional[str] = typer.Option(None, help="Base URL of the Docmost server"),
    email: Optional[str] = typer.Option(None, help="Login email"),
    password: Optional[str] = typer.Option(None, help="Login password"),
    http_port: Optional[str] = typer.Option(
        None, "--http-port", help="Health endpoint listen address, e.g. :8080"
    ),
    no_health: bool = typer.Option(False, "--no-health", help="Do not start the health endpoint"),
    lock_file: Optional[Path] = typer.Option(None, "--lock-file", help="Single-instance lock file"),
    converge: Optional[bool] = typer.Option(
        None, "--converge/--no-converge", help="Repeat reconciliation until nothing changes"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Append a plain-text copy of the log to this file"
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a configuration TOML file (overrides the global option)",
    ),
) -> None:
    """Export all spaces, once or periodically, and publish them atomically."""

    setup_logging(debug=debug, log_file=log_file)
    try:
        config = ensure_config(
            base_url=base_url,
            email=email,
            password=password,
            output_dir=output,
            interval=interval,
            once=once,
            http_port=http_port,
            lock_file=lock_file,
            converge=converge,
            config_path=config_path or (ctx.obj or {}).get("config_path"),
        )
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    instance_lock = FileLock(config.sync.lock_file)
    try:
        instance_lock.acquire()
    except LockError as exc:
        console.print(f"[red]Failed to acquire lock:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    settings = config.sync
    logger.info("Server: %s", config.credentials.base_url)
    logger.info("Output: %s", settings.output_dir)
    if settings.interval:
        logger.info("Sync interval: %s", format_duration(settings.interval))
    else:
        logger.info("Mode: one-shot (run once and exit)")

    checker: Optional[HealthChecker] = None
    server: Optional[HealthServer] = None
    try:
        if not no_health:
            checker = HealthChecker(settings.interval)
            server = HealthServer(checker, settings.http_port)
            try:
                server.start()
            except (OSError, ValueError) as exc:
                logger.warning("Health endpoint disabled: %s", exc)
                server = None

        scheduler = Scheduler(_build_run(config, checker), settings.interval)
        _wait_for_scheduler(scheduler)
        stats = scheduler.stats()
    finally:
        if server is not None:
            server.stop()
        instance_lock.release()

    logger.info("Shutdown complete")
    if scheduler.one_shot and stats.last_error:
        raise typer.Exit(code=1)


@app.command()
def reconcile(
    directory: Path = typer.Argument(..., help="Working tree containing _metadata.json"),
    converge: bool = typer.Option(
        False, "--converge", help="Repeat the passes until a round changes nothing"
    ),
    max_rounds: int = typer.Option(4, "--max-rounds", min=1, help="Round limit for --converge"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Run the reconciliation passes on an existing directory in place."""

    setup_logging(debug=debug)
    directory = directory.resolve()
    if not directory.is_dir():
        raise typer.BadParameter(f"Directory {directory} does not exist")
    result = reconcile_tree(directory, converge=converge, max_rounds=max_rounds)
    _format_reconcile(result)


@app.command()
def transliterate(
    words: list[str] = typer.Argument(..., help="Words to transliterate"),
) -> None:
    """Print the ASCII transliteration of each word."""

    for word in words:
        console.print(f"{word} -> {transliterate_text(word)}", markup=False, highlight=False)


def run() -> None:
    """Entry point for console scripts."""

    app()


if __name__ == "__main__":  # pragma: no cover
    run()
