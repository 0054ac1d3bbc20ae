"""CLI entry point for the render checker."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from render_check.baseline_registry import BaselineRegistryManager
from render_check.checker import RegressionChecker
from render_check.comparator import compare_images, write_diff_image
from render_check.models.check_result import EXIT_ERROR, EXIT_MISMATCH, EXIT_PASS, CheckResult
from render_check.models.config import DEFAULT_CONFIG_PATH, CheckerConfig, CompareConfig

console = Console()

_VERDICT_STYLE = {"pass": "green", "fail": "red", "error": "yellow"}


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> CheckerConfig:
    path = Path(config)
    if not path.exists():
        if config == DEFAULT_CONFIG_PATH:
            return CheckerConfig()
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'render-check init' to create a default config.")
        sys.exit(1)
    return CheckerConfig.load(path)


def _print_summary(result: CheckResult, reports: dict[str, str]) -> None:
    style = _VERDICT_STYLE[result.verdict]
    table = Table(title="Render Check")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Run ID", result.run_id)
    table.add_row("URL", result.url)
    table.add_row("Verdict", f"[{style}]{result.verdict.upper()}[/{style}]")
    table.add_row("Duration", f"{result.duration_seconds}s")
    if result.comparison is not None:
        c = result.comparison
        table.add_row("Differing pixels", f"{c.diff_pixels} / {c.total_pixels} ({c.diff_ratio:.4%})")
        table.add_row("Diff image", result.diff_path)
    if result.error:
        table.add_row("Error", f"[yellow]{escape(result.error)}[/yellow]")
    table.add_row("Exit code", str(result.exit_code))
    console.print(table)

    for fmt, path in reports.items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression check for a locally served page."""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Config file path")
@click.option("--update-baseline", is_flag=True, help="Accept the capture as the new baseline")
def run(config: str, update_baseline: bool) -> None:
    """Serve, render, capture and compare against the baseline."""
    cfg = _load_config(config)
    checker = RegressionChecker(cfg, update_baseline=update_baseline)
    result = checker.run()
    _print_summary(result, checker.reports)
    sys.exit(result.exit_code)


@cli.command()
@click.argument("reference", type=click.Path(path_type=Path))
@click.argument("current", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--diff", "diff_path", type=click.Path(path_type=Path), default=None, help="Write a diff image here")
@click.option("--tolerant", is_flag=True, help="Use the config's threshold instead of strict equality")
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Config file path")
def compare(reference: Path, current: Path, diff_path: Path | None, tolerant: bool, config: str) -> None:
    """Compare two existing images without launching a browser."""
    compare_cfg: CompareConfig = _load_config(config).compare.model_copy(update={"strict": not tolerant})

    try:
        comparison = compare_images(reference, current, compare_cfg)
        if diff_path is not None:
            write_diff_image(reference, current, diff_path, compare_cfg)
    except OSError as e:
        # Missing or unreadable images, including PIL.UnidentifiedImageError
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(EXIT_ERROR)

    if comparison.equal:
        console.print("[green]Images match[/green]")
        sys.exit(EXIT_PASS)
    console.print(
        f"[red]Images differ:[/red] {comparison.diff_pixels} of {comparison.total_pixels} pixels"
    )
    if diff_path is not None:
        console.print(f"  Diff image: [blue]{diff_path}[/blue]")
    sys.exit(EXIT_MISMATCH)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Config file path")
def approve(config: str) -> None:
    """Promote the last capture to the baseline."""
    cfg = _load_config(config)
    manager = BaselineRegistryManager(cfg.registry_path, page=cfg.page)
    registry = manager.load()
    try:
        entry = manager.approve(registry, cfg.capture_path, cfg.baseline_path)
    except FileNotFoundError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        console.print("Run 'render-check run' first to produce a capture.")
        sys.exit(1)
    manager.save(registry)
    console.print(
        f"[green]Approved[/green] {cfg.capture_path} -> {cfg.baseline_path} "
        f"({entry.width}x{entry.height}, sha256 {entry.image_hash[:12]})"
    )


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Config file path")
@click.option("--serve-dir", default="tests/render_test", help="Directory containing the page under test")
@click.option("--port", default=8080, type=int, help="Port for the local static server")
def init(config: str, serve_dir: str, port: int) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        console.print(f"[yellow]{config_path} already exists[/yellow]")
        return
    cfg = CheckerConfig(serve_dir=serve_dir, port=port)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print(
        "\nThe page must set [blue]window.renderComplete = true[/blue] once it has rendered "
        f"(see stabilize.ready_expression in {config_path})."
    )
    console.print("\nPlace your baseline at "
                  f"[blue]{cfg.baseline_path}[/blue] and run:")
    console.print("  [blue]render-check run[/blue]")


if __name__ == "__main__":
    cli()
