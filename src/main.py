"""Entry point for the preflight readiness checklist."""

from __future__ import annotations

import argparse
import logging
import sys
import time

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.checklist.listeners import CallbackListener
from src.checklist.manager import ChecklistManager
from src.checklist.registry import ChecklistRegistry, build_manager
from src.checklist.severity import Severity
from src.config import settings
from src.notifications import ReadinessNotifier

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

_STYLE = {
    Severity.SAFE: "green",
    Severity.PENDING: "cyan",
    Severity.WARNING: "yellow",
    Severity.ERROR: "bold red",
}

EXIT_READY = 0
EXIT_NOT_READY = 1
EXIT_UNDECIDED = 2


def decide_ready(overall: Severity, strict: bool = False) -> bool:
    """Go/no-go policy: warnings are acceptable unless ``strict``."""
    if strict:
        return overall == Severity.SAFE
    return overall in (Severity.SAFE, Severity.WARNING)


def render_table(manager: ChecklistManager) -> Table:
    table = Table(title="Preflight checklist")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Check")
    table.add_column("State")
    table.add_column("Detail")
    for i, snap in enumerate(manager.snapshot()):
        style = _STYLE[snap.state]
        table.add_row(str(i + 1), snap.name, f"[{style}]{snap.state.label}[/{style}]", snap.description)
    return table


def _attach_notifier(manager: ChecklistManager) -> ReadinessNotifier | None:
    notifier = ReadinessNotifier()
    if not notifier.is_enabled:
        return None
    manager.add_listener(notifier)
    return notifier


def run_check(path: str | None, timeout: float, camera: int | None, strict: bool) -> int:
    """Run every check once until settled and print the verdict."""
    manager = build_manager(path, camera_index=camera)
    if not manager.count():
        console.print("[yellow]No checks configured.[/yellow]")
        return EXIT_UNDECIDED

    notifier = _attach_notifier(manager)
    manager.start_checking_list()
    try:
        with console.status("[bold green]Running checklist..."):
            settled = manager.wait_until_settled(timeout)
    finally:
        manager.stop_checking_list()
        if notifier:
            notifier.close()

    overall = manager.overall_state
    manager.is_ready_to_fly = settled and decide_ready(overall, strict)

    console.print(render_table(manager))
    style = _STYLE[overall]
    if not settled:
        console.print(Panel(f"Timed out after {timeout:.0f}s with checks still pending", style="cyan"))
        return EXIT_UNDECIDED
    verdict = "READY" if manager.is_ready_to_fly else "NOT READY"
    console.print(Panel(f"{verdict} (overall: {overall.label})", style=style))
    return EXIT_READY if manager.is_ready_to_fly else EXIT_NOT_READY


def run_watch(path: str | None, camera: int | None) -> int:
    """Monitor continuously and print every change until interrupted."""
    manager = build_manager(path, camera_index=camera)

    def _print_change(mgr: ChecklistManager, item) -> None:
        state = item.report_state()
        console.print(
            f"[{_STYLE[state]}]{state.label:>7}[/{_STYLE[state]}] {item.name}: "
            f"{item.report_description()}  [dim](overall {mgr.overall_state.label})[/dim]"
        )

    manager.add_listener(CallbackListener(_print_change))
    notifier = _attach_notifier(manager)
    console.print(Panel(f"Watching {manager.count()} checks (Ctrl-C to stop)", style="bold blue"))
    manager.start_checking_list()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        manager.stop_checking_list()
        if notifier:
            notifier.close()
    console.print(render_table(manager))
    return EXIT_READY


def run_list(path: str | None) -> int:
    registry = ChecklistRegistry(path)
    table = Table(title=f"Checks in {registry.path}")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Target")
    table.add_column("Every", justify="right")
    for d in registry.load():
        target = d.url or d.hostname or d.command or d.path
        table.add_row(d.id, d.label, d.type, target, f"{d.interval_seconds:g}s")
    console.print(table)
    return EXIT_READY


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Preflight readiness checklist")
    parser.add_argument("--file", "-f", default=None, help="Checklist YAML (default: settings)")
    sub = parser.add_subparsers(dest="command")

    check = sub.add_parser("check", help="Run the checklist once and print a verdict")
    check.add_argument("--timeout", type=float, default=settings.settle_timeout_seconds)
    check.add_argument("--camera", type=int, default=None, help="Preferred camera index")
    check.add_argument("--strict", action="store_true", help="Treat warnings as not ready")

    watch = sub.add_parser("watch", help="Monitor continuously")
    watch.add_argument("--camera", type=int, default=None, help="Preferred camera index")

    sub.add_parser("list", help="List configured checks")

    args = parser.parse_args(argv)

    if args.command == "check":
        return run_check(args.file, args.timeout, args.camera, args.strict)
    if args.command == "watch":
        return run_watch(args.file, args.camera)
    if args.command == "list":
        return run_list(args.file)
    parser.print_help()
    return EXIT_UNDECIDED


if __name__ == "__main__":
    sys.exit(main())
