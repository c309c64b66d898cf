"""Terminal output for the stellar-zk CLI (rich)."""
from __future__ import annotations

from rich.box import ROUNDED
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..estimator import (
    MAX_LEDGER_READS,
    MAX_LEDGER_WRITES,
    MAX_MEMORY_BYTES,
    CostEstimate,
    Status,
    cpu_status,
    wasm_status,
)
from ..profile import MAX_CPU_INSTRUCTIONS, MAX_WASM_SIZE

console = Console()
err_console = Console(stderr=True)

_STATUS_STYLE = {Status.OK: "green", Status.WARN: "yellow", Status.FAIL: "red bold"}


def print_header(title: str) -> None:
    console.print()
    console.print(Panel(f"[bold]{title}[/bold]", border_style="cyan", expand=False))


def print_key_value(key: str, value: object) -> None:
    console.print(f"  [dim]{key + ':':<16}[/dim] {escape(str(value))}")


def print_step(step: int, total: int, message: str) -> None:
    console.print(f"[cyan][{step}/{total}][/cyan] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_warning(message: str) -> None:
    err_console.print(f"[yellow]⚠[/yellow] {escape(message)}")


def print_error(message: str) -> None:
    err_console.print(f"[red]✗[/red] {escape(message)}")


def format_bytes(n: int) -> str:
    if n >= 1_048_576:
        return f"{n / 1_048_576:.1f} MB"
    if n >= 1024:
        return f"{n / 1024:.1f} KB"
    return f"{n} B"


def _status(status: Status) -> str:
    style = _STATUS_STYLE[status]
    return f"[{style}]{status.value}[/{style}]"


def estimate_table(estimate: CostEstimate, backend: str) -> Table:
    table = Table(
        title=f"Cost Estimate: {backend}",
        box=ROUNDED,
        border_style="cyan",
        header_style="bold",
    )
    table.add_column("Resource", min_width=18)
    table.add_column("Estimated", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Usage", justify="right")
    table.add_column("Status")

    table.add_row(
        "CPU Instructions",
        f"{estimate.cpu_instructions:,}",
        f"{MAX_CPU_INSTRUCTIONS:,}",
        f"{estimate.cpu_percent:.1f}%",
        _status(cpu_status(estimate.cpu_instructions)),
    )
    table.add_row("Memory", format_bytes(estimate.memory_bytes), format_bytes(MAX_MEMORY_BYTES), "-", "")
    table.add_row(
        "WASM Size",
        format_bytes(estimate.wasm_size),
        f"{MAX_WASM_SIZE:,}",
        f"{estimate.wasm_percent:.1f}%",
        _status(wasm_status(estimate.wasm_size)),
    )
    table.add_row("Ledger Reads", str(estimate.ledger_reads), str(MAX_LEDGER_READS), "-", "")
    table.add_row("Ledger Writes", str(estimate.ledger_writes), str(MAX_LEDGER_WRITES), "-", "")
    return table


def print_estimate(estimate: CostEstimate, backend: str) -> None:
    console.print()
    console.print(estimate_table(estimate, backend))
    console.print(
        f"  Estimated fee: [bold]{estimate.fee_xlm:.4f} XLM[/bold] "
        f"({estimate.estimated_fee_stroops:,} stroops)"
    )
    if estimate.warnings:
        console.print("\n  [yellow]Warnings:[/yellow]")
        for warning in estimate.warnings:
            console.print(f"    * {warning}")
    for note in estimate.notes:
        console.print(f"  [dim]Note: {note}[/dim]")
    console.print()
