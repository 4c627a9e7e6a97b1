"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from depcycle.output.console import create_console, get_output, style_for_kind, style_for_outcome

if TYPE_CHECKING:
    from rich.console import Console

    from depcycle.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode.

    detect prints one cycle per line, plan one selected edge per line,
    resolve the modified component ids.
    """
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    lines: list[str] = []
    if result.op == "detect":
        lines = [c["display"] for c in result.data.get("cycles", [])]
    elif result.op == "plan":
        lines = [_edge_label(e) for e in result.data.get("selected", [])]
    elif result.op == "resolve":
        lines = list(result.data.get("modified", []))

    return "\n".join(lines) if lines else f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _edge_label(edge: dict[str, Any]) -> str:
    return f"{edge['source']} -> {edge['target']} [{edge['kind']}]"


def _kind_text(kind: str) -> Text:
    return Text(kind, style=style_for_kind(kind))


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    console.print(Text.assemble(("OK", "dc.ok"), (f"  {result.op}", "dc.op")))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    console.print(Text.assemble((f"  {key}: ", "dc.key"), str(value)))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"

    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _cycle_table(cycles: list[dict[str, Any]], *, title: str | None = None) -> Table:
    table = Table(title=title, show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Cycle", style="dc.cycle")
    table.add_column("Kinds")
    for i, cycle in enumerate(cycles, 1):
        kinds = Text(", ").join(_kind_text(k) for k in cycle.get("kinds", []))
        table.add_row(str(i), Text(str(cycle.get("display", ""))), kinds)
    return table


def _selected_table(selected: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Source", style="dc.node", no_wrap=True)
    table.add_column("Target", style="dc.node", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Recommendation")
    for edge in selected:
        table.add_row(
            edge["source"],
            edge["target"],
            _kind_text(edge["kind"]),
            edge.get("recommendation", ""),
        )
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="dc.error")
    op = Text(f"  {result.op}", style="dc.op")
    sep = Text(" — ")
    console.print(label, op, sep, Text(msg))
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Pipeline renderers ────────────────────────────────────────────────


def _render_detect(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render detect results: summary fields plus a cycle table."""
    d = result.data
    _status_line(console, result)
    _field(console, "nodes", d.get("nodes", 0))
    _field(console, "edges", d.get("edges", 0))
    _field(console, "cyclic components", len(d.get("components", [])))

    cycles = d.get("cycles", [])
    if not cycles:
        console.print("\n[dc.ok]No dependency cycles found.[/dc.ok]")
    else:
        console.print()
        console.print(_cycle_table(cycles))
        suffix = " (truncated)" if d.get("truncated") else ""
        console.print(f"\n{d.get('count', len(cycles))} cycle(s){suffix}")

    if verbose:
        for i, component in enumerate(d.get("components", []), 1):
            console.print(f"  component {i}: {', '.join(component)}")
        _render_meta(console, result)


def _render_plan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render plan results: cycles found and the edges chosen to break them."""
    d = result.data
    _status_line(console, result)
    cycles = d.get("cycles", [])
    selected = d.get("selected", [])
    _field(console, "cycles", d.get("count", len(cycles)))
    _field(console, "selected edges", len(selected))

    if verbose and cycles:
        console.print()
        console.print(_cycle_table(cycles))
    if selected:
        console.print()
        console.print(_selected_table(selected))
    else:
        console.print("\n[dc.ok]Nothing to break.[/dc.ok]")
    if verbose:
        _render_meta(console, result)


def _render_resolve(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the resolution report."""
    d = result.data
    _status_line(console, result)
    if d.get("dry_run"):
        console.print("  [dc.warning]dry run: nothing was modified[/dc.warning]")
    _field(console, "strategy", d.get("strategy", ""))
    _field(console, "passes", d.get("passes", 0))
    _field(console, "applied", d.get("applied", 0))
    _field(console, "skipped", d.get("skipped", 0))
    _field(console, "failed", d.get("failed", 0))

    resolutions = d.get("resolutions", [])
    if resolutions:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Pass", justify="right", style="dim")
        table.add_column("Edge", no_wrap=True)
        table.add_column("Kind")
        table.add_column("Strategy")
        table.add_column("Outcome")
        table.add_column("Detail")
        for res in resolutions:
            edge = res["edge"]
            final = res["result"]
            detail = final.get("reason") or json.dumps(final.get("effect", {}), separators=(",", ":"))
            table.add_row(
                str(res.get("pass_number", "")),
                f"{edge['source']} -> {edge['target']}",
                _kind_text(edge["kind"]),
                final["strategy"],
                Text(final["outcome"], style=style_for_outcome(final["outcome"])),
                Text(detail),
            )
            if verbose:
                for attempt in res.get("attempts", [])[:-1]:
                    table.add_row(
                        "",
                        "",
                        "",
                        Text(attempt["strategy"], style="dim"),
                        Text(attempt["outcome"], style=style_for_outcome(attempt["outcome"])),
                        Text(attempt.get("reason", ""), style="dim"),
                    )
        console.print()
        console.print(table)

    modified = d.get("modified", [])
    if modified:
        console.print(f"\n  modified: {', '.join(modified)}")
    if d.get("saved_to"):
        _field(console, "saved to", d["saved_to"])

    if d.get("verified"):
        remaining = d.get("remaining", [])
        if remaining:
            console.print()
            console.print(_cycle_table(remaining, title="Unresolved cycles"))
        else:
            console.print("\n[dc.ok]Verified: no dependency cycles remain.[/dc.ok]")

    if verbose:
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "detect": _render_detect,
    "plan": _render_plan,
    "resolve": _render_resolve,
}
