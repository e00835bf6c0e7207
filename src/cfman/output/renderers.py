"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cfman.output.console import BufferedConsole

if TYPE_CHECKING:
    from rich.console import Console

    from cfman.services.result import ServiceResult


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = BufferedConsole()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    return console.getvalue()


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: one identifier per line for lists."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} - {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    if isinstance(item, dict):
        for key in ("key", "resource_type", "id"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="cf.ok"), Text(f"  {result.op}", style="cf.op"))


def _field(console: Console, key: str, value: Any) -> None:
    if isinstance(value, (dict, list)):
        value = _json.dumps(value, separators=(",", ":"))
    console.print(Text(f"  {key}: ", style="cf.key"), Text(str(value)), sep="")


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(Text("ERROR", style="cf.error"), Text(f"  {result.op}", style="cf.op"), "-", msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Catalog renderers ─────────────────────────────────────────────────


def _render_plugin_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Resource type", style="cf.type", no_wrap=True)
    table.add_column("Name", style="cf.title")
    table.add_column("Task types", style="cf.task")
    if verbose:
        table.add_column("Description", style="dim")
    for item in items:
        row = [item["resource_type"], item["display_name"], ", ".join(item["task_types"])]
        if verbose:
            row.append(item["description"])
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} plugins")


def _render_plugin(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    lines = [
        f"resource type: {d['resource_type']}",
        f"description: {d['description']}",
        f"capabilities: list{''.join(', ' + c for c in d.get('capabilities', []))}",
        f"columns: {', '.join(c['key'] for c in d.get('list_columns', []))}",
    ]
    for form in ("create_form", "update_form"):
        schema = d.get(form)
        if schema:
            names = ", ".join(f["name"] for f in schema["fields"])
            lines.append(f"{form.replace('_', ' ')}: {names}")
    console.print(Panel("\n".join(lines), title=d["display_name"], border_style="dim", expand=False))

    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Task type", style="cf.task", no_wrap=True)
    table.add_column("Name", style="cf.title")
    table.add_column("Config fields")
    for task in d.get("task_types", []):
        fields = [
            f["name"] + ("*" if f.get("required") else "") for f in task["config_schema"]["fields"]
        ]
        table.add_row(task["type"], task["display_name"], ", ".join(fields) or "-")
    console.print(table)


def _render_task_types(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Key", style="cf.task", no_wrap=True)
    table.add_column("Name", style="cf.title")
    if verbose:
        table.add_column("Description", style="dim")
    for item in items:
        row = [item["key"], item["display_name"]]
        if verbose:
            row.append(item["description"])
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} task types")


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Any] = {
    "list_plugins": _render_plugin_list,
    "describe_plugin": _render_plugin,
    "list_task_types": _render_task_types,
}
