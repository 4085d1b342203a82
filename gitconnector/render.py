"""
Rendering functions for gitconnector output.

Operations return data; this module makes it human-readable for --pretty.
"""

from typing import Any, Dict

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .domain.operation import OperationOutcome

console = Console()


def _format_value(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        return "\n".join(str(v) for v in value) or "-"
    if isinstance(value, dict):
        return "\n".join(f"{k}: {_format_value(v)}" for k, v in value.items()) or "-"
    return str(value)


def render_mapping(data: Dict[str, Any]) -> Table:
    """Two-column key/value table."""
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key, _format_value(value))
    return table


def render_outcome(outcome: OperationOutcome) -> None:
    """Render an operation outcome as a panel."""
    data = outcome.to_dict()
    if outcome.ok:
        result = data.get('result')
        body = render_mapping(result) if isinstance(result, dict) else _format_value(result)
        title = f"[bold green]{outcome.operation}[/bold green] succeeded"
        style = "green"
    else:
        body = render_mapping({
            'kind': outcome.kind,
            'message': outcome.message,
            **data.get('details', {}),
        })
        title = f"[bold red]{outcome.operation}[/bold red] failed"
        style = "red"

    subtitle = outcome.directory or None
    console.print(Panel(body, title=title, subtitle=subtitle, border_style=style, box=box.ROUNDED))
