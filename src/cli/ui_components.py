"""Componentes de UI para CLI (Rich).

Separa los detalles visuales de la lógica de los comandos para reutilizar
tablas/paneles entre `request`, `complete` y `doctor`.
"""

from __future__ import annotations

from typing import Any

from rich.align import Align
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import APP_VERSION
from core.domain.models import ResponseEnvelope


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text(f"RQRS {APP_VERSION}", style="bold cyan")
    subtitle = Text("HTTP request builder • Yandex Cloud ML", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_request_table(description: dict[str, Any]) -> Table:
    """Tabla con la petición (`Rq.describe()`); los secretos ya vienen enmascarados."""

    table = Table(title=f"{description['method']} {description['base_url']}{description['path'].lstrip('/')}")
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Value", style="magenta")

    for name, value in description["headers"].items():
        table.add_row("header", name, value)
    for key, value in description["params"]:
        table.add_row("param", key, value)
    table.add_row("body", description["body"], "")
    return table


def build_envelope_panel(envelope: ResponseEnvelope) -> Panel:
    """Panel con la respuesta: JSON formateado o texto crudo."""

    style = "green" if envelope.is_success else "red"
    title = Text(f"HTTP {envelope.status_code}", style=f"bold {style}")
    if envelope.raw_text is not None:
        body: Any = Text(envelope.raw_text or "<empty body>")
    else:
        body = JSON.from_data(envelope.data, ensure_ascii=False)
    return Panel(body, title=title, border_style=style)


def build_text_panel(text: str, *, title: str, style: str = "yellow") -> Panel:
    return Panel(Text(text.strip()), title=Text(title, style=f"bold {style}"), border_style=style)
