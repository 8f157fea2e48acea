"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import HttpDispatcher
from adapters.request_builder import Rq
from core.config import AppSettings, get_user_env_file, write_user_env_vars
from core.domain.errors import RqrsError
from core.domain.request_kind import LLM_BASE_URL, STT_BASE_URL

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with HttpDispatcher(settings) as dispatcher:
            envelope = await Rq.from_static(url).method("GET").apply(dispatcher)
        return True, f"HTTP {envelope.status_code}"
    except RqrsError as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="RQRS Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("Base URL", "OK", settings.url)
    table.add_row("User-Agent", "OK", settings.user_agent)
    table.add_row("Debug", "ON" if settings.debug else "OFF", "RQRS_DEBUG")
    table.add_row(
        "Polling",
        "OK",
        f"{settings.poll_max_attempts} attempts x {settings.poll_interval_seconds:g}s",
    )
    if settings.yc_iam_token:
        table.add_row("IAM token", "OK", "*** (set)")
    else:
        table.add_row("IAM token", "MISSING", "YC_IAM_TOKEN -> cloud commands disabled")
    if settings.yc_iam_folder:
        table.add_row("Folder ID", "OK", settings.yc_iam_folder)
    else:
        table.add_row("Folder ID", "MISSING", "YC_IAM_FOLDER -> cloud commands disabled")

    # Connectivity (best-effort)
    for label, url in (("LLM API", LLM_BASE_URL), ("STT API", STT_BASE_URL)):
        ok_http, detail_http = asyncio.run(_check_http(url, settings))
        table.add_row(f"{label} connectivity", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)


@app.command(name="setup-cloud")
def setup_cloud() -> None:
    """Interactive Yandex Cloud setup (stores config in the user config .env)."""

    folder = typer.prompt("Folder ID", default="", show_default=False).strip()
    token = typer.prompt("IAM token", hide_input=True, confirmation_prompt=False).strip()
    url = typer.prompt("Default base URL", default=AppSettings().url, show_default=True).strip()

    if not folder or not token:
        raise typer.BadParameter("folder and token are required")

    env_path = write_user_env_vars(
        {
            "RQRS_YC_IAM_FOLDER": folder,
            "RQRS_YC_IAM_TOKEN": token,
            "RQRS_URL": url or None,
        }
    )

    _console.print(f"[green]Saved cloud config to:[/green] {env_path}")


@app.command()
def where() -> None:
    """Print the path of the user config .env file."""

    _console.print(str(get_user_env_file()))
