"""CLI de RQRS (Typer + Rich).

Comandos:
- `request`: petición genérica construida con `Rq`.
- `complete`: completion de texto (YandexGPT).
- `image`: generación de imagen (YandexART) con polling de la operación.
- `speech`: reconocimiento de voz (SpeechKit).
- `doctor`: diagnóstico de configuración/conectividad.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

import typer
from rich.console import Console

from adapters.http_client import HttpDispatcher
from adapters.request_builder import Rq
from adapters.ycloud import CompletionPayload, ImagePayload, SpeechPayload
from cli import doctor
from cli.ui_components import build_envelope_panel, build_request_table, build_text_panel, print_banner
from core.config import AppSettings
from core.domain.errors import RqrsError
from core.log_setup import setup_logging
from core.services.operation_poller import OperationPoller

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="HTTP request builder and Yandex Cloud ML clients.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Ejecuta una corrutina y traduce `RqrsError` a exit code 1."""

    try:
        return asyncio.run(coro)
    except RqrsError as exc:
        _console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _split_pair(raw: str, sep: str) -> tuple[str, str]:
    if sep not in raw:
        raise typer.BadParameter(f"Expected KEY{sep}VALUE, got {raw!r}")
    key, value = raw.split(sep, 1)
    return key.strip(), value.strip()


def _require(value: str | None, env_name: str) -> str:
    if not value or not value.strip():
        raise typer.BadParameter(f"{env_name} is not configured (env var or `rqrs doctor setup-cloud`)")
    return value.strip()


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Verbose logging (secrets masked)."),
    banner: bool = typer.Option(False, "--banner", help="Print the banner before running."),
) -> None:
    settings = AppSettings()
    setup_logging(debug or settings.debug)
    if banner:
        print_banner(_console)


@app.command()
def request(
    url: Optional[str] = typer.Argument(None, help="Base URL (default: RQRS_URL)."),
    path: str = typer.Option("", "--path", "-p", help="Path resolved against the base URL."),
    method: str = typer.Option("GET", "--method", "-X", help="GET, POST, PUT or DELETE."),
    header: list[str] = typer.Option([], "--header", "-H", help="Header as NAME:VALUE."),
    secret_header: list[str] = typer.Option([], "--secret-header", "-S", help="Masked header NAME:VALUE."),
    param: list[str] = typer.Option([], "--param", "-q", help="Query parameter KEY=VALUE."),
    form: list[str] = typer.Option([], "--form", "-F", help="Form field KEY=VALUE (overrides --json)."),
    json_body: Optional[str] = typer.Option(None, "--json", "-d", help="JSON object body."),
    json_defaults: bool = typer.Option(False, "--json-defaults", help="Set Accept/Content-Type to JSON."),
    show_request: bool = typer.Option(False, "--show-request", help="Print the request before sending."),
) -> None:
    """Build a request with the chainable builder and print the normalized response."""

    settings = AppSettings()

    async def _send() -> None:
        rq = Rq.from_static(url or settings.url).uri(path).method(method)
        for raw in header:
            rq = rq.add_header(*_split_pair(raw, ":"))
        for raw in secret_header:
            rq = rq.add_secret_header(*_split_pair(raw, ":"))
        if json_defaults:
            rq = rq.with_json()
        rq = (
            rq.apply_if([_split_pair(raw, "=") for raw in param] or None, Rq.add_params)
            .apply_if(json_body, Rq.load_payload)
        )
        for raw in form:
            rq = rq.add_form_field(*_split_pair(raw, "="))

        if show_request:
            _console.print(build_request_table(rq.describe()))

        async with HttpDispatcher(settings) as dispatcher:
            envelope = await rq.apply(dispatcher)
        _console.print(build_envelope_panel(envelope))

    _run(_send())


@app.command()
def complete(
    prompt: str = typer.Argument(..., help="User message."),
    system: Optional[str] = typer.Option(None, "--system", help="System prompt."),
    session_id: Optional[str] = typer.Option(None, "--session-id", help="X-Session-ID (default: random UUID)."),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens", min=1),
    temperature: Optional[float] = typer.Option(None, "--temperature", min=0.0, max=1.0),
    history: Optional[Path] = typer.Option(None, "--history", help="JSON file with the message history."),
) -> None:
    """Text completion; with --history the conversation is loaded and saved back."""

    settings = AppSettings()
    token = _require(settings.yc_iam_token, "YC_IAM_TOKEN")
    folder = _require(settings.yc_iam_folder, "YC_IAM_FOLDER")

    payload = CompletionPayload.new(folder)
    if max_tokens is not None:
        payload = payload.max_tokens(max_tokens)
    if temperature is not None:
        payload = payload.temperature(temperature)
    if history is not None and history.exists():
        payload = payload.load_messages(json.loads(history.read_text(encoding="utf-8")))
    if system and not payload.messages:
        payload = payload.system(system)
    payload = payload.user(prompt)

    async def _send() -> str:
        async with HttpDispatcher(settings) as dispatcher:
            response = await payload.run(token, session_id or str(uuid.uuid4()), dispatcher=dispatcher)
        return response.first_final_text()

    answer = _run(_send())
    _console.print(build_text_panel(answer, title="Assistant"))

    if history is not None:
        history.parent.mkdir(parents=True, exist_ok=True)
        history.write_text(
            json.dumps(payload.assistant(answer).save_messages(), ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )


@app.command()
def image(
    prompt: str = typer.Argument(..., help="Image description."),
    output: Path = typer.Option(Path("image.jpeg"), "--output", "-o", help="Where to write the image."),
    seed: Optional[int] = typer.Option(None, "--seed"),
    aspect: str = typer.Option("16:9", "--aspect", help="Aspect ratio WIDTH:HEIGHT."),
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Poll the operation until the image is ready."),
) -> None:
    """Start an image generation and (by default) wait for the result."""

    settings = AppSettings()
    token = _require(settings.yc_iam_token, "YC_IAM_TOKEN")
    folder = _require(settings.yc_iam_folder, "YC_IAM_FOLDER")

    width, height = _split_pair(aspect, ":")
    if not (width.isdigit() and height.isdigit()):
        raise typer.BadParameter(f"Invalid aspect ratio: {aspect!r}")

    payload = ImagePayload.new(folder).text(prompt).aspect_ratio(int(width), int(height))
    if seed is not None:
        payload = payload.seed(seed)

    async def _send() -> None:
        async with HttpDispatcher(settings) as dispatcher:
            operation = await payload.run(token, dispatcher=dispatcher)
            _console.print(f"[cyan]Operation:[/cyan] {operation.id}")
            if not wait:
                return
            poller = OperationPoller.from_settings(settings, dispatcher)
            with _console.status("Waiting for image generation..."):
                path = await ImagePayload.save_image(operation, token, output, poller=poller)
        _console.print(f"[green]Saved image to:[/green] {path}")

    _run(_send())


@app.command()
def speech(
    audio: Path = typer.Argument(..., exists=True, dir_okay=False, help="Audio file (OggOpus by default)."),
    lang: str = typer.Option("ru-RU", "--lang", help="Recognition language."),
) -> None:
    """Recognize speech from a short audio file."""

    settings = AppSettings()
    token = _require(settings.yc_iam_token, "YC_IAM_TOKEN")
    folder = _require(settings.yc_iam_folder, "YC_IAM_FOLDER")

    payload = SpeechPayload.new(folder, lang).file(audio)

    async def _send() -> str:
        async with HttpDispatcher(settings) as dispatcher:
            response = await payload.run(token, dispatcher=dispatcher)
        return response.result

    _console.print(build_text_panel(_run(_send()), title="Transcript", style="green"))


def run() -> None:
    app()
