"""Configuración de logging (stdlib `logging` + `rich`).

Cada módulo usa `logging.getLogger(__name__)`; la salida se configura una sola
vez desde la CLI. Los headers sensibles ya llegan enmascarados a los mensajes.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAMESPACES = ("core", "adapters", "cli")


def setup_logging(debug: bool = False, *, console: Console | None = None) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=debug,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    for name in LOGGER_NAMESPACES:
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.setLevel(level)
        logger.propagate = False

    # httpx registra cada request en INFO; solo lo mostramos en modo debug.
    logging.getLogger("httpx").setLevel(logging.INFO if debug else logging.WARNING)
