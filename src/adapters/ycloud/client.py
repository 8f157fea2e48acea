"""Envío de peticiones a Yandex Cloud ML a partir de un `RequestKind`.

El tipo de petición (completion / imagen / speech) decide ruta, método y
cuerpo; aquí solo se traduce a un `Rq` y se ejecuta.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from adapters.http_client import HttpDispatcher
from adapters.request_builder import Rq
from core.config import AppSettings
from core.domain.errors import ApiStatusError
from core.domain.models import ResponseEnvelope
from core.domain.request_kind import (
    CompletionKind,
    ImageGenerationKind,
    RequestKind,
    SpeechRecognitionKind,
)
from core.interfaces.dispatcher import RequestDispatcher

logger = logging.getLogger(__name__)


def build_request(
    kind: RequestKind,
    token: str,
    *,
    extra_headers: Iterable[tuple[str, str]] = (),
) -> Rq:
    route = kind.route()
    rq = Rq.from_static(route.base_url).uri(route.path).method(route.method)
    for name, value in extra_headers:
        rq = rq.add_header(name, value)
    rq = rq.bearer_auth(token)

    if isinstance(kind, (CompletionKind, ImageGenerationKind)):
        return rq.with_json().load_payload(kind.payload)
    if isinstance(kind, SpeechRecognitionKind):
        return rq.add_params(kind.query()).load_content(kind.audio)
    raise TypeError(f"Unknown request kind: {type(kind).__name__}")


async def execute(
    kind: RequestKind,
    token: str,
    *,
    dispatcher: RequestDispatcher | None = None,
    settings: AppSettings | None = None,
    extra_headers: Iterable[tuple[str, str]] = (),
) -> ResponseEnvelope:
    rq = build_request(kind, token, extra_headers=extra_headers)
    logger.debug("Sending %s: %s", type(kind).__name__, rq.describe())
    if dispatcher is not None:
        return await rq.apply(dispatcher)
    async with HttpDispatcher(settings) as own_dispatcher:
        return await rq.apply(own_dispatcher)


def ensure_success(envelope: ResponseEnvelope) -> ResponseEnvelope:
    """Convierte un estado no exitoso en `ApiStatusError` (capa de clientes)."""

    if not envelope.is_success:
        raise ApiStatusError(envelope.status_code, envelope.raw_text)
    return envelope
