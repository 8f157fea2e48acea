"""Wrapper de httpx: fábrica de clientes y dispatcher.

- `build_async_client`: `httpx.AsyncClient` con timeout y User-Agent comunes.
- `HttpDispatcher`: ejecuta un `RequestDescriptor` y normaliza la respuesta en
  un `ResponseEnvelope`. Un round trip por llamada, sin reintentos; los estados
  HTTP no exitosos viajan como datos (`status_code` + `raw_text`).
"""

from __future__ import annotations

import json
import logging
from types import TracebackType
from typing import Any
from urllib.parse import urlencode

import httpx

from core.config import AppSettings
from core.domain.endpoint import EndpointIdentity
from core.domain.errors import InvalidUrl, NetworkError
from core.domain.models import HttpMethod, RequestDescriptor, ResponseEnvelope

logger = logging.getLogger(__name__)

FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con los defaults de la librería.

    `transport` permite inyectar `httpx.MockTransport` en tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {"User-Agent": settings.user_agent}
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def normalize_response(status_code: int, text: str) -> ResponseEnvelope:
    """Normaliza estado + cuerpo en un `ResponseEnvelope`."""

    if not 200 <= status_code < 300:
        return ResponseEnvelope(raw_text=text, status_code=status_code)
    try:
        data: Any = json.loads(text)
    except ValueError:
        return ResponseEnvelope(raw_text=text, status_code=status_code)
    return ResponseEnvelope(data=data, status_code=status_code)


class HttpDispatcher:
    """Dispatcher sobre `httpx.AsyncClient`.

    Si no recibe un cliente, crea uno propio (lazy) y lo cierra en `aclose()` o
    al salir del `async with`. Un cliente inyectado nunca se cierra aquí.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "HttpDispatcher":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = build_async_client(self._settings)
        return self._client

    def _build_request(
        self,
        client: httpx.AsyncClient,
        endpoint: EndpointIdentity,
        request: RequestDescriptor,
    ) -> httpx.Request:
        url = endpoint.resolve(request.path)
        method = HttpMethod.parse(request.method)

        headers = httpx.Headers(request.wire_headers())
        params = list(request.query_params) or None

        body_kind = request.body_kind()
        if body_kind == "form":
            # El form tiene precedencia: el cuerpo JSON se ignora.
            headers["Content-Type"] = FORM_MEDIA_TYPE
            content: bytes | None = urlencode(list(request.form_body)).encode("ascii")
            return client.build_request(method.value, url, headers=headers, params=params, content=content)
        if body_kind == "content":
            return client.build_request(
                method.value, url, headers=headers, params=params, content=request.content
            )
        return client.build_request(method.value, url, headers=headers, params=params, json=request.json_body)

    async def dispatch(
        self,
        endpoint: EndpointIdentity,
        request: RequestDescriptor,
    ) -> ResponseEnvelope:
        client = self._get_client()
        try:
            http_request = self._build_request(client, endpoint, request)
        except httpx.InvalidURL as exc:
            raise InvalidUrl(endpoint.resolve(request.path), str(exc)) from exc

        logger.debug(
            "%s %s headers=%s body=%s",
            http_request.method,
            http_request.url,
            request.masked_headers(),
            request.body_kind(),
        )

        try:
            response = await client.send(http_request)
        except httpx.RequestError as exc:
            raise NetworkError(f"{http_request.method} {http_request.url} failed: {exc!r}") from exc

        logger.debug("%s %s -> HTTP %s", http_request.method, http_request.url, response.status_code)
        return normalize_response(response.status_code, response.text)
