"""Builder encadenable de peticiones HTTP (`Rq`).

Cada paso de configuración devuelve un `Rq` nuevo (copy-on-write sobre un
`RequestDescriptor` inmutable), así que el orden lo decide el caller y un
builder parcial puede reutilizarse como plantilla:

    rq = (
        Rq.from_static("https://reqres.in")
        .uri("/api/users")
        .method("GET")
        .add_secret_header("x-api-key", "reqres-free-v1")
        .add_params([("page", "2")])
    )
    envelope = await rq.apply()

Política de headers:
- `add_header` con *nombre* inválido: se registra un warning y se omite.
- `add_header` con *valor* inválido: `InvalidHeader`.
- `add_secret_header`: nombre o valor inválido -> `InvalidHeader`.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any, Callable, TypeVar

from pydantic import BaseModel

from adapters.http_client import HttpDispatcher
from core.domain.endpoint import EndpointIdentity
from core.domain.errors import InvalidHeader, InvalidPayload
from core.domain.models import (
    HeaderValue,
    HttpMethod,
    PlainHeader,
    RequestDescriptor,
    ResponseEnvelope,
    SensitiveHeader,
)
from core.interfaces.dispatcher import RequestDispatcher

logger = logging.getLogger(__name__)

T = TypeVar("T")

JSON_MEDIA_TYPE = "application/json"

# RFC 7230: token = 1*tchar
_HEADER_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
# Visible ASCII, espacio y tab; sin CR/LF/NUL.
_HEADER_VALUE_RE = re.compile(r"[\t\x20-\x7e]*")


def _display_name(name: object) -> str:
    if isinstance(name, bytes):
        return name.decode("ascii", errors="backslashreplace")
    return str(name)


def _normalize_header_name(name: str | bytes) -> str | None:
    if isinstance(name, bytes):
        try:
            name = name.decode("ascii")
        except UnicodeDecodeError:
            return None
    if not isinstance(name, str) or not _HEADER_NAME_RE.fullmatch(name):
        return None
    return name


def _check_header_value(name: str, value: str) -> str:
    if not isinstance(value, str):
        raise InvalidHeader(name, f"value must be str, got {type(value).__name__}")
    if not _HEADER_VALUE_RE.fullmatch(value):
        raise InvalidHeader(name, "value contains characters not allowed in a header")
    return value


def _as_json_object(payload: object) -> dict[str, Any]:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    elif isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise InvalidPayload(f"Payload is not valid JSON: {exc}") from exc

    if not isinstance(payload, Mapping):
        raise InvalidPayload(f"Payload must be a JSON object, got {type(payload).__name__}")

    if not all(isinstance(k, str) for k in payload):
        raise InvalidPayload("JSON object keys must be strings")
    # Copia profunda: el builder no comparte objetos con el caller.
    try:
        return json.loads(json.dumps(dict(payload)))
    except (TypeError, ValueError) as exc:
        raise InvalidPayload(f"Payload is not JSON serializable: {exc}") from exc


class Rq:
    """Builder inmutable de peticiones contra un `EndpointIdentity`."""

    __slots__ = ("_endpoint", "_request")

    def __init__(self, endpoint: EndpointIdentity, request: RequestDescriptor | None = None) -> None:
        self._endpoint = endpoint
        self._request = request if request is not None else RequestDescriptor()

    @classmethod
    def from_static(cls, url: str) -> "Rq":
        """Crea un builder a partir de una URL base (`InvalidUrl` si no es válida)."""

        return cls(EndpointIdentity.parse(url))

    @property
    def endpoint(self) -> EndpointIdentity:
        return self._endpoint

    def _evolve(self, **changes: Any) -> "Rq":
        return Rq(self._endpoint, self._request.model_copy(update=changes))

    def _with_header(self, header: HeaderValue) -> "Rq":
        headers = dict(self._request.headers)
        headers[header.name.lower()] = header
        return self._evolve(headers=headers)

    # ------------------------------------------------------------------
    # Pasos de configuración
    # ------------------------------------------------------------------

    def uri(self, path: str) -> "Rq":
        return self._evolve(path=path)

    def method(self, name: str | HttpMethod) -> "Rq":
        return self._evolve(method=HttpMethod.parse(name))

    def add_header(self, name: str | bytes, value: str) -> "Rq":
        valid_name = _normalize_header_name(name)
        if valid_name is None:
            logger.warning("Skipping header with invalid name: %r", name)
            return self
        _check_header_value(valid_name, value)
        return self._with_header(PlainHeader(name=valid_name, value=value))

    def add_secret_header(self, name: str | bytes, value: str) -> "Rq":
        valid_name = _normalize_header_name(name)
        if valid_name is None:
            raise InvalidHeader(_display_name(name), "name contains characters not allowed in a header")
        _check_header_value(valid_name, value)
        return self._with_header(SensitiveHeader(name=valid_name, value=value))

    def bearer_auth(self, token: str) -> "Rq":
        return self.add_secret_header("authorization", f"Bearer {token.strip()}")

    def with_json(self) -> "Rq":
        return self.add_header("Accept", JSON_MEDIA_TYPE).add_header("Content-Type", JSON_MEDIA_TYPE)

    def add_params(self, pairs: Iterable[tuple[str, Any]]) -> "Rq":
        """Reemplaza por completo los query params (no acumula)."""

        params = tuple((str(k), str(v)) for k, v in pairs)
        return self._evolve(query_params=params)

    def load_payload(self, payload: object) -> "Rq":
        """Mezcla las claves de primer nivel de `payload` en el cuerpo JSON."""

        body = dict(self._request.json_body)
        body.update(_as_json_object(payload))
        return self._evolve(json_body=body)

    def add_json_field(self, key: str, value: Any) -> "Rq":
        return self.load_payload({key: value})

    def add_form_field(self, key: str, value: Any) -> "Rq":
        return self._evolve(form_body=self._request.form_body + ((str(key), str(value)),))

    def load_content(self, data: bytes) -> "Rq":
        """Cuerpo binario crudo (p.ej. audio para SpeechKit)."""

        if not isinstance(data, (bytes, bytearray)):
            raise InvalidPayload(f"Content must be bytes, got {type(data).__name__}")
        return self._evolve(content=bytes(data))

    def apply_if(self, value: T | None, fn: Callable[["Rq", T], "Rq"]) -> "Rq":
        if value is None:
            return self
        return fn(self, value)

    # ------------------------------------------------------------------
    # Finalización
    # ------------------------------------------------------------------

    def build(self) -> RequestDescriptor:
        """Devuelve una copia independiente del descriptor.

        Los builders hermanos comparten estado interno; mutar el resultado no
        afecta a ninguno de ellos.
        """

        return self._request.model_copy(deep=True)

    def describe(self) -> dict[str, Any]:
        """Resumen apto para logs (headers sensibles enmascarados)."""

        request = self._request
        return {
            "method": request.method.value,
            "base_url": self._endpoint.base_url,
            "path": request.path,
            "headers": request.masked_headers(),
            "params": list(request.query_params),
            "body": request.body_kind(),
        }

    async def apply(self, dispatcher: RequestDispatcher | None = None) -> ResponseEnvelope:
        """Envía la petición (un único round trip)."""

        if dispatcher is not None:
            return await dispatcher.dispatch(self._endpoint, self._request)

        async with HttpDispatcher() as default_dispatcher:
            return await default_dispatcher.dispatch(self._endpoint, self._request)

    def __repr__(self) -> str:
        return f"Rq({self.describe()!r})"
