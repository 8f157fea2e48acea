"""Modelos del dominio (Pydantic v2).

Describen *qué* viaja en una petición/respuesta, no *cómo* se envía:
- `RequestDescriptor`: método, path, headers, query params y cuerpo.
- `ResponseEnvelope`: respuesta normalizada (JSON parseado o texto crudo).
- `OperationStatus`: estado de una operación larga del servidor.

Todos son inmutables (`frozen`); el builder produce copias nuevas.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.domain.errors import DecodeError, UnsupportedMethod

MASK = "***"

ModelT = TypeVar("ModelT", bound=BaseModel)


class HttpMethod(str, Enum):
    """Verbos soportados."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, name: "str | HttpMethod") -> "HttpMethod":
        if isinstance(name, HttpMethod):
            return name
        if not isinstance(name, str):
            raise UnsupportedMethod(name)
        try:
            return cls(name.strip().upper())
        except ValueError:
            raise UnsupportedMethod(name) from None


class _HeaderValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    sensitive: ClassVar[bool] = False

    name: str = Field(..., min_length=1, description="Nombre tal cual lo escribió el caller.")
    value: str = Field(..., description="Valor enviado por la red.")

    def display(self) -> str:
        """Valor apto para logs/tablas."""

        return self.value


class PlainHeader(_HeaderValue):
    kind: Literal["plain"] = "plain"


class SensitiveHeader(_HeaderValue):
    """Header secreto: idéntico en la red, enmascarado en logs y `repr`."""

    sensitive: ClassVar[bool] = True

    kind: Literal["sensitive"] = "sensitive"
    value: str = Field(..., repr=False)

    def display(self) -> str:
        return MASK

    def __repr__(self) -> str:
        return f"SensitiveHeader(name={self.name!r}, value={MASK!r})"

    __str__ = __repr__


HeaderValue = PlainHeader | SensitiveHeader


class RequestDescriptor(BaseModel):
    """Petición finalizada.

    - `headers`: clave = nombre en minúsculas (case-insensitive, last-write-wins).
    - Precedencia del cuerpo al enviar: `form_body` no vacío > `content` > `json_body`.
    """

    model_config = ConfigDict(frozen=True)

    path: str = ""
    method: HttpMethod = HttpMethod.GET
    headers: dict[str, HeaderValue] = Field(default_factory=dict)
    query_params: tuple[tuple[str, str], ...] = ()
    json_body: dict[str, Any] = Field(default_factory=dict)
    form_body: tuple[tuple[str, str], ...] = ()
    content: bytes | None = Field(default=None, repr=False)

    def header(self, name: str) -> HeaderValue | None:
        return self.headers.get(name.lower())

    def wire_headers(self) -> list[tuple[str, str]]:
        """Headers tal y como se envían (sin distinción plain/sensitive)."""

        return [(h.name, h.value) for h in self.headers.values()]

    def masked_headers(self) -> dict[str, str]:
        return {h.name: h.display() for h in self.headers.values()}

    def body_kind(self) -> Literal["form", "content", "json"]:
        if self.form_body:
            return "form"
        if self.content is not None:
            return "content"
        return "json"


class ResponseEnvelope(BaseModel):
    """Resultado normalizado de un dispatch.

    Exactamente una representación está activa:
    - `data`: éxito (2xx) con cuerpo JSON.
    - `raw_text`: cuerpo no JSON o estado no exitoso (`data` queda en `{}`).
    """

    model_config = ConfigDict(frozen=True)

    data: Any = Field(default_factory=dict)
    raw_text: str | None = None
    status_code: int

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def decode(self, model: type[ModelT], *, key: str | None = None) -> ModelT:
        """Valida `data` (o `data[key]`) contra `model`.

        Lanza `DecodeError` si la respuesta no trae JSON o no encaja.
        """

        if self.raw_text is not None:
            raise DecodeError(
                f"Expected a JSON body (HTTP {self.status_code}), got raw text: {self.raw_text[:200]!r}"
            )
        payload: Any = self.data
        if key is not None:
            if not isinstance(payload, dict) or key not in payload:
                raise DecodeError(f"Missing key {key!r} in response body")
            payload = payload[key]
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise DecodeError(f"Response does not match {model.__name__}: {exc}") from exc


class OperationStatus(BaseModel):
    """Estado de una operación larga (`GET /operations/{id}`)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., min_length=1)
    done: bool = False
    description: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    created_by: str | None = Field(default=None, alias="createdBy")
    modified_at: str | None = Field(default=None, alias="modifiedAt")
    metadata: Any = None
    response: dict[str, Any] | None = None
    error: dict[str, Any] | None = None

    @property
    def has_result(self) -> bool:
        return self.done and bool(self.response)
