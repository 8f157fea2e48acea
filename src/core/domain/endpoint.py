"""Identidad del endpoint (URL base).

La URL base se valida una sola vez al construir el cliente y es inmutable:
todas las peticiones construidas contra ella la comparten.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

from pydantic import BaseModel, ConfigDict, field_validator

from core.domain.errors import InvalidUrl

_ALLOWED_SCHEMES = ("http", "https")
_WHITESPACE_OR_CONTROL_RE = re.compile(r"[\x00-\x20\x7f]")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


def validate_absolute_url(url: str, *, allow_spaces: bool = False) -> str:
    """Valida una URL absoluta http(s) y la devuelve normalizada.

    Con `allow_spaces` solo se rechazan caracteres de control: los espacios del
    path los codifica httpx (`/a b` -> `/a%20b`). Scheme y host nunca los admiten.

    Normalización mínima: una URL sin path recibe `/` (p.ej.
    `http://localhost:3000` -> `http://localhost:3000/`).
    """

    if not isinstance(url, str) or not url:
        raise InvalidUrl(str(url), "empty")
    forbidden = _CONTROL_RE if allow_spaces else _WHITESPACE_OR_CONTROL_RE
    if forbidden.search(url):
        raise InvalidUrl(url, "contains whitespace or control characters")

    try:
        parts = urlsplit(url)
        # `port` valida el rango y que sea numérico.
        _ = parts.port
    except ValueError as exc:
        raise InvalidUrl(url, str(exc)) from exc

    if parts.scheme.lower() not in _ALLOWED_SCHEMES:
        raise InvalidUrl(url, "scheme must be http or https")
    if not parts.hostname:
        raise InvalidUrl(url, "missing host")
    if " " in parts.netloc:
        raise InvalidUrl(url, "host contains whitespace")

    if not parts.path:
        return parts._replace(path="/").geturl()
    return url


class EndpointIdentity(BaseModel):
    """URL base inmutable contra la que se resuelven los paths."""

    model_config = ConfigDict(frozen=True)

    base_url: str

    @field_validator("base_url", mode="before")
    @classmethod
    def _check_base_url(cls, value: object) -> str:
        return validate_absolute_url(str(value) if value is not None else "")

    @classmethod
    def parse(cls, url: str) -> "EndpointIdentity":
        return cls(base_url=url)

    def resolve(self, path: str) -> str:
        """Combina la URL base con `path` y valida el resultado."""

        if not path:
            return self.base_url
        # `urljoin` descarta tab/CR/LF en silencio.
        if _CONTROL_RE.search(path):
            raise InvalidUrl(path, "contains control characters")
        try:
            joined = urljoin(self.base_url, path)
        except ValueError as exc:
            raise InvalidUrl(path, str(exc)) from exc
        return validate_absolute_url(joined, allow_spaces=True)

    def __str__(self) -> str:
        return self.base_url
