"""Errores del Core.

Jerarquía única (`RqrsError`) para que la CLI y los clientes capturen en un
solo punto. Los errores de configuración (URL, método, header, payload) se
lanzan de inmediato; los estados HTTP no exitosos NO son errores en la capa de
dispatch (viajan como datos en `ResponseEnvelope`).
"""

from __future__ import annotations


class RqrsError(Exception):
    """Base de todos los errores de la librería."""


class InvalidUrl(RqrsError):
    """La URL base o la URL resuelta no es una URL absoluta válida."""

    def __init__(self, url: str, reason: str | None = None) -> None:
        message = f"Invalid URL: {url!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.url = url


class UnsupportedMethod(RqrsError):
    def __init__(self, method: object) -> None:
        super().__init__(f"Unsupported HTTP method: {method!r}")
        self.method = method


class InvalidHeader(RqrsError):
    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid header {name!r}: {reason}")
        self.name = name
        self.reason = reason


class InvalidPayload(RqrsError):
    """El payload JSON no es un objeto (mapping)."""


class NetworkError(RqrsError):
    """Fallo de conexión, timeout o protocolo al enviar la petición."""


class DecodeError(RqrsError):
    """No se pudo parsear/validar un cuerpo con la forma esperada."""


class OperationTimeout(RqrsError):
    """La operación larga no terminó dentro del presupuesto de reintentos."""

    def __init__(self, operation_id: str, attempts: int) -> None:
        super().__init__(f"Operation {operation_id!r} did not complete after {attempts} attempts")
        self.operation_id = operation_id
        self.attempts = attempts


class OperationFailed(RqrsError):
    """El servidor marcó la operación como terminada con error."""

    def __init__(self, operation_id: str, error: object) -> None:
        super().__init__(f"Operation {operation_id!r} failed: {error}")
        self.operation_id = operation_id
        self.error = error


class ApiStatusError(RqrsError):
    """Respuesta no exitosa de un endpoint de proveedor (capa de clientes)."""

    def __init__(self, status_code: int, body: str | None) -> None:
        super().__init__(f"HTTP {status_code}: {(body or '').strip()[:500]}")
        self.status_code = status_code
        self.body = body
