"""Contrato del dispatcher HTTP.

Protocol estructural: el poller y los clientes dependen de esto, y los tests
pueden inyectar cualquier objeto con `dispatch` (o un `HttpDispatcher` sobre un
transporte simulado).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.endpoint import EndpointIdentity
from core.domain.models import RequestDescriptor, ResponseEnvelope


@runtime_checkable
class RequestDispatcher(Protocol):
    """Ejecuta un `RequestDescriptor` finalizado.

    Reglas:
    - Un único round trip por llamada, sin reintentos.
    - Estados HTTP no exitosos se devuelven en el sobre, no se lanzan.
    """

    async def dispatch(
        self,
        endpoint: EndpointIdentity,
        request: RequestDescriptor,
    ) -> ResponseEnvelope:
        ...
