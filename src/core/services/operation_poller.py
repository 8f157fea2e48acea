"""Polling de operaciones largas (`GET /operations/{id}`).

Máquina de estados:
- Pending -> Completed: `done=true` con `response` no vacío.
- Pending -> Pending: `done=false` (o `done=true` sin `response`); espera
  `interval` segundos y reintenta.
- Pending -> Exhausted: se consumen `max_attempts` consultas sin completar;
  `OperationTimeout` con el número de intentos.

Solo hay una consulta en vuelo por operación. La espera es `asyncio.sleep`,
así que cancelar la tarea que llama a `wait` corta el bucle de inmediato.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from adapters.request_builder import Rq
from core.config import AppSettings
from core.domain.endpoint import EndpointIdentity
from core.domain.errors import OperationFailed, OperationTimeout
from core.domain.models import HttpMethod, OperationStatus
from core.domain.request_kind import LLM_BASE_URL, operation_path
from core.interfaces.dispatcher import RequestDispatcher

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 20.0
DEFAULT_MAX_ATTEMPTS = 10

SleepFn = Callable[[float], Awaitable[None]]


class OperationPoller:
    """Consulta el estado de una operación hasta que termina o se agota el presupuesto."""

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        *,
        endpoint: EndpointIdentity | None = None,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self._dispatcher = dispatcher
        self._endpoint = endpoint or EndpointIdentity.parse(LLM_BASE_URL)
        self._interval = interval
        self._max_attempts = max_attempts
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        dispatcher: RequestDispatcher,
        *,
        endpoint: EndpointIdentity | None = None,
    ) -> "OperationPoller":
        return cls(
            dispatcher,
            endpoint=endpoint,
            interval=settings.poll_interval_seconds,
            max_attempts=settings.poll_max_attempts,
        )

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def status_request(self, operation_id: str, token: str | None = None) -> Rq:
        return (
            Rq(self._endpoint)
            .uri(operation_path(operation_id))
            .method(HttpMethod.GET)
            .apply_if(token, Rq.bearer_auth)
        )

    async def fetch(self, operation_id: str, token: str | None = None) -> OperationStatus | None:
        """Una consulta de estado. `None` si el servidor respondió con error HTTP."""

        envelope = await self.status_request(operation_id, token).apply(self._dispatcher)
        if not envelope.is_success:
            logger.warning(
                "Operation %s status check returned HTTP %s: %s",
                operation_id,
                envelope.status_code,
                (envelope.raw_text or "")[:200],
            )
            return None
        return envelope.decode(OperationStatus)

    async def wait(self, operation_id: str, token: str | None = None) -> OperationStatus:
        for attempt in range(1, self._max_attempts + 1):
            status = await self.fetch(operation_id, token)

            if status is not None:
                if status.done and status.error:
                    raise OperationFailed(operation_id, status.error)
                if status.has_result:
                    logger.debug("Operation %s completed after %d attempt(s)", operation_id, attempt)
                    return status

            if attempt < self._max_attempts:
                logger.debug(
                    "Operation %s not ready (attempt %d/%d), waiting %.1fs",
                    operation_id,
                    attempt,
                    self._max_attempts,
                    self._interval,
                )
                await self._sleep(self._interval)

        raise OperationTimeout(operation_id, self._max_attempts)
