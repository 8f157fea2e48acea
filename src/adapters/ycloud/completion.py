"""Cliente de completion de texto (YandexGPT).

Flujo típico:

    payload = CompletionPayload.new(folder_id).system("You are financial bot").user("who are you?")
    response = await payload.run(token, session_id)
    answer = response.first_final_text()
    payload = payload.assistant(answer).user("What can you do?")
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from adapters.ycloud.client import ensure_success, execute
from core.domain.errors import DecodeError, InvalidPayload
from core.domain.models import ResponseEnvelope
from core.domain.request_kind import CompletionKind
from core.interfaces.dispatcher import RequestDispatcher

FINAL_STATUS = "ALTERNATIVE_STATUS_FINAL"


def _default_completion_options() -> dict[str, Any]:
    return {
        "stream": False,
        "temperature": 0,
        "maxTokens": "2000",
        "reasoningOptions": {"mode": "DISABLED"},
    }


class CompletionMessage(BaseModel):
    role: str = Field(..., description="system | user | assistant")
    text: str


class CompletionAlternative(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: CompletionMessage
    status: str


class CompletionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, protected_namespaces=())

    alternatives: list[CompletionAlternative] = Field(default_factory=list)
    model_version: str = Field(default="", alias="modelVersion")
    usage: dict[str, Any] = Field(default_factory=dict)

    def first_final_text(self) -> str:
        for alt in self.alternatives:
            if alt.status == FINAL_STATUS:
                return alt.message.text
        raise DecodeError("No final alternative found")


class CompletionPayload(BaseModel):
    """Payload de `/foundationModels/v1/completion`.

    Los métodos de configuración devuelven una copia nueva.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, protected_namespaces=())

    model_uri: str = Field(..., alias="modelUri")
    completion_options: dict[str, Any] = Field(
        default_factory=_default_completion_options,
        alias="completionOptions",
    )
    messages: tuple[CompletionMessage, ...] = ()

    @classmethod
    def new(cls, folder_id: str) -> "CompletionPayload":
        return cls(model_uri=f"gpt://{folder_id.strip()}/yandexgpt")

    def _option(self, key: str, value: Any) -> "CompletionPayload":
        options = dict(self.completion_options)
        options[key] = value
        return self.model_copy(update={"completion_options": options})

    def _message(self, role: str, text: str) -> "CompletionPayload":
        return self.model_copy(update={"messages": self.messages + (CompletionMessage(role=role, text=text),)})

    def max_tokens(self, max_tokens: int) -> "CompletionPayload":
        return self._option("maxTokens", max_tokens)

    def temperature(self, temperature: float) -> "CompletionPayload":
        return self._option("temperature", temperature)

    def system(self, text: str) -> "CompletionPayload":
        return self._message("system", text)

    def user(self, text: str) -> "CompletionPayload":
        return self._message("user", text)

    def assistant(self, text: str) -> "CompletionPayload":
        return self._message("assistant", text)

    def save_messages(self) -> list[dict[str, str]]:
        return [m.model_dump() for m in self.messages]

    def load_messages(self, messages: list[Any]) -> "CompletionPayload":
        """Añade mensajes guardados con `save_messages` al historial."""

        try:
            loaded = tuple(CompletionMessage.model_validate(m) for m in messages)
        except (ValidationError, TypeError) as exc:
            raise InvalidPayload(f"Invalid message history: {exc}") from exc
        return self.model_copy(update={"messages": self.messages + loaded})

    def to_kind(self) -> CompletionKind:
        return CompletionKind(payload=self.model_dump(mode="json", by_alias=True))

    async def apply(
        self,
        token: str,
        session_id: str,
        *,
        dispatcher: RequestDispatcher | None = None,
    ) -> ResponseEnvelope:
        """Envía el payload y devuelve el sobre sin interpretar."""

        return await execute(
            self.to_kind(),
            token,
            dispatcher=dispatcher,
            extra_headers=[("x-data-logging-enabled", "false"), ("X-Session-ID", session_id)],
        )

    async def run(
        self,
        token: str,
        session_id: str,
        *,
        dispatcher: RequestDispatcher | None = None,
    ) -> CompletionResponse:
        envelope = ensure_success(await self.apply(token, session_id, dispatcher=dispatcher))
        return envelope.decode(CompletionResponse, key="result")

    @staticmethod
    def assistant_text_first(envelope: ResponseEnvelope) -> str:
        return envelope.decode(CompletionResponse, key="result").first_final_text()
