"""Tipos de petición de Yandex Cloud ML (conjunto cerrado).

Cada variante conoce su payload y su ruta: `route()` devuelve
`(base_url, path, method)`. Los clientes de `adapters.ycloud` construyen la
petición a partir de aquí en vez de repartir URLs por el código.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from core.domain.models import HttpMethod

LLM_BASE_URL = "https://llm.api.cloud.yandex.net"
STT_BASE_URL = "https://stt.api.cloud.yandex.net"

COMPLETION_PATH = "/foundationModels/v1/completion"
IMAGE_GENERATION_PATH = "/foundationModels/v1/imageGenerationAsync"
SPEECH_RECOGNITION_PATH = "/speech/v1/stt:recognize"
OPERATIONS_PATH = "/operations/{operation_id}"


@dataclass(frozen=True)
class Route:
    base_url: str
    path: str
    method: HttpMethod


@dataclass(frozen=True)
class CompletionKind:
    payload: dict[str, Any]

    def route(self) -> Route:
        return Route(LLM_BASE_URL, COMPLETION_PATH, HttpMethod.POST)


@dataclass(frozen=True)
class ImageGenerationKind:
    payload: dict[str, Any]

    def route(self) -> Route:
        return Route(LLM_BASE_URL, IMAGE_GENERATION_PATH, HttpMethod.POST)


@dataclass(frozen=True)
class SpeechRecognitionKind:
    audio: bytes
    folder_id: str
    lang: str

    def route(self) -> Route:
        return Route(STT_BASE_URL, SPEECH_RECOGNITION_PATH, HttpMethod.POST)

    def query(self) -> list[tuple[str, str]]:
        return [("folderId", self.folder_id), ("lang", self.lang)]


RequestKind = Union[CompletionKind, ImageGenerationKind, SpeechRecognitionKind]


def operation_path(operation_id: str) -> str:
    return OPERATIONS_PATH.format(operation_id=operation_id)
