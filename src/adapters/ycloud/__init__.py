"""Clientes de Yandex Cloud ML construidos sobre `Rq` y `HttpDispatcher`."""

from adapters.ycloud.completion import CompletionPayload, CompletionResponse
from adapters.ycloud.image import ImagePayload, ImageResult
from adapters.ycloud.speechkit import SpeechPayload, SpeechResponse

__all__ = [
	"CompletionPayload",
	"CompletionResponse",
	"ImagePayload",
	"ImageResult",
	"SpeechPayload",
	"SpeechResponse",
]
