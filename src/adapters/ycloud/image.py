"""Cliente de generación de imágenes (YandexART, asíncrono en servidor).

`run` arranca la operación y devuelve su `OperationStatus`; `wait_image`
consulta `/operations/{id}` con `OperationPoller` y decodifica la imagen
(base64) cuando la operación termina.
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from adapters.http_client import HttpDispatcher
from adapters.ycloud.client import ensure_success, execute
from core.config import AppSettings
from core.domain.errors import DecodeError
from core.domain.models import OperationStatus
from core.domain.request_kind import ImageGenerationKind
from core.interfaces.dispatcher import RequestDispatcher
from core.services.operation_poller import OperationPoller

logger = logging.getLogger(__name__)


def _default_generation_options() -> dict[str, Any]:
    return {
        "seed": "1863",
        "aspectRatio": {"widthRatio": "16", "heightRatio": "9"},
    }


class ImageMessage(BaseModel):
    text: str
    weight: int = 100


class ImageResult(BaseModel):
    """`response` de una operación de imagen terminada."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, protected_namespaces=())

    type: str | None = Field(default=None, alias="@type")
    image: str = Field(..., min_length=1, description="Imagen codificada en base64.")
    model_version: str | None = Field(default=None, alias="modelVersion")

    def decode_image(self) -> bytes:
        try:
            return base64.b64decode(self.image, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError(f"Image payload is not valid base64: {exc}") from exc


class ImagePayload(BaseModel):
    """Payload de `/foundationModels/v1/imageGenerationAsync`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, protected_namespaces=())

    model_uri: str = Field(..., alias="modelUri")
    generation_options: dict[str, Any] = Field(
        default_factory=_default_generation_options,
        alias="generationOptions",
    )
    messages: tuple[ImageMessage, ...] = ()

    @classmethod
    def new(cls, folder_id: str) -> "ImagePayload":
        return cls(model_uri=f"art://{folder_id.strip()}/yandex-art/latest")

    def _option(self, key: str, value: Any) -> "ImagePayload":
        options = dict(self.generation_options)
        options[key] = value
        return self.model_copy(update={"generation_options": options})

    def seed(self, seed: int) -> "ImagePayload":
        return self._option("seed", seed)

    def aspect_ratio(self, width_ratio: int, height_ratio: int) -> "ImagePayload":
        return self._option("aspectRatio", {"widthRatio": width_ratio, "heightRatio": height_ratio})

    def text(self, text: str, weight: int = 100) -> "ImagePayload":
        return self.model_copy(update={"messages": self.messages + (ImageMessage(text=text, weight=weight),)})

    def to_kind(self) -> ImageGenerationKind:
        return ImageGenerationKind(payload=self.model_dump(mode="json", by_alias=True))

    async def run(
        self,
        token: str,
        *,
        dispatcher: RequestDispatcher | None = None,
    ) -> OperationStatus:
        """Arranca la generación y devuelve la operación (normalmente `done=false`)."""

        envelope = ensure_success(await execute(self.to_kind(), token, dispatcher=dispatcher))
        operation = envelope.decode(OperationStatus)
        logger.debug("Image generation started: operation %s", operation.id)
        return operation

    @staticmethod
    async def wait_image(
        operation: OperationStatus | str,
        token: str,
        *,
        poller: OperationPoller | None = None,
        settings: AppSettings | None = None,
    ) -> bytes:
        operation_id = operation if isinstance(operation, str) else operation.id

        if isinstance(operation, OperationStatus) and operation.has_result:
            status = operation
        elif poller is not None:
            status = await poller.wait(operation_id, token)
        else:
            settings = settings or AppSettings()
            async with HttpDispatcher(settings) as dispatcher:
                status = await OperationPoller.from_settings(settings, dispatcher).wait(operation_id, token)

        try:
            result = ImageResult.model_validate(status.response or {})
        except ValidationError as exc:
            raise DecodeError(f"Unexpected image operation result: {exc}") from exc
        return result.decode_image()

    @staticmethod
    async def save_image(
        operation: OperationStatus | str,
        token: str,
        output_path: Path,
        *,
        poller: OperationPoller | None = None,
        settings: AppSettings | None = None,
    ) -> Path:
        data = await ImagePayload.wait_image(operation, token, poller=poller, settings=settings)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
        return output_path
