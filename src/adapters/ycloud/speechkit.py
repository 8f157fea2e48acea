"""Cliente de reconocimiento de voz (SpeechKit STT, síncrono).

El audio viaja como cuerpo binario crudo; `folderId` y `lang` como query params.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from adapters.ycloud.client import ensure_success, execute
from core.domain.errors import InvalidPayload
from core.domain.request_kind import SpeechRecognitionKind
from core.interfaces.dispatcher import RequestDispatcher


class SpeechResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    result: str = ""


class SpeechPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    folder_id: str = Field(..., min_length=1)
    lang: str = Field(default="ru-RU", min_length=2)
    audio_file: Path | None = None

    @classmethod
    def new(cls, folder_id: str, lang: str = "ru-RU") -> "SpeechPayload":
        return cls(folder_id=folder_id.strip(), lang=lang)

    def file(self, path: Path | str) -> "SpeechPayload":
        return self.model_copy(update={"audio_file": Path(path)})

    def to_kind(self) -> SpeechRecognitionKind:
        if self.audio_file is None:
            raise InvalidPayload("No audio file configured (use .file(path))")
        try:
            audio = self.audio_file.read_bytes()
        except OSError as exc:
            raise InvalidPayload(f"Cannot read audio file {self.audio_file}: {exc}") from exc
        return SpeechRecognitionKind(audio=audio, folder_id=self.folder_id, lang=self.lang)

    async def run(
        self,
        token: str,
        *,
        dispatcher: RequestDispatcher | None = None,
    ) -> SpeechResponse:
        envelope = ensure_success(await execute(self.to_kind(), token, dispatcher=dispatcher))
        return envelope.decode(SpeechResponse)
