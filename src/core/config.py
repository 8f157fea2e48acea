"""Configuración del Core.

Centraliza variables de entorno (pydantic-settings). Los objetos del Core
reciben `AppSettings` explícitamente en su constructor; nada lee el entorno
en rutas profundas.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "rqrs"
APP_VERSION = "0.1.0"
APP_USER_AGENT = f"{APP_NAME}/{APP_VERSION}"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None], env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# rqrs user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación."""

    model_config = SettingsConfigDict(
        env_prefix="RQRS_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    url: str = Field(
        default="http://localhost:3000",
        min_length=1,
        description="URL base por defecto para peticiones genéricas.",
    )
    debug: bool = Field(
        default=False,
        description="Activa logs DEBUG (peticiones con headers enmascarados).",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default=APP_USER_AGENT,
        min_length=1,
        description="User-Agent de todas las peticiones salientes.",
    )

    poll_interval_seconds: float = Field(
        default=20.0,
        ge=0,
        description="Espera entre consultas de estado de una operación larga.",
    )
    poll_max_attempts: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Número máximo de consultas de estado antes de OperationTimeout.",
    )

    yc_iam_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("RQRS_YC_IAM_TOKEN", "YC_IAM_TOKEN"),
        description="IAM token (Bearer) para Yandex Cloud ML.",
    )
    yc_iam_folder: str | None = Field(
        default=None,
        validation_alias=AliasChoices("RQRS_YC_IAM_FOLDER", "YC_IAM_FOLDER"),
        description="Folder ID de Yandex Cloud.",
    )
