"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que el provisioner y los adaptadores lean defaults de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import set_key
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR_NAME = "mixnet-provision"


def get_user_config_dir() -> Path:
    """Directorio por usuario para el `.env` global y el data dir por defecto.

    Linux/BSD siguen XDG (`$XDG_CONFIG_HOME` o `~/.config`).
    """

    if sys.platform.startswith("win"):
        root = Path(os.environ.get("APPDATA") or Path.home())
    elif sys.platform == "darwin":
        root = Path.home() / "Library" / "Application Support"
    else:
        root = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    return root / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _default_data_dir() -> Path:
    return get_user_config_dir() / "data"


def write_user_env_vars(values: dict[str, str | None], *, env_path: Path | None = None) -> Path:
    """Actualiza claves del `.env` de usuario (python-dotenv); el resto se conserva.

    Los valores `None` se ignoran. Si el fichero no existe se crea con 0600.
    """

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.touch(mode=0o600, exist_ok=True)

    for key, value in values.items():
        if value is not None:
            set_key(env_path, key, value, quote_mode="never")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/servicios.
    """

    model_config = SettingsConfigDict(
        env_prefix="MIXNET_PROVISION_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    data_dir: Path = Field(
        default_factory=_default_data_dir,
        description="Directorio raíz donde se escriben claves y ficheros de configuración.",
    )
    socks_network: str = Field(
        default="tcp",
        min_length=1,
        description="Red del proxy SOCKS de Tor (tcp/unix).",
    )
    socks_address: str = Field(
        default="127.0.0.1:9050",
        min_length=1,
        description="Dirección del proxy SOCKS de Tor.",
    )
    prefer_onion: bool = Field(
        default=False,
        description="Enrutar la conexión upstream a través de Tor por defecto.",
    )
    key_file_extension: str = Field(
        default="pem",
        min_length=1,
        pattern=r"^[A-Za-z0-9]+$",
        description="Extensión de los ficheros de clave (<role>.private.<ext>).",
    )
    log_level: str = Field(
        default="INFO",
        min_length=1,
        description="Nivel de logging para la CLI (DEBUG/INFO/WARNING/ERROR).",
    )
    default_schema: str = Field(
        default="client",
        min_length=1,
        description="Esquema de configuración por defecto (client/mailproxy).",
    )
