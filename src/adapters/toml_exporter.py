"""Exportación TOML del documento de configuración.

Por qué TOML:
- Es el formato que leen las dos aplicaciones cliente.
- El fichero se reescribe entero en cada llamada (la config es entorno; las
  claves, identidad).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import toml

from core.domain.errors import ConfigIOError

CONFIG_FILE_MODE = 0o600


def render_config_toml(config: dict[str, Any]) -> str:
    try:
        return toml.dumps(config)
    except (TypeError, ValueError) as exc:
        raise ConfigIOError(f"cannot encode configuration as TOML: {exc}") from exc


def export_config_toml(*, config: dict[str, Any], output_path: Path) -> Path:
    """Escribe `config` en `output_path` (truncando) con permisos 0600."""

    text = render_config_toml(config)
    try:
        fd = os.open(output_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CONFIG_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            fp.write(text)
        os.chmod(output_path, CONFIG_FILE_MODE)
    except OSError as exc:
        raise ConfigIOError(f"cannot write {output_path}: {exc}") from exc
    return output_path
