"""Carga de descriptores de autoridades de votación.

Soporta ficheros tipo:
- TOML: `[[Peers]]` con `IdentityPublicKey`, `LinkPublicKey`, `Addresses`
  (el mismo formato que usan las autoridades en su propia config).
- JSON: {"Peers": [...]} o directamente una lista.

El orden de los peers se conserva tal cual. Un fichero sin peers es un error:
quien pasa un fichero de peers pide modo votación.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import toml
from pydantic import BaseModel, Field, ValidationError

from core.domain.errors import ConfigValidationError
from core.domain.models import AuthorityPeer


class AuthorityPeersFile(BaseModel):
    peers: list[AuthorityPeer] = Field(..., min_length=1, alias="Peers")


def _read(path: Path) -> Any:
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(raw)
        if isinstance(data, list):
            return {"Peers": data}
        return data
    return toml.loads(raw)


def load_authority_peers(path: Path) -> list[AuthorityPeer]:
    try:
        data = _read(path)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigValidationError(f"{path}: cannot read authority peers: {exc}") from exc
    except (json.JSONDecodeError, toml.TomlDecodeError) as exc:
        raise ConfigValidationError(f"{path}: cannot parse authority peers: {exc}") from exc
    try:
        return AuthorityPeersFile.model_validate(data).peers
    except ValidationError as exc:
        raise ConfigValidationError(f"{path}: invalid authority peers: {exc}") from exc
