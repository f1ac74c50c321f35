"""Orquestación del aprovisionamiento.

Pipeline lineal y sin estado entre llamadas:
Normalize -> Ensure-Directory -> Load-or-Create(link) ->
Load-or-Create(identity) -> Synthesize -> Finalize -> Serialize.

Cualquier fallo aborta la llamada sin rollback: las claves ya generadas se
quedan en disco y hacen idempotente el siguiente intento.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PublicKey

from adapters.key_codec import public_key_to_string
from adapters.schemas import get_schema
from adapters.toml_exporter import export_config_toml
from core.config import AppSettings
from core.domain.models import AuthorityPeer, KeyRole, ProvisionRequest
from core.interfaces.schema import ConfigSchemaAdapter
from core.services.key_store import ensure_account_dir, load_or_create
from core.services.normalizer import normalize

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    """Salida de una llamada: las públicas se usan luego en el registro con el provider."""

    link_public_key: X25519PublicKey
    identity_public_key: X25519PublicKey
    account_id: str
    account_dir: Path
    config_path: Path
    generated_keys: bool = False

    @property
    def link_public_key_b64(self) -> str:
        return public_key_to_string(self.link_public_key)

    @property
    def identity_public_key_b64(self) -> str:
        return public_key_to_string(self.identity_public_key)

    def as_dict(self) -> dict[str, object]:
        return {
            "account_id": self.account_id,
            "account_dir": str(self.account_dir),
            "config_path": str(self.config_path),
            "link_public_key": self.link_public_key_b64,
            "identity_public_key": self.identity_public_key_b64,
            "generated_keys": self.generated_keys,
        }


class Provisioner:
    """Aprovisiona claves + config para una aplicación concreta.

    La forma del documento la decide el adaptador de esquema inyectado; la
    normalización y el manejo de claves son idénticos para todos.
    """

    def __init__(self, schema: ConfigSchemaAdapter, settings: AppSettings | None = None) -> None:
        self._schema = schema
        self._settings = settings or AppSettings()

    @property
    def schema(self) -> ConfigSchemaAdapter:
        return self._schema

    def provision(self, request: ProvisionRequest) -> ProvisionResult:
        identity = normalize(request.user, request.provider)
        data_dir = Path(request.data_dir)
        account_dir = ensure_account_dir(data_dir, identity)
        logger.info("provisioning %s in %s", identity.account_id, account_dir)

        extension = self._settings.key_file_extension
        link = load_or_create(account_dir, KeyRole.LINK, extension=extension)
        ident = load_or_create(account_dir, KeyRole.IDENTITY, extension=extension)

        document = self._schema.build_document(request, identity)
        config = self._schema.finalize(document)
        config_path = export_config_toml(
            config=config,
            output_path=data_dir / self._schema.output_file_name(),
        )
        logger.info("wrote %s configuration to %s", self._schema.name, config_path)

        return ProvisionResult(
            link_public_key=link.public_key,
            identity_public_key=ident.public_key,
            account_id=identity.account_id,
            account_dir=account_dir,
            config_path=config_path,
            generated_keys=link.generated or ident.generated,
        )


def generate_config(
    user: str,
    provider: str,
    provider_key: str,
    authority_address: str,
    onion_authority_address: str,
    authority_key: str,
    data_dir: Path | str,
    socks_network: str,
    socks_address: str,
    prefer_onion: bool,
    authority_peers: Sequence[AuthorityPeer] | None = None,
    *,
    schema: str | ConfigSchemaAdapter = "client",
    settings: AppSettings | None = None,
) -> ProvisionResult:
    """Genera la config de `schema` y el material de claves en `data_dir`.

    Devuelve las claves públicas de enlace e identidad para que el caller
    pueda registrar la cuenta en el provider.
    """

    adapter = get_schema(schema) if isinstance(schema, str) else schema
    request = ProvisionRequest(
        user=user,
        provider=provider,
        provider_key=provider_key,
        authority_address=authority_address,
        onion_authority_address=onion_authority_address,
        authority_key=authority_key,
        data_dir=Path(data_dir),
        socks_network=socks_network,
        socks_address=socks_address,
        prefer_onion=prefer_onion,
        authority_peers=list(authority_peers or []),
    )
    return Provisioner(adapter, settings=settings).provision(request)
