"""Esquema del cliente de mensajería (`katzenpost.toml`).

Forma:
- Una única autoridad y una única cuenta, embebidas como tablas inline.
- `[UpstreamProxy]` siempre presente; sin onion se marca `Type = "none"`.
"""

from __future__ import annotations

from typing import Any

from adapters.schemas._common import logging_section, onion_proxy_section, peer_table, validate_document
from core.domain.errors import ConfigValidationError
from core.domain.models import AccountIdentity, ConfigDocument, OnionRoute, ProvisionRequest
from core.services.synthesizer import synthesize

_DEBUG_DEFAULTS: dict[str, Any] = {
    "DisableDecoyTraffic": True,
    "SessionDialTimeout": 30,
    "InitialMaxPKIRetrievalDelay": 30,
    "CaseSensitiveUserIdentifiers": False,
}


class ClientSchema:
    """Adaptador de esquema para el cliente."""

    name = "client"

    def __init__(self, *, config_file_name: str = "katzenpost.toml") -> None:
        self._config_file_name = config_file_name

    def output_file_name(self) -> str:
        return self._config_file_name

    def build_document(self, request: ProvisionRequest, identity: AccountIdentity) -> ConfigDocument:
        return synthesize(request, identity, application=self.name)

    def finalize(self, document: ConfigDocument) -> dict[str, Any]:
        validate_document(document)
        if len(document.accounts) != 1:
            raise ConfigValidationError(
                f"{self.name}: exactly one account is supported, got {len(document.accounts)}"
            )
        account = document.accounts[0]

        config: dict[str, Any] = {
            "Proxy": {"DataDir": str(document.data_dir)},
            "Logging": logging_section(),
        }

        if isinstance(document.upstream, OnionRoute):
            config["UpstreamProxy"] = onion_proxy_section(document.upstream)
        else:
            config["UpstreamProxy"] = {"Type": "none"}

        config["Debug"] = dict(_DEBUG_DEFAULTS)

        topology = document.topology
        if topology.kind == "fixed":
            config["NonvotingAuthority"] = {
                "Address": topology.address,
                "PublicKey": topology.public_key,
            }
        else:
            config["VotingAuthority"] = {"Peers": [peer_table(peer) for peer in topology.peers]}

        config["Account"] = {
            "User": account.identity.user,
            "Provider": account.identity.provider,
            "ProviderKeyPin": account.provider_key_pin,
        }
        return config
