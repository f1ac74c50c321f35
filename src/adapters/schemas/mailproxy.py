"""Esquema del mail proxy (`mailproxy.toml`).

Forma:
- Las autoridades son tablas con nombre (`[NonvotingAuthority.<name>]` o
  `[VotingAuthority.<name>]`) y cada `[[Account]]` la referencia por nombre.
- Sin onion no se escribe `[UpstreamProxy]`.
"""

from __future__ import annotations

from typing import Any

from adapters.schemas._common import logging_section, onion_proxy_section, peer_table, validate_document
from core.domain.models import AccountBinding, AccountIdentity, ConfigDocument, OnionRoute, ProvisionRequest
from core.services.synthesizer import synthesize

_PROXY_DEFAULTS: dict[str, Any] = {
    "POP3Address": "127.0.0.1:2524",
    "SMTPAddress": "127.0.0.1:2525",
    "NoLaunchListeners": False,
}

_MANAGEMENT_DEFAULTS: dict[str, Any] = {
    "Enable": False,
}


class MailproxySchema:
    """Adaptador de esquema para el mail proxy."""

    name = "mailproxy"

    def __init__(self, *, config_file_name: str = "mailproxy.toml") -> None:
        self._config_file_name = config_file_name

    def output_file_name(self) -> str:
        return self._config_file_name

    def build_document(self, request: ProvisionRequest, identity: AccountIdentity) -> ConfigDocument:
        return synthesize(request, identity, application=self.name)

    def _account_table(self, account: AccountBinding, *, topology_kind: str) -> dict[str, Any]:
        table: dict[str, Any] = {
            "User": account.identity.user,
            "Provider": account.identity.provider,
            "ProviderKeyPin": account.provider_key_pin,
            "InsecureKeyDiscovery": True,
        }
        if topology_kind == "fixed":
            table["NonvotingAuthority"] = account.topology_name
        else:
            table["VotingAuthority"] = account.topology_name
        return table

    def finalize(self, document: ConfigDocument) -> dict[str, Any]:
        validate_document(document)

        config: dict[str, Any] = {
            "Proxy": {"DataDir": str(document.data_dir), **_PROXY_DEFAULTS},
            "Logging": logging_section(),
            "Management": dict(_MANAGEMENT_DEFAULTS),
        }

        if isinstance(document.upstream, OnionRoute):
            config["UpstreamProxy"] = {
                "PreferedTransports": ["onion"],
                **onion_proxy_section(document.upstream),
            }

        topology = document.topology
        if topology.kind == "fixed":
            config["NonvotingAuthority"] = {
                topology.name: {
                    "Address": topology.address,
                    "PublicKey": topology.public_key,
                }
            }
        else:
            config["VotingAuthority"] = {
                topology.name: {"Peers": [peer_table(peer) for peer in topology.peers]}
            }

        config["Account"] = [
            self._account_table(account, topology_kind=topology.kind)
            for account in document.accounts
        ]
        return config
