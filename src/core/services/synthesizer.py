"""Síntesis del documento de configuración.

Este módulo decide *qué* variantes entran en el documento (topología y ruta
upstream) a partir de la petición. La forma concreta del TOML la pone cada
adaptador de esquema en `finalize`.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from adapters.key_codec import parse_eddsa_public_key, public_key_to_string
from core.domain.errors import ConfigValidationError
from core.domain.models import (
    TOPOLOGY_NAME,
    AccountBinding,
    AccountIdentity,
    ConfigDocument,
    DirectRoute,
    FixedAuthority,
    OnionRoute,
    ProvisionRequest,
    VotingAuthoritySet,
)

logger = logging.getLogger(__name__)


def select_topology(request: ProvisionRequest) -> FixedAuthority | VotingAuthoritySet:
    """Autoridad fija si no hay peers; conjunto de votación en otro caso.

    La clave de la autoridad fija solo se decodifica cuando se usa.
    """

    if not request.authority_peers:
        authority_key = parse_eddsa_public_key(request.authority_key, what="authority key")
        return FixedAuthority(
            name=TOPOLOGY_NAME,
            address=request.authority_address,
            public_key=public_key_to_string(authority_key),
        )
    return VotingAuthoritySet(name=TOPOLOGY_NAME, peers=list(request.authority_peers))


def select_route(request: ProvisionRequest) -> DirectRoute | OnionRoute:
    if not request.prefer_onion:
        return DirectRoute()
    return OnionRoute(
        socks_network=request.socks_network,
        socks_address=request.socks_address,
        onion_authority_address=request.onion_authority_address or None,
    )


def build_account_binding(identity: AccountIdentity, provider_key: str) -> AccountBinding:
    pin = parse_eddsa_public_key(provider_key, what="provider key")
    return AccountBinding(
        identity=identity,
        provider_key_pin=public_key_to_string(pin),
        topology_name=TOPOLOGY_NAME,
    )


def synthesize(
    request: ProvisionRequest,
    identity: AccountIdentity,
    *,
    application: str,
) -> ConfigDocument:
    try:
        binding = build_account_binding(identity, request.provider_key)
        topology = select_topology(request)
        route = select_route(request)
        document = ConfigDocument(
            application=application,
            data_dir=request.data_dir,
            topology=topology,
            upstream=route,
            accounts=[binding],
        )
    except ValidationError as exc:
        raise ConfigValidationError(f"{application}: invalid configuration: {exc}") from exc

    logger.debug(
        "%s: %s authority, %s upstream",
        application,
        document.topology.kind,
        document.upstream.kind,
    )
    return document
