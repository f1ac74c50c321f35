"""Piezas compartidas por los esquemas de configuración.

Los dos esquemas difieren en la forma del documento, no en las reglas: las
validaciones y las tablas comunes viven aquí y cada esquema las compone.
"""

from __future__ import annotations

from typing import Any

from adapters.key_codec import parse_ecdh_public_key, parse_eddsa_public_key
from core.domain.errors import ConfigValidationError, InvalidKeyEncoding
from core.domain.models import AuthorityPeer, ConfigDocument, OnionRoute

TOR_PROXY_TYPE = "tor+socks5"

_SOCKS_NETWORKS = {"tcp", "tcp4", "tcp6", "unix"}

_LOGGING_DEFAULTS: dict[str, Any] = {
    "Disable": False,
    "Level": "NOTICE",
}


def logging_section() -> dict[str, Any]:
    return dict(_LOGGING_DEFAULTS)


def validate_address(address: str, *, what: str) -> None:
    """Exige `host:port` con puerto en 1..65535."""

    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit() or not 0 < int(port) < 65536:
        raise ConfigValidationError(f"{what}: invalid address {address!r} (expected host:port)")


def peer_table(peer: AuthorityPeer) -> dict[str, Any]:
    return {
        "IdentityPublicKey": peer.identity_public_key,
        "LinkPublicKey": peer.link_public_key,
        "Addresses": list(peer.addresses),
    }


def validate_peers(peers: list[AuthorityPeer]) -> None:
    for index, peer in enumerate(peers):
        what = f"authority peer #{index}"
        try:
            parse_eddsa_public_key(peer.identity_public_key, what=f"{what} identity key")
            parse_ecdh_public_key(peer.link_public_key, what=f"{what} link key")
        except InvalidKeyEncoding as exc:
            raise ConfigValidationError(str(exc)) from exc
        for address in peer.addresses:
            validate_address(address, what=what)


def validate_route(route: OnionRoute) -> None:
    if route.socks_network not in _SOCKS_NETWORKS:
        raise ConfigValidationError(
            f"upstream proxy: unsupported network {route.socks_network!r} "
            f"(expected one of {', '.join(sorted(_SOCKS_NETWORKS))})"
        )
    if route.socks_network != "unix":
        validate_address(route.socks_address, what="upstream proxy")
    if route.onion_authority_address:
        validate_address(route.onion_authority_address, what="onion authority")


def validate_document(document: ConfigDocument) -> None:
    """Validaciones estructurales comunes a todos los esquemas."""

    if document.topology.kind == "fixed":
        validate_address(document.topology.address, what="authority")
    else:
        validate_peers(document.topology.peers)
    if isinstance(document.upstream, OnionRoute):
        validate_route(document.upstream)


def onion_proxy_section(route: OnionRoute) -> dict[str, Any]:
    section: dict[str, Any] = {
        "Type": TOR_PROXY_TYPE,
        "Network": route.socks_network,
        "Address": route.socks_address,
    }
    if route.onion_authority_address:
        section["AuthorityAddress"] = route.onion_authority_address
    return section
