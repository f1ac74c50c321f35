"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O o de criptografía.
- Las variantes excluyentes (autoridad fija vs. votación, ruta directa vs. onion)
  se modelan como uniones discriminadas: un documento con ambas o ninguna no
  es representable.

Nota:
- Estos modelos describen *qué* se aprovisiona, no *cómo* se escribe en disco.
  Las claves viajan aquí como strings base64 ya canonicalizados.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

# Solo hay una topología activa por documento, así que basta un nombre fijo.
TOPOLOGY_NAME = "playground"


class KeyRole(str, Enum):
    """Roles de clave por cuenta; cada uno tiene su propio par de ficheros."""

    LINK = "link"
    IDENTITY = "identity"

    def private_file_name(self, extension: str) -> str:
        return f"{self.value}.private.{extension}"

    def public_file_name(self, extension: str) -> str:
        return f"{self.value}.public.{extension}"


class AccountIdentity(BaseModel):
    """Par (user, provider) ya normalizado.

    `account_id` solo nombra el subdirectorio de la cuenta; no se persiste
    como campo del documento de configuración.
    """

    model_config = ConfigDict(frozen=True)

    user: str = Field(
        ...,
        min_length=1,
        description="Username tras el perfil PRECIS UsernameCaseMapped.",
    )
    provider: str = Field(
        ...,
        min_length=1,
        max_length=253,
        description="Dominio del provider en forma ASCII (IDNA).",
    )

    @property
    def account_id(self) -> str:
        return f"{self.user}@{self.provider}"


class AuthorityPeer(BaseModel):
    """Descriptor de una autoridad de votación.

    Los alias coinciden con las claves TOML que esperan las aplicaciones,
    así que un fichero de peers se puede validar tal cual.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    identity_public_key: str = Field(
        ...,
        min_length=1,
        alias="IdentityPublicKey",
        description="Clave pública de identidad (Ed25519, base64).",
    )
    link_public_key: str = Field(
        ...,
        min_length=1,
        alias="LinkPublicKey",
        description="Clave pública de enlace (X25519, base64).",
    )
    addresses: list[str] = Field(
        ...,
        min_length=1,
        alias="Addresses",
        description="Direcciones host:port de la autoridad.",
    )


class FixedAuthority(BaseModel):
    kind: Literal["fixed"] = "fixed"
    name: str = Field(default=TOPOLOGY_NAME, min_length=1)
    address: str = Field(
        ...,
        min_length=1,
        description="Dirección host:port de la autoridad no votante.",
    )
    public_key: str = Field(
        ...,
        min_length=1,
        description="Clave pública de la autoridad (Ed25519, base64).",
    )


class VotingAuthoritySet(BaseModel):
    kind: Literal["voting"] = "voting"
    name: str = Field(default=TOPOLOGY_NAME, min_length=1)
    peers: list[AuthorityPeer] = Field(
        ...,
        min_length=1,
        description="Peers en el orden recibido, sin deduplicar.",
    )


Topology = Annotated[Union[FixedAuthority, VotingAuthoritySet], Field(discriminator="kind")]


class DirectRoute(BaseModel):
    kind: Literal["direct"] = "direct"


class OnionRoute(BaseModel):
    kind: Literal["onion"] = "onion"
    socks_network: str = Field(..., min_length=1)
    socks_address: str = Field(..., min_length=1)
    onion_authority_address: str | None = Field(
        default=None,
        description="Dirección .onion de la autoridad (si aplica).",
    )


UpstreamRoute = Annotated[Union[DirectRoute, OnionRoute], Field(discriminator="kind")]


class AccountBinding(BaseModel):
    """Asocia la identidad, la clave fijada del provider y la topología activa."""

    identity: AccountIdentity
    provider_key_pin: str = Field(
        ...,
        min_length=1,
        description="Clave pública del provider (Ed25519, base64 canónico).",
    )
    topology_name: str = Field(default=TOPOLOGY_NAME, min_length=1)


class ConfigDocument(BaseModel):
    """Documento de configuración previo a los defaults del esquema."""

    application: str = Field(..., min_length=1)
    data_dir: Path
    topology: Topology
    upstream: UpstreamRoute = Field(default_factory=DirectRoute)
    accounts: list[AccountBinding] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _accounts_reference_topology(self) -> "ConfigDocument":
        for account in self.accounts:
            if account.topology_name != self.topology.name:
                raise ValueError(
                    f"account {account.identity.account_id} references unknown "
                    f"topology {account.topology_name!r}"
                )
        return self


class ProvisionRequest(BaseModel):
    """Parámetros de una llamada de aprovisionamiento.

    Las claves llegan en su codificación externa (base64); se decodifican y
    validan durante la síntesis, no aquí.
    """

    user: str
    provider: str
    provider_key: str
    authority_address: str = ""
    onion_authority_address: str = ""
    authority_key: str = ""
    data_dir: Path
    socks_network: str = "tcp"
    socks_address: str = ""
    prefer_onion: bool = False
    authority_peers: list[AuthorityPeer] = Field(default_factory=list)
