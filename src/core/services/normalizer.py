"""Normalización de identidades de cuenta.

Función pura y determinista: la misma entrada produce siempre el mismo
`account_id`, que es lo que hace idempotente el aprovisionamiento de claves.
"""

from __future__ import annotations

import idna
from precis_i18n import get_profile
from pydantic import ValidationError

from core.domain.errors import InvalidProvider, InvalidUsername
from core.domain.models import AccountIdentity

_USERNAME_PROFILE = get_profile("UsernameCaseMapped")


def normalize_user(user: str) -> str:
    """Aplica el perfil PRECIS UsernameCaseMapped (RFC 8265)."""

    try:
        return _USERNAME_PROFILE.enforce(user)
    except UnicodeError as exc:
        raise InvalidUsername(f"invalid username {user!r}: {exc}") from exc


def normalize_provider(provider: str) -> str:
    """Mapea el dominio con UTS-46 y lo convierte a su forma ASCII (IDNA)."""

    try:
        return idna.encode(provider, uts46=True, transitional=False).decode("ascii")
    # idna.IDNAError hereda de UnicodeError.
    except UnicodeError as exc:
        raise InvalidProvider(f"invalid provider {provider!r}: {exc}") from exc


def normalize(user: str, provider: str) -> AccountIdentity:
    normalized_user = normalize_user(user)
    normalized_provider = normalize_provider(provider)
    try:
        return AccountIdentity(user=normalized_user, provider=normalized_provider)
    except ValidationError as exc:
        # idna acepta un punto final que lleva el dominio a 254 caracteres.
        fields = {str(error["loc"][0]) for error in exc.errors() if error["loc"]}
        if "provider" in fields:
            raise InvalidProvider(f"invalid provider {provider!r}: {exc}") from exc
        raise InvalidUsername(f"invalid username {user!r}: {exc}") from exc
