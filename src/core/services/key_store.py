"""Almacén de material de claves por cuenta.

Las claves son la identidad de la cuenta: una vez creadas se cargan, nunca se
regeneran. Un estado parcial (solo uno de los dos ficheros) es fatal.

Sin locking: dos procesos aprovisionando la misma cuenta a la vez pueden
ver "no hay claves" ambos; los ficheros se crean con O_EXCL, así que el
segundo falla con `KeyIOError` en vez de pisar al primero.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey, X25519PublicKey

from adapters.key_codec import load_or_generate, public_key_to_string
from core.domain.errors import DirectoryError
from core.domain.models import AccountIdentity, KeyRole

logger = logging.getLogger(__name__)

ACCOUNT_DIR_MODE = 0o700


@dataclass
class KeyPairRecord:
    """Par de claves de un rol, con las rutas donde vive en disco."""

    role: KeyRole
    private_key: X25519PrivateKey
    private_path: Path
    public_path: Path
    generated: bool = False

    @property
    def public_key(self) -> X25519PublicKey:
        return self.private_key.public_key()

    @property
    def public_key_b64(self) -> str:
        return public_key_to_string(self.public_key)


def account_dir_for(data_dir: Path, identity: AccountIdentity) -> Path:
    """`<data_dir>/<user>@<provider>`; el id debe ser un único componente de ruta.

    PRECIS acepta `/` en usernames, así que aquí se rechaza cualquier id que
    saldría de `data_dir`.
    """

    account_id = identity.account_id
    separators = [sep for sep in (os.sep, os.altsep) if sep]
    if any(sep in account_id for sep in separators) or account_id in (".", ".."):
        raise DirectoryError(f"account id {account_id!r} is not a valid directory name")
    return Path(data_dir) / account_id


def ensure_account_dir(data_dir: Path, identity: AccountIdentity) -> Path:
    """Crea `<data_dir>/<user>@<provider>` (y padres) si no existe."""

    account_dir = account_dir_for(data_dir, identity)
    if account_dir.exists() and not account_dir.is_dir():
        raise DirectoryError(f"{account_dir} exists and is not a directory")
    try:
        account_dir.mkdir(mode=ACCOUNT_DIR_MODE, parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryError(f"cannot create account directory {account_dir}: {exc}") from exc
    return account_dir


def load_or_create(account_dir: Path, role: KeyRole, *, extension: str = "pem") -> KeyPairRecord:
    private_path = account_dir / role.private_file_name(extension)
    public_path = account_dir / role.public_file_name(extension)

    private_key, generated = load_or_generate(private_path, public_path)
    record = KeyPairRecord(
        role=role,
        private_key=private_key,
        private_path=private_path,
        public_path=public_path,
        generated=generated,
    )
    if generated:
        logger.info("generated %s keypair in %s", role.value, account_dir)
    else:
        logger.debug("loaded existing %s keypair from %s", role.value, account_dir)
    return record
