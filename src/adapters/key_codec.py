"""Códec de claves (cryptography).

Por qué un módulo aparte:
- Aísla el SDK criptográfico del Core: el resto del proyecto solo ve
  `generate_keypair`, `load_or_generate` y las funciones de (de)codificación.
- Las claves de enlace/identidad de la cuenta son X25519 (ECDH) en PEM; las
  claves de provider/autoridad llegan como Ed25519 crudo en base64.
"""

from __future__ import annotations

import base64
import binascii
import os
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey, X25519PublicKey

from core.domain.errors import InvalidKeyEncoding, KeyIOError

OWNER_ONLY = 0o600


def generate_keypair() -> tuple[X25519PrivateKey, X25519PublicKey]:
    """Nuevo par X25519 desde el CSPRNG del sistema operativo."""

    private_key = X25519PrivateKey.generate()
    return private_key, private_key.public_key()


def encode_private_key(key: X25519PrivateKey) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def encode_public_key(key: X25519PublicKey) -> bytes:
    return key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def decode_private_key(data: bytes) -> X25519PrivateKey:
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeyIOError(f"malformed private key: {exc}") from exc
    if not isinstance(key, X25519PrivateKey):
        raise KeyIOError(f"unexpected private key type {type(key).__name__}")
    return key


def decode_public_key(data: bytes) -> X25519PublicKey:
    try:
        key = serialization.load_pem_public_key(data)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise KeyIOError(f"malformed public key: {exc}") from exc
    if not isinstance(key, X25519PublicKey):
        raise KeyIOError(f"unexpected public key type {type(key).__name__}")
    return key


def _raw_public_bytes(key: X25519PublicKey | Ed25519PublicKey) -> bytes:
    return key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def public_key_to_string(key: X25519PublicKey | Ed25519PublicKey) -> str:
    """Forma textual de una clave pública: base64 de los 32 bytes crudos."""

    return base64.b64encode(_raw_public_bytes(key)).decode("ascii")


def same_public_key(a: X25519PublicKey, b: X25519PublicKey) -> bool:
    return _raw_public_bytes(a) == _raw_public_bytes(b)


def _decode_base64(text: str, *, what: str) -> bytes:
    try:
        return base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidKeyEncoding(f"{what}: invalid base64: {exc}") from exc


def parse_eddsa_public_key(text: str, *, what: str = "public key") -> Ed25519PublicKey:
    """Decodifica una clave Ed25519 (provider/autoridad) desde base64."""

    raw = _decode_base64(text, what=what)
    try:
        return Ed25519PublicKey.from_public_bytes(raw)
    except ValueError as exc:
        raise InvalidKeyEncoding(f"{what}: {exc}") from exc


def parse_ecdh_public_key(text: str, *, what: str = "public key") -> X25519PublicKey:
    """Decodifica una clave X25519 (enlace de un peer) desde base64."""

    raw = _decode_base64(text, what=what)
    try:
        return X25519PublicKey.from_public_bytes(raw)
    except ValueError as exc:
        raise InvalidKeyEncoding(f"{what}: {exc}") from exc


def create_owner_only(path: Path, data: bytes) -> None:
    """Crea `path` con permisos 0600 y escribe `data`; falla si ya existe.

    O_EXCL hace que dos procesos generando la misma cuenta no se pisen: el
    segundo recibe `FileExistsError`.
    """

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, OWNER_ONLY)
    try:
        with os.fdopen(fd, "wb") as fp:
            fp.write(data)
    except OSError:
        path.unlink(missing_ok=True)
        raise


def load_or_generate(private_path: Path, public_path: Path) -> tuple[X25519PrivateKey, bool]:
    """Carga el par desde disco o lo genera si no existe ninguno de los dos ficheros.

    Devuelve `(private_key, generated)`.

    Reglas:
    - Ambos presentes: se decodifican y se comprueba que la pública corresponde
      a la privada. Los ficheros no se tocan.
    - Ninguno presente: par nuevo, se escribe la privada y luego la pública. Si
      la pública no se puede escribir se borra la privada recién creada, así el
      siguiente intento empieza de cero.
    - Solo uno presente (o cualquiera corrupto): `KeyIOError`, sin sobrescribir.
    """

    has_private = private_path.exists()
    has_public = public_path.exists()

    if has_private and has_public:
        try:
            private_key = decode_private_key(private_path.read_bytes())
            public_key = decode_public_key(public_path.read_bytes())
        except OSError as exc:
            raise KeyIOError(f"cannot read key files in {private_path.parent}: {exc}") from exc
        if not same_public_key(private_key.public_key(), public_key):
            raise KeyIOError(f"{public_path} does not match {private_path}")
        return private_key, False

    if has_private or has_public:
        present, missing = (private_path, public_path) if has_private else (public_path, private_path)
        raise KeyIOError(
            f"partial key material: {present} exists but {missing} is missing; "
            f"restore {missing} or remove {present} to generate a new keypair"
        )

    private_key, public_key = generate_keypair()
    try:
        create_owner_only(private_path, encode_private_key(private_key))
    except FileExistsError as exc:
        raise KeyIOError(f"{private_path} appeared while generating keys (concurrent provisioning?)") from exc
    except OSError as exc:
        raise KeyIOError(f"cannot write {private_path}: {exc}") from exc
    try:
        create_owner_only(public_path, encode_public_key(public_key))
    except OSError as exc:
        private_path.unlink(missing_ok=True)
        raise KeyIOError(f"cannot write {public_path}: {exc}") from exc
    return private_key, True
