from __future__ import annotations

import stat

import pytest

from adapters import key_codec
from adapters.key_codec import (
    encode_public_key,
    generate_keypair,
    parse_ecdh_public_key,
    parse_eddsa_public_key,
    public_key_to_string,
)
from core.domain.errors import DirectoryError, InvalidKeyEncoding, KeyIOError
from core.domain.models import AccountIdentity, KeyRole
from core.services.key_store import ensure_account_dir, load_or_create

from conftest import ecdh_key_b64, eddsa_key_b64


@pytest.fixture
def account_dir(tmp_path):
    identity = AccountIdentity(user="bob", provider="mix.example")
    return ensure_account_dir(tmp_path, identity)


def _mode(path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


def test_ensure_account_dir_creates_parents(tmp_path):
    identity = AccountIdentity(user="bob", provider="mix.example")
    path = ensure_account_dir(tmp_path / "a" / "b", identity)
    assert path == tmp_path / "a" / "b" / "bob@mix.example"
    assert path.is_dir()


def test_ensure_account_dir_rejects_regular_file(tmp_path):
    (tmp_path / "bob@mix.example").write_text("not a directory", encoding="utf-8")
    with pytest.raises(DirectoryError):
        ensure_account_dir(tmp_path, AccountIdentity(user="bob", provider="mix.example"))


def test_creates_keypair_with_owner_only_files(account_dir):
    record = load_or_create(account_dir, KeyRole.LINK)

    assert record.generated is True
    assert record.private_path == account_dir / "link.private.pem"
    assert record.public_path == account_dir / "link.public.pem"
    assert _mode(record.private_path) == 0o600
    assert _mode(record.public_path) == 0o600
    assert record.public_path.read_bytes() == encode_public_key(record.public_key)


def test_existing_keypair_is_loaded_not_regenerated(account_dir):
    first = load_or_create(account_dir, KeyRole.IDENTITY)
    private_bytes = first.private_path.read_bytes()
    public_bytes = first.public_path.read_bytes()

    second = load_or_create(account_dir, KeyRole.IDENTITY)

    assert second.generated is False
    assert second.public_key_b64 == first.public_key_b64
    assert second.private_path.read_bytes() == private_bytes
    assert second.public_path.read_bytes() == public_bytes


def test_roles_are_independent(account_dir):
    link = load_or_create(account_dir, KeyRole.LINK)
    identity = load_or_create(account_dir, KeyRole.IDENTITY)
    assert link.public_key_b64 != identity.public_key_b64


def test_custom_extension(account_dir):
    record = load_or_create(account_dir, KeyRole.LINK, extension="key")
    assert record.private_path.name == "link.private.key"
    assert record.public_path.name == "link.public.key"


def test_missing_public_key_is_fatal_and_keeps_private(account_dir):
    record = load_or_create(account_dir, KeyRole.LINK)
    private_bytes = record.private_path.read_bytes()
    record.public_path.unlink()

    with pytest.raises(KeyIOError):
        load_or_create(account_dir, KeyRole.LINK)

    assert record.private_path.read_bytes() == private_bytes
    assert not record.public_path.exists()


def test_missing_private_key_is_fatal(account_dir):
    record = load_or_create(account_dir, KeyRole.LINK)
    record.private_path.unlink()

    with pytest.raises(KeyIOError):
        load_or_create(account_dir, KeyRole.LINK)
    assert not record.private_path.exists()


def test_corrupt_public_key_is_fatal(account_dir):
    record = load_or_create(account_dir, KeyRole.LINK)
    record.public_path.write_bytes(b"-----BEGIN PUBLIC KEY-----\ngarbage\n-----END PUBLIC KEY-----\n")

    with pytest.raises(KeyIOError):
        load_or_create(account_dir, KeyRole.LINK)


def test_mismatched_public_key_is_fatal(account_dir):
    record = load_or_create(account_dir, KeyRole.LINK)
    _, other_public = generate_keypair()
    record.public_path.write_bytes(encode_public_key(other_public))

    with pytest.raises(KeyIOError):
        load_or_create(account_dir, KeyRole.LINK)


def test_parse_eddsa_public_key_is_canonical():
    text = eddsa_key_b64()
    assert public_key_to_string(parse_eddsa_public_key(text)) == text


def test_parse_ecdh_public_key():
    text = ecdh_key_b64()
    assert public_key_to_string(parse_ecdh_public_key(text)) == text


@pytest.mark.parametrize("text", ["", "not base64!", "AAAA"])
def test_parse_eddsa_public_key_rejects_malformed_input(text):
    with pytest.raises(InvalidKeyEncoding):
        parse_eddsa_public_key(text)


@pytest.mark.parametrize("user", ["../../escaped/x", "a/b"])
def test_account_id_with_path_separator_is_rejected(tmp_path, user):
    data_dir = tmp_path / "data"
    with pytest.raises(DirectoryError):
        ensure_account_dir(data_dir, AccountIdentity(user=user, provider="mix.example"))
    assert not (tmp_path / "escaped").exists()
    assert not data_dir.exists()


def test_failed_public_write_leaves_no_partial_pair(account_dir, monkeypatch):
    real_create = key_codec.create_owner_only

    def failing_create(path, data):
        if "public" in path.name:
            raise OSError("disk full")
        real_create(path, data)

    monkeypatch.setattr(key_codec, "create_owner_only", failing_create)
    with pytest.raises(KeyIOError):
        load_or_create(account_dir, KeyRole.LINK)
    assert list(account_dir.iterdir()) == []

    monkeypatch.undo()
    record = load_or_create(account_dir, KeyRole.LINK)
    assert record.generated is True


def test_existing_file_is_never_clobbered_during_generation(account_dir, monkeypatch):
    private_path = account_dir / "link.private.pem"
    real_create = key_codec.create_owner_only

    def racing_create(path, data):
        # Otro proceso crea la privada entre la comprobación y la escritura.
        if path == private_path and not path.exists():
            path.write_bytes(b"other process")
        real_create(path, data)

    monkeypatch.setattr(key_codec, "create_owner_only", racing_create)
    with pytest.raises(KeyIOError):
        load_or_create(account_dir, KeyRole.LINK)
    assert private_path.read_bytes() == b"other process"


def test_partial_key_error_explains_recovery(account_dir):
    record = load_or_create(account_dir, KeyRole.LINK)
    record.public_path.unlink()
    with pytest.raises(KeyIOError, match="remove"):
        load_or_create(account_dir, KeyRole.LINK)
