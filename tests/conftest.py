from __future__ import annotations

import base64
import os

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey

from core.domain.models import AuthorityPeer, ProvisionRequest


def _raw_b64(public_key) -> str:
    raw = public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return base64.b64encode(raw).decode("ascii")


def eddsa_key_b64() -> str:
    return _raw_b64(Ed25519PrivateKey.generate().public_key())


def ecdh_key_b64() -> str:
    return _raw_b64(X25519PrivateKey.generate().public_key())


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path_factory, monkeypatch):
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    for key in list(os.environ):
        if key.startswith("MIXNET_PROVISION_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(home)


@pytest.fixture
def provider_key() -> str:
    return eddsa_key_b64()


@pytest.fixture
def authority_key() -> str:
    return eddsa_key_b64()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def make_request(data_dir, provider_key, authority_key):
    def _make(**overrides) -> ProvisionRequest:
        values = {
            "user": "Bob",
            "provider": "mix.example",
            "provider_key": provider_key,
            "authority_address": "127.0.0.1:29483",
            "onion_authority_address": "abcdefghijklmnop.onion:29483",
            "authority_key": authority_key,
            "data_dir": data_dir,
            "socks_network": "tcp",
            "socks_address": "127.0.0.1:9050",
            "prefer_onion": False,
        }
        values.update(overrides)
        return ProvisionRequest(**values)

    return _make


@pytest.fixture
def make_peer():
    def _make(address: str = "10.0.0.1:29483") -> AuthorityPeer:
        return AuthorityPeer(
            identity_public_key=eddsa_key_b64(),
            link_public_key=ecdh_key_b64(),
            addresses=[address],
        )

    return _make
