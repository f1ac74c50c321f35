from __future__ import annotations

import json

import toml
from typer.testing import CliRunner

from cli.main import app

runner = CliRunner()

QUIET = {"MIXNET_PROVISION_LOG_LEVEL": "ERROR"}


def _base_args(data_dir, provider_key):
    return [
        "generate",
        "--user",
        "Bob",
        "--provider",
        "mix.example",
        "--provider-key",
        provider_key,
        "--data-dir",
        str(data_dir),
    ]


def test_generate_json(data_dir, provider_key, authority_key):
    args = _base_args(data_dir, provider_key) + [
        "--authority",
        "127.0.0.1:29483",
        "--authority-key",
        authority_key,
        "--json",
    ]
    result = runner.invoke(app, args, env=QUIET)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["account_id"] == "bob@mix.example"
    assert payload["config_path"] == str(data_dir / "katzenpost.toml")
    assert payload["generated_keys"] is True
    assert (data_dir / "bob@mix.example" / "identity.public.pem").exists()


def test_generate_table_output(data_dir, provider_key, authority_key):
    args = _base_args(data_dir, provider_key) + ["--authority", "127.0.0.1:29483", "--authority-key", authority_key]
    result = runner.invoke(app, args, env=QUIET)

    assert result.exit_code == 0, result.output
    assert "bob@mix.example" in result.stdout


def test_generate_with_peers_file_and_onion(data_dir, provider_key, make_peer, tmp_path):
    peers = [make_peer("10.0.0.1:29483"), make_peer("10.0.0.2:29483")]
    peers_path = tmp_path / "peers.json"
    peers_path.write_text(
        json.dumps([peer.model_dump(by_alias=True) for peer in peers]),
        encoding="utf-8",
    )
    args = _base_args(data_dir, provider_key) + [
        "--authority-peers",
        str(peers_path),
        "--schema",
        "mailproxy",
        "--prefer-onion",
        "--socks-address",
        "127.0.0.1:9150",
        "--onion-authority",
        "abcdefghijklmnop.onion:29483",
        "--json",
    ]
    result = runner.invoke(app, args, env=QUIET)

    assert result.exit_code == 0, result.output
    config = toml.loads((data_dir / "mailproxy.toml").read_text(encoding="utf-8"))
    written = config["VotingAuthority"]["playground"]["Peers"]
    assert [p["Addresses"] for p in written] == [["10.0.0.1:29483"], ["10.0.0.2:29483"]]
    assert config["UpstreamProxy"]["Address"] == "127.0.0.1:9150"
    assert config["UpstreamProxy"]["AuthorityAddress"] == "abcdefghijklmnop.onion:29483"


def test_generate_requires_authority(data_dir, provider_key):
    result = runner.invoke(app, _base_args(data_dir, provider_key), env=QUIET)
    assert result.exit_code == 2
    assert not data_dir.exists()


def test_generate_unknown_schema(data_dir, provider_key, authority_key):
    args = _base_args(data_dir, provider_key) + [
        "--authority",
        "127.0.0.1:29483",
        "--authority-key",
        authority_key,
        "--schema",
        "nope",
    ]
    result = runner.invoke(app, args, env=QUIET)
    assert result.exit_code == 2


def test_generate_reports_provisioning_errors(data_dir, authority_key):
    args = _base_args(data_dir, "bad key!") + ["--authority", "127.0.0.1:29483", "--authority-key", authority_key]
    result = runner.invoke(app, args, env=QUIET)
    assert result.exit_code == 1


def test_generate_uses_settings_defaults(tmp_path, provider_key, authority_key):
    target = tmp_path / "from-env"
    env = {**QUIET, "MIXNET_PROVISION_DATA_DIR": str(target), "MIXNET_PROVISION_DEFAULT_SCHEMA": "mailproxy"}
    args = [
        "generate",
        "--user",
        "Bob",
        "--provider",
        "mix.example",
        "--provider-key",
        provider_key,
        "--authority",
        "127.0.0.1:29483",
        "--authority-key",
        authority_key,
        "--json",
    ]
    result = runner.invoke(app, args, env=env)

    assert result.exit_code == 0, result.output
    assert (target / "mailproxy.toml").exists()


def test_schemas_command():
    result = runner.invoke(app, ["schemas"])
    assert result.exit_code == 0
    assert "katzenpost.toml" in result.stdout
    assert "mailproxy.toml" in result.stdout


def test_doctor_run(tmp_path):
    result = runner.invoke(app, ["doctor", "run"], env={"MIXNET_PROVISION_DATA_DIR": str(tmp_path / "d")})
    assert result.exit_code == 0
    assert (tmp_path / "d").is_dir()


def test_generate_rejects_peers_file_without_peers(data_dir, provider_key, authority_key, tmp_path):
    peers_path = tmp_path / "peers.json"
    peers_path.write_text('{"peers": []}', encoding="utf-8")
    args = _base_args(data_dir, provider_key) + [
        "--authority-peers",
        str(peers_path),
        "--authority",
        "127.0.0.1:29483",
        "--authority-key",
        authority_key,
    ]
    result = runner.invoke(app, args, env=QUIET)

    assert result.exit_code == 1
    assert not (data_dir / "katzenpost.toml").exists()


def test_generate_reports_overlong_provider(data_dir, provider_key, authority_key):
    provider = ".".join(["a" * 63, "b" * 63, "c" * 63, "d" * 61]) + "."
    args = [
        "generate",
        "--user",
        "Bob",
        "--provider",
        provider,
        "--provider-key",
        provider_key,
        "--data-dir",
        str(data_dir),
        "--authority",
        "127.0.0.1:29483",
        "--authority-key",
        authority_key,
    ]
    result = runner.invoke(app, args, env=QUIET)
    assert result.exit_code == 1
