"""CLI principal (Typer).

Por qué la CLI es fina:
- Solo traduce opciones a un `ProvisionRequest`; el pipeline vive en
  `core.services.provisioner` y es reutilizable desde otros entrypoints.
- Los defaults (data dir, SOCKS, esquema) vienen de `AppSettings`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.peers_loader import load_authority_peers
from adapters.schemas import available_schemas, get_schema
from cli import doctor
from cli.ui_components import build_result_table, build_schemas_table, print_banner
from core.config import AppSettings
from core.domain.errors import ProvisioningError
from core.domain.models import ProvisionRequest
from core.services.provisioner import Provisioner

app = typer.Typer(
    no_args_is_help=True,
    help="Generate key material and configuration for mix-network clients.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=False)],
        force=True,
    )


@app.command()
def generate(
    user: str = typer.Option(..., "--user", "-u", help="Account username (PRECIS case-mapped)."),
    provider: str = typer.Option(..., "--provider", "-p", help="Provider domain name."),
    provider_key: str = typer.Option(..., "--provider-key", help="Provider public key (base64 Ed25519)."),
    authority: str = typer.Option("", "--authority", help="Non-voting authority address (host:port)."),
    authority_key: str = typer.Option("", "--authority-key", help="Non-voting authority public key (base64)."),
    onion_authority: str = typer.Option("", "--onion-authority", help="Authority onion address (host:port)."),
    authority_peers: Path | None = typer.Option(
        None,
        "--authority-peers",
        exists=True,
        dir_okay=False,
        readable=True,
        help="TOML/JSON file with voting authority peers (enables voting mode).",
    ),
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help="Output data directory."),
    socks_network: str | None = typer.Option(None, "--socks-network", help="Tor SOCKS network (tcp/unix)."),
    socks_address: str | None = typer.Option(None, "--socks-address", help="Tor SOCKS address."),
    prefer_onion: bool | None = typer.Option(
        None,
        "--prefer-onion/--direct",
        help="Route upstream connections through Tor.",
    ),
    schema: str | None = typer.Option(None, "--schema", "-s", help="Target application schema."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Create or load account keys and (re)write the application config."""

    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)

    try:
        adapter = get_schema(schema or settings.default_schema)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--schema") from exc

    try:
        peers = load_authority_peers(authority_peers) if authority_peers else []
        if not peers and not (authority and authority_key):
            raise typer.BadParameter(
                "--authority and --authority-key are required unless --authority-peers is given"
            )

        request = ProvisionRequest(
            user=user,
            provider=provider,
            provider_key=provider_key,
            authority_address=authority,
            onion_authority_address=onion_authority,
            authority_key=authority_key,
            data_dir=data_dir or settings.data_dir,
            socks_network=socks_network or settings.socks_network,
            socks_address=socks_address or settings.socks_address,
            prefer_onion=settings.prefer_onion if prefer_onion is None else prefer_onion,
            authority_peers=peers,
        )
        result = Provisioner(adapter, settings=settings).provision(request)
    except ProvisioningError as exc:
        _err_console.print(f"[red]Error ({type(exc).__name__}):[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(json.dumps(result.as_dict(), indent=2, sort_keys=True))
        return

    print_banner(_console)
    _console.print(build_result_table(result))


@app.command()
def schemas() -> None:
    """List the available application schemas."""

    _console.print(build_schemas_table(get_schema(name) for name in available_schemas()))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
