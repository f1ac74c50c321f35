"""Doctor command for environment diagnostics."""

from __future__ import annotations

from importlib import metadata
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from adapters.schemas import available_schemas
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

# Distribuciones de las que depende el pipeline de aprovisionamiento.
_REQUIRED_DISTRIBUTIONS = ("cryptography", "toml", "idna", "precis-i18n", "pydantic", "pydantic-settings")


def _check_distribution(name: str) -> tuple[bool, str]:
    try:
        return True, metadata.version(name)
    except metadata.PackageNotFoundError:
        return False, "not installed"


def _check_data_dir(path: Path) -> tuple[bool, str]:
    """Create the data dir if needed and try a throwaway write."""

    try:
        path.mkdir(parents=True, exist_ok=True)
        marker = path / ".doctor-write-check"
        marker.write_text("ok", encoding="utf-8")
        marker.unlink()
        return True, str(path)
    except OSError as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="mixnet-provision Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    ok_dir, detail_dir = _check_data_dir(settings.data_dir)
    table.add_row("Data dir", "OK" if ok_dir else "FAIL", detail_dir)

    for name in _REQUIRED_DISTRIBUTIONS:
        ok, detail = _check_distribution(name)
        table.add_row(name, "OK" if ok else "FAIL", detail)

    route = f"tor ({settings.socks_network} {settings.socks_address})" if settings.prefer_onion else "direct"
    table.add_row("Upstream", "OK", route)
    table.add_row("Default schema", "OK", settings.default_schema)

    _console.print(table)

    if not ok_dir:
        _console.print(
            "\n[yellow]Note:[/yellow] set MIXNET_PROVISION_DATA_DIR or pass `--data-dir` to `generate`."
        )


@app.command(name="setup")
def setup() -> None:
    """Interactive defaults setup (stores config in the user config .env)."""

    settings = AppSettings()

    data_dir = typer.prompt("Data directory", default=str(settings.data_dir), show_default=True).strip()
    schema = typer.prompt(
        f"Default schema ({'/'.join(available_schemas())})",
        default=settings.default_schema,
        show_default=True,
    ).strip().lower()
    prefer_onion = typer.confirm("Route through Tor by default?", default=settings.prefer_onion)
    socks_address = typer.prompt("Tor SOCKS address", default=settings.socks_address, show_default=True).strip()

    if schema not in available_schemas():
        raise typer.BadParameter(f"unknown schema {schema!r}")
    if not data_dir:
        raise typer.BadParameter("data directory is required")

    env_path = write_user_env_vars(
        {
            "MIXNET_PROVISION_DATA_DIR": data_dir,
            "MIXNET_PROVISION_DEFAULT_SCHEMA": schema,
            "MIXNET_PROVISION_PREFER_ONION": "true" if prefer_onion else "false",
            "MIXNET_PROVISION_SOCKS_ADDRESS": socks_address,
        }
    )

    _console.print(f"[green]Saved defaults to:[/green] {env_path}")
