"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Iterable

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.interfaces.schema import ConfigSchemaAdapter
from core.services.provisioner import ProvisionResult


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Se omite en modo `--json` para no ensuciar la salida de pipelines.
    """

    title = Text("mixnet-provision", style="bold cyan")
    subtitle = Text("Claves de cuenta • Configuración de cliente", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_result_table(result: ProvisionResult) -> Table:
    table = Table(title=f"Provisioned {result.account_id}")
    table.add_column("Item", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("Account directory", str(result.account_dir))
    table.add_row("Config file", str(result.config_path))
    table.add_row("Link public key", result.link_public_key_b64)
    table.add_row("Identity public key", result.identity_public_key_b64)
    table.add_row("Keys", "generated" if result.generated_keys else "loaded (unchanged)")
    return table


def build_schemas_table(schemas: Iterable[ConfigSchemaAdapter]) -> Table:
    table = Table(title="Config schemas")
    table.add_column("Schema", style="cyan", no_wrap=True)
    table.add_column("Output file", style="magenta")
    for schema in schemas:
        table.add_row(schema.name, schema.output_file_name())
    return table
