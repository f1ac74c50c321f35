"""Contrato de los adaptadores de esquema de configuración.

Por qué Protocol:
- Las dos aplicaciones (cliente y mailproxy) comparten normalización y claves,
  pero divergen en la forma del TOML. Cada forma vive en un adaptador
  intercambiable, compuesto dentro del provisioner (no herencia).
- El nombre del fichero de salida es propiedad del adaptador, no una constante
  global del proceso.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.domain.models import AccountIdentity, ConfigDocument, ProvisionRequest


@runtime_checkable
class ConfigSchemaAdapter(Protocol):
    """Contrato mínimo para un esquema de aplicación.

    Reglas de diseño:
    - `build_document` solo ensambla el modelo de dominio.
    - `finalize` aplica defaults del esquema, valida y devuelve el mapping
      que se serializa; lanza `ConfigValidationError` si algo no cuadra.
    """

    name: str

    def output_file_name(self) -> str:
        """Nombre del fichero TOML dentro del data dir."""

        ...

    def build_document(self, request: ProvisionRequest, identity: AccountIdentity) -> ConfigDocument:
        ...

    def finalize(self, document: ConfigDocument) -> dict[str, Any]:
        ...
