from __future__ import annotations

from adapters.schemas.client import ClientSchema
from adapters.schemas.mailproxy import MailproxySchema
from core.interfaces.schema import ConfigSchemaAdapter

_SCHEMAS: dict[str, type] = {
    ClientSchema.name: ClientSchema,
    MailproxySchema.name: MailproxySchema,
}


def available_schemas() -> list[str]:
    return sorted(_SCHEMAS)


def get_schema(name: str) -> ConfigSchemaAdapter:
    """Instancia el adaptador de esquema registrado como `name`."""

    try:
        return _SCHEMAS[name.strip().lower()]()
    except KeyError:
        raise ValueError(
            f"unknown schema {name!r} (available: {', '.join(available_schemas())})"
        ) from None


__all__ = [
    "ClientSchema",
    "ConfigSchemaAdapter",
    "MailproxySchema",
    "available_schemas",
    "get_schema",
]
