"""Taxonomía de errores del aprovisionamiento.

Todos los errores son terminales para la llamada: se propagan al caller sin
reintentos ni rollback. La CLI los presenta como mensajes de error.
"""

from __future__ import annotations


class ProvisioningError(Exception):
    """Base de todos los fallos del provisioner."""


class InvalidUsername(ProvisioningError):
    """El username no pasa el perfil PRECIS UsernameCaseMapped."""


class InvalidProvider(ProvisioningError):
    """El provider no es un nombre de dominio IDNA válido."""


class DirectoryError(ProvisioningError):
    """No se pudo crear o acceder al directorio de la cuenta."""


class KeyIOError(ProvisioningError):
    """Ficheros de clave ausentes, corruptos, parciales o no escribibles."""


class InvalidKeyEncoding(ProvisioningError):
    """Una clave pública externa (base64) no se pudo decodificar."""


class ConfigValidationError(ProvisioningError):
    """El documento ensamblado no supera la validación del esquema."""


class ConfigIOError(ProvisioningError):
    """No se pudo escribir el fichero de configuración."""
