"""Modelos y errores del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2).
- El dominio no conoce ficheros, TOML ni criptografía: solo conceptos del problema.
"""
