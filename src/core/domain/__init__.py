"""Modelos y entidades del dominio.

Aquí viven las estructuras de datos puras (Pydantic v2) y la taxonomía de
errores. El dominio no conoce httpx ni la CLI.
"""
