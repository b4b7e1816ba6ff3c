# freight_market/core/errors.py
"""
Errores de dominio de los servicios.

Cada error lleva el código HTTP con el que se responde; los handlers de
``main.py`` los convierten en ``{"success": false, "error": ...}``.
"""
from fastapi import status


class DomainError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN


class InvalidState(DomainError):
    """Transición ilegal desde el estado actual (estado, deadline, ya asignada)."""
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(DomainError):
    """Violación de unicidad (p.ej. puja duplicada)."""
    status_code = status.HTTP_400_BAD_REQUEST
