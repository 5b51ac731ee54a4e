"""Taxonomía de errores del relay.

- InvalidInputError: lectura o umbral mal formado. Se responde 400, no se persiste nada.
- PersistenceError: la BD rechazó una escritura. Se responde 500, la lectura se da por perdida.
- DeliveryFailure: fallo de red o del colector. Nunca sale del DeliveryClient;
  queda registrado implícitamente como is_sent_to_vps=0 y lo recoge el sweeper.
"""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Lectura o umbral inválido."""


class PersistenceError(RuntimeError):
    """El log durable no aceptó la escritura."""


class DeliveryFailure(Exception):
    """Fallo al entregar al colector (uso interno del cliente)."""

    def __init__(self, reason: str, status_code: int | None = None):
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason if status_code is None else f"{reason} (HTTP {status_code})")
