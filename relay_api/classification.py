"""Clasificación de lecturas: normal vs anómala.

Regla única: una lectura es anómala si y solo si weight > targetWeight.
weight == targetWeight es normal.
"""

from __future__ import annotations


def classify(weight: float, threshold: float) -> bool:
    """Retorna True si la lectura es anómala."""
    return weight > threshold
