# Numeric Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) Propósito del módulo
#   2) Componentes principales
#   3) Puntos de extensión
#
# EN: Quick index
#   1) Module purpose
#   2) Main components
#   3) Extension points
#
# Secciones / Sections:
#   - Lógica principal / Core logic

"""Utilidades numéricas con guardas de división.

Numeric helpers with division guards.
"""

from __future__ import annotations

import math


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide devolviendo 0 cuando el denominador es 0.

    English: Divide, returning 0 when the denominator is 0.
    """
    if not denominator:
        return 0.0
    return numerator / denominator


def safe_percentage(numerator: float, denominator: float) -> float:
    """Porcentaje con guarda de denominador.

    English: Percentage with denominator guard.
    """
    return safe_ratio(numerator * 100, denominator)


def round_half_up(value: float, digits: int = 0) -> float:
    """Redondeo comercial (0.5 hacia arriba), no bancario.

    English:
        Commercial rounding (0.5 goes up) instead of Python's banker's
        rounding. Used for sample allocation and display values.
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
