"""Errores del motor de proyección.

English:
    Projection engine errors.
"""

from __future__ import annotations


class ProjectionError(Exception):
    """Error general del motor de proyección.

    English: Generic projection engine error.
    """


class ConfigurationError(ProjectionError):
    """Configuración inválida o nada que muestrear.

    English: Invalid configuration or nothing to sample.
    """


class NotFoundError(ProjectionError):
    """Entidad inexistente (mesa, región o corrida de muestra).

    English: Missing entity (station, region or sample run).
    """

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} not found: {entity_id!r}")
        self.entity = entity
        self.entity_id = entity_id
