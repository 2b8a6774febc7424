"""Registro único de configuración de la muestra.

English:
    Singleton sample settings record.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from .core.interfaces import SettingsRepository
from .core.models import SampleSettings
from .schemas import validate_settings_update

logger = logging.getLogger(__name__)


class SettingsStore:
    """Lectura y actualización validada de `SampleSettings`.

    English: Validated read and update of `SampleSettings`.
    """

    def __init__(self, repository: SettingsRepository) -> None:
        self._repository = repository

    def get_settings(self) -> SampleSettings:
        return self._repository.load_settings()

    def update_settings(
        self,
        target_sample_size: Optional[int] = None,
        confidence_level: Optional[float] = None,
        is_active: Optional[bool] = None,
    ) -> SampleSettings:
        """Actualiza en sitio; los campos omitidos conservan su valor.

        Raises:
            ConfigurationError: si algún valor es inválido.

        English:
            Updates in place; omitted fields keep their value.
        """
        update = validate_settings_update(
            {
                "target_sample_size": target_sample_size,
                "confidence_level": confidence_level,
                "is_active": is_active,
            }
        )
        changes = update.model_dump(exclude_none=True)
        current = self._repository.load_settings()
        saved = self._repository.save_settings(replace(current, **changes))
        logger.info(
            "sample_settings_updated target=%s confidence=%s active=%s",
            saved.target_sample_size,
            saved.confidence_level,
            saved.is_active,
        )
        return saved
