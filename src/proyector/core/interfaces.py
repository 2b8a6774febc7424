"""Contratos de los colaboradores que el motor consume.

El motor no depende de SQLite: solo tipa contra estos Protocols. La
implementación de referencia es `proyector.core.storage.ElectionStore`.

English:
    Collaborator contracts consumed by the engine.

    The engine does not depend on SQLite: it only types against these
    Protocols. The reference implementation is
    `proyector.core.storage.ElectionStore`.
"""

from __future__ import annotations

from typing import ContextManager, Dict, Iterable, List, Optional, Protocol

from proyector.core.models import (
    MetadataTotals,
    Participant,
    Region,
    SampleRun,
    SampleSettings,
    Station,
)


class GeographyReader(Protocol):
    """Árbol región → circunscripción → mesa (solo lectura).

    English: Region → constituency → station tree (read-only).
    """

    def list_regions(self) -> List[Region]: ...
    def get_region(self, region_id: int) -> Region: ...
    def list_stations_in_region(self, region_id: int) -> List[Station]: ...
    def list_participants(self) -> List[Participant]: ...


class TallyReader(Protocol):
    """Votos por mesa y participante (solo lectura).

    English: Votes per station and participant (read-only).
    """

    def get_sample_votes(self, region_id: int) -> Dict[int, int]: ...
    def count_sample_stations(self, region_id: int) -> int: ...
    def count_reporting_sample_stations(self, region_id: int) -> int: ...


class MetadataReader(Protocol):
    """Inscritos, blancos y nulos por mesa (solo lectura).

    English: Registered, blank and spoiled counts per station (read-only).
    """

    def get_sample_metadata_totals(self, region_id: int) -> MetadataTotals: ...


class SampleWriter(Protocol):
    """Escritura de la bandera de muestra y del historial de corridas.

    English: Sample flag and run-history writes.
    """

    def transaction(self) -> ContextManager[None]: ...
    def clear_sample_flags(self) -> None: ...
    def mark_sample(self, station_ids: Iterable[int]) -> None: ...
    def set_station_sample(self, station_id: int, included: bool) -> Station: ...
    def record_sample_run(
        self, target_sample_size: int, station_ids: Iterable[int], seed: Optional[int]
    ) -> int: ...
    def list_sample_runs(self) -> List[SampleRun]: ...
    def get_sample_run(self, run_id: int) -> SampleRun: ...


class SettingsRepository(Protocol):
    """Persistencia del registro único de configuración.

    English: Persistence of the singleton settings record.
    """

    def load_settings(self) -> SampleSettings: ...
    def save_settings(self, settings: SampleSettings) -> SampleSettings: ...
