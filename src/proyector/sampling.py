"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/proyector/sampling.py`.
Selección de mesas de muestra por muestreo aleatorio estratificado
proporcional por región, con ajuste manual mesa a mesa.

Componentes detectados:
  - allocate_sample
  - SampleSelector

Notas:
- Mantener esta cabecera sincronizada con cambios estructurales del archivo.
- Cada región poblada aporta al menos una mesa; el total puede diferir
  del objetivo.

======================== ENGLISH ========================
File: `src/proyector/sampling.py`.
Sample station selection through proportional stratified random sampling
by region, with per-station manual override.

Detected components:
  - allocate_sample
  - SampleSelector

Notes:
- Keep this header in sync with structural changes in the file.
- Every populated region contributes at least one station; the total may
  differ from the target.
"""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence

from .core.interfaces import GeographyReader, SampleWriter, SettingsRepository
from .core.models import Region, RegionSelection, RegionStations, SelectionResult, Station
from .core.numeric import round_half_up
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_SEED_BITS = 32


def validate_target_size(target_sample_size: object) -> int:
    """Exige un entero >= 1 (los booleanos no cuentan).

    English: Require an integer >= 1 (booleans do not count).
    """
    if isinstance(target_sample_size, bool) or not isinstance(target_sample_size, int):
        raise ConfigurationError(f"target_sample_size must be an integer, got {target_sample_size!r}")
    if target_sample_size < 1:
        raise ConfigurationError(f"target_sample_size must be >= 1, got {target_sample_size}")
    return target_sample_size


def allocate_sample(regions: Sequence[Region], target_sample_size: int) -> Dict[int, int]:
    """Reparte el tamaño objetivo entre regiones en proporción a sus mesas.

    Args:
        regions: Regiones con su conteo total de mesas.
        target_sample_size: Tamaño objetivo nacional.

    Returns:
        Dict[int, int]: region_id -> mesas a seleccionar. Solo incluye
        regiones con mesas; cada una recibe
        ``max(1, round(target * proporción))`` acotado a sus mesas.

    English:
        Splits the target size across regions proportionally to their
        station counts.

    Returns:
        Dict[int, int]: region_id -> stations to select. Only regions with
        stations are included; each gets ``max(1, round(target * share))``
        capped at its station count.
    """
    populated = [region for region in regions if region.total_stations > 0]
    grand_total = sum(region.total_stations for region in populated)
    if grand_total == 0:
        raise ConfigurationError("No regions with stations available to sample")

    allocation: Dict[int, int] = {}
    for region in populated:
        proportion = region.total_stations / grand_total
        region_size = max(1, int(round_half_up(target_sample_size * proportion)))
        allocation[region.id] = min(region_size, region.total_stations)
    return allocation


class SampleSelector:
    """Gestiona la bandera `is_sample` de las mesas.

    English:
        Manages the stations' `is_sample` flag.
    """

    def __init__(
        self,
        geography: GeographyReader,
        writer: SampleWriter,
        settings: SettingsRepository,
    ) -> None:
        self._geography = geography
        self._writer = writer
        self._settings = settings

    def auto_select(
        self,
        target_sample_size: Optional[int] = None,
        *,
        seed: Optional[int] = None,
    ) -> SelectionResult:
        """Reemplaza la muestra completa con una selección estratificada.

        Todo ocurre en una sola transacción: si algo falla, la muestra
        anterior queda intacta y ningún lector ve el estado intermedio.

        Args:
            target_sample_size: Tamaño objetivo; por defecto el configurado.
            seed: Semilla para reproducir la selección; si falta se genera
                una y queda registrada en la corrida.

        English:
            Replaces the whole sample with a stratified selection.

            Everything happens in one transaction: on failure the previous
            sample stays intact and no reader sees the intermediate state.
        """
        if target_sample_size is None:
            target_sample_size = self._settings.load_settings().target_sample_size
        target = validate_target_size(target_sample_size)
        if seed is None:
            seed = random.SystemRandom().getrandbits(_SEED_BITS)
        rng = random.Random(seed)

        with self._writer.transaction():
            regions = self._geography.list_regions()
            allocation = allocate_sample(regions, target)
            self._writer.clear_sample_flags()

            selections: List[RegionSelection] = []
            selected_ids: List[int] = []
            for region in regions:
                region_size = allocation.get(region.id)
                if region_size is None:
                    continue
                station_ids = [station.id for station in self._geography.list_stations_in_region(region.id)]
                chosen = rng.sample(station_ids, region_size)
                self._writer.mark_sample(chosen)
                selected_ids.extend(chosen)
                selections.append(
                    RegionSelection(
                        region_id=region.id,
                        region_name=region.name,
                        total_stations=region.total_stations,
                        sample_stations=len(chosen),
                    )
                )
            run_id = self._writer.record_sample_run(target, selected_ids, seed)

        result = SelectionResult(run_id=run_id, target_sample_size=target, regions=selections)
        logger.info(
            "sample_autoselect_completed run_id=%s target=%s selected=%s regions=%s seed=%s",
            run_id,
            target,
            result.total_selected,
            len(selections),
            seed,
        )
        return result

    def toggle_station(self, station_id: int, included: bool) -> Station:
        """Incluye o excluye una mesa sin reequilibrar proporciones.

        English:
            Includes or excludes one station without rebalancing.
        """
        station = self._writer.set_station_sample(station_id, bool(included))
        logger.info(
            "sample_station_toggled station_id=%s included=%s region_id=%s",
            station.id,
            station.is_sample,
            station.region_id,
        )
        return station

    def list_sample_stations(self) -> List[RegionStations]:
        """Lista regiones con sus mesas y estado de muestra.

        English: Lists regions with their stations and sample state.
        """
        grouped: List[RegionStations] = []
        for region in self._geography.list_regions():
            if region.total_stations == 0:
                continue
            grouped.append(
                RegionStations(
                    region_id=region.id,
                    region_name=region.name,
                    region_code=region.code,
                    stations=self._geography.list_stations_in_region(region.id),
                )
            )
        return grouped
