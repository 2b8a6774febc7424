"""Agregación regional de las mesas de muestra.

Los votos y los metadatos de mesa se piden por separado al almacén: los
metadatos se suman una vez por mesa, nunca una vez por fila
mesa×participante.

English:
    Regional aggregation of sample stations.

    Votes and station metadata are requested separately from the store:
    metadata is summed once per station, never once per
    station×participant row.
"""

from __future__ import annotations

import logging
from typing import List

from .core.interfaces import GeographyReader, MetadataReader, TallyReader
from .core.models import Region, RegionalSampleSummary

logger = logging.getLogger(__name__)


class RegionalAggregator:
    """Calcula `RegionalSampleSummary` bajo demanda (solo lectura).

    English: Computes `RegionalSampleSummary` on demand (read-only).
    """

    def __init__(
        self,
        geography: GeographyReader,
        tallies: TallyReader,
        metadata: MetadataReader,
    ) -> None:
        self._geography = geography
        self._tallies = tallies
        self._metadata = metadata

    def summarize_region(self, region_id: int) -> RegionalSampleSummary:
        """Resume la muestra de una región.

        Raises:
            NotFoundError: si la región no existe.

        English:
            Summarizes one region's sample.
        """
        return self._summarize(self._geography.get_region(region_id))

    def summarize_all(self) -> List[RegionalSampleSummary]:
        """Resume todas las regiones con al menos una mesa, por nombre.

        English: Summarizes every region with at least one station, by name.
        """
        return [
            self._summarize(region)
            for region in self._geography.list_regions()
            if region.total_stations > 0
        ]

    def _summarize(self, region: Region) -> RegionalSampleSummary:
        summary = RegionalSampleSummary(
            region_id=region.id,
            region_name=region.name,
            total_stations=region.total_stations,
            sample_stations=self._tallies.count_sample_stations(region.id),
            sample_stations_reported=self._tallies.count_reporting_sample_stations(region.id),
            votes=self._tallies.get_sample_votes(region.id),
            metadata=self._metadata.get_sample_metadata_totals(region.id),
        )
        logger.debug(
            "region_summarized region_id=%s sample=%s reported=%s votes=%s",
            summary.region_id,
            summary.sample_stations,
            summary.sample_stations_reported,
            summary.total_sample_votes,
        )
        return summary
