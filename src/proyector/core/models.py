"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/proyector/core/models.py`.
Modelos inmutables de geografía, muestra y proyección nacional.

Componentes detectados:
  - Region
  - Station
  - Participant
  - MetadataTotals
  - SampleSettings
  - RegionalSampleSummary
  - RegionSelection
  - SelectionResult
  - RegionStations
  - SampleRun
  - SampleRunDiff
  - Reliability
  - CallStatus
  - ProjectionCall
  - ParticipantProjection
  - NationalProjection

Notas:
- Mantener esta cabecera sincronizada con cambios estructurales del archivo.
- Los valores derivados se calculan en cada consulta; nada aquí se cachea.

======================== ENGLISH ========================
File: `src/proyector/core/models.py`.
Immutable geography, sample and national projection models.

Detected components:
  - Region
  - Station
  - Participant
  - MetadataTotals
  - SampleSettings
  - RegionalSampleSummary
  - RegionSelection
  - SelectionResult
  - RegionStations
  - SampleRun
  - SampleRunDiff
  - Reliability
  - CallStatus
  - ProjectionCall
  - ParticipantProjection
  - NationalProjection

Notes:
- Keep this header in sync with structural changes in the file.
- Derived values are computed on every query; nothing here is cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from proyector.core.numeric import round_half_up, safe_percentage


@dataclass(frozen=True)
class Region:
    """Región geográfica con su conteo total de mesas.

    Attributes:
        id (int): Identificador de la región.
        name (str): Nombre de la región.
        code (Optional[str]): Código corto.
        total_stations (int): Mesas en todas sus circunscripciones.

    English:
        Geographic region with its total station count.

    Attributes:
        id (int): Region identifier.
        name (str): Region name.
        code (Optional[str]): Short code.
        total_stations (int): Stations across all its constituencies.
    """

    id: int
    name: str
    code: Optional[str] = None
    total_stations: int = 0


@dataclass(frozen=True)
class Station:
    """Mesa de votación y su bandera de muestra.

    English:
        Polling station and its sample flag.
    """

    id: int
    name: str
    constituency_id: int
    region_id: int
    code: Optional[str] = None
    constituency_name: Optional[str] = None
    is_sample: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "constituency_id": self.constituency_id,
            "constituency_name": self.constituency_name,
            "region_id": self.region_id,
            "is_sample": self.is_sample,
        }


@dataclass(frozen=True)
class Participant:
    """Partido o candidato que recibe votos.

    English: Party or candidate receiving votes.
    """

    id: int
    name: str
    short_name: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class MetadataTotals:
    """Suma de inscritos, blancos y nulos de un conjunto de mesas.

    English: Summed registered voters, blank and spoiled ballots.
    """

    registered_voters: int = 0
    blank_ballots: int = 0
    spoiled_ballots: int = 0


@dataclass(frozen=True)
class SampleSettings:
    """Registro único de configuración de la muestra.

    Attributes:
        target_sample_size (int): Tamaño objetivo de la muestra.
        confidence_level (float): Nivel de confianza en (0, 1].
        is_active (bool): Proyección habilitada para los operadores.
        updated_at (Optional[str]): Última modificación (ISO UTC).

    English:
        Singleton sample settings record.

    Attributes:
        target_sample_size (int): Target sample size.
        confidence_level (float): Confidence level in (0, 1].
        is_active (bool): Projection enabled for operators.
        updated_at (Optional[str]): Last modification (ISO UTC).
    """

    target_sample_size: int = 74
    confidence_level: float = 0.95
    is_active: bool = False
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_sample_size": self.target_sample_size,
            "confidence_level": self.confidence_level,
            "is_active": self.is_active,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class RegionalSampleSummary:
    """Resumen de la muestra de una región.

    `votes` asocia participant_id con la suma de votos en las mesas de
    muestra de la región.

    English:
        Sample summary for one region.

        `votes` maps participant_id to the summed votes across the region's
        sample stations.
    """

    region_id: int
    region_name: str
    total_stations: int
    sample_stations: int
    sample_stations_reported: int
    votes: Dict[int, int] = field(default_factory=dict)
    metadata: MetadataTotals = field(default_factory=MetadataTotals)

    @property
    def total_sample_votes(self) -> int:
        return sum(self.votes.values())

    @property
    def coverage(self) -> float:
        return safe_percentage(self.sample_stations_reported, self.sample_stations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region_id": self.region_id,
            "region_name": self.region_name,
            "total_stations": self.total_stations,
            "sample_stations": self.sample_stations,
            "sample_stations_reported": self.sample_stations_reported,
            "votes": {str(key): value for key, value in self.votes.items()},
            "registered_voters": self.metadata.registered_voters,
            "blank_ballots": self.metadata.blank_ballots,
            "spoiled_ballots": self.metadata.spoiled_ballots,
            "coverage": round_half_up(self.coverage, 1),
        }


@dataclass(frozen=True)
class RegionSelection:
    """Resultado de la selección automática para una región.

    English: Auto-selection outcome for one region.
    """

    region_id: int
    region_name: str
    total_stations: int
    sample_stations: int


@dataclass(frozen=True)
class SelectionResult:
    """Resumen de una corrida de selección automática.

    English: Summary of one auto-selection run.
    """

    run_id: int
    target_sample_size: int
    regions: List[RegionSelection]

    @property
    def total_selected(self) -> int:
        return sum(region.sample_stations for region in self.regions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "target_sample_size": self.target_sample_size,
            "total_selected": self.total_selected,
            "summary": [
                {
                    "region_id": region.region_id,
                    "region_name": region.region_name,
                    "total_stations": region.total_stations,
                    "sample_stations": region.sample_stations,
                }
                for region in self.regions
            ],
        }


@dataclass(frozen=True)
class RegionStations:
    """Mesas de una región con su estado de muestra.

    English: A region's stations with their sample state.
    """

    region_id: int
    region_name: str
    region_code: Optional[str]
    stations: List[Station]

    @property
    def total_stations(self) -> int:
        return len(self.stations)

    @property
    def sample_stations(self) -> int:
        return sum(1 for station in self.stations if station.is_sample)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region_id": self.region_id,
            "region_name": self.region_name,
            "region_code": self.region_code,
            "total_stations": self.total_stations,
            "sample_stations": self.sample_stations,
            "stations": [station.to_dict() for station in self.stations],
        }


@dataclass(frozen=True)
class SampleRun:
    """Corrida inmutable de selección automática.

    English: Immutable auto-selection run.
    """

    id: int
    created_at: str
    target_sample_size: int
    total_selected: int
    seed: Optional[int] = None
    station_ids: Tuple[int, ...] = ()

    def to_dict(self, include_stations: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "created_at": self.created_at,
            "target_sample_size": self.target_sample_size,
            "total_selected": self.total_selected,
            "seed": self.seed,
        }
        if include_stations:
            payload["station_ids"] = list(self.station_ids)
        return payload


@dataclass(frozen=True)
class SampleRunDiff:
    """Diferencia de mesas entre dos corridas.

    English: Station difference between two runs.
    """

    from_run: int
    to_run: int
    added: Tuple[int, ...]
    removed: Tuple[int, ...]
    kept: Tuple[int, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_run": self.from_run,
            "to_run": self.to_run,
            "added": list(self.added),
            "removed": list(self.removed),
            "kept": list(self.kept),
        }


class Reliability(str, Enum):
    """Grado de fiabilidad según cobertura de la muestra.

    English: Reliability grade from sample coverage.
    """

    HIGH = "HIGH"
    MODERATE = "MODERATE"
    LOW = "LOW"


class CallStatus(str, Enum):
    """Clasificación del resultado proyectado.

    English: Projected outcome classification.
    """

    PROJECTED_WINNER = "projected_winner"
    TOO_CLOSE_TO_CALL = "too_close_to_call"
    UNDETERMINED = "undetermined"


@dataclass(frozen=True)
class ProjectionCall:
    """Decisión sobre el ganador proyectado.

    English: Projected-winner decision.
    """

    status: CallStatus
    leader_id: Optional[int] = None
    leader_name: Optional[str] = None
    gap: float = 0.0
    combined_margin: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "leader_id": self.leader_id,
            "leader_name": self.leader_name,
            "gap": round_half_up(self.gap, 2),
            "combined_margin": round_half_up(self.combined_margin, 2),
        }


@dataclass(frozen=True)
class ParticipantProjection:
    """Proyección nacional de un participante.

    `projected_votes` conserva el valor real extrapolado; solo `to_dict`
    redondea para mostrar.

    English:
        National projection for one participant.

        `projected_votes` keeps the exact extrapolated value; only `to_dict`
        rounds for display.
    """

    participant_id: int
    name: str
    short_name: Optional[str]
    sample_votes: int
    projected_votes: float
    percentage: float
    margin_of_error: float
    confidence_interval_lower: float
    confidence_interval_upper: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "participant_name": self.name,
            "participant_short_name": self.short_name,
            "sample_votes": self.sample_votes,
            "projected_votes": int(round_half_up(self.projected_votes)),
            "percentage": round_half_up(self.percentage, 2),
            "margin_of_error": round_half_up(self.margin_of_error, 2),
            "confidence_interval_lower": round_half_up(self.confidence_interval_lower, 2),
            "confidence_interval_upper": round_half_up(self.confidence_interval_upper, 2),
        }


@dataclass(frozen=True)
class NationalProjection:
    """Proyección nacional completa con incertidumbre y clasificación.

    English:
        Full national projection with uncertainty and classification.
    """

    participants: List[ParticipantProjection]
    total_projected_votes: float
    total_registered_voters: float
    projected_blank_ballots: float
    projected_spoiled_ballots: float
    projected_turnout: float
    sample_stations: int
    reported_sample_stations: int
    sample_percentage: float
    confidence_level: float
    design_effect: float
    total_sample_votes: int
    reliability: Reliability
    call: ProjectionCall
    regions: List[RegionalSampleSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projection": [participant.to_dict() for participant in self.participants],
            "summary": {
                "total_projected_votes": int(round_half_up(self.total_projected_votes)),
                "total_registered_voters": int(round_half_up(self.total_registered_voters)),
                "projected_blank_ballots": int(round_half_up(self.projected_blank_ballots)),
                "projected_spoiled_ballots": int(round_half_up(self.projected_spoiled_ballots)),
                "projected_turnout": round_half_up(self.projected_turnout, 2),
                "sample_stations": self.sample_stations,
                "reported_sample_stations": self.reported_sample_stations,
                "sample_percentage": round_half_up(self.sample_percentage, 1),
                "total_sample_votes": self.total_sample_votes,
                "confidence_level": self.confidence_level,
                "design_effect": self.design_effect,
                "reliability": self.reliability.value,
                "call": self.call.to_dict(),
            },
            "regions": [region.to_dict() for region in self.regions],
        }
