# Projection Module
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
#   - Configuración / Configuration
#   - Lógica principal / Core logic

"""Proyección nacional a partir de la muestra estratificada.

Cada región se extrapola a su población de mesas con
``multiplicador = mesas_totales / mesas_muestra``. La incertidumbre usa la
aproximación normal de una proporción corregida por efecto de diseño.

National projection from the stratified sample.

Each region is extrapolated to its station population with
``multiplier = total_stations / sample_stations``. Uncertainty uses the
normal approximation for a proportion corrected by a design effect.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Sequence

from scipy.stats import norm

from .aggregation import RegionalAggregator
from .core.interfaces import GeographyReader, SettingsRepository
from .core.models import (
    CallStatus,
    NationalProjection,
    ParticipantProjection,
    ProjectionCall,
    Reliability,
)
from .core.numeric import clamp, safe_percentage, safe_ratio
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DESIGN_EFFECT = 2.0
HIGH_COVERAGE_PCT = 90.0
MODERATE_COVERAGE_PCT = 70.0


def z_score(confidence_level: float) -> float:
    """Cuantil normal bilateral para el nivel de confianza (1.96 a 0.95).

    Se redondea a tres decimales para reproducir los valores tabulados
    habituales (1.645, 1.96, 2.576). Un nivel de 1.0 devuelve infinito.

    English:
        Two-sided normal quantile for the confidence level (1.96 at 0.95).

        Rounded to three decimals to match the usual tabulated values
        (1.645, 1.96, 2.576). A level of 1.0 returns infinity.
    """
    if not 0 < confidence_level <= 1:
        raise ConfigurationError(f"confidence_level must be in (0, 1], got {confidence_level}")
    if confidence_level >= 1:
        return math.inf
    return round(float(norm.ppf(0.5 + confidence_level / 2)), 3)


def margin_of_error(percentage: float, effective_n: float, z: float) -> float:
    """Margen de error en puntos porcentuales.

    Sin datos (``effective_n == 0``) el margen es 0; con z infinito el
    intervalo cubre todo el rango y el margen es 100.

    English:
        Margin of error in percentage points.

        With no data (``effective_n == 0``) the margin is 0; with an
        infinite z the interval spans the whole range and the margin is 100.
    """
    if effective_n <= 0:
        return 0.0
    if math.isinf(z):
        return 100.0
    p = percentage / 100
    variance = max(p * (1 - p), 0.0)
    return z * math.sqrt(variance / effective_n) * 100


def classify_reliability(coverage_pct: float) -> Reliability:
    if coverage_pct >= HIGH_COVERAGE_PCT:
        return Reliability.HIGH
    if coverage_pct >= MODERATE_COVERAGE_PCT:
        return Reliability.MODERATE
    return Reliability.LOW


def classify_call(
    ranked: Sequence[ParticipantProjection],
    coverage_pct: float,
    total_projected_votes: float,
) -> ProjectionCall:
    """Decide si hay ganador proyectado o si está demasiado reñido.

    Args:
        ranked: Participantes ordenados por votos proyectados descendentes.
        coverage_pct: Porcentaje de mesas de muestra reportadas.
        total_projected_votes: Total nacional proyectado.

    English:
        Decides whether there is a projected winner or it is too close.
    """
    if len(ranked) < 2 or total_projected_votes <= 0:
        return ProjectionCall(status=CallStatus.UNDETERMINED)

    leader, runner_up = ranked[0], ranked[1]
    gap = leader.percentage - runner_up.percentage
    combined = leader.margin_of_error + runner_up.margin_of_error

    if gap > 2 * combined and coverage_pct >= HIGH_COVERAGE_PCT:
        status = CallStatus.PROJECTED_WINNER
    elif gap <= combined:
        status = CallStatus.TOO_CLOSE_TO_CALL
    else:
        status = CallStatus.UNDETERMINED
    return ProjectionCall(
        status=status,
        leader_id=leader.participant_id,
        leader_name=leader.name,
        gap=gap,
        combined_margin=combined,
    )


class NationalProjector:
    """Extrapola la muestra a una proyección nacional, sin caché.

    English:
        Extrapolates the sample into a national projection, without cache.
    """

    def __init__(
        self,
        aggregator: RegionalAggregator,
        geography: GeographyReader,
        settings: SettingsRepository,
        design_effect: float = DEFAULT_DESIGN_EFFECT,
    ) -> None:
        if not design_effect > 0:
            raise ConfigurationError(f"design_effect must be > 0, got {design_effect}")
        self._aggregator = aggregator
        self._geography = geography
        self._settings = settings
        self.design_effect = float(design_effect)

    def calculate_national_projection(self) -> NationalProjection:
        """Calcula la proyección nacional con márgenes e intervalos.

        Las regiones sin mesas de muestra no aportan nada. Toda división
        verifica su denominador y usa 0 en su lugar.

        English:
            Computes the national projection with margins and intervals.

            Regions without sample stations contribute nothing. Every
            division checks its denominator and substitutes 0.
        """
        confidence_level = self._settings.load_settings().confidence_level
        z = z_score(confidence_level)
        participants = self._geography.list_participants()
        regions = self._aggregator.summarize_all()

        projected: Dict[int, float] = {participant.id: 0.0 for participant in participants}
        sample_votes: Dict[int, int] = {participant.id: 0 for participant in participants}
        registered = blank = spoiled = 0.0
        sample_stations = reported_stations = 0

        for region in regions:
            sample_stations += region.sample_stations
            reported_stations += region.sample_stations_reported
            if region.sample_stations == 0:
                continue
            multiplier = region.total_stations / region.sample_stations
            for participant_id, votes in region.votes.items():
                if participant_id not in projected:
                    logger.warning(
                        "projection_unknown_participant participant_id=%s region_id=%s",
                        participant_id,
                        region.region_id,
                    )
                    continue
                sample_votes[participant_id] += votes
                projected[participant_id] += votes * multiplier
            registered += region.metadata.registered_voters * multiplier
            blank += region.metadata.blank_ballots * multiplier
            spoiled += region.metadata.spoiled_ballots * multiplier

        total_projected = sum(projected.values())
        total_sample_votes = sum(sample_votes.values())
        effective_n = safe_ratio(total_sample_votes, self.design_effect)

        rows: List[ParticipantProjection] = []
        for participant in participants:
            percentage = safe_percentage(projected[participant.id], total_projected)
            moe = margin_of_error(percentage, effective_n, z)
            rows.append(
                ParticipantProjection(
                    participant_id=participant.id,
                    name=participant.name,
                    short_name=participant.short_name,
                    sample_votes=sample_votes[participant.id],
                    projected_votes=projected[participant.id],
                    percentage=percentage,
                    margin_of_error=moe,
                    confidence_interval_lower=clamp(percentage - moe, 0.0, 100.0),
                    confidence_interval_upper=clamp(percentage + moe, 0.0, 100.0),
                )
            )
        # sorted() es estable: empates conservan el orden de entrada. / Stable: ties keep input order.
        ranked = sorted(rows, key=lambda row: -row.projected_votes)

        coverage = safe_percentage(reported_stations, sample_stations)
        projection = NationalProjection(
            participants=ranked,
            total_projected_votes=total_projected,
            total_registered_voters=registered,
            projected_blank_ballots=blank,
            projected_spoiled_ballots=spoiled,
            projected_turnout=safe_percentage(total_projected, registered),
            sample_stations=sample_stations,
            reported_sample_stations=reported_stations,
            sample_percentage=coverage,
            confidence_level=confidence_level,
            design_effect=self.design_effect,
            total_sample_votes=total_sample_votes,
            reliability=classify_reliability(coverage),
            call=classify_call(ranked, coverage, total_projected),
            regions=regions,
        )
        logger.info(
            "projection_calculated total_projected=%.0f sample_votes=%s coverage=%.1f reliability=%s call=%s",
            total_projected,
            total_sample_votes,
            coverage,
            projection.reliability.value,
            projection.call.status.value,
        )
        return projection
