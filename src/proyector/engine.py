"""Fachada del motor de proyección y muestreo.

English:
    Projection and sampling engine facade.

Example usage:
    settings = load_config()
    with ElectionStore(settings.DATABASE_PATH) as store:
        engine = ProjectionEngine.from_settings(store, settings)
        engine.auto_select(74)
        projection = engine.calculate_national_projection()
"""

from __future__ import annotations

from typing import List, Optional

from .aggregation import RegionalAggregator
from .config import ProyectorSettings
from .core.models import (
    NationalProjection,
    RegionalSampleSummary,
    RegionStations,
    SampleRun,
    SampleRunDiff,
    SampleSettings,
    SelectionResult,
    Station,
)
from .core.storage import ElectionStore
from .history import SampleHistory
from .projection import DEFAULT_DESIGN_EFFECT, NationalProjector
from .sampling import SampleSelector
from .settings_store import SettingsStore


class ProjectionEngine:
    """Une selector, agregador, proyector, configuración e historial.

    English:
        Wires selector, aggregator, projector, settings and history.
    """

    def __init__(
        self,
        store: ElectionStore,
        design_effect: float = DEFAULT_DESIGN_EFFECT,
        default_seed: Optional[int] = None,
    ) -> None:
        self.store = store
        self.default_seed = default_seed
        self.selector = SampleSelector(store, store, store)
        self.aggregator = RegionalAggregator(store, store, store)
        self.projector = NationalProjector(self.aggregator, store, store, design_effect=design_effect)
        self.settings = SettingsStore(store)
        self.history = SampleHistory(store)

    @classmethod
    def from_settings(cls, store: ElectionStore, settings: ProyectorSettings) -> "ProjectionEngine":
        return cls(store, design_effect=settings.DESIGN_EFFECT, default_seed=settings.RANDOM_SEED)

    def auto_select(
        self,
        target_sample_size: Optional[int] = None,
        *,
        seed: Optional[int] = None,
    ) -> SelectionResult:
        return self.selector.auto_select(
            target_sample_size,
            seed=seed if seed is not None else self.default_seed,
        )

    def toggle_station(self, station_id: int, included: bool) -> Station:
        return self.selector.toggle_station(station_id, included)

    def list_sample_stations(self) -> List[RegionStations]:
        return self.selector.list_sample_stations()

    def summarize_region(self, region_id: int) -> RegionalSampleSummary:
        return self.aggregator.summarize_region(region_id)

    def summarize_all(self) -> List[RegionalSampleSummary]:
        return self.aggregator.summarize_all()

    def calculate_national_projection(self) -> NationalProjection:
        return self.projector.calculate_national_projection()

    def get_settings(self) -> SampleSettings:
        return self.settings.get_settings()

    def update_settings(
        self,
        target_sample_size: Optional[int] = None,
        confidence_level: Optional[float] = None,
        is_active: Optional[bool] = None,
    ) -> SampleSettings:
        return self.settings.update_settings(
            target_sample_size=target_sample_size,
            confidence_level=confidence_level,
            is_active=is_active,
        )

    def list_sample_runs(self) -> List[SampleRun]:
        return self.history.list_sample_runs()

    def get_sample_run(self, run_id: int) -> SampleRun:
        return self.history.get_sample_run(run_id)

    def diff_sample_runs(self, from_run: int, to_run: int) -> SampleRunDiff:
        return self.history.diff_sample_runs(from_run, to_run)
