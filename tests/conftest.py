"""Fixtures del almacén y escenarios de muestra.

English:
    Store fixtures and sample scenarios.
"""

from __future__ import annotations

from typing import Dict

import pytest

from proyector.core.storage import ElectionStore
from proyector.engine import ProjectionEngine

from scenarios import SeededRegion, build_region


@pytest.fixture
def store(tmp_path):
    election_store = ElectionStore(tmp_path / "proyector.db")
    yield election_store
    election_store.close()


@pytest.fixture
def engine(store) -> ProjectionEngine:
    return ProjectionEngine(store)


@pytest.fixture
def participants(store) -> Dict[str, int]:
    return {
        "P1": store.add_participant("Partido Uno", "P1", "party"),
        "P2": store.add_participant("Partido Dos", "P2", "party"),
    }


@pytest.fixture
def worked_scenario(store, participants) -> Dict[str, SeededRegion]:
    """Dos regiones: A (100 mesas, 10 de muestra) y B (50 mesas, 5 de muestra).

    Votos de muestra: A -> P1=600, P2=400; B -> P1=150, P2=350.

    English:
        Two regions: A (100 stations, 10 sampled) and B (50 stations, 5
        sampled). Sample votes: A -> P1=600, P2=400; B -> P1=150, P2=350.
    """
    metadata = {"registered_voters": 500, "blank_ballots": 5, "spoiled_ballots": 3}
    region_a = build_region(
        store,
        "Alpha",
        total=100,
        sample=10,
        votes={participants["P1"]: 60, participants["P2"]: 40},
        metadata=metadata,
    )
    region_b = build_region(
        store,
        "Bravo",
        total=50,
        sample=5,
        votes={participants["P1"]: 30, participants["P2"]: 70},
        metadata=metadata,
    )
    # Votos fuera de la muestra no deben contarse. / Non-sample votes must not count.
    outside = region_a.station_ids[50]
    store.record_tally(outside, participants["P1"], 999)
    store.set_station_metadata(outside, registered_voters=9999)
    return {"A": region_a, "B": region_b}
