"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `tests/test_sampling.py`.
Pruebas de la selección estratificada y del ajuste manual de mesas.

======================== ENGLISH ========================
File: `tests/test_sampling.py`.
Tests for stratified selection and manual station toggles.
"""

import pytest

from proyector.core.models import Region
from proyector.core.storage import ElectionStore
from proyector.errors import ConfigurationError, NotFoundError
from proyector.sampling import allocate_sample

from scenarios import build_region


def _sample_flags(store):
    flagged = set()
    for region in store.list_regions():
        for station in store.list_stations_in_region(region.id):
            if station.is_sample:
                flagged.add(station.id)
    return flagged


def test_allocate_sample_is_proportional():
    """Español: Reparto 60/30/10 con objetivo 20 da 12/6/2.

    English: A 60/30/10 split with target 20 gives 12/6/2.
    """
    regions = [
        Region(id=1, name="A", total_stations=60),
        Region(id=2, name="B", total_stations=30),
        Region(id=3, name="C", total_stations=10),
    ]

    assert allocate_sample(regions, 20) == {1: 12, 2: 6, 3: 2}


def test_allocate_sample_gives_small_regions_at_least_one_station():
    regions = [
        Region(id=1, name="Big", total_stations=200),
        Region(id=2, name="Tiny", total_stations=1),
        Region(id=3, name="Empty", total_stations=0),
    ]

    allocation = allocate_sample(regions, 10)

    assert allocation == {1: 10, 2: 1}
    assert sum(allocation.values()) == 11


def test_allocate_sample_rounds_half_up():
    regions = [Region(id=1, name="A", total_stations=50), Region(id=2, name="B", total_stations=50)]

    assert allocate_sample(regions, 5) == {1: 3, 2: 3}


def test_allocate_sample_rejects_empty_geography():
    with pytest.raises(ConfigurationError):
        allocate_sample([Region(id=1, name="Empty", total_stations=0)], 10)


@pytest.mark.parametrize("target", [7, 20, 33, 74])
def test_auto_select_matches_proportional_formula(engine, store, target):
    """Español: Cada región recibe max(1, round(T * total / gran_total)).

    English: Every region gets max(1, round(T * total / grand_total)).
    """
    build_region(store, "Norte", total=60)
    build_region(store, "Centro", total=45)
    build_region(store, "Sur", total=15)
    build_region(store, "Isla", total=2)
    grand_total = 60 + 45 + 15 + 2

    result = engine.auto_select(target, seed=7)

    for region in result.regions:
        expected = max(1, int(target * region.total_stations / grand_total + 0.5))
        assert region.sample_stations == min(expected, region.total_stations)
        assert store.count_sample_stations(region.region_id) == region.sample_stations
    assert len(_sample_flags(store)) == result.total_selected


def test_auto_select_replaces_previous_sample(engine, store):
    """Español: La segunda corrida no deja mesas de la primera.

    English: The second run leaves no station selected only by the first.
    """
    build_region(store, "Norte", total=40)
    build_region(store, "Sur", total=40)

    first = engine.auto_select(10, seed=1)
    second = engine.auto_select(10, seed=2)

    flagged = _sample_flags(store)
    assert flagged == set(engine.get_sample_run(second.run_id).station_ids)
    assert engine.get_sample_run(first.run_id).station_ids != engine.get_sample_run(second.run_id).station_ids


def test_auto_select_clears_manual_additions(engine, store):
    region = build_region(store, "Norte", total=30)
    engine.auto_select(3, seed=5)
    extra = next(sid for sid in region.station_ids if sid not in _sample_flags(store))
    engine.toggle_station(extra, True)

    result = engine.auto_select(3, seed=5)

    assert len(_sample_flags(store)) == result.total_selected == 3


def test_auto_select_with_same_seed_is_reproducible(engine, store):
    build_region(store, "Norte", total=50)
    build_region(store, "Sur", total=25)

    first = engine.auto_select(12, seed=42)
    second = engine.auto_select(12, seed=42)

    assert engine.get_sample_run(first.run_id).station_ids == engine.get_sample_run(second.run_id).station_ids


def test_auto_select_caps_at_region_size(engine, store):
    build_region(store, "Norte", total=5)

    result = engine.auto_select(50, seed=3)

    assert result.total_selected == 5
    assert result.to_dict()["summary"][0]["sample_stations"] == 5


def test_auto_select_uses_configured_target(engine, store):
    build_region(store, "Norte", total=100)
    engine.update_settings(target_sample_size=12)

    result = engine.auto_select(seed=9)

    assert result.target_sample_size == 12
    assert result.total_selected == 12


def test_auto_select_without_stations_is_configuration_error(engine, store):
    store.add_region("Vacía")

    with pytest.raises(ConfigurationError):
        engine.auto_select(10)


@pytest.mark.parametrize("target", [0, -3, True, 2.5, "10"])
def test_auto_select_rejects_invalid_target(engine, store, target):
    build_region(store, "Norte", total=10)

    with pytest.raises(ConfigurationError):
        engine.auto_select(target)


def test_auto_select_rolls_back_on_failure(engine, store, monkeypatch):
    """Español: Un fallo a mitad deja intacta la muestra anterior.

    English: A mid-run failure leaves the previous sample intact.
    """
    build_region(store, "Norte", total=20)
    build_region(store, "Sur", total=20)
    engine.auto_select(8, seed=11)
    before = _sample_flags(store)

    def boom(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(store, "record_sample_run", boom)

    with pytest.raises(RuntimeError):
        engine.auto_select(8, seed=12)

    assert _sample_flags(store) == before
    assert len(engine.list_sample_runs()) == 1


def test_auto_select_is_invisible_to_other_readers_until_commit(engine, store, monkeypatch):
    """Español: Otro lector nunca ve la muestra borrada a medio aplicar.

    English: Another reader never sees the cleared, half-applied sample.
    """
    build_region(store, "Norte", total=20)
    build_region(store, "Sur", total=20)
    engine.auto_select(8, seed=21)
    reader = ElectionStore(store.db_path)
    observed = []
    original_mark = store.mark_sample

    def observing_mark(station_ids):
        original_mark(station_ids)
        observed.append(sum(reader.count_sample_stations(r.id) for r in reader.list_regions()))

    monkeypatch.setattr(store, "mark_sample", observing_mark)
    try:
        engine.auto_select(8, seed=22)
    finally:
        reader.close()

    assert observed == [8, 8]


def test_toggle_station_changes_only_that_station(engine, store):
    region = build_region(store, "Norte", total=10, sample=3)
    target = region.station_ids[5]

    station = engine.toggle_station(target, True)

    assert station.is_sample is True
    assert _sample_flags(store) == set(region.sample_ids) | {target}

    station = engine.toggle_station(region.sample_ids[0], False)

    assert station.is_sample is False
    assert _sample_flags(store) == set(region.sample_ids[1:]) | {target}


def test_toggle_unknown_station_raises_not_found(engine, store):
    build_region(store, "Norte", total=2)

    with pytest.raises(NotFoundError):
        engine.toggle_station(9999, True)


def test_list_sample_stations_groups_by_region(engine, store):
    build_region(store, "Sur", total=4, sample=1)
    build_region(store, "Norte", total=3, sample=2)
    store.add_region("Vacía")

    grouped = engine.list_sample_stations()

    assert [region.region_name for region in grouped] == ["Norte", "Sur"]
    assert [(region.total_stations, region.sample_stations) for region in grouped] == [(3, 2), (4, 1)]
    payload = grouped[0].to_dict()
    assert payload["stations"][0]["constituency_name"].startswith("Norte")
