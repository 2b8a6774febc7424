"""Pruebas de la agregación regional de mesas de muestra.

Tests for regional aggregation of sample stations.
"""

import pytest

from proyector.errors import NotFoundError

from scenarios import build_region


def test_summarize_region_counts_sample_and_reported(engine, store, participants):
    region = build_region(
        store,
        "Norte",
        total=12,
        sample=5,
        reported=3,
        votes={participants["P1"]: 10, participants["P2"]: 4},
    )

    summary = engine.summarize_region(region.region_id)

    assert summary.total_stations == 12
    assert summary.sample_stations == 5
    assert summary.sample_stations_reported == 3
    assert summary.votes == {participants["P1"]: 30, participants["P2"]: 12}
    assert summary.total_sample_votes == 42
    assert summary.coverage == pytest.approx(60.0)


def test_metadata_is_counted_once_per_station(engine, store, participants):
    """Español: Con tres participantes los metadatos no se triplican.

    English: With three participants the metadata is not tripled.
    """
    third = store.add_participant("Partido Tres", "P3")
    region = build_region(
        store,
        "Norte",
        total=4,
        sample=4,
        votes={participants["P1"]: 1, participants["P2"]: 2, third: 3},
        metadata={"registered_voters": 400, "blank_ballots": 7, "spoiled_ballots": 2},
    )

    summary = engine.summarize_region(region.region_id)

    assert summary.metadata.registered_voters == 1600
    assert summary.metadata.blank_ballots == 28
    assert summary.metadata.spoiled_ballots == 8


def test_missing_metadata_counts_as_zero(engine, store, participants):
    region = build_region(store, "Norte", total=3, sample=2, votes={participants["P1"]: 5})
    store.set_station_metadata(region.sample_ids[0], registered_voters=300)

    summary = engine.summarize_region(region.region_id)

    assert summary.metadata.registered_voters == 300
    assert summary.metadata.blank_ballots == 0


def test_non_sample_tallies_are_excluded(engine, store, participants):
    region = build_region(store, "Norte", total=6, sample=2, votes={participants["P1"]: 5})
    store.record_tally(region.station_ids[4], participants["P1"], 500)
    store.set_station_metadata(region.station_ids[4], registered_voters=1000)

    summary = engine.summarize_region(region.region_id)

    assert summary.votes == {participants["P1"]: 10}
    assert summary.sample_stations_reported == 2
    assert summary.metadata.registered_voters == 0


def test_zero_vote_row_counts_as_reported(engine, store, participants):
    region = build_region(store, "Norte", total=3, sample=2, reported=0)
    store.record_tally(region.sample_ids[0], participants["P1"], 0)

    summary = engine.summarize_region(region.region_id)

    assert summary.sample_stations_reported == 1
    assert summary.total_sample_votes == 0


def test_summarize_unknown_region_raises_not_found(engine):
    with pytest.raises(NotFoundError) as excinfo:
        engine.summarize_region(404)

    assert excinfo.value.entity == "region"
    assert excinfo.value.entity_id == 404


def test_summarize_all_skips_regions_without_stations(engine, store, participants):
    build_region(store, "Sur", total=3, sample=1, votes={participants["P2"]: 9})
    build_region(store, "Norte", total=2)
    store.add_region("Vacía")

    summaries = engine.summarize_all()

    assert [summary.region_name for summary in summaries] == ["Norte", "Sur"]
    assert summaries[0].sample_stations == 0
    assert summaries[0].votes == {}
    assert summaries[1].to_dict()["votes"] == {str(participants["P2"]): 9}


def test_region_payload_reports_coverage(engine, store, participants):
    region = build_region(store, "Norte", total=9, sample=3, reported=2, votes={participants["P1"]: 4})

    payload = engine.summarize_region(region.region_id).to_dict()

    assert payload["coverage"] == 66.7
    assert payload["sample_stations_reported"] == 2
