"""Carga de fixtures YAML de geografía, participantes y votos.

English:
    Loading of YAML geography, participant and vote fixtures.

Example fixture:
    participants:
      - name: "Partido Azul"
        short_name: "AZ"
    regions:
      - name: "Norte"
        code: "N"
        constituencies:
          - name: "Norte 1"
            stations:
              - name: "Escuela 12"
                registered_voters: 600
                results: {"AZ": 210}
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict

import yaml

from .core.storage import ElectionStore
from .errors import ConfigurationError
from .schemas import FixtureSchema, validate_fixture

logger = logging.getLogger(__name__)


def _load_yaml_mapping(path: Path) -> Dict[str, Any]:
    """Carga un mapa YAML o lanza un error orientado al usuario.

    English: Load a YAML mapping or raise a user-facing error.
    """
    if not path.exists():
        raise ConfigurationError(f"Falta {path.as_posix()} (Missing {path.as_posix()}).")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"{path.name} has YAML syntax errors.") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path.name} must be a YAML mapping.")
    return raw


def seed_store(store: ElectionStore, fixture: FixtureSchema) -> Dict[str, int]:
    """Inserta el fixture en una sola transacción y devuelve conteos.

    English:
        Inserts the fixture in one transaction and returns counts.
    """
    counts = {"participants": 0, "regions": 0, "constituencies": 0, "stations": 0, "tallies": 0}
    try:
        with store.transaction():
            participant_ids: Dict[str, int] = {}
            for participant in fixture.participants:
                participant_id = store.add_participant(
                    participant.name, participant.short_name, participant.category
                )
                participant_ids[participant.name] = participant_id
                if participant.short_name:
                    participant_ids[participant.short_name] = participant_id
                counts["participants"] += 1

            for region in fixture.regions:
                region_id = store.add_region(region.name, region.code)
                counts["regions"] += 1
                for constituency in region.constituencies:
                    constituency_id = store.add_constituency(constituency.name, region_id)
                    counts["constituencies"] += 1
                    for station in constituency.stations:
                        station_id = store.add_station(station.name, constituency_id, station.code)
                        counts["stations"] += 1
                        if station.registered_voters or station.blank_ballots or station.spoiled_ballots:
                            store.set_station_metadata(
                                station_id,
                                registered_voters=station.registered_voters,
                                blank_ballots=station.blank_ballots,
                                spoiled_ballots=station.spoiled_ballots,
                            )
                        if station.is_sample:
                            store.set_station_sample(station_id, True)
                        for participant_key, votes in station.results.items():
                            store.record_tally(station_id, participant_ids[participant_key], votes)
                            counts["tallies"] += 1
    except sqlite3.IntegrityError as exc:
        # Nombres de región únicos: el fixture ya fue cargado. / Unique region names: fixture already loaded.
        raise ConfigurationError(f"Fixture conflicts with existing data, seed a fresh database: {exc}") from exc
    logger.info(
        "fixture_seeded regions=%s stations=%s tallies=%s",
        counts["regions"],
        counts["stations"],
        counts["tallies"],
    )
    return counts


def load_fixture(store: ElectionStore, path: Path) -> Dict[str, int]:
    """Valida y carga un fixture YAML en el almacén.

    English: Validates and loads a YAML fixture into the store.
    """
    fixture = validate_fixture(_load_yaml_mapping(path))
    return seed_store(store, fixture)
