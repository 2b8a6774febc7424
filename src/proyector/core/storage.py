"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/proyector/core/storage.py`.
Almacén SQLite de geografía, votos, metadatos de mesa, bandera de muestra,
configuración e historial de corridas de muestreo.

Componentes detectados:
  - ElectionStore

Notas:
- Mantener esta cabecera sincronizada con cambios estructurales del archivo.
- Los votos y los metadatos se agregan en consultas separadas.

======================== ENGLISH ========================
File: `src/proyector/core/storage.py`.
SQLite store for geography, votes, station metadata, the sample flag,
settings and the sample-run history.

Detected components:
  - ElectionStore

Notes:
- Keep this header in sync with structural changes in the file.
- Votes and metadata are aggregated in separate queries.
"""

# Storage Module
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
#   - Integraciones / Integrations

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Union

from proyector.core.models import (
    MetadataTotals,
    Participant,
    Region,
    SampleRun,
    SampleSettings,
    Station,
)
from proyector.errors import NotFoundError

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS regions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    code TEXT
);
CREATE TABLE IF NOT EXISTS constituencies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    region_id INTEGER NOT NULL REFERENCES regions(id)
);
CREATE TABLE IF NOT EXISTS stations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    code TEXT,
    constituency_id INTEGER NOT NULL REFERENCES constituencies(id),
    is_sample INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_stations_sample ON stations(is_sample) WHERE is_sample = 1;
CREATE TABLE IF NOT EXISTS participants (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    short_name TEXT,
    category TEXT
);
CREATE TABLE IF NOT EXISTS results (
    station_id INTEGER NOT NULL REFERENCES stations(id),
    participant_id INTEGER NOT NULL REFERENCES participants(id),
    vote_count INTEGER NOT NULL CHECK (vote_count >= 0),
    PRIMARY KEY (station_id, participant_id)
);
CREATE TABLE IF NOT EXISTS station_metadata (
    station_id INTEGER PRIMARY KEY REFERENCES stations(id),
    registered_voters INTEGER NOT NULL DEFAULT 0 CHECK (registered_voters >= 0),
    blank_ballots INTEGER NOT NULL DEFAULT 0 CHECK (blank_ballots >= 0),
    spoiled_ballots INTEGER NOT NULL DEFAULT 0 CHECK (spoiled_ballots >= 0)
);
CREATE TABLE IF NOT EXISTS sample_settings (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    target_sample_size INTEGER NOT NULL,
    confidence_level REAL NOT NULL,
    is_active INTEGER NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS sample_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    target_sample_size INTEGER NOT NULL,
    total_selected INTEGER NOT NULL,
    seed INTEGER
);
CREATE TABLE IF NOT EXISTS sample_run_stations (
    run_id INTEGER NOT NULL REFERENCES sample_runs(id),
    station_id INTEGER NOT NULL,
    PRIMARY KEY (run_id, station_id)
);
"""

# Mesas de una región (alias s / c). / Stations of one region (aliases s / c).
_REGION_STATIONS = """
    FROM stations s
    INNER JOIN constituencies c ON s.constituency_id = c.id
    WHERE c.region_id = ?
"""

_STATION_COLUMNS = """
    SELECT s.id, s.name, s.code, s.constituency_id, c.name AS constituency_name,
           c.region_id, s.is_sample
"""


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ElectionStore:
    """Gestiona el almacenamiento SQLite que consume el motor.

    Implementa los contratos `GeographyReader`, `TallyReader`,
    `MetadataReader`, `SampleWriter` y `SettingsRepository`, además de una
    API mínima de carga usada por pruebas y la CLI.

    English:
        Manages the SQLite storage consumed by the engine.

        Implements the `GeographyReader`, `TallyReader`, `MetadataReader`,
        `SampleWriter` and `SettingsRepository` contracts, plus a minimal
        seeding API used by tests and the CLI.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        """Inicializa la conexión SQLite y el esquema.

        Args:
            db_path (str | Path): Ruta del archivo SQLite o ":memory:".

        English:
            Initializes the SQLite connection and the schema.

        Args:
            db_path (str | Path): SQLite file path or ":memory:".
        """
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        # Autocommit; las transacciones son explícitas. / Autocommit; transactions are explicit.
        self._connection = sqlite3.connect(self.db_path, isolation_level=None)
        self._connection.row_factory = sqlite3.Row
        self._connection.execute("PRAGMA foreign_keys = ON")
        self._in_transaction = False
        self._ensure_schema()

    def close(self) -> None:
        """Cierra la conexión a la base de datos.

        English:
            Closes the database connection.
        """
        self._connection.close()

    def __enter__(self) -> "ElectionStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Ejecuta el bloque como una unidad todo-o-nada.

        Las transacciones anidadas se integran a la externa.

        English:
            Runs the block as a single all-or-nothing unit.

            Nested transactions join the outer one.
        """
        if self._in_transaction:
            yield
            return
        self._connection.execute("BEGIN IMMEDIATE")
        self._in_transaction = True
        try:
            yield
        except BaseException:
            if self._connection.in_transaction:
                self._connection.execute("ROLLBACK")
            logger.warning("store_transaction_rolled_back db=%s", self.db_path)
            raise
        else:
            self._connection.execute("COMMIT")
        finally:
            self._in_transaction = False

    # ------------------------------------------------------------------
    # GeographyReader
    # ------------------------------------------------------------------

    def list_regions(self) -> List[Region]:
        """Lista regiones con su conteo total de mesas, por nombre.

        English:
            Lists regions with their total station count, by name.
        """
        rows = self._connection.execute(
            """
            SELECT r.id, r.name, r.code, COUNT(s.id) AS total_stations
            FROM regions r
            LEFT JOIN constituencies c ON r.id = c.region_id
            LEFT JOIN stations s ON c.id = s.constituency_id
            GROUP BY r.id, r.name, r.code
            ORDER BY r.name, r.id
            """
        ).fetchall()
        return [self._row_to_region(row) for row in rows]

    def get_region(self, region_id: int) -> Region:
        row = self._connection.execute(
            """
            SELECT r.id, r.name, r.code, COUNT(s.id) AS total_stations
            FROM regions r
            LEFT JOIN constituencies c ON r.id = c.region_id
            LEFT JOIN stations s ON c.id = s.constituency_id
            WHERE r.id = ?
            GROUP BY r.id, r.name, r.code
            """,
            (region_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError("region", region_id)
        return self._row_to_region(row)

    def list_stations_in_region(self, region_id: int) -> List[Station]:
        rows = self._connection.execute(
            _STATION_COLUMNS + _REGION_STATIONS + " ORDER BY s.name, s.id",
            (region_id,),
        ).fetchall()
        return [self._row_to_station(row) for row in rows]

    def get_station(self, station_id: int) -> Station:
        row = self._connection.execute(
            _STATION_COLUMNS
            + """
            FROM stations s
            INNER JOIN constituencies c ON s.constituency_id = c.id
            WHERE s.id = ?
            """,
            (station_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError("station", station_id)
        return self._row_to_station(row)

    def list_participants(self) -> List[Participant]:
        rows = self._connection.execute(
            "SELECT id, name, short_name, category FROM participants ORDER BY id"
        ).fetchall()
        return [
            Participant(
                id=int(row["id"]),
                name=row["name"],
                short_name=row["short_name"],
                category=row["category"],
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # TallyReader / MetadataReader
    # ------------------------------------------------------------------

    def count_sample_stations(self, region_id: int) -> int:
        row = self._connection.execute(
            "SELECT COUNT(*) " + _REGION_STATIONS + " AND s.is_sample = 1",
            (region_id,),
        ).fetchone()
        return int(row[0])

    def count_reporting_sample_stations(self, region_id: int) -> int:
        """Cuenta mesas de muestra con al menos una fila de votos.

        English:
            Counts sample stations with at least one tally row.
        """
        row = self._connection.execute(
            "SELECT COUNT(*) "
            + _REGION_STATIONS
            + """
            AND s.is_sample = 1
            AND EXISTS (SELECT 1 FROM results res WHERE res.station_id = s.id)
            """,
            (region_id,),
        ).fetchone()
        return int(row[0])

    def get_sample_votes(self, region_id: int) -> Dict[int, int]:
        """Suma votos por participante sobre las mesas de muestra.

        English:
            Sums votes per participant over the region's sample stations.
        """
        rows = self._connection.execute(
            """
            SELECT res.participant_id, SUM(res.vote_count) AS vote_count
            FROM results res
            INNER JOIN stations s ON res.station_id = s.id
            INNER JOIN constituencies c ON s.constituency_id = c.id
            WHERE c.region_id = ? AND s.is_sample = 1
            GROUP BY res.participant_id
            ORDER BY res.participant_id
            """,
            (region_id,),
        ).fetchall()
        return {int(row["participant_id"]): int(row["vote_count"] or 0) for row in rows}

    def get_sample_metadata_totals(self, region_id: int) -> MetadataTotals:
        """Suma metadatos una vez por mesa de muestra (sin unir votos).

        English:
            Sums metadata once per sample station (no join with votes).
        """
        row = self._connection.execute(
            """
            SELECT
                COALESCE(SUM(COALESCE(sm.registered_voters, 0)), 0) AS registered_voters,
                COALESCE(SUM(COALESCE(sm.blank_ballots, 0)), 0) AS blank_ballots,
                COALESCE(SUM(COALESCE(sm.spoiled_ballots, 0)), 0) AS spoiled_ballots
            FROM stations s
            INNER JOIN constituencies c ON s.constituency_id = c.id
            LEFT JOIN station_metadata sm ON s.id = sm.station_id
            WHERE c.region_id = ? AND s.is_sample = 1
            """,
            (region_id,),
        ).fetchone()
        return MetadataTotals(
            registered_voters=int(row["registered_voters"]),
            blank_ballots=int(row["blank_ballots"]),
            spoiled_ballots=int(row["spoiled_ballots"]),
        )

    # ------------------------------------------------------------------
    # SampleWriter
    # ------------------------------------------------------------------

    def clear_sample_flags(self) -> None:
        self._connection.execute("UPDATE stations SET is_sample = 0 WHERE is_sample = 1")

    def mark_sample(self, station_ids: Iterable[int]) -> None:
        self._connection.executemany(
            "UPDATE stations SET is_sample = 1 WHERE id = ?",
            [(station_id,) for station_id in station_ids],
        )

    def set_station_sample(self, station_id: int, included: bool) -> Station:
        cursor = self._connection.execute(
            "UPDATE stations SET is_sample = ? WHERE id = ?",
            (1 if included else 0, station_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError("station", station_id)
        return self.get_station(station_id)

    def record_sample_run(
        self,
        target_sample_size: int,
        station_ids: Iterable[int],
        seed: Optional[int] = None,
    ) -> int:
        """Agrega una corrida inmutable con sus mesas (append-only).

        English:
            Appends an immutable run with its stations (append-only).
        """
        selected = sorted(set(station_ids))
        with self.transaction():
            cursor = self._connection.execute(
                """
                INSERT INTO sample_runs (created_at, target_sample_size, total_selected, seed)
                VALUES (?, ?, ?, ?)
                """,
                (_utc_now(), target_sample_size, len(selected), seed),
            )
            run_id = int(cursor.lastrowid)
            self._connection.executemany(
                "INSERT INTO sample_run_stations (run_id, station_id) VALUES (?, ?)",
                [(run_id, station_id) for station_id in selected],
            )
        return run_id

    def list_sample_runs(self) -> List[SampleRun]:
        rows = self._connection.execute(
            """
            SELECT id, created_at, target_sample_size, total_selected, seed
            FROM sample_runs
            ORDER BY id DESC
            """
        ).fetchall()
        return [self._row_to_run(row) for row in rows]

    def get_sample_run(self, run_id: int) -> SampleRun:
        row = self._connection.execute(
            """
            SELECT id, created_at, target_sample_size, total_selected, seed
            FROM sample_runs
            WHERE id = ?
            """,
            (run_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError("sample_run", run_id)
        station_rows = self._connection.execute(
            "SELECT station_id FROM sample_run_stations WHERE run_id = ? ORDER BY station_id",
            (run_id,),
        ).fetchall()
        return self._row_to_run(row, tuple(int(item["station_id"]) for item in station_rows))

    # ------------------------------------------------------------------
    # SettingsRepository
    # ------------------------------------------------------------------

    def load_settings(self) -> SampleSettings:
        row = self._connection.execute(
            """
            SELECT target_sample_size, confidence_level, is_active, updated_at
            FROM sample_settings
            WHERE id = 1
            """
        ).fetchone()
        return SampleSettings(
            target_sample_size=int(row["target_sample_size"]),
            confidence_level=float(row["confidence_level"]),
            is_active=bool(row["is_active"]),
            updated_at=row["updated_at"],
        )

    def save_settings(self, settings: SampleSettings) -> SampleSettings:
        self._connection.execute(
            """
            UPDATE sample_settings
            SET target_sample_size = ?, confidence_level = ?, is_active = ?, updated_at = ?
            WHERE id = 1
            """,
            (
                settings.target_sample_size,
                settings.confidence_level,
                1 if settings.is_active else 0,
                _utc_now(),
            ),
        )
        return self.load_settings()

    # ------------------------------------------------------------------
    # Carga / Seeding
    # ------------------------------------------------------------------

    def add_region(self, name: str, code: Optional[str] = None) -> int:
        cursor = self._connection.execute(
            "INSERT INTO regions (name, code) VALUES (?, ?)", (name, code)
        )
        return int(cursor.lastrowid)

    def add_constituency(self, name: str, region_id: int) -> int:
        cursor = self._connection.execute(
            "INSERT INTO constituencies (name, region_id) VALUES (?, ?)", (name, region_id)
        )
        return int(cursor.lastrowid)

    def add_station(self, name: str, constituency_id: int, code: Optional[str] = None) -> int:
        cursor = self._connection.execute(
            "INSERT INTO stations (name, code, constituency_id) VALUES (?, ?, ?)",
            (name, code, constituency_id),
        )
        return int(cursor.lastrowid)

    def add_participant(
        self,
        name: str,
        short_name: Optional[str] = None,
        category: Optional[str] = None,
    ) -> int:
        cursor = self._connection.execute(
            "INSERT INTO participants (name, short_name, category) VALUES (?, ?, ?)",
            (name, short_name, category),
        )
        return int(cursor.lastrowid)

    def record_tally(self, station_id: int, participant_id: int, vote_count: int) -> None:
        self._connection.execute(
            """
            INSERT INTO results (station_id, participant_id, vote_count)
            VALUES (?, ?, ?)
            ON CONFLICT(station_id, participant_id) DO UPDATE SET vote_count = excluded.vote_count
            """,
            (station_id, participant_id, vote_count),
        )

    def set_station_metadata(
        self,
        station_id: int,
        registered_voters: int = 0,
        blank_ballots: int = 0,
        spoiled_ballots: int = 0,
    ) -> None:
        self._connection.execute(
            """
            INSERT INTO station_metadata (station_id, registered_voters, blank_ballots, spoiled_ballots)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(station_id) DO UPDATE SET
                registered_voters = excluded.registered_voters,
                blank_ballots = excluded.blank_ballots,
                spoiled_ballots = excluded.spoiled_ballots
            """,
            (station_id, registered_voters, blank_ballots, spoiled_ballots),
        )

    # ------------------------------------------------------------------
    # Internos / Internals
    # ------------------------------------------------------------------

    def _ensure_schema(self) -> None:
        """Crea tablas faltantes y el registro único de configuración.

        English:
            Creates missing tables and the singleton settings record.
        """
        self._connection.executescript(_SCHEMA)
        defaults = SampleSettings()
        self._connection.execute(
            """
            INSERT OR IGNORE INTO sample_settings
                (id, target_sample_size, confidence_level, is_active, updated_at)
            VALUES (1, ?, ?, ?, ?)
            """,
            (
                defaults.target_sample_size,
                defaults.confidence_level,
                1 if defaults.is_active else 0,
                _utc_now(),
            ),
        )
        logger.debug("store_schema_ready db=%s", self.db_path)

    @staticmethod
    def _row_to_region(row: sqlite3.Row) -> Region:
        return Region(
            id=int(row["id"]),
            name=row["name"],
            code=row["code"],
            total_stations=int(row["total_stations"]),
        )

    @staticmethod
    def _row_to_station(row: sqlite3.Row) -> Station:
        return Station(
            id=int(row["id"]),
            name=row["name"],
            code=row["code"],
            constituency_id=int(row["constituency_id"]),
            constituency_name=row["constituency_name"],
            region_id=int(row["region_id"]),
            is_sample=bool(row["is_sample"]),
        )

    @staticmethod
    def _row_to_run(row: sqlite3.Row, station_ids: tuple = ()) -> SampleRun:
        return SampleRun(
            id=int(row["id"]),
            created_at=row["created_at"],
            target_sample_size=int(row["target_sample_size"]),
            total_selected=int(row["total_selected"]),
            seed=row["seed"],
            station_ids=station_ids,
        )
