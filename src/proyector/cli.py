# Cli Module
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

"""Interfaz de línea de comandos para operadores.

Todas las salidas son JSON en stdout; los errores van a stderr con código 1.

English:
    Operator command line interface.

    All output is JSON on stdout; errors go to stderr with exit code 1.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import typer

from .config import ProyectorSettings, load_config
from .core.storage import ElectionStore
from .engine import ProjectionEngine
from .errors import ProjectionError
from .fixtures import load_fixture
from .logging import bind_context, setup_logging

app = typer.Typer(help="Proyector: muestreo estratificado y proyección electoral")

# Rango práctico del tamaño de muestra para operadores. / Practical sample size range for operators.
MIN_TARGET_SIZE = 30
MAX_TARGET_SIZE = 200


def _emit(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@contextmanager
def _engine(ctx: typer.Context) -> Iterator[ProjectionEngine]:
    settings: ProyectorSettings = ctx.obj["settings"]
    store = ElectionStore(settings.DATABASE_PATH)
    try:
        yield ProjectionEngine.from_settings(store, settings)
    except ProjectionError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        store.close()


@app.callback()
def main(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(None, "--db", help="Ruta SQLite / SQLite path"),
) -> None:
    """Interfaz de línea de comandos de Proyector.

    English: Proyector command line interface.
    """
    try:
        settings = load_config()
    except ProjectionError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if db is not None:
        settings = settings.model_copy(update={"DATABASE_PATH": db})
    logger = setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    ctx.obj = {"settings": settings, "logger": logger}


@app.command()
def init(ctx: typer.Context) -> None:
    """Crea el esquema y la configuración por defecto. / Create schema and default settings."""
    with _engine(ctx) as engine:
        _emit({"database": engine.store.db_path, "settings": engine.get_settings().to_dict()})


@app.command()
def seed(ctx: typer.Context, fixture: Path = typer.Argument(..., help="Fixture YAML")) -> None:
    """Carga geografía, participantes y votos desde YAML. / Load geography, participants and votes from YAML."""
    with _engine(ctx) as engine:
        _emit(load_fixture(engine.store, fixture))


@app.command("auto-select")
def auto_select(
    ctx: typer.Context,
    target: Optional[int] = typer.Option(None, "--target", min=MIN_TARGET_SIZE, max=MAX_TARGET_SIZE),
    seed_value: Optional[int] = typer.Option(None, "--seed"),
) -> None:
    """Selecciona la muestra estratificada. / Select the stratified sample."""
    with _engine(ctx) as engine:
        result = engine.auto_select(target, seed=seed_value)
        bind_context(ctx.obj["logger"], run_id=result.run_id).info(
            "cli_auto_select", target=result.target_sample_size, selected=result.total_selected
        )
        _emit(result.to_dict())


@app.command()
def toggle(
    ctx: typer.Context,
    station_id: int = typer.Argument(...),
    included: bool = typer.Option(True, "--include/--exclude"),
) -> None:
    """Incluye o excluye una mesa de la muestra. / Include or exclude one station."""
    with _engine(ctx) as engine:
        station = engine.toggle_station(station_id, included)
        bind_context(ctx.obj["logger"], region_id=station.region_id, station_id=station.id).info(
            "cli_toggle_station", included=station.is_sample
        )
        _emit(station.to_dict())


@app.command()
def stations(ctx: typer.Context) -> None:
    """Mesas por región con su estado de muestra. / Stations by region with sample state."""
    with _engine(ctx) as engine:
        _emit({"regions": [region.to_dict() for region in engine.list_sample_stations()]})


@app.command()
def settings(ctx: typer.Context) -> None:
    """Muestra la configuración. / Show settings."""
    with _engine(ctx) as engine:
        _emit(engine.get_settings().to_dict())


@app.command("update-settings")
def update_settings(
    ctx: typer.Context,
    target: Optional[int] = typer.Option(None, "--target", min=MIN_TARGET_SIZE, max=MAX_TARGET_SIZE),
    confidence: Optional[float] = typer.Option(None, "--confidence"),
    active: Optional[bool] = typer.Option(None, "--active/--inactive"),
) -> None:
    """Actualiza la configuración. / Update settings."""
    with _engine(ctx) as engine:
        _emit(
            engine.update_settings(
                target_sample_size=target,
                confidence_level=confidence,
                is_active=active,
            ).to_dict()
        )


@app.command()
def project(ctx: typer.Context) -> None:
    """Calcula la proyección nacional. / Compute the national projection."""
    with _engine(ctx) as engine:
        projection = engine.calculate_national_projection()
        ctx.obj["logger"].info(
            "cli_projection",
            reliability=projection.reliability.value,
            call=projection.call.status.value,
        )
        _emit(projection.to_dict())


@app.command()
def runs(ctx: typer.Context) -> None:
    """Historial de corridas de selección. / Selection run history."""
    with _engine(ctx) as engine:
        _emit([run.to_dict() for run in engine.list_sample_runs()])


@app.command()
def run(ctx: typer.Context, run_id: int = typer.Argument(...)) -> None:
    """Una corrida con sus mesas. / One run with its stations."""
    with _engine(ctx) as engine:
        _emit(engine.get_sample_run(run_id).to_dict(include_stations=True))


@app.command("diff-runs")
def diff_runs(ctx: typer.Context, from_run: int = typer.Argument(...), to_run: int = typer.Argument(...)) -> None:
    """Compara las mesas de dos corridas. / Compare the stations of two runs."""
    with _engine(ctx) as engine:
        _emit(engine.diff_sample_runs(from_run, to_run).to_dict())


if __name__ == "__main__":
    app()
