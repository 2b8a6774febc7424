"""Historial de corridas de selección automática.

Cada `auto_select` deja una corrida inmutable con sus mesas; los cambios
manuales no crean corridas.

English:
    Auto-selection run history.

    Every `auto_select` leaves an immutable run with its stations; manual
    toggles do not create runs.
"""

from __future__ import annotations

from typing import List

from .core.interfaces import SampleWriter
from .core.models import SampleRun, SampleRunDiff


class SampleHistory:
    def __init__(self, writer: SampleWriter) -> None:
        self._writer = writer

    def list_sample_runs(self) -> List[SampleRun]:
        """Corridas de la más reciente a la más antigua.

        English: Runs from newest to oldest.
        """
        return self._writer.list_sample_runs()

    def get_sample_run(self, run_id: int) -> SampleRun:
        return self._writer.get_sample_run(run_id)

    def diff_sample_runs(self, from_run: int, to_run: int) -> SampleRunDiff:
        """Mesas agregadas, retiradas y conservadas entre dos corridas.

        English: Stations added, removed and kept between two runs.
        """
        before = set(self._writer.get_sample_run(from_run).station_ids)
        after = set(self._writer.get_sample_run(to_run).station_ids)
        return SampleRunDiff(
            from_run=from_run,
            to_run=to_run,
            added=tuple(sorted(after - before)),
            removed=tuple(sorted(before - after)),
            kept=tuple(sorted(before & after)),
        )
