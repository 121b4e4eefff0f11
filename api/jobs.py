"""
In-memory registry of submitted imports and their progress logs
"""

from collections import OrderedDict
from typing import Dict, Optional, Tuple

from ingestion.progress import ProgressLog

MAX_TRACKED_RUNS = 200


class ImportJobs:
    """
    Tracks progress logs by run id and which tables have an import in flight.

    A table is reserved from submission until its background import ends,
    so a second submission for the same table is refused rather than queued.
    """

    def __init__(self, max_runs: int = MAX_TRACKED_RUNS):
        self._runs: "OrderedDict[str, Tuple[str, ProgressLog]]" = OrderedDict()
        self._active: Dict[str, str] = {}
        self._max_runs = max_runs

    def start(self, run_id: str, table: str) -> Optional[ProgressLog]:
        """Reserve ``table`` for ``run_id``; returns None if it is busy."""
        key = table.lower()
        if key in self._active:
            return None
        self._active[key] = run_id

        progress = ProgressLog()
        self._runs[run_id] = (table, progress)
        while len(self._runs) > self._max_runs:
            self._runs.popitem(last=False)
        return progress

    def finish(self, run_id: str, table: str) -> None:
        key = table.lower()
        if self._active.get(key) == run_id:
            del self._active[key]

    def get(self, run_id: str) -> Optional[Tuple[str, ProgressLog]]:
        return self._runs.get(run_id)

    def active_run(self, table: str) -> Optional[str]:
        return self._active.get(table.lower())

    @property
    def active_count(self) -> int:
        return len(self._active)
