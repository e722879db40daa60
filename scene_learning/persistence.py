"""
Persistenz der Lerndaten (JSON-basiert, eine Datei pro Instanz).

- Laden beim Start: Fehler werden geloggt, dann geht es mit Defaults weiter
- Flaches Mergen: geladene Top-Level-Keys ersetzen die Defaults komplett,
  ein ungueltiger Key faellt einzeln auf seinen Default zurueck
- Atomares Schreiben (Temp-Datei + os.replace)
- Periodisches Speichern nur wenn sich etwas geaendert hat
- Finaler Save beim Stoppen
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError

from .constants import JSON_INDENT, LEARNING_FILE_PREFIX
from .schemas import LearningStore

logger = logging.getLogger(__name__)


def learning_file_path(data_dir: Path, namespace: str) -> Path:
    """Speicherort der Lerndaten fuer eine Instanz."""
    return Path(data_dir) / f"{LEARNING_FILE_PREFIX}{namespace}.json"


class PersistenceManager:
    """Laedt und speichert den LearningStore."""

    def __init__(
        self,
        path: Path,
        clock: Callable[[], int],
        pending_count: Callable[[], int] = lambda: 0,
    ):
        self.path = Path(path)
        self._clock = clock
        self._pending_count = pending_count
        self._dirty = False
        self._task: Optional[asyncio.Task] = None
        self.store = self._defaults()

    def _defaults(self) -> LearningStore:
        return LearningStore(last_save_timestamp=self._clock())

    # ------------------------------------------------------------------
    # Laden / Speichern
    # ------------------------------------------------------------------

    def load(self) -> LearningStore:
        """Laedt die Datei und merged sie flach ueber die Defaults."""
        defaults = self._defaults()
        self.store = defaults
        try:
            if not self.path.exists():
                logger.info("Keine Lerndaten unter %s: starte leer", self.path)
                return self.store
            loaded = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(loaded, dict):
                raise ValueError("Lerndaten sind kein JSON-Objekt")
            merged = defaults.model_dump()
            for key, value in loaded.items():
                try:
                    LearningStore.model_validate({key: value})
                except ValidationError as e:
                    logger.warning(
                        "Lerndaten: '%s' ungueltig (%d Fehler), nutze Default",
                        key, e.error_count(),
                    )
                    continue
                merged[key] = value
            self.store = LearningStore.model_validate(merged)
            logger.debug(
                "Lerndaten geladen: %d Assoziationen, %d Szenen",
                len(self.store.associations), len(self.store.scenes),
            )
        except (OSError, ValueError, ValidationError) as e:
            # json.JSONDecodeError ist ein ValueError
            logger.warning("Lerndaten laden fehlgeschlagen: %s", e)
            self.store = defaults
        return self.store

    def save(self) -> bool:
        """Schreibt den kompletten Store atomar. Fehler werden nur geloggt."""
        previous = self.store.last_save_timestamp
        try:
            self.store.last_save_timestamp = self._clock()
            self.path.parent.mkdir(parents=True, exist_ok=True)
            content = json.dumps(self.store.model_dump(), indent=JSON_INDENT, ensure_ascii=False)
            tmp_fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), suffix=".json.tmp",
            )
            try:
                with os.fdopen(tmp_fd, "w", encoding="utf-8") as tmp_f:
                    tmp_f.write(content)
                os.replace(tmp_path, str(self.path))
            except Exception:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
            self._dirty = False
            logger.debug("Lerndaten gespeichert (%s)", self.path.name)
            return True
        except Exception as e:
            # Kein Save passiert: alter Zeitstempel gilt weiter
            self.store.last_save_timestamp = previous
            logger.error("Lerndaten speichern fehlgeschlagen: %s", e)
            return False

    def mark_dirty(self) -> None:
        self._dirty = True

    @property
    def has_unsaved_changes(self) -> bool:
        return self._dirty

    def needs_save(self) -> bool:
        return self._dirty or self._pending_count() > 0

    # ------------------------------------------------------------------
    # Hintergrund-Loop
    # ------------------------------------------------------------------

    def schedule_periodic_save(self, interval_ms: int) -> asyncio.Task:
        """Startet (oder ersetzt) den periodischen Save-Loop."""
        if self._task and not self._task.done():
            self._task.cancel()
            logger.debug("Save-Loop ersetzt")
        self._task = asyncio.create_task(
            self._save_loop(interval_ms / 1000), name=f"learning-save:{self.path.name}",
        )
        return self._task

    @property
    def is_scheduled(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _save_loop(self, interval: float):
        """Speichert periodisch, aber nur bei ungespeicherten Aenderungen."""
        while True:
            await asyncio.sleep(interval)
            try:
                if self.needs_save():
                    self.save()
            except Exception as e:
                logger.error("Fehler im Save-Loop: %s", e)

    async def cancel_periodic_save(self) -> None:
        """Stoppt den Save-Loop und wartet bis er wirklich beendet ist."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def stop(self) -> bool:
        """Loop abbrechen, dann ein letzter Save (immer)."""
        await self.cancel_periodic_save()
        return self.save()
