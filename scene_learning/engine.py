"""
Learning Engine - Lernt welche Datenpunkte zusammen gesteuert werden.

Ablauf:
- Aufrufer meldet Aktion(en) -> Pending-Window
- Lern-Durchlauf gegen alle anderen Eintraege im Fenster
- AssociationStore zaehlt die Paare (in beide Richtungen)
- SceneSynthesizer baut daraus bei Bedarf Szenen / Vorschlaege
- PersistenceManager speichert periodisch und beim Stoppen

Alle mutierenden Methoden sind synchron und awaiten nie. Der
Save-Loop laeuft als asyncio-Task auf demselben Loop und sieht
deshalb immer einen vollstaendigen Zustand.
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

from .associations import AssociationStore
from .config import LearningConfig, settings, yaml_config
from .log_setup import instance_context
from .pending_window import Action, PendingActionWindow
from .persistence import PersistenceManager, learning_file_path
from .scenes import SceneSynthesizer
from .schemas import LearningStatistics, PartnerSuggestion, Scene, SceneSuggestion

logger = logging.getLogger(__name__)


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class LearningEngine:
    """Eine Lern-Instanz: Store, Pending-Window und Persistenz."""

    def __init__(
        self,
        config: Optional[LearningConfig] = None,
        namespace: Optional[str] = None,
        data_dir: Optional[Path] = None,
        clock: Callable[[], int] = _wall_clock_ms,
    ):
        self.config = config or LearningConfig.from_yaml(yaml_config)
        self.namespace = namespace or settings.learning_namespace
        self._clock = clock

        self.window = PendingActionWindow(self.config.co_occurrence_window_ms)
        self.persistence = PersistenceManager(
            learning_file_path(data_dir or settings.data_dir, self.namespace),
            clock=clock,
            pending_count=lambda: len(self.window),
        )
        with instance_context(self.namespace):
            store = self.persistence.load()

        self.associations = AssociationStore(
            store.associations,
            window_ms=self.config.co_occurrence_window_ms,
            min_frequency=self.config.min_frequency_threshold,
            max_partners=self.config.max_partners_per_entity,
        )
        self.scenes = SceneSynthesizer(
            store.scenes,
            self.associations,
            clock=clock,
            min_associations=self.config.min_scene_associations,
            max_scenes=self.config.max_scenes,
        )

    @property
    def store(self):
        return self.persistence.store

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Startet den periodischen Save-Loop."""
        self.persistence.schedule_periodic_save(self.config.save_interval_ms)
        with instance_context(self.namespace):
            logger.info(
                "LearningEngine gestartet (Fenster: %d ms, Schwelle: %d, Save: %d ms)",
                self.config.co_occurrence_window_ms,
                self.config.min_frequency_threshold,
                self.config.save_interval_ms,
            )

    async def stop(self) -> None:
        """Stoppt den Save-Loop und speichert ein letztes Mal."""
        with instance_context(self.namespace):
            await self.persistence.stop()
            logger.info("LearningEngine gestoppt")

    def save(self) -> bool:
        with instance_context(self.namespace):
            return self.persistence.save()

    def reset(self) -> None:
        """Loescht alle Lerndaten und das Pending-Window, dann sofort speichern."""
        with instance_context(self.namespace):
            self.store.associations.clear()
            self.store.scenes.clear()
            self.store.patterns.clear()
            self.window.clear()
            self.persistence.save()
            logger.info("Lerndaten zurueckgesetzt")

    # ------------------------------------------------------------------
    # Aktionen melden
    # ------------------------------------------------------------------

    def record_action(self, entity_id: str, value: Any, context: str = "") -> None:
        """Meldet eine einzelne Steuer-Aktion."""
        with instance_context(self.namespace):
            now = self._clock()
            self._record(Action(entity_id, value, context or "", now))
            self.window.cleanup(now)
            self.persistence.mark_dirty()
            logger.debug("Aktion fuer %s aufgezeichnet: %s", entity_id, value)

    def record_actions(self, actions: list[dict]) -> None:
        """Meldet mehrere gleichzeitige Aktionen (z.B. eine Szene).

        Alle Eintraege bekommen denselben Zeitstempel. Jedes Paar
        innerhalb des Batches wird genau einmal gelernt. Kommt ein
        Datenpunkt mehrfach vor, zaehlt nur sein letzter Eintrag
        (an der Position seines ersten Auftretens).

        Args:
            actions: Liste von {"entity_id" (oder "id"), "value", "context"}
        """
        now = self._clock()
        batch: dict[str, Action] = {}
        for item in actions:
            entity_id = item.get("entity_id") or item.get("id")
            if not entity_id:
                raise ValueError(f"Aktion ohne entity_id: {item!r}")
            batch[entity_id] = Action(entity_id, item.get("value"), item.get("context") or "", now)

        if not batch:
            return

        with instance_context(self.namespace):
            if len(batch) < len(actions):
                logger.debug("%d doppelte Eintraege im Batch ignoriert", len(actions) - len(batch))
            for action in batch.values():
                self._record(action)
            self.window.cleanup(now)
            self.persistence.mark_dirty()
            logger.debug("%d Aktionen als Batch aufgezeichnet", len(batch))

    def _record(self, action: Action) -> None:
        self.window.record(action)
        self.associations.learn(action, self.window)

    # ------------------------------------------------------------------
    # Abfragen
    # ------------------------------------------------------------------

    def suggested_partners(
        self, entity_id: str, min_frequency: Optional[int] = None,
    ) -> list[PartnerSuggestion]:
        return self.associations.suggested_partners(entity_id, min_frequency)

    def create_scene(self, main_entity_id: str, scene_name: str) -> Optional[Scene]:
        with instance_context(self.namespace):
            scene = self.scenes.create_scene(main_entity_id, scene_name)
            if scene is not None:
                self.persistence.mark_dirty()
            return scene

    def get_scene(self, scene_name: str) -> Optional[Scene]:
        return self.scenes.get_scene(scene_name)

    def list_scenes(self) -> list[Scene]:
        return self.scenes.list_scenes()

    def record_scene_usage(self, scene_name: str) -> None:
        if self.scenes.record_usage(scene_name):
            self.persistence.mark_dirty()

    def suggest_scenes(self, min_associations: Optional[int] = None) -> list[SceneSuggestion]:
        return self.scenes.suggest_scenes(min_associations)

    def statistics(self) -> LearningStatistics:
        """Read-only Snapshot fuer Diagnostik."""
        return LearningStatistics(
            entities_with_associations=self.associations.entities_with_partners(),
            total_associations=self.associations.total_edges(),
            total_scenes=len(self.store.scenes),
            pending_actions=len(self.window),
            last_save_timestamp=self.store.last_save_timestamp,
        )
