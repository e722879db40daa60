"""
Pending-Action Window - Kurzzeitgedaechtnis der letzten Aktionen.

Haelt pro Datenpunkt nur die juengste Aktion. Dient ausschliesslich
dazu, zeitlich nahe Aktionen fuer das Lernen zu finden: die
dauerhaften Zaehler liegen im AssociationStore.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from .constants import PENDING_RETENTION_FACTOR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Action:
    """Eine gemeldete Steuer-Aktion (wird nie persistiert)."""
    entity_id: str
    value: Any
    context: str = ""
    timestamp_ms: int = 0


class PendingActionWindow:
    """Letzte Aktion pro Datenpunkt, verfaellt nach 2x Zeitfenster."""

    def __init__(self, window_ms: int):
        self.window_ms = window_ms
        self._actions: dict[str, Action] = {}

    @property
    def retention_ms(self) -> int:
        return self.window_ms * PENDING_RETENTION_FACTOR

    def record(self, action: Action) -> None:
        """Ersetzt den Eintrag des Datenpunkts durch die neue Aktion."""
        self._actions[action.entity_id] = action

    def others(self, entity_id: str) -> Iterator[Action]:
        """Alle Eintraege ausser dem des uebergebenen Datenpunkts."""
        for partner_id, action in list(self._actions.items()):
            if partner_id != entity_id:
                yield action

    def cleanup(self, now_ms: int) -> int:
        """Entfernt Eintraege aelter als 2x Fenster. Gibt die Anzahl zurueck."""
        expired = [
            entity_id for entity_id, action in self._actions.items()
            if now_ms - action.timestamp_ms > self.retention_ms
        ]
        for entity_id in expired:
            del self._actions[entity_id]
        if expired:
            logger.debug("Pending-Window: %d Eintraege verfallen", len(expired))
        return len(expired)

    def get(self, entity_id: str) -> Optional[Action]:
        return self._actions.get(entity_id)

    def clear(self) -> None:
        self._actions.clear()

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._actions

    def __len__(self) -> int:
        return len(self._actions)
