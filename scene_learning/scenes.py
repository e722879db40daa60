"""
Scene Synthesizer - Erzeugt Szenen aus starken Assoziationen.

- Szene aus einem Haupt-Datenpunkt + seinen gelernten Partnern
- Nutzungszaehler fuer Sortierung
- Vorschlaege fuer Datenpunkte, die noch in keiner Szene stecken
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Optional

from .associations import AssociationStore
from .constants import SCENE_NAME_MAX_PARTNERS
from .schemas import PartnerSuggestion, Scene, SceneSuggestion

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[_-]")


def _short_name(entity_id: str) -> str:
    """'hm-rpc.0.wohnzimmer_licht' -> 'wohnzimmer licht'"""
    return _SEPARATORS.sub(" ", entity_id.split(".")[-1])


def name_suggestion(main_entity_id: str, partners: list[PartnerSuggestion]) -> str:
    """Lesbarer Szenen-Name aus Haupt-Datenpunkt und bis zu zwei Partnern."""
    main_name = _short_name(main_entity_id)
    partner_names = [_short_name(p.entity_id) for p in partners[:SCENE_NAME_MAX_PARTNERS]]
    if partner_names:
        return f"{main_name} + {', '.join(partner_names)}"
    return f"Scene {main_name}"


class SceneSynthesizer:
    """Verwaltet gelernte Szenen und schlaegt neue vor."""

    def __init__(
        self,
        scenes: dict[str, Scene],
        associations: AssociationStore,
        clock: Callable[[], int],
        min_associations: int,
        max_scenes: Optional[int] = None,
    ):
        # Referenz auf LearningStore.scenes, wird in-place veraendert
        self.scenes = scenes
        self.associations = associations
        self._clock = clock
        self.min_associations = min_associations
        self.max_scenes = max_scenes

    def _now_iso(self) -> str:
        return datetime.fromtimestamp(self._clock() / 1000, tz=timezone.utc).isoformat()

    def create_scene(self, main_entity_id: str, scene_name: str) -> Optional[Scene]:
        """Erstellt (oder ueberschreibt) eine Szene aus den gelernten Partnern.

        Returns:
            Die Szene, oder None wenn es nichts zu lernen gibt
        """
        partners = self.associations.suggested_partners(main_entity_id)
        if not partners:
            logger.debug("Keine gelernten Partner fuer %s: keine Szene", main_entity_id)
            return None

        if (
            self.max_scenes is not None
            and scene_name not in self.scenes
            and len(self.scenes) >= self.max_scenes
        ):
            logger.warning(
                "Szene '%s' nicht erstellt: Limit von %d Szenen erreicht",
                scene_name, self.max_scenes,
            )
            return None

        scene = Scene(
            name=scene_name,
            datapoints=[main_entity_id] + [p.entity_id for p in partners],
            created=self._now_iso(),
            usage_count=0,
            last_used=None,
            learned=True,
            associations=partners,
        )
        self.scenes[scene_name] = scene
        logger.info(
            "Szene '%s' mit %d Datenpunkten erstellt", scene_name, len(scene.datapoints),
        )
        return scene

    def get_scene(self, scene_name: str) -> Optional[Scene]:
        return self.scenes.get(scene_name)

    def list_scenes(self) -> list[Scene]:
        """Alle Szenen, meistgenutzte zuerst."""
        return sorted(self.scenes.values(), key=lambda s: s.usage_count, reverse=True)

    def record_usage(self, scene_name: str) -> bool:
        scene = self.scenes.get(scene_name)
        if scene is None:
            return False
        scene.usage_count += 1
        scene.last_used = self._now_iso()
        return True

    def _claimed_by(self, entity_id: str) -> Optional[Scene]:
        for scene in self.scenes.values():
            if entity_id in scene.datapoints:
                return scene
        return None

    def suggest_scenes(self, min_associations: Optional[int] = None) -> list[SceneSuggestion]:
        """Szenen-Vorschlaege fuer Datenpunkte ohne bestehende Szene.

        Datenpunkte die schon in irgendeiner Szene stecken werden
        uebersprungen, damit nichts doppelt vorgeschlagen wird.
        """
        required = self.min_associations if min_associations is None else min_associations
        suggestions: list[SceneSuggestion] = []

        for entity_id in self.associations.entity_ids():
            partners = self.associations.suggested_partners(entity_id)
            if len(partners) < required:
                continue
            if self._claimed_by(entity_id) is not None:
                continue
            suggestions.append(SceneSuggestion(
                main_entity=entity_id,
                partners=partners,
                suggested_name=name_suggestion(entity_id, partners),
                strength=sum(p.frequency for p in partners),
            ))

        suggestions.sort(key=lambda s: s.strength, reverse=True)
        return suggestions
