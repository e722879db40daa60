"""Schemas fuer das persistierte Lern-Dokument und die Rueckgabewerte."""
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class AssociationRecord(BaseModel):
    """Gelernte Partner eines Datenpunkts.

    ``partners`` zaehlt die Lern-Ereignisse pro Partner, ``contexts``
    zusaetzlich pro Kontext-Label (nur wenn ein Kontext mitkam).
    """
    partners: dict[str, int] = {}
    contexts: dict[str, dict[str, int]] = {}

    @property
    def frequency(self) -> dict[str, int]:
        # Abgeleitet, nie separat gespeichert
        return dict(self.partners)


class PartnerSuggestion(BaseModel):
    # Aeltere Dateien speichern den Partner als "datapointId"
    entity_id: str = Field(validation_alias=AliasChoices("entity_id", "datapointId"))
    frequency: int
    contexts: dict[str, int] = {}


class Scene(BaseModel):
    name: str
    datapoints: list[str]
    created: str
    usage_count: int = 0
    last_used: Optional[str] = None
    learned: bool = True
    associations: list[PartnerSuggestion] = []

    @property
    def main_entity(self) -> str:
        return self.datapoints[0]


class SceneSuggestion(BaseModel):
    main_entity: str
    partners: list[PartnerSuggestion]
    suggested_name: str
    strength: int


class LearningStore(BaseModel):
    """Das komplette Lern-Dokument (eine JSON-Datei pro Instanz)."""
    associations: dict[str, AssociationRecord] = {}
    scenes: dict[str, Scene] = {}
    patterns: dict = {}
    last_save_timestamp: int = 0

    # Unbekannte Top-Level-Keys bleiben beim Speichern erhalten
    model_config = {"extra": "allow"}


class LearningStatistics(BaseModel):
    entities_with_associations: int
    total_associations: int
    total_scenes: int
    pending_actions: int
    last_save_timestamp: int
