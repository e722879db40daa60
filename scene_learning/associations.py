"""
Association Store - Lernt welche Datenpunkte zusammen geschaltet werden.

Zwei Aktionen innerhalb des Zeitfensters werden in BEIDE Richtungen
gezaehlt. Der Kontext jeder Richtung stammt aus der jeweils eigenen
Aktion: die Vorwaerts-Kante (aktuell -> Partner) bekommt den Kontext
der aktuellen Aktion, die Rueckwaerts-Kante den des Partners.

Zaehler wachsen nur (kein Decay, kein Loeschen einzelner Partner).
"""

import logging
from typing import Optional

from .pending_window import Action, PendingActionWindow
from .schemas import AssociationRecord, PartnerSuggestion

logger = logging.getLogger(__name__)


class AssociationStore:
    """Gewichtete Partner-Zaehler pro Datenpunkt."""

    def __init__(
        self,
        records: dict[str, AssociationRecord],
        window_ms: int,
        min_frequency: int,
        max_partners: Optional[int] = None,
    ):
        # Referenz auf LearningStore.associations, wird in-place veraendert
        self.records = records
        self.window_ms = window_ms
        self.min_frequency = min_frequency
        self.max_partners = max_partners

    def _ensure(self, entity_id: str) -> AssociationRecord:
        record = self.records.get(entity_id)
        if record is None:
            record = AssociationRecord()
            self.records[entity_id] = record
        return record

    def learn(self, action: Action, window: PendingActionWindow) -> int:
        """Verknuepft die Aktion mit allen anderen Eintraegen im Fenster.

        Der Zeitabstand ist vorzeichenbehaftet (aktuell minus Partner):
        Partner mit neuerem Zeitstempel ergeben einen negativen Abstand
        und werden ebenfalls verknuepft.

        Returns:
            Anzahl neu gelernter Paare
        """
        self._ensure(action.entity_id)
        learned = 0
        for partner in window.others(action.entity_id):
            time_diff = action.timestamp_ms - partner.timestamp_ms
            if time_diff > self.window_ms:
                continue
            self.record_association(action.entity_id, partner.entity_id, action.context)
            self.record_association(partner.entity_id, action.entity_id, partner.context)
            learned += 1
        if learned:
            logger.debug(
                "Learning: %s mit %d Partner(n) verknuepft", action.entity_id, learned,
            )
        return learned

    def record_association(self, primary_id: str, partner_id: str, context: str = "") -> bool:
        """Erhoeht den Zaehler primary -> partner (und optional den Kontext)."""
        if primary_id == partner_id:
            return False
        record = self._ensure(primary_id)

        if (
            self.max_partners is not None
            and partner_id not in record.partners
            and len(record.partners) >= self.max_partners
        ):
            logger.warning(
                "Learning: %s hat bereits %d Partner: %s ignoriert",
                primary_id, self.max_partners, partner_id,
            )
            return False

        record.partners[partner_id] = record.partners.get(partner_id, 0) + 1

        if context:
            histogram = record.contexts.setdefault(partner_id, {})
            histogram[context] = histogram.get(context, 0) + 1
        return True

    def suggested_partners(
        self, entity_id: str, min_frequency: Optional[int] = None,
    ) -> list[PartnerSuggestion]:
        """Partner ab der Mindesthaeufigkeit, staerkste zuerst.

        Bei gleicher Haeufigkeit bleibt die Reihenfolge des ersten
        Auftretens erhalten (sort ist stabil).
        """
        record = self.records.get(entity_id)
        if record is None:
            return []

        threshold = self.min_frequency if min_frequency is None else min_frequency
        qualifying = [
            (partner_id, count)
            for partner_id, count in record.partners.items()
            if count >= threshold
        ]
        qualifying.sort(key=lambda item: item[1], reverse=True)

        return [
            PartnerSuggestion(
                entity_id=partner_id,
                frequency=count,
                contexts=dict(record.contexts.get(partner_id, {})),
            )
            for partner_id, count in qualifying
        ]

    def entity_ids(self) -> list[str]:
        return list(self.records)

    def entities_with_partners(self) -> int:
        return sum(1 for record in self.records.values() if record.partners)

    def total_edges(self) -> int:
        return sum(len(record.partners) for record in self.records.values())
