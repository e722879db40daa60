"""
Zentrale Konstanten fuer die Scene-Learning Engine.

Sammelt Zeitfenster, Schwellwerte und Speicherorte an einem Ort,
damit config.py und die Komponenten dieselben Defaults verwenden.
"""

from typing import Final

# ============================================================
# Zeitfenster (Millisekunden)
# ============================================================

# Zwei Aktionen innerhalb dieses Abstands gelten als zusammengehoerig
CO_OCCURRENCE_WINDOW_MS: Final[int] = 30_000  # 30 Sek

# Pending-Eintraege leben maximal Faktor x Fenster
PENDING_RETENTION_FACTOR: Final[int] = 2

# Periodisches Speichern
SAVE_INTERVAL_MS: Final[int] = 300_000  # 5 Min

# ============================================================
# Schwellwerte
# ============================================================

# Ab dieser Haeufigkeit gilt ein Partner als "gelernt"
MIN_FREQUENCY_THRESHOLD: Final[int] = 3

# Mindestanzahl gelernter Partner fuer einen Szenen-Vorschlag
MIN_SCENE_ASSOCIATIONS: Final[int] = 2

# Wie viele Partner-Namen in einen generierten Szenen-Namen einfliessen
SCENE_NAME_MAX_PARTNERS: Final[int] = 2

# ============================================================
# Persistenz
# ============================================================

LEARNING_FILE_PREFIX: Final[str] = "datapoint_learning_"
LEARNING_DIR_NAME: Final[str] = "scene-learning"
DEFAULT_NAMESPACE: Final[str] = "default"
JSON_INDENT: Final[int] = 2
