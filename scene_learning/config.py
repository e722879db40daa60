"""
Zentrale Konfiguration - liest .env und settings.yaml
"""

import logging
import tempfile
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from .constants import (
    CO_OCCURRENCE_WINDOW_MS,
    DEFAULT_NAMESPACE,
    LEARNING_DIR_NAME,
    MIN_FREQUENCY_THRESHOLD,
    MIN_SCENE_ASSOCIATIONS,
    SAVE_INTERVAL_MS,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Umgebungsvariablen aus .env"""

    # Instanz-Namespace (trennt die Lerndaten mehrerer Instanzen)
    learning_namespace: str = DEFAULT_NAMESPACE

    # Leer = <tmp>/scene-learning
    learning_data_dir: str = ""

    # Optional: eigener Pfad zur settings.yaml
    learning_config_path: str = ""

    log_level: str = "INFO"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8210

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def data_dir(self) -> Path:
        if self.learning_data_dir:
            return Path(self.learning_data_dir)
        return Path(tempfile.gettempdir()) / LEARNING_DIR_NAME


class LearningConfig(BaseModel):
    """Parameter der Lern-Engine (Abschnitt ``learning:`` in settings.yaml).

    Ungueltige Werte (z.B. ein Fenster <= 0) werden beim Erzeugen
    mit einem ValidationError abgelehnt.
    """

    co_occurrence_window_ms: int = Field(CO_OCCURRENCE_WINDOW_MS, gt=0)
    min_frequency_threshold: int = Field(MIN_FREQUENCY_THRESHOLD, ge=1)
    save_interval_ms: int = Field(SAVE_INTERVAL_MS, gt=0)
    min_scene_associations: int = Field(MIN_SCENE_ASSOCIATIONS, ge=1)
    # Optionale Obergrenzen, None = unbegrenzt
    max_partners_per_entity: Optional[int] = Field(None, ge=1)
    max_scenes: Optional[int] = Field(None, ge=1)

    @classmethod
    def from_yaml(cls, cfg: Optional[dict] = None) -> "LearningConfig":
        """Baut die Konfiguration aus dem ``learning:`` Abschnitt."""
        section = (cfg or {}).get("learning") or {}
        if not isinstance(section, dict):
            logger.warning("learning-Abschnitt ist kein Mapping: nutze Defaults")
            section = {}
        known = {k: v for k, v in section.items() if k in cls.model_fields}
        return cls(**known)


def _config_path() -> Path:
    if settings.learning_config_path:
        return Path(settings.learning_config_path)
    return Path(__file__).parent.parent / "config" / "settings.yaml"


def load_yaml_config(config_path: Optional[Path] = None) -> dict:
    """Laedt settings.yaml: erzeugt sie aus .example wenn sie fehlt."""
    config_path = config_path or _config_path()
    example_path = config_path.with_suffix(".yaml.example")

    if not config_path.exists() and example_path.exists():
        import shutil
        shutil.copy2(example_path, config_path)

    if config_path.exists():
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
                if not isinstance(data, dict):
                    return {}
                return data
        except yaml.YAMLError as e:
            logger.warning("settings.yaml nicht lesbar: %s", e)
            return {}
    return {}


# Globale Instanzen
settings = Settings()
yaml_config = load_yaml_config()
