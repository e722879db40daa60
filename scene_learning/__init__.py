"""Scene Learning - lernt aus gemeinsam gesteuerten Datenpunkten Szenen."""
from .config import LearningConfig
from .engine import LearningEngine
from .schemas import LearningStatistics, PartnerSuggestion, Scene, SceneSuggestion

__all__ = [
    "LearningConfig",
    "LearningEngine",
    "LearningStatistics",
    "PartnerSuggestion",
    "Scene",
    "SceneSuggestion",
]
