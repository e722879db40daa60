"""
Globale Test-Fixtures fuer die Scene-Learning Engine.

  - clock: steuerbare Millisekunden-Uhr
  - config: LearningConfig mit Default-Fenster (30 s) und Schwelle 3
  - engine: LearningEngine auf tmp_path mit der steuerbaren Uhr
  - train: Datenpunkte wiederholt gemeinsam schalten
"""

import pytest

from scene_learning.config import LearningConfig
from scene_learning.engine import LearningEngine

T0 = 1_700_000_000_000


class FakeClock:
    """Millisekunden-Uhr die nur auf Zuruf weiterlaeuft."""

    def __init__(self, start: int = T0):
        self.start = start
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return LearningConfig()


@pytest.fixture
def make_engine(tmp_path, clock, config):
    """Factory: weitere Engines auf demselben Verzeichnis (Restart-Simulation)."""
    def _make(namespace: str = "test", cfg: LearningConfig = None) -> LearningEngine:
        return LearningEngine(
            config=cfg or config,
            namespace=namespace,
            data_dir=tmp_path,
            clock=clock,
        )
    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()


@pytest.fixture
def train():
    """Schaltet die Datenpunkte ``times`` mal kurz hintereinander.

    Zwischen den Durchlaeufen vergeht mehr als 2x Fenster, damit
    sich die Durchlaeufe nicht gegenseitig verknuepfen.
    """
    def _train(engine: LearningEngine, clock: FakeClock, *entity_ids: str, times: int = 1,
               gap_ms: int = 1000, pause_ms: int = 120_000) -> None:
        for _ in range(times):
            for entity_id in entity_ids:
                engine.record_action(entity_id, True)
                clock.advance(gap_ms)
            clock.advance(pause_ms)
    return _train
