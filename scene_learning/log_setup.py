"""
Structured Logging - Instanz-Tag fuer alle Log-Eintraege.

Jede Engine-Instanz setzt ihren Namespace in eine ContextVar, solange
eine ihrer Operationen laeuft. Der Formatter haengt ihn an jede
Zeile an, damit Logs mehrerer Instanzen unterscheidbar bleiben.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

# ContextVar fuer den Instanz-Namespace (asyncio-kompatibel)
_instance_var: ContextVar[str] = ContextVar("learning_instance", default="")


def get_instance() -> str:
    """Gibt den Namespace der gerade aktiven Engine-Instanz zurueck."""
    return _instance_var.get()


@contextmanager
def instance_context(namespace: str) -> Iterator[None]:
    """Setzt den Instanz-Namespace fuer die Dauer eines Blocks."""
    token = _instance_var.set(namespace)
    try:
        yield
    finally:
        _instance_var.reset(token)


class StructuredFormatter(logging.Formatter):
    """Log-Formatter der den Instanz-Namespace hinzufuegt.

    Output-Format:
        12:34:56 [scene_learning.engine] INFO [ns-default] Message here
    """

    def format(self, record: logging.LogRecord) -> str:
        instance = _instance_var.get()
        record.instance = f"[ns-{instance}] " if instance else ""
        return super().format(record)


def setup_structured_logging(level: str = "INFO") -> None:
    """Konfiguriert Structured Logging fuer die gesamte Anwendung."""
    fmt = "%(asctime)s [%(name)s] %(levelname)s: %(instance)s%(message)s"
    formatter = StructuredFormatter(fmt=fmt, datefmt="%H:%M:%S")

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Bestehende Handler aktualisieren
    for handler in root.handlers:
        handler.setFormatter(formatter)

    # Falls keine Handler existieren, einen hinzufuegen
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root.addHandler(handler)
