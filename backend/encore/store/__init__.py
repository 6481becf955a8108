"""Store access capability injected into the pipeline and review flow."""

from encore.store.base import Store
from encore.store.memory import InMemoryStore

__all__ = ["Store", "InMemoryStore"]
