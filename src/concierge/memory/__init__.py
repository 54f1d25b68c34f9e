from .store import InMemoryPendingStore, PendingStore

__all__ = ["InMemoryPendingStore", "PendingStore"]
