"""
Storage Module
==============

Checkpoint storage for agent loop state.
"""

from app.storage.state_store import BlobStateStore, InMemoryStateStore, StateStore

__all__ = [
    "StateStore",
    "BlobStateStore",
    "InMemoryStateStore",
]
