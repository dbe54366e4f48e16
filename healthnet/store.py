"""
This module provides the in-memory Entity Store.

The store holds the six entity collections as dictionaries keyed by id. It has no
business rules of its own; the integrity, transition and session components mutate
records through it, and the facade copies records out of it before returning them.
Each `HealthNetService` owns exactly one store, so tests get isolation simply by
building a new service.
"""
# healthnet/store.py

import logging

from healthnet.seed import build_seed_data

logger = logging.getLogger(__name__)

COLLECTIONS = ('users', 'facilities', 'appointments', 'medical_records', 'supply_requests', 'feedback')


class EntityStore:
    """Holds users, facilities, appointments, medical records, supply requests and feedback."""

    def __init__(self, seed: bool = True):
        self._data = {}
        self.reset(seed=seed)

    def reset(self, seed: bool = True):
        """Discards all entities and optionally reloads the demo dataset."""
        self._data = build_seed_data() if seed else {}
        self._ensure_collections()

    def _ensure_collections(self):
        for name in COLLECTIONS:
            self._data.setdefault(name, {})

    def _collection(self, name: str) -> dict:
        if name not in COLLECTIONS:
            raise KeyError(f"Unknown collection: {name}")
        return self._data[name]

    def add(self, name: str, entity) -> dict:
        """Stores a model instance (or a dict) and returns the stored record."""
        record = dict(entity if isinstance(entity, dict) else entity.__dict__)
        self._collection(name)[record['id']] = record
        logger.debug("Stored %s %s", name, record['id'])
        return record

    def get(self, name: str, entity_id) -> dict | None:
        """Returns the live record for `entity_id`, or None."""
        if not entity_id:
            return None
        return self._collection(name).get(entity_id)

    def all(self, name: str) -> list:
        """Returns the live records of a collection in insertion order."""
        return list(self._collection(name).values())

    def find(self, name: str, **criteria) -> list:
        """Returns the live records whose fields equal every given criterion."""
        return [
            record for record in self._collection(name).values()
            if all(record.get(field) == value for field, value in criteria.items())
        ]

    def count(self, name: str) -> int:
        return len(self._collection(name))
