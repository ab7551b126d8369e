"""
Mock Store - in-process collections standing in for a document database.

Every operation sleeps for the configured latency so the dashboard behaves like
it is talking to a remote store. There is no locking and no durability: the
last write wins and everything is lost when the process exits.
"""

import copy
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from database.models import generate_id, now_iso

logger = logging.getLogger(__name__)


class MockStore:
    """Named collections of JSON-shaped records with get/list/insert/update."""

    def __init__(self, latency_ms: int = 0):
        self.latency_ms = latency_ms
        self._collections: Dict[str, List[Dict[str, Any]]] = {}

    def _delay(self):
        if self.latency_ms > 0:
            time.sleep(self.latency_ms / 1000.0)

    def _records(self, collection: str) -> List[Dict[str, Any]]:
        return self._collections.setdefault(collection, [])

    def _index_of(self, collection: str, record_id: str) -> Optional[int]:
        records = self._records(collection)
        return next((i for i, r in enumerate(records) if r.get('id') == record_id), None)

    # ==================== READS ====================

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Return a copy of the record or None when it does not exist."""
        self._delay()
        idx = self._index_of(collection, record_id)
        if idx is None:
            return None
        return copy.deepcopy(self._records(collection)[idx])

    def list(self, collection: str, predicate: Optional[Callable[[Dict], bool]] = None,
             **filters) -> List[Dict[str, Any]]:
        """
        List records, newest first.

        Args:
            collection: Collection name
            predicate: Optional callable applied to each record
            **filters: Field equality filters

        Returns:
            Copies of the matching records
        """
        self._delay()
        results = []
        for record in self._records(collection):
            if any(record.get(field) != value for field, value in filters.items()):
                continue
            if predicate and not predicate(record):
                continue
            results.append(copy.deepcopy(record))
        return results

    def count(self, collection: str) -> int:
        return len(self._records(collection))

    def collections(self) -> Dict[str, int]:
        """Record counts per collection."""
        return {name: len(records) for name, records in self._collections.items()}

    # ==================== WRITES ====================

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert at the front of the collection, generating an id when missing."""
        self._delay()
        new_record = copy.deepcopy(record)
        new_record.setdefault('id', generate_id(collection))
        new_record.setdefault('createdAt', now_iso())
        self._records(collection).insert(0, new_record)
        logger.debug(f"Inserted {collection}/{new_record['id']}")
        return copy.deepcopy(new_record)

    def update(self, collection: str, record_id: str,
               changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Shallow-merge changes into a record. Returns None if it does not exist."""
        self._delay()
        idx = self._index_of(collection, record_id)
        if idx is None:
            logger.debug(f"Update skipped, {collection}/{record_id} not found")
            return None

        records = self._records(collection)
        merged = {**records[idx], **copy.deepcopy(changes)}
        merged['id'] = record_id
        merged['updatedAt'] = now_iso()
        records[idx] = merged
        return copy.deepcopy(merged)

    def upsert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the record with the same id, or insert it."""
        if not record.get('id'):
            return self.insert(collection, record)

        self._delay()
        idx = self._index_of(collection, record['id'])
        if idx is None:
            new_record = copy.deepcopy(record)
            self._records(collection).insert(0, new_record)
            return copy.deepcopy(new_record)

        self._records(collection)[idx] = copy.deepcopy(record)
        return copy.deepcopy(record)

    def delete(self, collection: str, record_id: str) -> bool:
        self._delay()
        idx = self._index_of(collection, record_id)
        if idx is None:
            return False
        del self._records(collection)[idx]
        logger.debug(f"Deleted {collection}/{record_id}")
        return True

    def load(self, collection: str, records: List[Dict[str, Any]]):
        """Replace a whole collection without latency, used when seeding."""
        self._collections[collection] = copy.deepcopy(list(records))
