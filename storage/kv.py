# storage/kv.py
"""
Key-value store used by the matching service.

Two implementations share the same ``get`` / ``set`` / ``get_by_prefix``
surface: ``DatabaseKeyValueStore`` keeps JSON documents in the
``KeyValueEntry`` table, ``InMemoryKeyValueStore`` keeps them in a dict for
demo callers and tests.
"""
import copy
import logging

from django.db import DatabaseError

from bloodbridge.exceptions import StoreError
from storage.models import KeyValueEntry

logger = logging.getLogger(__name__)


class KeyValueStore:

    def get(self, key):
        """Return the value stored under ``key`` or None."""
        raise NotImplementedError

    def set(self, key, value):
        raise NotImplementedError

    def get_by_prefix(self, prefix):
        """Return every value whose key starts with ``prefix``, ordered by key."""
        raise NotImplementedError


class DatabaseKeyValueStore(KeyValueStore):

    def get(self, key):
        try:
            entry = KeyValueEntry.objects.filter(key=key).first()
        except DatabaseError as e:
            logger.error(f"Failed to read key {key}: {e}")
            raise StoreError(f"Failed to read {key}") from e
        return entry.value if entry else None

    def set(self, key, value):
        try:
            KeyValueEntry.objects.update_or_create(key=key, defaults={'value': value})
        except DatabaseError as e:
            logger.error(f"Failed to write key {key}: {e}")
            raise StoreError(f"Failed to write {key}") from e

    def get_by_prefix(self, prefix):
        try:
            return list(
                KeyValueEntry.objects.filter(key__startswith=prefix)
                .order_by('key')
                .values_list('value', flat=True)
            )
        except DatabaseError as e:
            logger.error(f"Failed to scan prefix {prefix}: {e}")
            raise StoreError(f"Failed to scan {prefix}") from e


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store; values are copied in and out like a real store would serialise them."""

    def __init__(self, initial=None):
        self._data = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key):
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def set(self, key, value):
        self._data[key] = copy.deepcopy(value)

    def get_by_prefix(self, prefix):
        return [copy.deepcopy(self._data[key]) for key in sorted(self._data) if key.startswith(prefix)]

    def __len__(self):
        return len(self._data)
