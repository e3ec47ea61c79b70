"""Key-value store used for carts, orders, users, sessions and the stock ledger."""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from threading import Lock
from typing import Any

from postgrest.exceptions import APIError as PostgrestAPIError

from src.core.config import get_settings

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Namespaced string-keyed store of JSON-compatible values.

    Every stored value carries a version that starts at 1 and increases on
    each write. Version 0 means the key is absent.
    """

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored at key, or default if absent."""
        value, version = self.get_versioned(key)
        return default if version == 0 else value

    @abstractmethod
    def get_versioned(self, key: str) -> tuple[Any, int]:
        """Return (value, version) for key; (None, 0) when absent."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store value at key unconditionally."""

    @abstractmethod
    def compare_and_set(self, key: str, value: Any, expected_version: int) -> bool:
        """Store value only if the current version equals expected_version.

        Args:
            key: Key to write.
            value: New value.
            expected_version: Version observed by the caller; 0 to create.

        Returns:
            bool: True if the write happened, False if the version moved.
        """

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key if present."""

    @abstractmethod
    def scan_prefix(self, prefix: str) -> dict[str, Any]:
        """Return every key/value pair whose key starts with prefix."""

    def remove_prefix(self, prefix: str) -> int:
        """Delete every key starting with prefix.

        Returns:
            int: Number of keys removed.
        """
        keys = list(self.scan_prefix(prefix))
        for key in keys:
            self.remove(key)
        return len(keys)

    async def check_health(self) -> dict[str, Any]:
        """Report whether the store is reachable."""
        return {"healthy": True}


class InMemoryKeyValueStore(KeyValueStore):
    """Thread-safe in-process store.

    Values are deep-copied on write and on read so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[Any, int]] = {}
        self._lock = Lock()

    def get_versioned(self, key: str) -> tuple[Any, int]:
        with self._lock:
            if key not in self._data:
                return None, 0
            value, version = self._data[key]
            return copy.deepcopy(value), version

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            _, version = self._data.get(key, (None, 0))
            self._data[key] = (copy.deepcopy(value), version + 1)

    def compare_and_set(self, key: str, value: Any, expected_version: int) -> bool:
        with self._lock:
            _, version = self._data.get(key, (None, 0))
            if version != expected_version:
                return False
            self._data[key] = (copy.deepcopy(value), version + 1)
            return True

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def scan_prefix(self, prefix: str) -> dict[str, Any]:
        with self._lock:
            return {
                key: copy.deepcopy(value)
                for key, (value, _) in self._data.items()
                if key.startswith(prefix)
            }


class SupabaseKeyValueStore(KeyValueStore):
    """Store backed by a Supabase table of (key, value jsonb, version int) rows."""

    def __init__(self, client: Any, table: str) -> None:
        """Initialize the store.

        Args:
            client: Supabase client.
            table: Name of the key-value table.
        """
        self.client = client
        self.table = table

    def get_versioned(self, key: str) -> tuple[Any, int]:
        response = (
            self.client.table(self.table)
            .select("value,version")
            .eq("key", key)
            .maybe_single()
            .execute()
        )
        if not response or not response.data:
            return None, 0
        return response.data["value"], int(response.data["version"])

    def set(self, key: str, value: Any) -> None:
        _, version = self.get_versioned(key)
        self.client.table(self.table).upsert(
            {"key": key, "value": value, "version": version + 1}
        ).execute()

    def compare_and_set(self, key: str, value: Any, expected_version: int) -> bool:
        if expected_version == 0:
            try:
                self.client.table(self.table).insert(
                    {"key": key, "value": value, "version": 1}
                ).execute()
            except PostgrestAPIError as e:
                logger.info("Create of %s lost to a concurrent writer: %s", key, e.message)
                return False
            return True

        response = (
            self.client.table(self.table)
            .update({"value": value, "version": expected_version + 1})
            .eq("key", key)
            .eq("version", expected_version)
            .execute()
        )
        return bool(response.data)

    def remove(self, key: str) -> None:
        self.client.table(self.table).delete().eq("key", key).execute()

    def scan_prefix(self, prefix: str) -> dict[str, Any]:
        response = (
            self.client.table(self.table)
            .select("key,value")
            .like("key", f"{prefix}%")
            .execute()
        )
        return {row["key"]: row["value"] for row in response.data or []}

    def remove_prefix(self, prefix: str) -> int:
        response = self.client.table(self.table).delete().like("key", f"{prefix}%").execute()
        return len(response.data) if response.data else 0

    async def check_health(self) -> dict[str, Any]:
        from src.core.supabase import check_database_connection

        return await check_database_connection()


_store: KeyValueStore | None = None


def create_store() -> KeyValueStore:
    """Build the store selected by STORE_BACKEND."""
    settings = get_settings()
    if settings.store_backend == "supabase":
        from src.core.supabase import get_supabase_client

        logger.info("Using Supabase key-value store (table=%s)", settings.supabase_kv_table)
        return SupabaseKeyValueStore(get_supabase_client(), settings.supabase_kv_table)
    logger.info("Using in-memory key-value store")
    return InMemoryKeyValueStore()


def get_store() -> KeyValueStore:
    """Get or create the global store instance."""
    global _store
    if _store is None:
        _store = create_store()
    return _store


def reset_store(store: KeyValueStore | None = None) -> None:
    """Replace the global store; the next get_store() builds a fresh one if None."""
    global _store
    _store = store
