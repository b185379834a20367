"""Boundary with the remote care platform.

:class:`Platform` is the collaborator a :class:`~constellation.core.BuildSession`
dispatches validated requests to.  The platform owns id allocation and is
authoritative for the stored state.  :class:`DryRunPlatform` mirrors the
platform's observable behaviour in memory so builds can be rehearsed without a
network transport.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Protocol

from constellation.merge import apply_update

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 25
MAX_PAGE_LIMIT = 1000


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class Platform(Protocol):
    """Per-resource create/update/read operations exposed by the platform.

    ``get`` and ``update`` raise ``KeyError`` for an unknown id.
    """

    def create(self, resource: str, data: Mapping[str, Any]) -> dict[str, Any]: ...

    def update(
        self,
        resource: str,
        resource_id: str,
        updates: Mapping[str, Any],
        replace: bool = False,
    ) -> dict[str, Any]: ...

    def get(self, resource: str, resource_id: str) -> dict[str, Any]: ...

    def list(
        self,
        resource: str,
        filter: Mapping[str, Any] | None = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        last_id: str | None = None,
    ) -> list[dict[str, Any]]: ...


class DryRunPlatform:
    """In-memory platform: 24-hex ids, timestamps, merge/replace updates, cursor pages."""

    def __init__(self) -> None:
        self._store: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def _generate_id(self, table: dict[str, dict[str, Any]]) -> str:
        for _ in range(10):
            candidate = uuid.uuid4().hex[:24]
            if candidate not in table:
                return candidate
        return uuid.uuid4().hex[:24]

    def _record(self, resource: str, resource_id: str) -> dict[str, Any]:
        record = self._store.get(resource, {}).get(resource_id)
        if record is None:
            msg = f"{resource} not found: {resource_id}"
            raise KeyError(msg)
        return record

    def create(self, resource: str, data: Mapping[str, Any]) -> dict[str, Any]:
        with self._lock:
            table = self._store.setdefault(resource, {})
            resource_id = self._generate_id(table)
            now = _now_iso()
            record = {**copy.deepcopy(dict(data)), "id": resource_id, "createdAt": now, "updatedAt": now}
            table[resource_id] = record
        logger.debug("dry-run create %s %s", resource, resource_id)
        return copy.deepcopy(record)

    def seed(self, resource: str, record: Mapping[str, Any]) -> dict[str, Any]:
        """Store a record that exists before the build starts, keeping its ``id`` when given.

        Update-only resources such as ``organizations`` are never created by a
        build; seeding stands in for the record the real platform already holds.
        """
        with self._lock:
            table = self._store.setdefault(resource, {})
            resource_id = record.get("id") or self._generate_id(table)
            now = _now_iso()
            stored = {"createdAt": now, "updatedAt": now, **copy.deepcopy(dict(record)), "id": resource_id}
            table[resource_id] = stored
        return copy.deepcopy(stored)

    def update(
        self,
        resource: str,
        resource_id: str,
        updates: Mapping[str, Any],
        replace: bool = False,
    ) -> dict[str, Any]:
        with self._lock:
            current = self._record(resource, resource_id)
            result = apply_update(current, updates, replace=replace)
            result["id"] = resource_id
            result["createdAt"] = current["createdAt"]
            result["updatedAt"] = _now_iso()
            self._store[resource][resource_id] = result
        logger.debug("dry-run update %s %s (replace=%s)", resource, resource_id, replace)
        return copy.deepcopy(result)

    def get(self, resource: str, resource_id: str) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._record(resource, resource_id))

    def list(
        self,
        resource: str,
        filter: Mapping[str, Any] | None = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        last_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Records in creation order matching every ``filter`` key by equality.

        ``last_id`` is the cursor: the page starts after that record.
        """
        limit = max(1, min(limit, MAX_PAGE_LIMIT))
        with self._lock:
            records = list(self._store.get(resource, {}).values())
            if last_id is not None:
                ids = [r["id"] for r in records]
                if last_id not in ids:
                    msg = f"{resource} not found: {last_id}"
                    raise KeyError(msg)
                records = records[ids.index(last_id) + 1 :]
            if filter:
                records = [r for r in records if all(r.get(k) == v for k, v in filter.items())]
            return copy.deepcopy(records[:limit])

    def count(self, resource: str) -> int:
        with self._lock:
            return len(self._store.get(resource, {}))
