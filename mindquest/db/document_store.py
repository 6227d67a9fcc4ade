"""
Document store interface

One document per user, holding the whole progress snapshot. Stores support:
- get: read the current snapshot
- set: replace the document, or deep-merge into it with merge=True
- update: field updates where dotted keys address nested fields
  ("hydration.level"); fails if the document does not exist
- subscribe: push every new snapshot to a listener until unsubscribed

Stores give last-write-wins semantics per field set; there are no
transactions spanning several calls.
"""
import copy
import inspect
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from mindquest.exceptions import DocumentNotFoundError

logger = logging.getLogger(__name__)

Snapshot = Dict[str, Any]
SnapshotListener = Callable[[Optional[Snapshot]], Union[None, Awaitable[None]]]
Unsubscribe = Callable[[], None]


def deep_merge(base: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Merge nested dicts; lists and scalars in changes replace those in base"""
    merged = copy.deepcopy(base)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def apply_updates(document: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply field updates to a copy of document

    Dotted keys set nested fields, creating intermediate maps as needed:
        apply_updates({"hydration": {"level": 3}}, {"hydration.level": 4})
    """
    updated = copy.deepcopy(document)
    for path, value in updates.items():
        keys = path.split(".")
        target = updated
        for key in keys[:-1]:
            if not isinstance(target.get(key), dict):
                target[key] = {}
            target = target[key]
        target[keys[-1]] = copy.deepcopy(value)
    return updated


async def deliver_snapshot(listener: SnapshotListener, snapshot: Optional[Snapshot]) -> None:
    """Call a sync or async listener; listener errors are logged, not raised to the writer"""
    try:
        result = listener(copy.deepcopy(snapshot))
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.error(f"Snapshot listener failed: {e}", exc_info=True)


class DocumentStore(ABC):
    """Per-user document persistence with realtime subscription"""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[Snapshot]:
        """Current snapshot, or None if the user has no document"""

    @abstractmethod
    async def set(self, user_id: str, data: Snapshot, merge: bool = False) -> None:
        """Write a whole document, or deep-merge data into it"""

    @abstractmethod
    async def update(self, user_id: str, updates: Dict[str, Any]) -> None:
        """Update fields of an existing document (dotted keys allowed)"""

    @abstractmethod
    async def subscribe(self, user_id: str, listener: SnapshotListener) -> Unsubscribe:
        """
        Deliver the current snapshot, then every later one, to listener

        Returns:
            A callable that stops delivery
        """

    async def close(self) -> None:
        """Release store resources"""


class InMemoryDocumentStore(DocumentStore):
    """
    In-process document store

    Used for local development and tests. Listeners are called after each
    successful write, before the write call returns.
    """

    def __init__(self):
        self._documents: Dict[str, Snapshot] = {}
        self._listeners: Dict[str, List[SnapshotListener]] = defaultdict(list)
        self.write_count = 0

    async def get(self, user_id: str) -> Optional[Snapshot]:
        document = self._documents.get(user_id)
        return copy.deepcopy(document) if document is not None else None

    async def set(self, user_id: str, data: Snapshot, merge: bool = False) -> None:
        if merge and user_id in self._documents:
            self._documents[user_id] = deep_merge(self._documents[user_id], data)
        else:
            self._documents[user_id] = copy.deepcopy(data)
        await self._after_write(user_id)

    async def update(self, user_id: str, updates: Dict[str, Any]) -> None:
        if user_id not in self._documents:
            raise DocumentNotFoundError(
                message=f"No progress document for user {user_id}",
                record_type="Progress document",
                record_id=user_id,
                user_id=user_id,
                operation="update"
            )
        self._documents[user_id] = apply_updates(self._documents[user_id], updates)
        await self._after_write(user_id)

    async def subscribe(self, user_id: str, listener: SnapshotListener) -> Unsubscribe:
        self._listeners[user_id].append(listener)
        await deliver_snapshot(listener, self._documents.get(user_id))

        def unsubscribe() -> None:
            if listener in self._listeners[user_id]:
                self._listeners[user_id].remove(listener)

        return unsubscribe

    async def _after_write(self, user_id: str) -> None:
        self.write_count += 1
        snapshot = self._documents.get(user_id)
        for listener in list(self._listeners[user_id]):
            await deliver_snapshot(listener, snapshot)
