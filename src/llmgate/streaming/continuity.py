"""Conversation continuity per session key.

The store is passed to adapters explicitly; there is no process-wide map.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ConversationRef:
    """Server-assigned identifiers needed to continue a conversation.

    Attributes:
        conversation_id: Provider conversation/session id
        parent_turn_id: Id of the last turn, sent as the parent of the next one
    """

    conversation_id: Optional[str] = None
    parent_turn_id: Optional[str] = None

    @property
    def empty(self) -> bool:
        return not self.conversation_id and not self.parent_turn_id

    def merged(self, newer: Optional[ConversationRef]) -> ConversationRef:
        """Fields from ``newer`` win where set."""
        if newer is None:
            return self
        return ConversationRef(
            conversation_id=newer.conversation_id or self.conversation_id,
            parent_turn_id=newer.parent_turn_id or self.parent_turn_id,
        )


class ContinuityStore:
    """Maps session keys to ConversationRef.

    Entries have no TTL; they live until ``clear`` is called. ``lock``
    returns a per-session asyncio.Lock used to serialize turns within one
    session.
    """

    def __init__(self) -> None:
        self._refs: dict[str, ConversationRef] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, session_key: str) -> Optional[ConversationRef]:
        return self._refs.get(session_key)

    def set(self, session_key: str, ref: ConversationRef) -> None:
        if ref.empty:
            return
        self._refs[session_key] = ref

    def clear(self, session_key: Optional[str] = None) -> None:
        """Forget one session, or every session when no key is given.

        Locks of the cleared sessions are dropped too unless a turn holds them.
        """
        keys = list(self._locks) if session_key is None else [session_key]
        if session_key is None:
            self._refs.clear()
        else:
            self._refs.pop(session_key, None)
        for key in keys:
            lock = self._locks.get(key)
            if lock is not None and not lock.locked():
                del self._locks[key]

    def lock(self, session_key: str) -> asyncio.Lock:
        lock = self._locks.get(session_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_key] = lock
        return lock

    def __contains__(self, session_key: str) -> bool:
        return session_key in self._refs

    def __len__(self) -> int:
        return len(self._refs)


__all__ = ["ConversationRef", "ContinuityStore"]
