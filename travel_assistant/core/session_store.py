# Role: Session store. Owns the lifecycle of Session records: get / set continuation token / delete,
# plus per-session turn slots so turns of one conversation run in submission order.
# The in-memory store is the only process-wide mutable state in the core.

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional

import travel_assistant.config as config
from travel_assistant.models.session import Session
from travel_assistant.models.trip_context import TripContext


class SessionStore(ABC):
    """
    Storage contract used by the orchestrator. Backends (in-memory, Redis, a database) only need
    get/set/delete semantics per conversation id; no ordering is assumed across different ids.

    hold(session_id) serializes turns of one session and yields the session's epoch. delete() bumps the
    epoch of any held session, and set_continuation(..., epoch=old) then refuses the write, so a turn
    that was in flight during a delete cannot bring the session back.
    """

    @abstractmethod
    def get(self, session_id: str) -> Optional[Session]:
        ...

    @abstractmethod
    def create(self, session_id: str) -> Session:
        ...

    @abstractmethod
    def set_continuation(
        self,
        session_id: str,
        token: str,
        new_turn: bool = False,
        epoch: Optional[int] = None,
        context: Optional[TripContext] = None,
    ) -> Optional[Session]:
        ...

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        ...

    @abstractmethod
    def hold(self, session_id: str):
        ...

    def get_continuation(self, session_id: str) -> Optional[str]:
        session = self.get(session_id)
        return session.continuation_token if session else None


class _TurnSlot:
    # One per session with a turn running or queued; dropped when the last holder leaves.
    __slots__ = ("lock", "holders", "epoch")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0
        self.epoch = 0


class InMemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._slots: Dict[str, _TurnSlot] = {}
        # Key line: guards dict structure only; per-session ordering uses the slot locks.
        self._guard = threading.Lock()

    def get(self, session_id: str) -> Optional[Session]:
        with self._guard:
            session = self._sessions.get(session_id)
            return session.model_copy(deep=True) if session else None

    def create(self, session_id: str) -> Session:
        # Reuse existing session or initialize a fresh one.
        with self._guard:
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(session_id=session_id)
                self._sessions[session_id] = session
            return session.model_copy(deep=True)

    def set_continuation(
        self,
        session_id: str,
        token: str,
        new_turn: bool = False,
        epoch: Optional[int] = None,
        context: Optional[TripContext] = None,
    ) -> Optional[Session]:
        # 1) Refuse writes from a turn whose session was deleted after it started
        # 2) Create on first use
        # 3) Replace (not append) the token; count the turn on its first round; update last-seen timestamp
        with self._guard:
            if epoch is not None and self._current_epoch(session_id) != epoch:
                if config.DEBUG:
                    print(f"[SESSION_STORE] dropped stale write for {session_id} (deleted mid-turn)")
                return None

            session = self._sessions.get(session_id)
            if session is None:
                session = Session(session_id=session_id)
                self._sessions[session_id] = session
            session.continuation_token = token
            if new_turn:
                session.turn_count += 1
            if context is not None:
                session.context = context.model_copy(deep=True)
            session.updated_at = datetime.now(timezone.utc)
            return session.model_copy(deep=True)

    def delete(self, session_id: str) -> bool:
        # Idempotent: deleting an unknown id is a no-op that returns False.
        # An in-flight turn is not cancelled; its later writes are refused via the epoch bump.
        with self._guard:
            existed = self._sessions.pop(session_id, None) is not None
            slot = self._slots.get(session_id)
            if slot is not None:
                slot.epoch += 1

        if config.DEBUG:
            print(f"[SESSION_STORE] delete {session_id} (existed={existed})")
        return existed

    @contextmanager
    def hold(self, session_id: str) -> Iterator[int]:
        # 1) Register as a holder (creates the slot on first use)
        # 2) Wait for the session's turn lock; yield the epoch seen once it is ours
        # 3) Release; the last holder removes the slot so ids do not accumulate
        with self._guard:
            slot = self._slots.get(session_id)
            if slot is None:
                slot = _TurnSlot()
                self._slots[session_id] = slot
            slot.holders += 1

        slot.lock.acquire()
        try:
            with self._guard:
                epoch = slot.epoch
            yield epoch
        finally:
            slot.lock.release()
            with self._guard:
                slot.holders -= 1
                if slot.holders == 0 and self._slots.get(session_id) is slot:
                    del self._slots[session_id]

    def is_held(self, session_id: str) -> bool:
        with self._guard:
            slot = self._slots.get(session_id)
            return slot is not None and slot.lock.locked()

    def active_slots(self) -> int:
        with self._guard:
            return len(self._slots)

    def _current_epoch(self, session_id: str) -> int:
        slot = self._slots.get(session_id)
        return slot.epoch if slot is not None else 0

    def __len__(self) -> int:
        with self._guard:
            return len(self._sessions)
