import enum
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class ConversationState(str, enum.Enum):
    NEW = "NEW"
    MAIN_MENU = "MAIN_MENU"
    ASK_TOUR_DEST = "ASK_TOUR_DEST"
    ASK_HOTEL_DEST = "ASK_HOTEL_DEST"
    ASK_FLIGHT_ROUTE = "ASK_FLIGHT_ROUTE"
    ASK_TRAVEL_QUESTION = "ASK_TRAVEL_QUESTION"
    ASK_TRIP_INSPIRATION = "ASK_TRIP_INSPIRATION"
    AFTER_LINKS = "AFTER_LINKS"
    ASK_ITINERARY_DETAILS = "ASK_ITINERARY_DETAILS"
    EDIT_ITINERARY_DETAILS = "EDIT_ITINERARY_DETAILS"


class Service(str, enum.Enum):
    TOURS = "tours"
    HOTELS = "hotels"
    FLIGHTS = "flights"


@dataclass
class _SenderLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0  # callers inside or waiting on lock()


@dataclass
class ConversationSession:
    sender: str
    state: ConversationState = ConversationState.NEW
    last_destination: Optional[str] = None
    last_service: Optional[Service] = None
    itinerary_details: Optional[str] = None
    current_itinerary_id: Optional[int] = None  # set only while an edit is in progress
    touched_at: float = field(default_factory=time.monotonic)


class SessionStore:
    """
    In-memory session table keyed by sender identity.

    Sessions idle longer than `ttl_seconds` are dropped on the next access,
    and once `max_sessions` is reached the least recently touched one is
    evicted. Callers serialise work for one sender with `lock(sender)`.
    """

    def __init__(
        self,
        ttl_seconds: float = 24 * 3600,
        max_sessions: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: Dict[str, ConversationSession] = {}
        self._locks: Dict[str, _SenderLock] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def _expired(self, session: ConversationSession, now: float) -> bool:
        return now - session.touched_at > self.ttl_seconds

    def _drop(self, sender: str) -> None:
        # a lock still in use is removed by lock() when its last user leaves
        self._sessions.pop(sender, None)
        entry = self._locks.get(sender)
        if entry is not None and entry.users == 0:
            del self._locks[sender]

    def _sweep(self, now: float) -> None:
        expired = [k for k, s in self._sessions.items() if self._expired(s, now)]
        for sender in expired:
            self._drop(sender)
        if expired:
            logger.info("Session sweep: evicted %d expired, %d active", len(expired), len(self._sessions))

        while len(self._sessions) >= self.max_sessions:
            oldest = min(self._sessions, key=lambda k: self._sessions[k].touched_at)
            self._drop(oldest)
            logger.info("Session table full, evicted %s", oldest)

    def get(self, sender: str) -> Optional[ConversationSession]:
        with self._guard:
            session = self._sessions.get(sender)
            now = self._clock()
            if session is None:
                return None
            if self._expired(session, now):
                self._drop(sender)
                return None
            session.touched_at = now
            return session

    def get_or_create(self, sender: str) -> ConversationSession:
        with self._guard:
            now = self._clock()
            session = self._sessions.get(sender)
            if session is not None and not self._expired(session, now):
                session.touched_at = now
                return session
            self._sessions.pop(sender, None)
            self._sweep(now)
            session = ConversationSession(sender=sender, touched_at=now)
            self._sessions[sender] = session
            return session

    def put(self, session: ConversationSession) -> None:
        with self._guard:
            session.touched_at = self._clock()
            self._sessions[session.sender] = session

    def delete(self, sender: str) -> None:
        with self._guard:
            self._drop(sender)

    @contextmanager
    def lock(self, sender: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(sender, _SenderLock())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0 and sender not in self._sessions:
                    self._locks.pop(sender, None)
