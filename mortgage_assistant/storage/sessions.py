"""In-memory conversation session store with TTL eviction and per-session locks."""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from mortgage_assistant.conversation.models import ConversationSession, ConversationTurn, Scenario
from mortgage_assistant.llm.prompts import get_system_prompt

logger = logging.getLogger(__name__)

# 24 hours in seconds
DEFAULT_TTL = 24 * 60 * 60

TeardownHook = Callable[[ConversationSession], None]


class SessionStore:
    """
    Process-local storage for conversation sessions.

    Sessions idle for longer than the TTL are evicted lazily whenever the store
    is accessed. A session with a turn in progress or queued is never evicted.
    Teardown hooks run for every session that leaves the store.
    """

    def __init__(
        self,
        ttl: int = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize session store.

        Args:
            ttl: Idle time-to-live in seconds (default: 24 hours)
            clock: Monotonic time source
        """
        self.ttl = ttl
        self._clock = clock
        self._sessions: dict[str, ConversationSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # Turns holding or waiting for each key's lock
        self._holders: dict[str, int] = {}
        self._teardown_hooks: list[TeardownHook] = []

    def add_teardown_hook(self, hook: TeardownHook) -> None:
        self._teardown_hooks.append(hook)

    def lock(self, key: str) -> asyncio.Lock:
        """Get the lock serializing turns for a session key."""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def busy(self, key: str) -> bool:
        """True while a turn holds or waits for the session's lock."""
        lock = self._locks.get(key)
        return key in self._holders or (lock is not None and lock.locked())

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """
        Hold the session's lock for one turn.

        The lock of a session deleted mid-turn is dropped once its last holder
        leaves.
        """
        lock = self.lock(key)
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                if key not in self._sessions:
                    self._locks.pop(key, None)

    def get(self, key: str) -> ConversationSession | None:
        self.purge_expired()
        return self._sessions.get(key)

    def get_or_create(self, key: str, scenario: Scenario) -> ConversationSession:
        """
        Get a session, creating it on first use.

        A new session is seeded with the scenario's system turn. For an
        existing session the stored scenario wins over ``scenario``.

        Args:
            key: Opaque session key
            scenario: Scenario to use if the session does not exist yet

        Returns:
            The session, with its last-activity time refreshed
        """
        self.purge_expired()
        session = self._sessions.get(key)
        if session is None:
            now = self._clock()
            session = ConversationSession(
                key=key,
                scenario=scenario,
                created_at=now,
                last_active=now,
            )
            session.append(ConversationTurn.system(get_system_prompt(scenario)))
            self._sessions[key] = session
            logger.info(f"Created session {key} (scenario: {scenario.value})")
        elif session.scenario is not scenario:
            logger.debug(
                f"Session {key} keeps scenario {session.scenario.value}, "
                f"ignoring requested {scenario.value}"
            )
        self.touch(session)
        return session

    def touch(self, session: ConversationSession) -> None:
        """Refresh the TTL of a session."""
        session.last_active = self._clock()

    def delete(self, key: str) -> bool:
        """
        Tear down a session.

        Returns:
            True if a session was removed, False if none existed
        """
        session = self._sessions.pop(key, None)
        if not self.busy(key):
            self._locks.pop(key, None)
        if session is None:
            return False
        self._run_teardown(session)
        logger.debug(f"Deleted session {key}")
        return True

    def purge_expired(self) -> int:
        """
        Evict sessions idle for longer than the TTL.

        Returns:
            Number of evicted sessions
        """
        if self.ttl <= 0:
            return 0

        deadline = self._clock() - self.ttl
        expired = [
            key
            for key, session in self._sessions.items()
            if session.last_active < deadline and not self.busy(key)
        ]
        for key in expired:
            logger.warning(f"Session {key} expired after {self.ttl}s of inactivity")
            self.delete(key)
        return len(expired)

    def close(self) -> None:
        """Tear down every session."""
        for key in list(self._sessions):
            self.delete(key)
        self._locks.clear()

    def _run_teardown(self, session: ConversationSession) -> None:
        for hook in self._teardown_hooks:
            try:
                hook(session)
            except Exception as e:
                logger.error(f"Teardown hook failed for session {session.key}: {e}")

    def __contains__(self, key: object) -> bool:
        return key in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
