"""Generation sessions and the in-process session registry."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from landing_forge.domain.analysis import LandingAnalysis, Palette
from landing_forge.domain.sessions import (
    STATE_ORDER,
    AssetRecord,
    GenerationState,
    ReferenceImage,
    SessionEvent,
)
from landing_forge.errors import (
    InvalidStateTransitionError,
    SessionClosedError,
    SessionLimitError,
)

_logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionEvent], None]

_STATE_MESSAGES = {
    GenerationState.IDLE: "Ready to generate",
    GenerationState.ANALYZING: "Analyzing request...",
    GenerationState.FETCHING_REFERENCE: "Looking for slot references...",
    GenerationState.EXTRACTING_PALETTE: "Extracting colour palette...",
    GenerationState.GENERATING_ASSETS: "Generating assets...",
    GenerationState.REMOVING_BACKGROUNDS: "Removing asset backgrounds...",
    GenerationState.GENERATING_CODE: "Generating HTML/CSS/JS...",
    GenerationState.ASSEMBLING: "Packaging ZIP archive...",
    GenerationState.COMPLETE: "Done!",
}


class SessionSubscription:
    """Queue-backed event channel for one subscriber."""

    def __init__(self, session: "GenerationSession") -> None:
        self._session = session
        self.queue: asyncio.Queue[SessionEvent] = asyncio.Queue()

    async def next_event(self) -> SessionEvent:
        """Wait for the next published event."""
        return await self.queue.get()

    def close(self) -> None:
        """Stop receiving events."""
        self._session._subscriptions.discard(self)


@dataclass(eq=False)
class GenerationSession:
    """Mutable state of one landing generation."""

    owner_id: int
    id: str = field(default_factory=lambda: str(uuid4()))
    state: GenerationState = GenerationState.IDLE
    progress: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    last_error: str | None = None
    analysis: LandingAnalysis | None = None
    reference_image: ReferenceImage | None = None
    palette: Palette | None = None
    assets: dict[str, AssetRecord] = field(default_factory=dict)
    sounds: dict[str, str] = field(default_factory=dict)
    markup: str | None = None
    archive_location: str | None = None
    preview_location: str | None = None
    _listeners: list[SessionListener] = field(default_factory=list, repr=False)
    _subscriptions: set[SessionSubscription] = field(
        default_factory=set, repr=False
    )

    @property
    def is_terminal(self) -> bool:
        """Return True once the session completed or failed."""
        return self.state.is_terminal

    def set_state(
        self,
        state: GenerationState,
        *,
        progress: int | None = None,
        error: str | None = None,
        message: str | None = None,
    ) -> SessionEvent:
        """Move to a new state and publish the change."""
        if self.is_terminal:
            raise SessionClosedError(
                f"Session {self.id} is already {self.state.value}"
            )
        if state is not GenerationState.ERROR and _rank(state) < _rank(self.state):
            raise InvalidStateTransitionError(
                f"Cannot move session {self.id} from {self.state.value} "
                f"to {state.value}"
            )

        self.state = state
        self.updated_at = datetime.now(tz=UTC)
        if progress is not None:
            self.progress = max(self.progress, min(progress, 100))
        # 100 is reserved for COMPLETE
        if state is GenerationState.COMPLETE:
            self.progress = 100
        else:
            self.progress = min(self.progress, 99)
        if state is GenerationState.ERROR:
            self.last_error = error or "Unknown error"

        event = SessionEvent(
            session_id=self.id,
            state=self.state,
            progress=self.progress,
            message=message or self._default_message(),
            timestamp=self.updated_at,
            analysis=self.analysis,
        )
        self._publish(event)
        _logger.info(
            "Session state change: session=%s state=%s progress=%s",
            self.id,
            self.state.value,
            self.progress,
        )
        return event

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        """Register a callback and return a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def subscribe(self) -> SessionSubscription:
        """Open a queue subscription for this session's events."""
        subscription = SessionSubscription(self)
        self._subscriptions.add(subscription)
        return subscription

    def _publish(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                _logger.exception("Session listener failed: session=%s", self.id)
        for subscription in list(self._subscriptions):
            subscription.queue.put_nowait(event)

    def _default_message(self) -> str:
        if self.state is GenerationState.ERROR:
            return f"Error: {self.last_error}"
        return _STATE_MESSAGES.get(self.state, self.state.value)


def _rank(state: GenerationState) -> int:
    return STATE_ORDER.index(state) if state in STATE_ORDER else len(STATE_ORDER)


@dataclass
class SessionRegistry:
    """Process-wide lookup of generation sessions.

    Terminal sessions are dropped ``ttl_seconds`` after their last update and
    each owner may hold at most ``max_sessions_per_owner`` unfinished sessions.
    """

    ttl_seconds: int = 2 * 60 * 60
    max_sessions_per_owner: int = 10
    _sessions: dict[str, GenerationSession] = field(default_factory=dict)

    def create(self, owner_id: int) -> GenerationSession:
        """Create and register a new idle session."""
        self.evict_expired()
        active = [
            session
            for session in self._sessions.values()
            if session.owner_id == owner_id and not session.is_terminal
        ]
        if len(active) >= self.max_sessions_per_owner:
            raise SessionLimitError(
                f"Owner {owner_id} already has {len(active)} sessions in progress"
            )
        session = GenerationSession(owner_id=owner_id)
        self._sessions[session.id] = session
        _logger.info("Created session: session=%s owner=%s", session.id, owner_id)
        return session

    def get(self, session_id: str) -> GenerationSession | None:
        """Return a session by id, if still registered."""
        self.evict_expired()
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> None:
        """Forget a session; callers holding it are unaffected."""
        self._sessions.pop(session_id, None)

    def active_sessions(self) -> list[GenerationSession]:
        """Return sessions that have not reached a terminal state."""
        return [s for s in self._sessions.values() if not s.is_terminal]

    def evict_expired(self, now: datetime | None = None) -> int:
        """Drop terminal sessions older than the TTL and return how many."""
        current = now or datetime.now(tz=UTC)
        cutoff = current - timedelta(seconds=self.ttl_seconds)
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if session.is_terminal and session.updated_at <= cutoff
        ]
        for session_id in expired:
            self._sessions.pop(session_id, None)
        if expired:
            _logger.info("Evicted %s expired sessions", len(expired))
        return len(expired)

    def health(self) -> dict[str, int]:
        """Return registry counters."""
        return {
            "sessions": len(self._sessions),
            "active_sessions": len(self.active_sessions()),
        }
