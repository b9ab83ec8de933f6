"""Session management: token to user resolution."""

from datetime import UTC, datetime, timedelta
from typing import Protocol

from cuid2 import cuid_wrapper

from aurora.models.session import Session, UserIdentity

cuid = cuid_wrapper()


class SessionResolver(Protocol):
    """Maps a bearer token to the user it belongs to."""

    async def resolve(self, token: str) -> UserIdentity | None: ...


class InMemorySessionManager:
    """In-memory session manager for development and tests.

    Sessions issued by ``create_session`` expire after a period of inactivity.
    Tokens added with ``register_token`` never expire; they back the
    development token used when no identity provider is configured.
    """

    def __init__(self, session_timeout_minutes: int = 60):
        """Initialize session manager.

        Args:
            session_timeout_minutes: Minutes of inactivity before a session expires
        """
        self.sessions: dict[str, Session] = {}
        self.static_tokens: dict[str, UserIdentity] = {}
        self.session_timeout = timedelta(minutes=session_timeout_minutes)

    def create_session(self, user: UserIdentity) -> Session:
        """Issue a new session token for a user.

        Args:
            user: Identity the token will resolve to

        Returns:
            Newly created session
        """
        self._cleanup_expired_sessions()
        session = Session(session_id=self._generate_session_id(), user=user)
        self.sessions[session.session_id] = session
        return session

    def register_token(self, token: str, user: UserIdentity) -> None:
        """Accept a fixed token for a user until the process exits."""
        self.static_tokens[token] = user

    def get_session(self, session_id: str) -> Session | None:
        """Get existing session by ID.

        Args:
            session_id: Session identifier

        Returns:
            Session if found and not expired, None otherwise
        """
        self._cleanup_expired_sessions()

        session = self.sessions.get(session_id)
        if session:
            session.update_activity()
        return session

    async def resolve(self, token: str) -> UserIdentity | None:
        if token in self.static_tokens:
            return self.static_tokens[token]
        session = self.get_session(token)
        return session.user if session else None

    def _generate_session_id(self) -> str:
        """Generate a new CUID-based session ID."""
        return cuid()

    def _cleanup_expired_sessions(self) -> None:
        """Remove expired sessions from memory."""
        current_time = datetime.now(UTC)
        expired_sessions = [
            session_id
            for session_id, session in self.sessions.items()
            if current_time - session.last_activity > self.session_timeout
        ]

        for session_id in expired_sessions:
            del self.sessions[session_id]
