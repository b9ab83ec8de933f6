"""Session and identity models."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import BaseModel


class UserIdentity(BaseModel):
    """Authenticated caller."""

    id: str
    name: str = ""
    email: str = ""


@dataclass
class Session:
    """Bearer-token session for a known user."""

    session_id: str
    user: UserIdentity
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def user_id(self) -> str:
        return self.user.id

    def update_activity(self) -> None:
        """Update the last activity timestamp."""
        self.last_activity = datetime.now(UTC)
