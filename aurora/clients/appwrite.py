"""Appwrite account lookup used to resolve bearer JWTs to users."""

import httpx

from aurora.models.session import UserIdentity
from aurora.utils.logging import get_logger

logger = get_logger(__name__)


class AppwriteSessionResolver:
    """Resolves an Appwrite JWT by asking Appwrite who the caller is."""

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.project_id = project_id
        self.http = http_client or httpx.AsyncClient(base_url=endpoint.rstrip("/"), timeout=timeout)

    async def resolve(self, token: str) -> UserIdentity | None:
        """Return the account behind the JWT, or None if Appwrite rejects it."""
        try:
            response = await self.http.get(
                "/account",
                headers={"X-Appwrite-Project": self.project_id, "X-Appwrite-JWT": token},
            )
        except httpx.HTTPError as e:
            logger.error(f"Appwrite account lookup failed: {e}")
            return None

        if response.status_code in (401, 403):
            logger.info("Appwrite rejected session token")
            return None
        response.raise_for_status()

        data = response.json()
        return UserIdentity(id=data["$id"], name=data.get("name", ""), email=data.get("email", ""))

    async def close(self) -> None:
        await self.http.aclose()
