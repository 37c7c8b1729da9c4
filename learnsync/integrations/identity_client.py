"""
Identity service client: users, students and activity pings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

from .api_client import ApiClient


class IdentityClient(ApiClient):
    """HTTP client for user and student lookups."""

    async def get_user_by_email(self, email: str) -> dict[str, Any]:
        return await self._get("/users/by-email", params={"email": email})

    async def get_student_by_email(self, email: str) -> dict[str, Any]:
        return await self._get(f"/students/email/{quote(email, safe='')}")

    async def ping_activity(self, student_id: str) -> dict[str, Any] | None:
        """Record that the student is active right now."""
        return await self._patch(
            f"/students/{student_id}/activity",
            {"lastActivity": datetime.now(timezone.utc).isoformat()},
        )
