"""
IdentityResolver: route token -> learner identity.

Never raises for lookup failures; any problem with the user or student
lookup degrades to the guest identity.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from learnsync.core.errors import ApiError, IdentityLookupFailed
from learnsync.core.identity_token import DEFAULT_SALT, decode_token, generate_initials
from learnsync.core.models import GUEST_ID, Identity, Role, StudentOwner
from learnsync.core.tasks import BackgroundTasks
from learnsync.integrations.identity_client import IdentityClient


def _record_id(data: dict[str, Any] | None) -> str | None:
    if not data:
        return None
    value = data.get("_id") or data.get("id")
    return str(value) if value else None


class IdentityResolver:
    """Resolve and cache identities per route token."""

    def __init__(
        self,
        client: IdentityClient,
        tasks: BackgroundTasks | None = None,
        salt: str = DEFAULT_SALT,
    ):
        self.client = client
        self.tasks = tasks
        self.salt = salt
        self._cache: dict[str, Identity] = {}

    async def resolve(self, token: str) -> Identity:
        """
        Resolve a route token.

        Args:
            token: Encoded email, plain email, or "guest"

        Returns:
            The learner identity, or the guest identity on any failure
        """
        cached = self._cache.get(token)
        if cached is not None:
            return cached

        email = decode_token(token, self.salt)
        if email == GUEST_ID:
            identity = Identity.guest()
        else:
            try:
                identity = await self._lookup(email)
            except IdentityLookupFailed as e:
                logger.warning("Could not resolve identity, using guest mode: {}", e)
                identity = Identity.guest(email)
            else:
                self._ping_activity(identity)

        self._cache[token] = identity
        return identity

    async def _lookup(self, email: str) -> Identity:
        try:
            user = await self.client.get_user_by_email(email)
            student = await self.client.get_student_by_email(email)
        except (ApiError, httpx.HTTPError) as e:
            raise IdentityLookupFailed(f"{email}: {e}") from e

        user_id = _record_id(user)
        student_id = _record_id(student)
        if not user_id or not student_id:
            raise IdentityLookupFailed(f"{email}: no linked user/student record")

        name = user.get("name") or user.get("email") or email
        identity = Identity(
            owner=StudentOwner(student_id=student_id),
            email=user.get("email") or email,
            user_id=user_id,
            name=name,
            initials=generate_initials(name, email),
            role=Role.parse(user.get("role")),
        )
        logger.info("Resolved {} as student {} ({})", email, student_id, identity.role.value)
        return identity

    def _ping_activity(self, identity: Identity) -> None:
        if self.tasks is None or identity.is_guest:
            return
        self.tasks.spawn(self._send_ping(identity.student_id), label="activity-ping")

    async def _send_ping(self, student_id: str) -> None:
        try:
            await self.client.ping_activity(student_id)
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Activity ping for {} failed: {}", student_id, e)
