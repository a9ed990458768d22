"""Authenticated identity of the caller"""

import logging
from typing import Protocol

from aiohttp import web

from ..models import UserProfile

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
USER_EMAIL_HEADER = "X-User-Email"
FIRST_NAME_HEADER = "X-User-First-Name"
FAMILY_NAME_HEADER = "X-User-Family-Name"


class IdentityProvider(Protocol):
    def profile(self, request: web.Request) -> UserProfile:
        """Return the caller's profile or raise ``web.HTTPUnauthorized``."""
        ...


class HeaderIdentityProvider:
    """Trusts identity headers set by an authenticating reverse proxy."""

    def profile(self, request: web.Request) -> UserProfile:
        user_id = request.headers.get(USER_ID_HEADER, "").strip()
        email = request.headers.get(USER_EMAIL_HEADER, "").strip()
        if not user_id or not email:
            logger.warning(f"Unauthenticated request to {request.path}")
            raise web.HTTPUnauthorized(
                text='{"error": "Unauthorized", "message": "Authentication required"}',
                content_type="application/json",
            )
        return UserProfile(
            id=user_id,
            email=email,
            first_name=request.headers.get(FIRST_NAME_HEADER, "").strip(),
            family_name=request.headers.get(FAMILY_NAME_HEADER, "").strip(),
        )
