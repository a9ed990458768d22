"""Pydantic models for registered services and the users who manage them"""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class ServiceContact(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    email: Optional[str] = None


class RegisteredService(BaseModel):
    """A registered service definition.

    Only ``id``, ``name``, ``contacts`` and ``environments`` are inspected by the
    workflow; every other field is carried through untouched.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int = 0
    name: str = ""
    contacts: list[ServiceContact] = Field(default_factory=list)
    # Draft-only restriction, removed when a service is promoted
    environments: Optional[list[str]] = None

    def owner(self, email: str) -> Optional[ServiceContact]:
        """Return the contact whose email matches ``email`` (case-insensitive)."""
        if not email:
            return None
        for contact in self.contacts:
            if contact.email and contact.email.lower() == email.lower():
                return contact
        return None

    def is_owned_by(self, email: str) -> bool:
        return self.owner(email) is not None

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, exclude_none=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> "RegisteredService":
        return cls.model_validate_json(data)


class UserProfile(BaseModel):
    """Authenticated user as seen by the workflow (read-only)."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    first_name: str = ""
    family_name: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.family_name}".strip()
