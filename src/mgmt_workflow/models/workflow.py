"""Pydantic models describing review units and pending submissions"""

from enum import Enum
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, Field

from .services import RegisteredService


class ReviewStatus(str, Enum):
    OPEN = "open"
    MERGED = "merged"
    REJECTED = "rejected"
    REVERTED = "reverted"

    @classmethod
    def from_note(cls, note: Optional[str]) -> "ReviewStatus":
        """Derive a status from the git notes attached to a review unit."""
        if not note:
            return cls.OPEN
        if "REVERTED" in note:
            return cls.REVERTED
        if "ACCEPTED" in note:
            return cls.MERGED
        if "REJECTED" in note:
            return cls.REJECTED
        return cls.OPEN


class BranchRef(BaseModel):
    name: str
    commit: str

    @property
    def short_name(self) -> str:
        return self.name.rsplit("/", 1)[-1]


class ReviewSummary(BaseModel):
    name: str
    title: str
    status: ReviewStatus = ReviewStatus.OPEN
    commit: str
    message: str = ""
    author: str = ""
    committed: Optional[str] = None


class SubmissionKind(str, Enum):
    SUBMIT = "submit"
    EDIT = "edit"
    REMOVE = "remove"
    DRAFT = "draft"

    @classmethod
    def from_filename(cls, filename: str) -> "SubmissionKind":
        for kind in (cls.SUBMIT, cls.EDIT, cls.REMOVE):
            if filename.startswith(f"{kind.value}-"):
                return kind
        return cls.DRAFT


class SubmissionAuthor(BaseModel):
    email: str = ""
    name: str = ""

    @property
    def is_known(self) -> bool:
        return bool(self.email)


class PendingSubmission(BaseModel):
    filename: str
    kind: SubmissionKind
    author: SubmissionAuthor


class EditRequest(BaseModel):
    """Body of a save/edit request.

    ``id`` is either a published service id or the filename of a pending
    submission that should be overwritten.
    """

    id: Union[str, int] = Field(validation_alias=AliasChoices("id", "filename", "left"))
    service: RegisteredService = Field(validation_alias=AliasChoices("service", "right"))
