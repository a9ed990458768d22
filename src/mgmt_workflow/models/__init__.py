"""
Workflow models

Pydantic models for services, user profiles, review units and queued
submissions.
"""

from .services import RegisteredService, ServiceContact, UserProfile
from .workflow import (
    BranchRef,
    EditRequest,
    PendingSubmission,
    ReviewStatus,
    ReviewSummary,
    SubmissionAuthor,
    SubmissionKind,
)

__all__ = [
    "BranchRef",
    "EditRequest",
    "PendingSubmission",
    "RegisteredService",
    "ReviewStatus",
    "ReviewSummary",
    "ServiceContact",
    "SubmissionAuthor",
    "SubmissionKind",
    "UserProfile",
]
