"""Controllers for the submission, review and registration workflows"""

from .register import RegistrationController, parse_service_id
from .reviews import ReviewController, review_units_for
from .submissions import SubmissionResult, SubmissionWorkflow

__all__ = [
    "RegistrationController",
    "ReviewController",
    "SubmissionResult",
    "SubmissionWorkflow",
    "parse_service_id",
    "review_units_for",
]
