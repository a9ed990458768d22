"""Pending submission queue"""

from .authors import (
    ATTRIBUTE_NAME,
    MAX_AUTHOR_LENGTH,
    AuthorAttributes,
    decode_author,
    encode_author,
)
from .store import SubmissionQueue, record_name, timestamp

__all__ = [
    "ATTRIBUTE_NAME",
    "MAX_AUTHOR_LENGTH",
    "AuthorAttributes",
    "SubmissionQueue",
    "decode_author",
    "encode_author",
    "record_name",
    "timestamp",
]
