"""Out-of-band authorship metadata for pending submission records.

Each record ``<dir>/<name>`` has a companion ``<dir>/.authors/<name>`` holding
the raw UTF-8 bytes ``"<email>:<first name> <family name>"``. Only the first
``MAX_AUTHOR_LENGTH`` bytes are ever read back.
"""

import logging
from pathlib import Path

from ..error_handling import StorageIOError
from ..models import SubmissionAuthor, UserProfile

logger = logging.getLogger(__name__)

ATTRIBUTE_NAME = "original_author"
AUTHORS_DIR = ".authors"
MAX_AUTHOR_LENGTH = 100


def encode_author(user: UserProfile) -> bytes:
    return f"{user.email}:{user.first_name} {user.family_name}".encode("utf-8")


def decode_author(raw: bytes) -> SubmissionAuthor:
    """Decode stored bytes; a multi-byte character cut by the length bound is dropped."""
    text = raw[:MAX_AUTHOR_LENGTH].decode("utf-8", errors="ignore").strip()
    email, _, name = text.partition(":")
    return SubmissionAuthor(email=email, name=name)


class AuthorAttributes:
    """Reads and writes the ``original_author`` attribute of queue files."""

    def __init__(self, directory: Path):
        self.directory = directory / AUTHORS_DIR

    def _path(self, record: Path) -> Path:
        return self.directory / record.name

    def write(self, record: Path, user: UserProfile) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._path(record).write_bytes(encode_author(user))
        except OSError as e:
            raise StorageIOError(f"Could not record the author of {record.name}: {e}") from e

    def read(self, record: Path) -> SubmissionAuthor:
        """Return the recorded author, or an empty identity when it can not be read."""
        try:
            with self._path(record).open("rb") as f:
                return decode_author(f.read(MAX_AUTHOR_LENGTH))
        except OSError as e:
            logger.error(
                f"Could not read {ATTRIBUTE_NAME} of {record.name}: {e}",
                exc_info=True,
                extra={"filename": record.name},
            )
            return SubmissionAuthor()

    def delete(self, record: Path) -> None:
        try:
            self._path(record).unlink(missing_ok=True)
        except OSError as e:
            raise StorageIOError(f"Could not remove the author of {record.name}: {e}") from e
