"""Directory-backed queue of pending (non-versioned) submission records"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from ..error_handling import InvalidRequest, NotFound, StorageIOError, SubmissionExists
from ..models import (
    PendingSubmission,
    RegisteredService,
    SubmissionAuthor,
    SubmissionKind,
    UserProfile,
)
from .authors import AuthorAttributes

logger = logging.getLogger(__name__)


def timestamp() -> str:
    """Timestamp usable in file names and git ref names."""
    return datetime.now().strftime("%Y%m%d%H%M%S%f")


def record_name(kind: SubmissionKind, record_id: Union[int, str]) -> str:
    return f"{kind.value}-{record_id}.json"


class SubmissionQueue:
    """
    One file per pending request in a single directory.

    ``submit-<id>.json``, ``edit-<id>.json`` and ``remove-<id>.json`` hold the
    serialized service; the submitter is kept out of band (see ``authors``).
    """

    def __init__(self, directory: Path):
        self.directory = directory
        self.authors = AuthorAttributes(directory)

    def path_for(self, filename: str) -> Path:
        """Resolve a record name inside the queue, refusing anything that escapes it."""
        if (
            not filename
            or filename.startswith(".")
            or "/" in filename
            or os.sep in filename
            or "\0" in filename
        ):
            raise InvalidRequest(f"Invalid submission name: {filename!r}")
        return self.directory / filename

    def write(
        self,
        filename: str,
        service: RegisteredService,
        author: UserProfile,
        exclusive: bool = False,
    ) -> Path:
        """Store ``service`` under ``filename`` and record ``author`` as its submitter.

        With ``exclusive`` the record must not exist yet; a concurrent writer that
        got there first makes this raise SubmissionExists.
        """
        path = self.path_for(filename)
        mode = "x" if exclusive else "w"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with path.open(mode, encoding="utf-8") as f:
                f.write(service.to_json())
        except FileExistsError as e:
            raise SubmissionExists(f"A pending request named {filename} already exists") from e
        except OSError as e:
            raise StorageIOError(f"Could not write {filename}: {e}") from e
        try:
            self.authors.write(path, author)
        except StorageIOError:
            path.unlink(missing_ok=True)
            raise
        logger.info(f"Queued {filename} for {author.email}", extra={"filename": filename})
        return path

    def read(self, filename: str) -> RegisteredService:
        path = self.path_for(filename)
        try:
            data = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise NotFound(f"No pending request named {filename}") from e
        except OSError as e:
            raise StorageIOError(f"Could not read {filename}: {e}") from e
        try:
            return RegisteredService.from_json(data)
        except ValidationError as e:
            raise StorageIOError(f"Pending request {filename} is not a valid service: {e}") from e

    def author(self, filename: str) -> SubmissionAuthor:
        return self.authors.read(self.path_for(filename))

    def delete(self, filename: str) -> None:
        path = self.path_for(filename)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise NotFound(f"No pending request named {filename}") from e
        except OSError as e:
            raise StorageIOError(f"Could not delete {filename}: {e}") from e
        self.authors.delete(path)
        logger.info(f"Deleted pending request {filename}", extra={"filename": filename})

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()

    def filenames(self) -> list[str]:
        try:
            entries = sorted(self.directory.iterdir())
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageIOError(f"Could not list {self.directory}: {e}") from e
        return [p.name for p in entries if p.is_file() and not p.name.startswith(".")]

    def entries(self, owner: Optional[str] = None) -> list[PendingSubmission]:
        """Describe every pending record, optionally only those submitted by ``owner``."""
        records = []
        for name in self.filenames():
            author = self.authors.read(self.directory / name)
            if owner is not None and author.email != owner:
                continue
            records.append(
                PendingSubmission(
                    filename=name,
                    kind=SubmissionKind.from_filename(name),
                    author=author,
                )
            )
        return records

    def count(self) -> int:
        try:
            return len(self.filenames())
        except StorageIOError as e:
            logger.warning(f"Could not count pending requests: {e}")
            return 0
