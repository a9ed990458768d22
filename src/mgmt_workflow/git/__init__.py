"""Version control layer for the management workflow"""

from .factory import RepositoryFactory, repository_lock
from .repository import (
    MASTER_BRANCH,
    UPSTREAM_MASTER,
    RepositoryHandle,
    RepositoryKind,
    unit_title,
)

__all__ = [
    "MASTER_BRANCH",
    "UPSTREAM_MASTER",
    "RepositoryFactory",
    "RepositoryHandle",
    "RepositoryKind",
    "repository_lock",
    "unit_title",
]
