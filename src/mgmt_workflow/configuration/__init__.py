"""Configuration module for the service management workflow.

Configuration is an explicit object handed to every component at construction
time, built from Pydantic models so that values are typed and validated once
at startup.

Configuration hierarchy:
    ```python
    class ManagementConfig(BaseSettings):
        submissions_dir: Path
        master_repository: Path
        user_repositories_dir: Path
        version_control_enabled: bool
        notifications: NotificationSettings
        ...
    ```

Environment variable binding:
    ```bash
    export MGMT_SUBMISSIONS_DIR=/var/cas/submissions
    export MGMT_MASTER_REPOSITORY=/var/cas/services-repo
    export MGMT_USER_REPOSITORIES_DIR=/var/cas/user-repos
    export MGMT_VERSION_CONTROL_ENABLED=true
    export MGMT_MAIL_ENABLED=false
    export MGMT_NOTIFICATIONS__SUBMIT__SUBJECT="Registration of {0} received"
    ```

Usage examples:
    >>> from mgmt_workflow.configuration import load_config
    >>> config = load_config()
    >>> config.submissions_dir
    PosixPath('/var/cas/submissions')
"""

import logging
from pathlib import Path
from typing import Any, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class NotificationTemplate(BaseModel):
    """Subject and body of a notification, with positional ``{0}`` placeholders."""

    subject: str
    text: str

    def render(self, *args: Any) -> Tuple[str, str]:
        return self.subject.format(*args), self.text.format(*args)


class NotificationSettings(BaseModel):
    submit: NotificationTemplate = NotificationTemplate(
        subject="Service Registration Request Received",
        text="Your request to register {0} has been received and will be reviewed.",
    )
    change: NotificationTemplate = NotificationTemplate(
        subject="Service Change Request Received",
        text="Your request to change {0} has been received and will be reviewed.",
    )
    remove: NotificationTemplate = NotificationTemplate(
        subject="Service Removal Request Received",
        text="Your request to remove {0} has been received and will be reviewed.",
    )
    revert: NotificationTemplate = NotificationTemplate(
        subject="Submission {0} Reverted",
        text="Your submission {0} has been reverted.",
    )
    delegated_submit: NotificationTemplate = NotificationTemplate(
        subject="Submission {0} Created",
        text="Your changes have been submitted for review.",
    )


class ManagementConfig(BaseSettings):
    """Every setting reads from ``MGMT_<NAME>``; nested fields use ``__``."""

    model_config = SettingsConfigDict(env_prefix="MGMT_", env_nested_delimiter="__", case_sensitive=False)

    submissions_dir: Path = Path("submissions")
    master_repository: Path = Path("services-repo")
    user_repositories_dir: Path = Path("user-repos")
    version_control_enabled: bool = True
    operation_timeout_seconds: float = Field(default=30.0, gt=0)
    register_base: str = "register"
    mail_enabled: bool = False
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    host: str = "127.0.0.1"
    port: int = Field(default=8080, gt=0, lt=65536)
    log_level: str = "INFO"


def load_config(env_file: Optional[Path] = None, **overrides: Any) -> ManagementConfig:
    """Build the configuration from .env files, the environment and overrides.

    Precedence (highest first): keyword overrides, variables already present in
    the environment, the explicit ``env_file``, the project ``.env`` file.
    """
    for candidate in (env_file, Path.cwd() / ".env"):
        if candidate and candidate.exists():
            # Never override variables already present in the environment
            load_dotenv(candidate, override=False)
            logger.info(f"Loaded environment variables from {candidate}")

    config = ManagementConfig(**overrides)
    logger.debug(f"Configuration loaded: {config.model_dump(mode='json')}")
    return config


__all__ = [
    "ManagementConfig",
    "NotificationSettings",
    "NotificationTemplate",
    "load_config",
]
