"""Read access to the published service registry"""

import logging
from typing import List, Protocol

from pydantic import ValidationError

from .error_handling import NotFound
from .git import MASTER_BRANCH, RepositoryFactory
from .models import RegisteredService

logger = logging.getLogger(__name__)


class ServiceRegistry(Protocol):
    def find_by_id(self, service_id: int) -> RegisteredService:
        """Return the published service with ``service_id`` or raise NotFound."""
        ...


class RepositoryServiceRegistry:
    """Looks services up in the JSON definitions on the canonical repository's master."""

    def __init__(self, factory: RepositoryFactory, revision: str = MASTER_BRANCH):
        self.factory = factory
        self.revision = revision

    def services(self) -> List[RegisteredService]:
        services = []
        with self.factory.master() as master:
            for path, content in master.read_files(self.revision, ".json"):
                try:
                    services.append(RegisteredService.model_validate_json(content))
                except ValidationError as e:
                    logger.warning(f"Skipping {path}, not a service definition: {e}")
        return services

    def find_by_id(self, service_id: int) -> RegisteredService:
        for service in self.services():
            if service.id == service_id:
                return service
        raise NotFound(f"No published service with id {service_id}")
