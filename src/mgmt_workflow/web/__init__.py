"""HTTP surface of the management workflow"""

from .app import SERVICES, Services, build_services, create_app
from .identity import HeaderIdentityProvider, IdentityProvider

__all__ = [
    "SERVICES",
    "HeaderIdentityProvider",
    "IdentityProvider",
    "Services",
    "build_services",
    "create_app",
]
