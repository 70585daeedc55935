"""Domain services."""

from .base import Service
from .handshake_service import HandshakeService
from .identity_service import IdentityDirectoryService
from .notifier import Notifier
from .oauth import OAuthClient

__all__ = [
    "HandshakeService",
    "IdentityDirectoryService",
    "Notifier",
    "OAuthClient",
    "Service",
]
