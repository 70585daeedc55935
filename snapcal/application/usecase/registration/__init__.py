"""Registration use cases."""

from .complete_link import CompleteLinkUseCase
from .get_registration_status import GetRegistrationStatusUseCase
from .initiate_link import InitiateLinkUseCase

__all__ = [
    "CompleteLinkUseCase",
    "GetRegistrationStatusUseCase",
    "InitiateLinkUseCase",
]
