"""Catpoint Services"""

from .security_service import (
    SecurityService,
    SecurityServiceConfig,
    TransitionResult,
    TransitionTrigger,
)
from .repository import (
    SecurityRepository,
    InMemorySecurityRepository,
    JsonFileSecurityRepository,
)
from .exceptions import (
    CatpointError,
    UnknownSensorError,
    DuplicateSensorError,
    CollaboratorFailure,
    RepositoryError,
)

__all__ = [
    # Security Service
    'SecurityService',
    'SecurityServiceConfig',
    'TransitionResult',
    'TransitionTrigger',
    # Repository
    'SecurityRepository',
    'InMemorySecurityRepository',
    'JsonFileSecurityRepository',
    # Errors
    'CatpointError',
    'UnknownSensorError',
    'DuplicateSensorError',
    'CollaboratorFailure',
    'RepositoryError',
]
