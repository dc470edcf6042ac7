"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks shared by the domain apps (chat,
notifications, authentication). No messaging logic lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - TransientStoreError: Database unavailable after bounded retries
    - ExternalServiceError: Third-party service failures

Decorators (import from core.decorators):
    - retry_on_transient: Bounded retry with backoff for store operations

Note:
    Models and decorators are NOT imported here because they depend on
    Django's app registry or settings being ready.
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ExternalServiceError,
    TransientStoreError,
)

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "TransientStoreError",
    "ExternalServiceError",
]
