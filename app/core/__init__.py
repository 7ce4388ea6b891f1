"""
Shared infrastructure for the payments service.

    core.models           BaseModel (created_at / updated_at)
    core.model_mixins     UUIDPrimaryKeyMixin, MetadataMixin
    core.services         BaseService, ServiceResult
    core.exceptions       BaseApplicationError and its HTTP-mapped subclasses
    core.exception_handler  DRF exception handler (REST_FRAMEWORK setting)
    core.views            Health check

Models and mixins are imported from their modules directly; importing
them here would load Django models before the app registry is ready.
"""

from .services import BaseService, ServiceResult

from .exceptions import (
    AuthenticationError,
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
