"""
Custom Exception Classes for EdgeCMS

This module defines custom exceptions for consistent error responses
across the HTTP layer and for the failure taxonomy of the release and
rollback workflows.

Workflow errors fall into two groups:
- fatal business errors (mixing in ``NonRetryableError``) abort a workflow
  immediately, without retry
- everything else raised inside a step is treated as transient and is
  retried according to that step's policy
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes returned in error responses."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATION_DUPLICATE_RESOURCE = "VALIDATION_DUPLICATE_RESOURCE"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    VERSION_NOT_FOUND = "RESOURCE_VERSION_NOT_FOUND"
    LANGUAGE_NOT_FOUND = "RESOURCE_LANGUAGE_NOT_FOUND"
    WORKFLOW_NOT_FOUND = "RESOURCE_WORKFLOW_NOT_FOUND"
    INVALID_STATUS_TRANSITION = "VERSION_INVALID_STATUS_TRANSITION"
    NO_DRAFT_VERSION = "RELEASE_NO_DRAFT_VERSION"
    NO_DEFAULT_LANGUAGE = "RELEASE_NO_DEFAULT_LANGUAGE"
    BACKUP_NOT_FOUND = "ROLLBACK_BACKUP_NOT_FOUND"
    BACKUP_MALFORMED = "ROLLBACK_BACKUP_MALFORMED"
    WORKFLOW_IN_PROGRESS = "WORKFLOW_IN_PROGRESS"
    STEP_TIMEOUT = "WORKFLOW_STEP_TIMEOUT"
    STEP_FAILED = "WORKFLOW_STEP_FAILED"
    STORAGE_ERROR = "STORAGE_ERROR"


class CMSException(Exception):
    """Base exception class for all EdgeCMS exceptions"""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if error_code is not None:
            self.error_code = error_code
        super().__init__(self.message)


class NonRetryableError(Exception):
    """Marker for errors a workflow step must not retry."""


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(CMSException):
    """Base class for resource not found errors"""

    error_code = ErrorCode.RESOURCE_NOT_FOUND

    def __init__(self, resource_type: str, resource_id: Any | None = None):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class VersionNotFoundError(NonRetryableError, ResourceNotFoundError):
    """Raised when a version is not found"""

    error_code = ErrorCode.VERSION_NOT_FOUND

    def __init__(self, version_id: Any | None = None):
        super().__init__(resource_type="Version", resource_id=version_id)


class LanguageNotFoundError(ResourceNotFoundError):
    """Raised when a language is not found"""

    error_code = ErrorCode.LANGUAGE_NOT_FOUND

    def __init__(self, locale: Any | None = None):
        super().__init__(resource_type="Language", resource_id=locale)


class WorkflowNotFoundError(ResourceNotFoundError):
    """Raised when a workflow instance is not found"""

    error_code = ErrorCode.WORKFLOW_NOT_FOUND

    def __init__(self, instance_id: Any | None = None):
        super().__init__(resource_type="Workflow", resource_id=instance_id)


# ============================================================================
# Validation & Business Logic Exceptions
# ============================================================================


class ValidationError(CMSException):
    """Raised when input validation fails"""

    error_code = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=error_details)


class DuplicateResourceError(CMSException):
    """Raised when attempting to create a duplicate resource"""

    error_code = ErrorCode.VALIDATION_DUPLICATE_RESOURCE

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource_type": resource_type, "field": field, "value": value},
        )


class InvalidStatusTransitionError(NonRetryableError, CMSException):
    """Raised when an invalid status transition is attempted"""

    error_code = ErrorCode.INVALID_STATUS_TRANSITION

    def __init__(self, current_status: str, target_status: str, resource_type: str = "Version"):
        super().__init__(
            message=f"Cannot transition {resource_type} from '{current_status}' to '{target_status}'",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"resource_type": resource_type, "current_status": current_status, "target_status": target_status},
        )


class NoDraftVersionError(NonRetryableError, CMSException):
    """Raised when a release is requested but there is no draft to publish"""

    error_code = ErrorCode.NO_DRAFT_VERSION

    def __init__(self, message: str = "No draft version found"):
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


class NoDefaultLanguageError(NonRetryableError, CMSException):
    """Raised when no language is flagged as default"""

    error_code = ErrorCode.NO_DEFAULT_LANGUAGE

    def __init__(self, message: str = "No default language found"):
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


class BackupNotFoundError(NonRetryableError, CMSException):
    """Raised when a version has no backup artifact to restore from"""

    error_code = ErrorCode.BACKUP_NOT_FOUND

    def __init__(self, path: str):
        super().__init__(
            message=f"Backup file not found: {path}",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"path": path},
        )


class MalformedBackupError(NonRetryableError, CMSException):
    """Raised when a backup artifact cannot be decoded"""

    error_code = ErrorCode.BACKUP_MALFORMED

    def __init__(self, message: str = "Backup data is malformed"):
        super().__init__(message=message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class WorkflowInProgressError(CMSException):
    """Raised when a release or rollback is already queued or running"""

    error_code = ErrorCode.WORKFLOW_IN_PROGRESS

    def __init__(self, instance_id: str, workflow: str):
        super().__init__(
            message=f"Workflow '{workflow}' ({instance_id}) is already in progress",
            status_code=status.HTTP_409_CONFLICT,
            details={"instance_id": instance_id, "workflow": workflow},
        )


# ============================================================================
# Workflow Step Exceptions
# ============================================================================


class StepTimeoutError(CMSException):
    """Raised when a single step attempt exceeds its timeout"""

    error_code = ErrorCode.STEP_TIMEOUT

    def __init__(self, step: str, timeout: float):
        super().__init__(
            message=f"Step '{step}' timed out after {timeout}s",
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            details={"step": step, "timeout": timeout},
        )


class StepFailedError(CMSException):
    """Raised when a step exhausts its retry budget"""

    error_code = ErrorCode.STEP_FAILED

    def __init__(self, step: str, attempts: int, cause: BaseException):
        self.step = step
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            message=f"Step '{step}' failed after {attempts} attempt(s): {cause}",
            details={"step": step, "attempts": attempts, "cause": type(cause).__name__},
        )


# ============================================================================
# Storage Exceptions
# ============================================================================


class StorageError(CMSException):
    """Raised when the artifact store rejects an operation"""

    error_code = ErrorCode.STORAGE_ERROR

    def __init__(self, message: str, path: str | None = None):
        details = {"path": path} if path else {}
        super().__init__(message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, details=details)
