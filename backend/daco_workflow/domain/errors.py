"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Authentication Errors
class AuthenticationError(DomainError):
    """Token missing, invalid, or expired"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class IncompleteApplicationError(ValidationError):
    """Application content failed the submit validation gate"""
    error_code = "INCOMPLETE_APPLICATION"


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class ApplicationNotFoundError(NotFoundError):
    """Application not found"""
    error_code = "APPLICATION_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict (e.g., concurrent modification)"""
    error_code = "CONFLICT"
    http_status = 409


class ConcurrencyError(ConflictError):
    """Optimistic concurrency conflict - application changed since it was read"""
    error_code = "CONCURRENT_MODIFICATION"


class InvalidTransitionError(ConflictError):
    """Event not allowed from the application's current state"""
    error_code = "INVALID_TRANSITION"


class SectionLockedError(ConflictError):
    """Section was approved in the latest revision request and cannot change"""
    error_code = "SECTION_LOCKED"


class ApplicationNotEditableError(ConflictError):
    """Content cannot change in the application's current state"""
    error_code = "APPLICATION_NOT_EDITABLE"


# Storage Errors
class PersistenceError(DomainError):
    """Storage layer failure"""
    error_code = "PERSISTENCE_ERROR"
    http_status = 503


# External Service Errors
class ExternalServiceError(DomainError):
    """External service failure"""
    error_code = "EXTERNAL_SERVICE_ERROR"
    http_status = 502


class NotificationSendError(ExternalServiceError):
    """Notification dispatch failed"""
    error_code = "NOTIFICATION_SEND_ERROR"
