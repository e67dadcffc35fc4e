"""
API Middleware

- correlation: X-Correlation-Id propagation and request timing logs
- error_handlers: Maps DomainError, storage and request validation failures to JSON responses
"""

from .correlation import CorrelationIdMiddleware
from .error_handlers import register_error_handlers

__all__ = ["CorrelationIdMiddleware", "register_error_handlers"]
