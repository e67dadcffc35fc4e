"""Service modules - Business logic layer"""
from .application_service import ApplicationService
from .notification_service import NotificationService

__all__ = [
    "ApplicationService",
    "NotificationService",
]
