"""
Email Templates Package

HTML reminder templates for stalled applications.
"""
from .email_templates import (
    get_email_template,
    get_base_template,
    get_info_card,
    EmailSubjects,
    TEMPLATE_REGISTRY
)

__all__ = [
    "get_email_template",
    "get_base_template",
    "get_info_card",
    "EmailSubjects",
    "TEMPLATE_REGISTRY"
]
