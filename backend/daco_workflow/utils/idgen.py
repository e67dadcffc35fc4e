"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique ID with optional prefix

    Args:
        prefix: Optional prefix for the ID (e.g., 'APP', 'ACT')

    Returns:
        Unique ID string

    Examples:
        >>> generate_id('APP')
        'APP-a1b2c3d4e5f6'
        >>> generate_id()
        'a1b2c3d4e5f6'
    """
    unique_part = uuid.uuid4().hex[:12]

    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part


def generate_application_id() -> str:
    """Generate application ID"""
    return generate_id("APP")


def generate_action_id() -> str:
    """Generate application action (audit record) ID"""
    return generate_id("ACT")


def generate_revision_request_id() -> str:
    """Generate revision request ID"""
    return generate_id("REV")


def generate_ledger_entry_id() -> str:
    """Generate notification ledger entry ID"""
    return generate_id("NTF")


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"
