"""Workflow Engine - State machine, audit log, revision requests and the submit gate"""
from .state_machine import ApplicationWorkflow
from .transition_resolver import TRANSITION_TABLE, Transition, apply_event, allowed_events, is_terminal
from .audit_log import AuditLog
from .revision_workflow import RevisionRequestWorkflow
from .validation_gate import ContentValidator, validate_application_content

__all__ = [
    "ApplicationWorkflow",
    "TRANSITION_TABLE",
    "Transition",
    "apply_event",
    "allowed_events",
    "is_terminal",
    "AuditLog",
    "RevisionRequestWorkflow",
    "ContentValidator",
    "validate_application_content",
]
