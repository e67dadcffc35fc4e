"""Transition Resolver - Fixed transition table for the application lifecycle"""
from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..domain.enums import (
    ApplicationState, ApplicationEvent, ApplicationActionType, TERMINAL_STATES
)
from ..domain.errors import InvalidTransitionError


@dataclass(frozen=True)
class Transition:
    """Table entry: where an event leads and what the audit row records"""
    next_state: ApplicationState
    action_type: ApplicationActionType


S = ApplicationState
E = ApplicationEvent
A = ApplicationActionType

# Any (state, event) pair missing from this table is rejected.
# The two edit rows out of review states deliberately send the application back to DRAFT.
TRANSITION_TABLE: Dict[Tuple[ApplicationState, ApplicationEvent], Transition] = {
    (S.DRAFT, E.SUBMIT): Transition(S.INSTITUTIONAL_REP_REVIEW, A.SUBMIT_DRAFT),
    (S.DRAFT, E.EDIT): Transition(S.DRAFT, A.EDIT_DRAFT),
    (S.DRAFT, E.CLOSE): Transition(S.CLOSED, A.CLOSE),

    (S.INSTITUTIONAL_REP_REVIEW, E.CLOSE): Transition(S.CLOSED, A.CLOSE),
    (S.INSTITUTIONAL_REP_REVIEW, E.EDIT): Transition(S.DRAFT, A.WITHDRAW),
    (S.INSTITUTIONAL_REP_REVIEW, E.REVISION_REQUEST): Transition(
        S.REP_REVISION, A.INSTITUTIONAL_REP_REVISION_REQUEST
    ),
    (S.INSTITUTIONAL_REP_REVIEW, E.SUBMIT): Transition(S.DAC_REVIEW, A.INSTITUTIONAL_REP_APPROVED),

    (S.REP_REVISION, E.SUBMIT): Transition(S.INSTITUTIONAL_REP_REVIEW, A.INSTITUTIONAL_REP_SUBMIT),

    (S.DAC_REVIEW, E.APPROVE): Transition(S.APPROVED, A.DAC_REVIEW_APPROVED),
    (S.DAC_REVIEW, E.CLOSE): Transition(S.CLOSED, A.CLOSE),
    (S.DAC_REVIEW, E.EDIT): Transition(S.DRAFT, A.WITHDRAW),
    (S.DAC_REVIEW, E.REVISION_REQUEST): Transition(
        S.DAC_REVISIONS_REQUESTED, A.DAC_REVIEW_REVISION_REQUEST
    ),
    (S.DAC_REVIEW, E.REJECT): Transition(S.REJECTED, A.DAC_REVIEW_REJECTED),

    (S.DAC_REVISIONS_REQUESTED, E.SUBMIT): Transition(S.DAC_REVIEW, A.DAC_REVIEW_SUBMIT),

    (S.APPROVED, E.REVOKED): Transition(S.REVOKED, A.REVOKE),
}

del S, E, A


def apply_event(current_state: ApplicationState, event: ApplicationEvent) -> Transition:
    """
    Look up the transition for an event in the current state

    Args:
        current_state: State the application is in
        event: Requested event

    Returns:
        The matching Transition

    Raises:
        InvalidTransitionError: If the pair is not in the table
    """
    transition = TRANSITION_TABLE.get((current_state, event))
    if transition is None:
        raise InvalidTransitionError(
            f"Cannot {event.value} an application in state {current_state.value}",
            details={
                "current_state": current_state.value,
                "event": event.value,
                "allowed_events": [e.value for e in allowed_events(current_state)],
            }
        )
    return transition


def allowed_events(state: ApplicationState) -> List[ApplicationEvent]:
    """Events accepted from a state, in table order"""
    return [event for (from_state, event) in TRANSITION_TABLE if from_state == state]


def is_terminal(state: ApplicationState) -> bool:
    """True if no event can leave this state"""
    return state in TERMINAL_STATES
