"""
Call State Machine

Valid status transitions per agent action, and the one mapping from stored
status to UI label.
"""

import enum
from typing import Dict, List, Optional, Tuple

from db.models import Call, CallStatus


class CallAction(str, enum.Enum):
    ANSWER = "answer"
    END = "end"
    MARK_UNATTENDED = "mark_unattended"
    MARK_CALLBACK = "mark_callback"
    RESET = "reset"


# key = action, value = statuses the action may start from
ALLOWED_FROM: Dict[CallAction, List[CallStatus]] = {
    CallAction.ANSWER: [
        CallStatus.NEW,
        CallStatus.CALLED,
        CallStatus.UNATTENDED,
        CallStatus.CALLBACK,
    ],
    CallAction.END: [CallStatus.IN_PROGRESS],
    CallAction.MARK_UNATTENDED: [CallStatus.NEW, CallStatus.IN_PROGRESS],
    CallAction.MARK_CALLBACK: [CallStatus.NEW, CallStatus.IN_PROGRESS],
    CallAction.RESET: [
        CallStatus.IN_PROGRESS,
        CallStatus.CALLED,
        CallStatus.UNATTENDED,
        CallStatus.CALLBACK,
        CallStatus.COMPLETED,
    ],
}

TERMINAL_STATUSES = (CallStatus.COMPLETED,)

STATUS_LABELS: Dict[CallStatus, str] = {
    CallStatus.NEW: "Dial",
    CallStatus.IN_PROGRESS: "In Progress",
    CallStatus.CALLED: "Called",
    CallStatus.UNATTENDED: "Unattended",
    CallStatus.CALLBACK: "Callback",
    CallStatus.COMPLETED: "Completed",
}


def can_transition(current: CallStatus, action: CallAction) -> Tuple[bool, str]:
    """
    Check if an action is allowed from the current status.

    Returns (ok, reason).
    """
    allowed = ALLOWED_FROM.get(action, [])
    if current not in allowed:
        allowed_names = [s.value for s in allowed]
        return False, f"Cannot {action.value} a call in status {current.value}. Allowed from: {allowed_names}"
    return True, "OK"


def next_status(current: CallStatus, action: CallAction, has_order: bool = False) -> CallStatus:
    """
    Resolve the status an action leads to.

    End Call splits on whether an order (original or upsell) was placed.
    Raises ValueError for an illegal transition.
    """
    ok, reason = can_transition(current, action)
    if not ok:
        raise ValueError(reason)

    if action == CallAction.ANSWER:
        return CallStatus.IN_PROGRESS
    if action == CallAction.END:
        return CallStatus.COMPLETED if has_order else CallStatus.CALLED
    if action == CallAction.MARK_UNATTENDED:
        return CallStatus.UNATTENDED
    if action == CallAction.MARK_CALLBACK:
        return CallStatus.CALLBACK
    return CallStatus.NEW


def is_terminal(status: CallStatus) -> bool:
    return status in TERMINAL_STATUSES


def status_label(status: CallStatus) -> str:
    return STATUS_LABELS[CallStatus(status)]


def order_label(call: Call) -> Optional[str]:
    """'Purchased' for a completed upsell, 'Reservation' for any other completed call."""
    if call.status != CallStatus.COMPLETED.value:
        return None
    return "Purchased" if call.is_upsell else "Reservation"
