"""
This module governs the status lifecycles of appointments and supply requests.

Both lifecycles are small finite-state machines described by an edge table. A
status change is applied only when (current, target) is an edge of the table;
anything else, including re-entering the current state or leaving a terminal
state, raises `InvalidTransition`.
"""
# healthnet/transitions.py

import logging

from healthnet.errors import InvalidTransition, NotFound, ValidationError
from healthnet.models import (
    APPOINTMENT_PENDING, APPOINTMENT_APPROVED, APPOINTMENT_CANCELLED, APPOINTMENT_FINISHED,
    APPOINTMENT_STATUSES, SUPPLY_PENDING, SUPPLY_APPROVED, SUPPLY_REJECTED, SUPPLY_STATUSES,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

APPOINTMENT_TRANSITIONS = {
    APPOINTMENT_PENDING: {APPOINTMENT_APPROVED, APPOINTMENT_CANCELLED},
    APPOINTMENT_APPROVED: {APPOINTMENT_FINISHED},
    APPOINTMENT_CANCELLED: set(),
    APPOINTMENT_FINISHED: set(),
}

SUPPLY_REQUEST_TRANSITIONS = {
    SUPPLY_PENDING: {SUPPLY_APPROVED, SUPPLY_REJECTED},
    SUPPLY_APPROVED: set(),
    SUPPLY_REJECTED: set(),
}


def is_terminal(table: dict, status: str) -> bool:
    return not table.get(status)


def check_transition(table: dict, current: str, target: str, label: str):
    """Raises `InvalidTransition` unless current -> target is an edge of `table`."""
    if target in table.get(current, set()):
        return
    if is_terminal(table, current):
        raise InvalidTransition(f"The {label} is already {current}.")
    raise InvalidTransition(f"Cannot move {label} from '{current}' to '{target}'.")


class TransitionEngine:
    """Applies status changes to appointments and supply requests held in the store."""

    def __init__(self, store):
        self._store = store

    def transition_appointment(self, appointment_id: str, target: str) -> dict:
        """Moves an appointment to `target`. Status is the only field this changes.

        Returns:
            dict: The updated (live) appointment record.
        """
        appointment = self._store.get('appointments', appointment_id)
        if appointment is None:
            raise NotFound(f"Appointment {appointment_id} not found.")
        if target not in APPOINTMENT_STATUSES:
            raise ValidationError(f"Unknown appointment status '{target}'.")
        check_transition(APPOINTMENT_TRANSITIONS, appointment['status'], target, 'appointment')
        logger.info("Appointment %s: %s -> %s", appointment_id, appointment['status'], target)
        appointment['status'] = target
        return appointment

    def transition_supply_request(self, request_id: str, target: str) -> dict:
        """Approves or rejects a pending supply request. Approval stamps `approved_at`."""
        request = self._store.get('supply_requests', request_id)
        if request is None:
            raise NotFound(f"Supply request {request_id} not found.")
        if target not in SUPPLY_STATUSES:
            raise ValidationError(f"Unknown supply request status '{target}'.")
        check_transition(SUPPLY_REQUEST_TRANSITIONS, request['status'], target, 'supply request')
        logger.info("Supply request %s: %s -> %s", request_id, request['status'], target)
        request['status'] = target
        if target == SUPPLY_APPROVED:
            request['approved_at'] = utc_timestamp()
        return request
