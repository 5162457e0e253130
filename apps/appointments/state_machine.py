# apps/appointments/state_machine.py
"""
Legal appointment status transitions.

The table below is the single source of truth: completed, cancelled and
no_show have no outgoing edges, and each edge names the roles allowed to
take it. Ownership (the patient or the assigned doctor) is checked on top
of the role.
"""
from core.constants import (
    AppointmentStatus, TERMINAL_STATUSES, UserRoles
)
from core.exceptions import AlreadyTerminal, Forbidden, InvalidStatus

STAFF = (UserRoles.DOCTOR, UserRoles.ADMIN)
PARTICIPANTS = (UserRoles.PATIENT, UserRoles.DOCTOR, UserRoles.ADMIN)

TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.CONFIRMED: STAFF,
        AppointmentStatus.CANCELLED: PARTICIPANTS,
        AppointmentStatus.COMPLETED: STAFF,
        AppointmentStatus.NO_SHOW: STAFF,
    },
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.CANCELLED: PARTICIPANTS,
        AppointmentStatus.COMPLETED: STAFF,
        AppointmentStatus.NO_SHOW: STAFF,
    },
    AppointmentStatus.COMPLETED: {},
    AppointmentStatus.CANCELLED: {},
    AppointmentStatus.NO_SHOW: {},
}


def parse_status(value):
    if value not in AppointmentStatus.values:
        raise InvalidStatus(f"Unrecognized status: {value}")
    return AppointmentStatus(value)


def is_participant(user, appointment):
    if user.role == UserRoles.ADMIN:
        return True
    if user.role == UserRoles.DOCTOR:
        return appointment.doctor_id == user.pk
    if user.role == UserRoles.PATIENT:
        return appointment.patient_id == user.pk
    return False


def check_transition(appointment, new_status, actor):
    """Validate a move and return the parsed target status

    Order matters: an unknown target is InvalidStatus, outsiders are
    Forbidden, a closed appointment is AlreadyTerminal, then the edge
    and finally the actor's role on that edge.
    """
    target = parse_status(new_status)
    current = AppointmentStatus(appointment.status)

    if not is_participant(actor, appointment):
        raise Forbidden("Not authorized to modify this appointment")

    if current in TERMINAL_STATUSES:
        raise AlreadyTerminal(
            f"Cannot change status. Appointment is already {current.label.lower()}"
        )

    allowed_roles = TRANSITIONS[current].get(target)

    if allowed_roles is None:
        raise InvalidStatus(f"Cannot change status from {current.value} to {target.value}")

    if actor.role not in allowed_roles:
        raise Forbidden(f"A {actor.role} cannot mark an appointment as {target.label.lower()}")

    return target


def releases_slot(status):
    """Whether reaching this status frees the doctor's slot"""
    return status in TERMINAL_STATUSES
