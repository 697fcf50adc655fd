"""Appointment lifecycle rules.

    pending ──assign──▶ assigned ──schedule──▶ scheduled ──complete──▶ completed
       │                   │                      │
       └───────cancel──────┴────────cancel────────┴──▶ cancelled

``completed`` and ``cancelled`` are terminal. Each transition also lists the
columns it may write; the service refuses to touch anything else.
"""

from dataclasses import dataclass

from .errors import InvalidTransition

PENDING = "pending"
ASSIGNED = "assigned"
SCHEDULED = "scheduled"
COMPLETED = "completed"
CANCELLED = "cancelled"

TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED})


@dataclass(frozen=True)
class Transition:
    name: str
    sources: frozenset
    target: str
    writes: frozenset


ASSIGN = Transition(
    name="assign",
    sources=frozenset({PENDING}),
    target=ASSIGNED,
    writes=frozenset({"status", "assigned_agent_id", "assigned_at"}),
)

SCHEDULE = Transition(
    name="schedule",
    sources=frozenset({ASSIGNED}),
    target=SCHEDULED,
    writes=frozenset({"status", "scheduled_date", "scheduled_time", "agent_notes"}),
)

COMPLETE = Transition(
    name="complete",
    sources=frozenset({SCHEDULED}),
    target=COMPLETED,
    writes=frozenset({"status", "outcome", "outcome_notes", "completed_at", "agent_notes"}),
)

CANCEL = Transition(
    name="cancel",
    sources=frozenset({PENDING, ASSIGNED, SCHEDULED}),
    target=CANCELLED,
    # priority_number of *other* rows is rewritten by the renumbering step
    writes=frozenset({"status", "agent_notes"}),
)

TRANSITIONS = {t.name: t for t in (ASSIGN, SCHEDULE, COMPLETE, CANCEL)}


def ensure_can_apply(transition: Transition, current_status: str) -> None:
    """Raise InvalidTransition unless ``current_status`` is a legal source."""
    if current_status not in transition.sources:
        raise InvalidTransition(current_status, transition.target)


def apply(appointment, transition: Transition, **changes) -> None:
    """Check the source status, then write ``changes`` plus the new status.

    Changing a column outside ``transition.writes`` is a programming error.
    """
    ensure_can_apply(transition, appointment.status)

    illegal = set(changes) - transition.writes
    if illegal:
        raise ValueError(f"Transition '{transition.name}' may not write {sorted(illegal)}")

    for column, value in changes.items():
        setattr(appointment, column, value)
    appointment.status = transition.target


def append_note(existing, addition):
    """Append text to a notes column without losing what was there."""
    if not addition:
        return existing
    if not existing:
        return addition
    return f"{existing}\n{addition}"
