from __future__ import annotations

import enum
from typing import Collection


class Eligibility(str, enum.Enum):
    ACCEPTED = "accepted"
    CLOSED = "closed"
    ALREADY_APPLIED = "already_applied"
    IN_PROGRESS = "in_progress"
    NOT_MEMBER = "not_member"


def evaluate_eligibility(
    gate_open: bool,
    is_admin: bool,
    applied: Collection[int],
    user_id: int,
    active_sessions: Collection[int] = (),
    is_member: bool = True,
) -> Eligibility:
    """Decide whether ``user_id`` may start an interview.

    Administrators bypass the window and the one-application limit, but
    nobody may run two interviews at once. Only members of the configured
    group may apply at all.
    """

    if not is_member and not is_admin:
        return Eligibility.NOT_MEMBER
    if not gate_open and not is_admin:
        return Eligibility.CLOSED
    if not is_admin and user_id in applied:
        return Eligibility.ALREADY_APPLIED
    if user_id in active_sessions:
        return Eligibility.IN_PROGRESS
    return Eligibility.ACCEPTED
