from __future__ import annotations

from datetime import datetime
from typing import Callable, Sequence

from ...common.datetime_utils import start_of_day
from ...core.enums import EventType, PolicyViolation
from ..model import Admission, AttendanceEvent
from .base import AdmissionStrategy, has_out_after, latest_of_type


class CheckInStrategy(AdmissionStrategy):
    """IN: refuse while today's latest IN has no OUT after it.

    Only the candidate's calendar day is inspected, so an IN left open on a previous
    day does not block the user forever when their OUT scan never arrived.
    """

    def admit(
        self,
        *,
        history: Sequence[AttendanceEvent],
        at: datetime,
        new_session_id: Callable[[], str],
    ) -> Admission:
        todays_in = latest_of_type(history, EventType.IN, since=start_of_day(at))
        if todays_in is not None and not has_out_after(history, todays_in):
            return Admission.reject(PolicyViolation.ALREADY_CHECKED_IN)
        return Admission.accept(new_session_id())
