from __future__ import annotations

from datetime import datetime
from typing import Callable, Sequence

from ...core.enums import EventType
from ..model import Admission, AttendanceEvent
from .base import AdmissionStrategy, has_out_after, latest_of_type


class CheckOutStrategy(AdmissionStrategy):
    """OUT: close the most recent unmatched IN (any day); otherwise start a session of its own.

    An OUT without a prior IN is accepted, not rejected.
    """

    def admit(
        self,
        *,
        history: Sequence[AttendanceEvent],
        at: datetime,
        new_session_id: Callable[[], str],
    ) -> Admission:
        last_in = latest_of_type(history, EventType.IN)
        if last_in is not None and not has_out_after(history, last_in) and last_in.session_id:
            return Admission.accept(last_in.session_id)
        return Admission.accept(new_session_id())
