"""Active flight window resolution."""

from datetime import date
from typing import Iterable, Optional

from burst_pacing.models.pacing import Burst, Window


class WindowResolver:
    """
    Derive a line item's effective start and end date.

    The earliest burst start and the latest burst end win; campaign or
    line-item fallback dates are used only for whichever side has no burst
    dates. An unresolved side stays None. It is never replaced with today,
    because that would silently report pacing for a flight nobody booked.
    """

    def resolve(
        self,
        bursts: Iterable[Burst],
        fallback_start: Optional[date] = None,
        fallback_end: Optional[date] = None
    ) -> Window:
        bursts = list(bursts)
        starts = {burst.start_date for burst in bursts}
        ends = {burst.end_date for burst in bursts}

        return Window(
            start_date=min(starts) if starts else fallback_start,
            end_date=max(ends) if ends else fallback_end,
        )
