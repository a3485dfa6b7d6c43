# Occupied date computation for the reservations calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional
import logging
from .error_utils import MalformedEventError

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class CalendarEvent:
    """
    A booked span of the calendar reduced to whole days.
    start_date is inclusive, end_date is exclusive, same as Google's all-day event convention.
    """
    start_date: date
    end_date: date
    event_id: Optional[str] = None
    summary: Optional[str] = None

    @classmethod
    def from_google(cls, resource: dict) -> "CalendarEvent":
        """
        Builds a CalendarEvent from a Google Calendar event resource.

        All-day events carry start.date/end.date and map straight across.
        Timed events carry start.dateTime/end.dateTime. They are truncated to the start's calendar day, and the
        exclusive end day is picked so that every day D with start + k days < end is covered. So an event starting
        at any time on D occupies D, and a zero length timed event occupies nothing.

        Raises MalformedEventError if either boundary has neither a date nor a dateTime.
        """
        start = resource.get("start") or {}
        end = resource.get("end") or {}
        event_id = resource.get("id")
        summary = resource.get("summary")

        try:
            if start.get("date") and end.get("date"):
                return cls(date.fromisoformat(start["date"]), date.fromisoformat(end["date"]), event_id, summary)
            if start.get("dateTime") and end.get("dateTime"):
                start_dt = _parse_rfc3339(start["dateTime"])
                end_dt = _parse_rfc3339(end["dateTime"])
                return cls(start_dt.date(), _exclusive_end_date(start_dt, end_dt), event_id, summary)
            # Mixed all-day start with timed end, or the other way around. Google doesn't produce these but
            # truncating both to a date keeps the result on the safe side.
            start_day = _boundary_to_date(start)
            end_day = _boundary_to_date(end)
        except ValueError as e:
            raise MalformedEventError(f"Event {event_id} has an unparseable date: {e}") from e

        if start_day is None or end_day is None:
            raise MalformedEventError(f"Event {event_id} is missing its start or end")
        return cls(start_day, end_day, event_id, summary)

    def days(self):
        """
        Yields every date in [start_date, end_date). Steps by calendar day, never by 24 hours.
        """
        current = self.start_date
        while current < self.end_date:
            yield current
            current += ONE_DAY


def _parse_rfc3339(value: str) -> datetime:
    # fromisoformat only accepts the trailing 'Z' from Python 3.11 onwards
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _exclusive_end_date(start: datetime, end: datetime) -> date:
    # A boundary without an offset is read in the other boundary's offset
    if start.tzinfo is None and end.tzinfo is not None:
        start = start.replace(tzinfo=end.tzinfo)
    elif end.tzinfo is None and start.tzinfo is not None:
        end = end.replace(tzinfo=start.tzinfo)
    if end <= start:
        return start.date()
    # Compare on the start's offset so the day boundary is the event's own
    if end.tzinfo is not None and start.tzinfo is not None:
        end = end.astimezone(start.tzinfo)
    if end.time() > start.time():
        return end.date() + ONE_DAY
    # end is at or before start's time of day, so its own day is never reached
    return end.date()


def _boundary_to_date(boundary: dict) -> Optional[date]:
    if boundary.get("date"):
        return date.fromisoformat(boundary["date"])
    if boundary.get("dateTime"):
        return _parse_rfc3339(boundary["dateTime"]).date()
    return None


def occupied_dates(events: Iterable[CalendarEvent]) -> list[str]:
    """
    Computes the set of occupied days from a sequence of calendar events.

    Input: CalendarEvent objects in the order Google returned them. Overlaps are fine.

    Returns: sorted list of unique ISO dates (YYYY-MM-DD). Empty input gives an empty list.
    """
    occupied = set()
    for event in events:
        occupied.update(event.days())
    logger.info(f"Computed {len(occupied)} occupied dates")
    return [day.isoformat() for day in sorted(occupied)]
