from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from google.auth.exceptions import GoogleAuthError, TransportError
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
import httplib2
import logging
from .availability import CalendarEvent
from .error_utils import CalendarAuthError, CalendarNotFoundError, CalendarRemoteError, CalendarError

logger = logging.getLogger(__name__)

# Each call asks only for what it needs
READ_SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]
WRITE_SCOPES = ["https://www.googleapis.com/auth/calendar.readonly", "https://www.googleapis.com/auth/calendar.events"]


@dataclass
class CalendarMetadata:
    id: str
    summary: Optional[str]
    time_zone: Optional[str]
    access_role: Optional[str]


@dataclass
class InsertedEvent:
    event_id: str
    html_link: Optional[str]


class CalendarClient(ABC):
    """
    What the HTTP layer needs from the reservations calendar.
    Implementations raise CalendarError subclasses on failure and never retry.
    """

    calendar_id: str

    @abstractmethod
    def list_events(self, time_min: Optional[datetime] = None, time_max: Optional[datetime] = None) -> List[CalendarEvent]:
        """Events overlapping [time_min, time_max), expanded to single instances, ordered by start time."""

    @abstractmethod
    def get_calendar_metadata(self) -> CalendarMetadata:
        """Id, name, timezone and the service account's access role on the calendar."""

    @abstractmethod
    def insert_event(self, payload: Dict[str, Any]) -> InsertedEvent:
        """Creates the event and returns its Google id and link."""


class GoogleCalendarClient(CalendarClient):
    """
    CalendarClient backed by Google Calendar API v3, authenticated as a service account.

    Credentials are loaded from the key file on every call with the narrowest scope for that call, so a revoked
    key or a permission change shows up on the very next request.
    """

    def __init__(self, config):
        self.calendar_id = config.calendar_id
        self._config = config

    def _authorize(self, scopes: List[str]):
        """
        Builds a Calendar service for one call. Raises CalendarAuthError if the key file can't be used.
        """
        try:
            creds = service_account.Credentials.from_service_account_file(
                self._config.service_account_file,
                scopes=scopes,
            )
        except (OSError, ValueError, GoogleAuthError) as e:
            logger.error(f"Could not load service account credentials from {self._config.service_account_file}: {e}")
            raise CalendarAuthError(f"Service account credentials unavailable: {e}", calendar_id=self.calendar_id) from e
        http = AuthorizedHttp(creds, http=httplib2.Http(timeout=self._config.request_timeout))
        return build("calendar", "v3", http=http, cache_discovery=False)

    def _execute(self, request):
        """
        Runs a prepared API request once and converts whatever goes wrong into a CalendarError.
        """
        request.add_response_callback(lambda resp: logger.info(f"HTTP Response code: {resp.status}"))
        try:
            return request.execute()
        except HttpError as e:
            raise self._classify(e) from e
        except TransportError as e:
            # Token endpoint unreachable, not a credential problem
            logger.error(f"Could not reach Google to refresh the service account token: {e!r}")
            raise CalendarRemoteError(f"Could not reach Google Calendar: {e}", calendar_id=self.calendar_id) from e
        except GoogleAuthError as e:
            # Token exchange happens lazily on the first request
            raise CalendarAuthError(f"Service account authentication failed: {e}", calendar_id=self.calendar_id) from e
        except (httplib2.HttpLib2Error, OSError) as e:
            logger.error(f"Transport error talking to Google Calendar: {e!r}")
            raise CalendarRemoteError(f"Could not reach Google Calendar: {e}", calendar_id=self.calendar_id) from e

    def _classify(self, error: HttpError) -> CalendarError:
        status = error.resp.status
        message = getattr(error, "reason", None) or str(error)
        logger.error(f"Google Calendar returned {status} for calendar {self.calendar_id}: {message}")
        if status in (401, 403):
            return CalendarAuthError(message, code=status, calendar_id=self.calendar_id)
        if status == 404:
            return CalendarNotFoundError(message, code=status, calendar_id=self.calendar_id)
        return CalendarRemoteError(message, code=status, calendar_id=self.calendar_id)

    def list_events(self, time_min: Optional[datetime] = None, time_max: Optional[datetime] = None) -> List[CalendarEvent]:
        time_min = time_min or datetime.now(timezone.utc)
        time_max = time_max or time_min + timedelta(days=self._config.availability_window_days)
        logger.info(f"Listing events from {time_min.isoformat()} to {time_max.isoformat()}")

        service = self._authorize(READ_SCOPES)
        items = []
        page_token = None
        while True:
            response = self._execute(service.events().list(
                calendarId=self.calendar_id,
                timeMin=_to_rfc3339(time_min),
                timeMax=_to_rfc3339(time_max),
                singleEvents=True,
                orderBy="startTime",
                pageToken=page_token,
            ))
            items.extend(response.get("items", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Found {len(items)} events")
        return [CalendarEvent.from_google(item) for item in items]

    def get_calendar_metadata(self) -> CalendarMetadata:
        service = self._authorize(READ_SCOPES)
        calendar = self._execute(service.calendars().get(calendarId=self.calendar_id))
        access_role = calendar.get("accessRole")
        if access_role is None:
            # The calendars resource has no access role; the caller's calendar list entry does
            try:
                entry = self._execute(service.calendarList().get(calendarId=self.calendar_id))
                access_role = entry.get("accessRole")
            except CalendarError as e:
                logger.info(f"Calendar list entry unavailable, access role unknown: {e.message}")
        return CalendarMetadata(
            id=calendar.get("id", self.calendar_id),
            summary=calendar.get("summary"),
            time_zone=calendar.get("timeZone"),
            access_role=access_role,
        )

    def insert_event(self, payload: Dict[str, Any]) -> InsertedEvent:
        service = self._authorize(WRITE_SCOPES)
        event = self._execute(service.events().insert(calendarId=self.calendar_id, body=payload))
        logger.info(f"Created event {event.get('id')} on calendar {self.calendar_id}")
        return InsertedEvent(event_id=event["id"], html_link=event.get("htmlLink"))


def _to_rfc3339(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()
