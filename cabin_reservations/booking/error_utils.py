# Custom exceptions to be used throughout the project.

class ReservationServiceError(Exception):
    """
    Base class for every recoverable error raised by the booking package.
    Route handlers catch these at the request boundary and shape them into JSON responses.
    """
    def __init__(self, *args):
        super().__init__(*args)

    @property
    def message(self):
        return str(self.args[0]) if self.args else self.__class__.__name__


class ValidationError(ReservationServiceError):
    """
    To be raised when an incoming reservation request can't be turned into a calendar event.
    Always answered with a 400.
    """


class MissingFieldError(ValidationError):
    """
    To be raised when one or more of the required reservation fields is absent or empty.
    The names of the missing fields are kept on the error for logging, not for the client.
    """
    def __init__(self, missing_fields):
        self.missing_fields = list(missing_fields)
        super().__init__(f"Missing required fields: {', '.join(self.missing_fields)}")


class CalendarError(ReservationServiceError):
    """
    Raised by the calendar client when a call to Google Calendar fails.
    code holds the HTTP status returned by Google when there was one, None otherwise.
    """
    def __init__(self, message, code=None, calendar_id=None):
        super().__init__(message)
        self.code = code
        self.calendar_id = calendar_id


class CalendarAuthError(CalendarError):
    """
    Service account credentials could not be loaded, or Google refused them (401/403).
    """


class CalendarNotFoundError(CalendarError):
    """
    Google answered 404, usually because the configured calendar id is wrong or wasn't shared with the service account.
    """


class CalendarRemoteError(CalendarError):
    """
    Any other failure talking to Google: 5xx, 4xx we don't classify, timeouts, transport errors.
    """


class MalformedEventError(CalendarRemoteError):
    """
    An event resource came back without a usable start or end.
    """
