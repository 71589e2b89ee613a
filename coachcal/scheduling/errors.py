"""Domain-specific errors for session scheduling.

Nothing-to-do and ran-out-of-room outcomes of the schedulers are reported in
their results, not raised. These errors cover invalid input, strict-mode
placement, and the explicit single-session flows.
"""

from datetime import date


class SchedulingError(Exception):
    """Base exception for all scheduling errors."""

    pass


class InvalidBlockRuleError(SchedulingError, ValueError):
    """Raised when a block rule is neither (or both) date- and weekday-shaped."""

    pass


class NoAvailableDateError(SchedulingError):
    """Raised by strict placement when every day in the search window is blocked.

    Attributes:
        template_id: Template entry that could not be placed
        search_start: First candidate date examined
        window_days: Number of candidate days examined
    """

    def __init__(self, template_id: str, search_start: date, window_days: int):
        self.template_id = template_id
        self.search_start = search_start
        self.window_days = window_days
        super().__init__(
            f"No open date for template {template_id} within {window_days} days of {search_start.isoformat()}"
        )


class ProgramNotFoundError(SchedulingError):
    """Raised when assigning a program that does not exist."""

    pass


class SessionNotFoundError(SchedulingError):
    """Raised when a session id does not exist for the given client."""

    pass


class SessionCompletedError(SchedulingError):
    """Raised when trying to move a session that is already completed."""

    pass


class DateConflictError(SchedulingError):
    """Raised when a manual move would put two remaining sessions on one date."""

    def __init__(self, session_id: str, target_date: date, conflicting_session_id: str):
        self.session_id = session_id
        self.target_date = target_date
        self.conflicting_session_id = conflicting_session_id
        super().__init__(
            f"Session {session_id} cannot move to {target_date.isoformat()}: "
            f"already taken by session {conflicting_session_id}"
        )


class BlockedDateError(SchedulingError):
    """Raised when a manual move targets a blocked date without force."""

    def __init__(self, session_id: str, target_date: date):
        self.session_id = session_id
        self.target_date = target_date
        super().__init__(f"Session {session_id} cannot move to blocked date {target_date.isoformat()}")


class BlockRuleNotFoundError(SchedulingError):
    """Raised when deleting a block rule that does not exist."""

    pass


class ScheduleLockedError(SchedulingError):
    """Raised when another pass holds the client's schedule lock past the timeout."""

    pass
