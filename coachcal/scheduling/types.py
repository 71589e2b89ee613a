"""Value types passed between the schedulers and their stores.

The algorithms only see these frozen dataclasses, never ORM rows, so they
stay pure and can be exercised without a database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Literal

from coachcal.scheduling.errors import InvalidBlockRuleError
from coachcal.utils.calendar import normalize_date

if TYPE_CHECKING:
    from coachcal.db.models import BlockedDate, UserWorkout, WorkoutTemplate


@dataclass(frozen=True)
class BlockRule:
    """A blocked calendar date or a blocked recurring weekday.

    Attributes:
        blocked_date: Specific blocked day (date-shaped rule); a datetime is cut to its day
        blocked_weekday: Recurring blocked weekday, 0 = Sunday (weekday-shaped rule)
        client_id: Client the rule applies to, None for every client
        rule_id: Persisted rule id, if any
    """

    blocked_date: date | None = None
    blocked_weekday: int | None = None
    client_id: str | None = None
    rule_id: str | None = None

    def __post_init__(self) -> None:
        has_date = self.blocked_date is not None
        has_weekday = self.blocked_weekday is not None
        if has_date == has_weekday:
            raise InvalidBlockRuleError("Block rule must set exactly one of blocked_date or blocked_weekday")
        if has_weekday and not 0 <= self.blocked_weekday <= 6:
            raise InvalidBlockRuleError(f"blocked_weekday must be in 0..6, got {self.blocked_weekday}")
        if has_date:
            object.__setattr__(self, "blocked_date", normalize_date(self.blocked_date))

    @classmethod
    def on_date(cls, blocked_date: date, client_id: str | None = None) -> BlockRule:
        return cls(blocked_date=blocked_date, client_id=client_id)

    @classmethod
    def on_weekday(cls, weekday: int, client_id: str | None = None) -> BlockRule:
        return cls(blocked_weekday=weekday, client_id=client_id)

    @classmethod
    def from_row(cls, row: BlockedDate) -> BlockRule:
        return cls(
            blocked_date=row.blocked_date,
            blocked_weekday=row.blocked_day_of_week,
            client_id=row.client_id,
            rule_id=row.id,
        )


@dataclass(frozen=True)
class TemplateEntry:
    """A program workout to instantiate, ordered by (week_number, day_number)."""

    template_id: str
    week_number: int
    day_number: int

    @property
    def ordering_key(self) -> tuple[int, int]:
        return (self.week_number, self.day_number)

    @classmethod
    def from_row(cls, row: WorkoutTemplate) -> TemplateEntry:
        return cls(template_id=row.id, week_number=row.week_number, day_number=row.day_number)


@dataclass(frozen=True)
class SessionDraft:
    """Placement decided for one template entry.

    fallback is True when no open date was found within the search window
    and the draft sits on a date that may be blocked.
    """

    template_id: str
    scheduled_date: date
    fallback: bool = False


@dataclass(frozen=True)
class RemainingSession:
    """An uncompleted session as seen by the reschedule pass."""

    session_id: str
    scheduled_date: date

    @classmethod
    def from_row(cls, row: UserWorkout) -> RemainingSession:
        return cls(session_id=row.id, scheduled_date=row.scheduled_date)


@dataclass(frozen=True)
class SessionUpdate:
    session_id: str
    old_date: date
    new_date: date


FailureReason = Literal["no_available_date", "persistence_error"]


@dataclass(frozen=True)
class RescheduleFailure:
    session_id: str
    reason: FailureReason
    detail: str = ""


@dataclass(frozen=True)
class RescheduleResult:
    """Outcome of a reschedule pass.

    Attributes:
        moved: Number of sessions whose new date was applied
        updates: Updates applied, in the order they were computed
        failures: Sessions left unchanged, with the reason
    """

    moved: int = 0
    updates: list[SessionUpdate] = field(default_factory=list)
    failures: list[RescheduleFailure] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return self.moved == 0 and not self.failures

    @property
    def is_partial(self) -> bool:
        return bool(self.failures)


@dataclass(frozen=True)
class AssignmentResult:
    """Outcome of assigning a program to a client.

    Attributes:
        client_program_id: Id of the created assignment row
        sessions_created: Number of sessions inserted
        fallback_dates: Dates placed without finding an open day
    """

    client_program_id: str
    sessions_created: int
    fallback_dates: list[date] = field(default_factory=list)
