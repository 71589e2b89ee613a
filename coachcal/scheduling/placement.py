"""Initial program placement.

Walks the calendar forward from the assignment start date and gives each
program workout, in (week, day) order, the next day that is not blocked for
the client. Two workouts never share a day.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime

from loguru import logger

from coachcal.config.settings import settings
from coachcal.scheduling.blocked_dates import is_blocked, rules_for_client
from coachcal.scheduling.errors import NoAvailableDateError
from coachcal.scheduling.types import BlockRule, SessionDraft, TemplateEntry
from coachcal.utils.calendar import add_days, normalize_date


def find_next_available_date(
    start: date,
    client_id: str | None,
    rules: Sequence[BlockRule],
    window_days: int,
) -> date | None:
    """Return the first unblocked day among the window_days days starting at start.

    Returns:
        The open day, or None if every day in the window is blocked
    """
    candidate = start
    for _ in range(window_days):
        if not is_blocked(candidate, client_id, rules):
            return candidate
        candidate = add_days(candidate, 1)
    return None


def place_program(
    entries: Iterable[TemplateEntry],
    start_date: date | datetime,
    client_id: str | None,
    rules: Iterable[BlockRule],
    *,
    search_window_days: int | None = None,
    strict: bool = False,
) -> list[SessionDraft]:
    """Assign a calendar date to every template entry.

    Entries are sorted by (week_number, day_number) before placement. Each
    entry gets the first unblocked day at or after the cursor, and the cursor
    then moves to the day after it, so output dates strictly increase.

    When every day in the search window is blocked the entry is placed on the
    day the search started from and flagged with fallback=True, unless strict
    is set, in which case NoAvailableDateError is raised.

    Args:
        entries: Program workouts to place
        start_date: First candidate day
        client_id: Client the program is assigned to
        rules: Block rules (may include other clients' rules)
        search_window_days: Days examined per entry, defaults to settings
        strict: Raise instead of falling back

    Returns:
        One SessionDraft per entry, in placement order

    Raises:
        NoAvailableDateError: In strict mode, when the window is exhausted
    """
    window = search_window_days if search_window_days is not None else settings.placement_search_window_days
    applicable = rules_for_client(rules, client_id)
    ordered = sorted(entries, key=lambda entry: entry.ordering_key)

    drafts: list[SessionDraft] = []
    cursor = normalize_date(start_date)

    for entry in ordered:
        found = find_next_available_date(cursor, client_id, applicable, window)

        if found is None:
            if strict:
                raise NoAvailableDateError(entry.template_id, cursor, window)
            logger.warning(
                "[PLACEMENT] No open date in search window, placing on blocked date",
                client_id=client_id,
                template_id=entry.template_id,
                search_start=cursor.isoformat(),
                window_days=window,
            )
            drafts.append(SessionDraft(template_id=entry.template_id, scheduled_date=cursor, fallback=True))
        else:
            drafts.append(SessionDraft(template_id=entry.template_id, scheduled_date=found))
            cursor = found

        cursor = add_days(cursor, 1)

    fallback_count = sum(1 for draft in drafts if draft.fallback)
    logger.info(
        "[PLACEMENT] Program placed",
        client_id=client_id,
        sessions=len(drafts),
        fallbacks=fallback_count,
        first_date=drafts[0].scheduled_date.isoformat() if drafts else None,
        last_date=drafts[-1].scheduled_date.isoformat() if drafts else None,
    )
    return drafts
