"""Weekday-preserving reschedule.

When a client falls behind, every uncompleted session dated today or
earlier slides forward to the next free occurrence of its own weekday.
A Monday session stays a Monday session, sessions keep their relative
order, and no two remaining sessions end up on the same day.

Example: today is Thursday 2024-01-11. A Monday (01-08) and a Wednesday
(01-10) session are still open. The Monday session moves to 01-15 and
the Wednesday session to 01-17.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime

from loguru import logger

from coachcal.config.settings import settings
from coachcal.scheduling.blocked_dates import is_blocked, rules_for_client
from coachcal.scheduling.locks import get_lock_manager
from coachcal.scheduling.repository import BlockRuleStore, SessionStore
from coachcal.scheduling.types import (
    BlockRule,
    RemainingSession,
    RescheduleFailure,
    RescheduleResult,
    SessionUpdate,
)
from coachcal.utils.calendar import DAY_NAMES, add_days, day_of_week, next_weekday_on_or_after, normalize_date


def partition_sessions(
    sessions: Iterable[RemainingSession],
    today: date,
) -> tuple[list[RemainingSession], list[RemainingSession]]:
    """Split sessions into (due, already_future) around today.

    Both lists are sorted by scheduled_date; ties keep input order.
    """
    ordered = sorted(sessions, key=lambda session: session.scheduled_date)
    due = [session for session in ordered if session.scheduled_date <= today]
    future = [session for session in ordered if session.scheduled_date > today]
    return due, future


def _is_unusable(day: date, taken: set[date], client_id: str | None, rules: Sequence[BlockRule]) -> bool:
    return day in taken or is_blocked(day, client_id, rules)


def plan_reschedule(
    sessions: Iterable[RemainingSession],
    today: date | datetime,
    *,
    client_id: str | None = None,
    rules: Sequence[BlockRule] = (),
    respect_blocked_dates: bool | None = None,
    max_week_jumps: int | None = None,
) -> RescheduleResult:
    """Compute new dates for every session dated on or before today.

    For each due session, in ascending original-date order:
    1. Find the first day at or after the cursor with the session's original weekday.
    2. While that day is taken by a future session, taken by an earlier update
       of this pass, or blocked, jump exactly one week (at most max_week_jumps times).
    3. Record the update and move the cursor to the day after it.

    A session that finds no usable day within max_week_jumps weeks is reported
    as a no_available_date failure and left where it is.

    Args:
        sessions: The client's uncompleted sessions
        today: Reference day; sessions on or before it are moved
        client_id: Client scope for block rules
        rules: Block rules; ignored when respect_blocked_dates is False
        respect_blocked_dates: Skip blocked days, defaults to settings
        max_week_jumps: Bound on one-week jumps per session, defaults to settings

    Returns:
        RescheduleResult whose moved count equals len(updates). Nothing is persisted.
    """
    today = normalize_date(today)
    if respect_blocked_dates is None:
        respect_blocked_dates = settings.reschedule_respect_blocked_dates
    if max_week_jumps is None:
        max_week_jumps = settings.reschedule_max_week_jumps
    applicable = rules_for_client(rules, client_id) if respect_blocked_dates else []

    due, future = partition_sessions(sessions, today)
    if not due:
        return RescheduleResult()

    taken: set[date] = {session.scheduled_date for session in future}
    updates: list[SessionUpdate] = []
    failures: list[RescheduleFailure] = []
    cursor = add_days(today, 1)

    for session in due:
        target_weekday = day_of_week(session.scheduled_date)
        candidate = next_weekday_on_or_after(cursor, target_weekday)

        jumps = 0
        while _is_unusable(candidate, taken, client_id, applicable) and jumps < max_week_jumps:
            candidate = add_days(candidate, 7)
            jumps += 1

        if _is_unusable(candidate, taken, client_id, applicable):
            logger.warning(
                "[RESCHEDULE] No free weekday slot within jump limit",
                client_id=client_id,
                session_id=session.session_id,
                original_date=session.scheduled_date.isoformat(),
                max_week_jumps=max_week_jumps,
            )
            failures.append(
                RescheduleFailure(
                    session_id=session.session_id,
                    reason="no_available_date",
                    detail=f"no free {DAY_NAMES[target_weekday]} within {max_week_jumps} weeks",
                )
            )
            continue

        taken.add(candidate)
        updates.append(SessionUpdate(session.session_id, session.scheduled_date, candidate))
        cursor = add_days(candidate, 1)

    return RescheduleResult(moved=len(updates), updates=updates, failures=failures)


def reschedule_remaining(
    client_id: str,
    exclude_session_id: str | None,
    today: date | datetime,
    *,
    coach_id: str | None = None,
    store: SessionStore | None = None,
    rule_store: BlockRuleStore | None = None,
    lock_manager=None,
) -> RescheduleResult:
    """Slide the client's overdue sessions forward and persist the new dates.

    Runs under the client's schedule lock. Updates are written one by one in
    the order they were computed; a failed write is logged and reported in
    the result without stopping the remaining writes.

    Args:
        client_id: Client whose plan is adjusted
        exclude_session_id: Session left out of the pass (the one just completed)
        today: Reference day, normalized to a date
        coach_id: Coach whose block rules apply; None limits the pass to the
            client's own rules
        store: Session store, defaults to the SQL store
        rule_store: Block rule store, defaults to the SQL store
        lock_manager: Per-client lock manager, defaults to the configured backend

    Returns:
        RescheduleResult with moved = number of updates actually written
    """
    today = normalize_date(today)
    store = store or SessionStore()
    rule_store = rule_store or BlockRuleStore()
    lock_manager = lock_manager or get_lock_manager()

    with lock_manager.acquire(client_id):
        remaining = store.fetch_remaining(client_id, exclude_session_id)
        if not remaining:
            logger.info("[RESCHEDULE] No remaining sessions to reschedule", client_id=client_id)
            return RescheduleResult()

        respect_blocked_dates = settings.reschedule_respect_blocked_dates
        rules = rule_store.list_rules(client_id=client_id, coach_id=coach_id) if respect_blocked_dates else []

        plan = plan_reschedule(
            remaining,
            today,
            client_id=client_id,
            rules=rules,
            respect_blocked_dates=respect_blocked_dates,
        )
        if not plan.updates:
            logger.info(
                "[RESCHEDULE] No overdue sessions need rescheduling",
                client_id=client_id,
                remaining=len(remaining),
                unplaced=len(plan.failures),
            )
            return plan

        applied: list[SessionUpdate] = []
        failures = list(plan.failures)
        for update in plan.updates:
            try:
                store.update_scheduled_date(update.session_id, update.new_date)
            except Exception as e:
                logger.error(
                    "[RESCHEDULE] Failed to persist new date",
                    error=str(e),
                    error_type=type(e).__name__,
                    client_id=client_id,
                    session_id=update.session_id,
                    new_date=update.new_date.isoformat(),
                )
                failures.append(
                    RescheduleFailure(session_id=update.session_id, reason="persistence_error", detail=str(e))
                )
                continue

            applied.append(update)
            logger.debug(
                "[RESCHEDULE] Session moved",
                client_id=client_id,
                session_id=update.session_id,
                old_date=update.old_date.isoformat(),
                new_date=update.new_date.isoformat(),
            )

    logger.info(
        "[RESCHEDULE] Pass complete",
        client_id=client_id,
        moved=len(applied),
        failed=len(failures),
        today=today.isoformat(),
    )
    return RescheduleResult(moved=len(applied), updates=applied, failures=failures)
