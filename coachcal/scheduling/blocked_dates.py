"""Blocked-date predicate.

A day is unusable for a client when any rule blocks it: either the exact
calendar date or its recurring weekday, scoped to that client or global.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime

from coachcal.scheduling.types import BlockRule
from coachcal.utils.calendar import day_of_week, normalize_date


def rule_applies_to(rule: BlockRule, client_id: str | None) -> bool:
    """Global rules apply to everyone; scoped rules only to their client."""
    return rule.client_id is None or rule.client_id == client_id


def rules_for_client(rules: Iterable[BlockRule], client_id: str | None) -> list[BlockRule]:
    return [rule for rule in rules if rule_applies_to(rule, client_id)]


def is_blocked(day: date | datetime, client_id: str | None, rules: Iterable[BlockRule]) -> bool:
    """Check whether day is blocked for client_id.

    Args:
        day: Calendar day; any time-of-day component is ignored
        client_id: Client scope. None means only global rules are considered.
        rules: Full rule set

    Returns:
        True if at least one applicable rule matches the day

    Raises:
        TypeError: If day is not a date or datetime
    """
    target = normalize_date(day)
    weekday = day_of_week(target)

    for rule in rules:
        if not rule_applies_to(rule, client_id):
            continue
        if rule.blocked_date is not None and rule.blocked_date == target:
            return True
        if rule.blocked_weekday is not None and rule.blocked_weekday == weekday:
            return True
    return False
