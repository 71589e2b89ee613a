"""Scheduling core.

- Blocked-date predicate (blocked_dates.is_blocked)
- Initial program placement (placement.place_program)
- Weekday-preserving reschedule (reschedule.plan_reschedule / reschedule_remaining)
"""
