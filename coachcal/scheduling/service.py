"""Scheduling flows triggered by coach and client actions.

- assign_program: coach assigns a multi-week program to a client
- complete_session: client finishes a workout, overdue sessions slide forward
- move_session: coach moves one session to an explicit date
- add/delete/list block rules: coach manages blocked dates
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from loguru import logger

from coachcal.scheduling.blocked_dates import is_blocked
from coachcal.scheduling.errors import BlockedDateError, DateConflictError, SessionCompletedError
from coachcal.scheduling.locks import get_lock_manager
from coachcal.scheduling.placement import place_program
from coachcal.scheduling.repository import BlockRuleStore, ProgramStore, SessionStore
from coachcal.scheduling.reschedule import reschedule_remaining
from coachcal.scheduling.types import AssignmentResult, BlockRule, RescheduleResult, SessionUpdate
from coachcal.utils.calendar import normalize_date


class SchedulingService:
    """Entry point for every scheduling write.

    Stores and the lock manager are injectable so the flows can be driven
    against fakes in tests.
    """

    def __init__(
        self,
        sessions: SessionStore | None = None,
        block_rules: BlockRuleStore | None = None,
        programs: ProgramStore | None = None,
        lock_manager=None,
    ) -> None:
        self.sessions = sessions or SessionStore()
        self.block_rules = block_rules or BlockRuleStore()
        self.programs = programs or ProgramStore()
        self.lock_manager = lock_manager or get_lock_manager()

    def assign_program(
        self,
        client_id: str,
        program_id: str,
        start_date: date | datetime,
        *,
        assigned_by: str | None = None,
        strict: bool = False,
    ) -> AssignmentResult:
        """Assign a program and place all of its workouts on the client's calendar.

        Args:
            client_id: Client receiving the program
            program_id: Program to assign
            start_date: First day a workout may be placed on
            assigned_by: Coach performing the assignment; their global blocked dates apply,
                defaulting to the program owner
            strict: Fail instead of placing a workout on a blocked day

        Returns:
            AssignmentResult; fallback_dates lists days placed without an open slot

        Raises:
            ProgramNotFoundError: If the program does not exist
            NoAvailableDateError: In strict mode, if a workout cannot be placed
        """
        start = normalize_date(start_date)
        logger.info(
            "[ASSIGN] Program assignment started",
            client_id=client_id,
            program_id=program_id,
            start_date=start.isoformat(),
        )

        entries = self.programs.get_template_entries(program_id)
        coach_id = assigned_by or self.programs.get_program_coach(program_id)
        rules = self.block_rules.list_rules(client_id=client_id, coach_id=coach_id)

        with self.lock_manager.acquire(client_id):
            drafts = place_program(entries, start, client_id, rules, strict=strict)
            assignment_id, session_ids = self.programs.create_assignment_with_sessions(
                client_id, program_id, start, drafts, assigned_by=assigned_by
            )

        fallback_dates = [draft.scheduled_date for draft in drafts if draft.fallback]
        if fallback_dates:
            logger.warning(
                "[ASSIGN] Some workouts were placed on blocked dates",
                client_id=client_id,
                program_id=program_id,
                fallback_count=len(fallback_dates),
            )
        logger.info(
            "[ASSIGN] Program assignment committed",
            client_id=client_id,
            program_id=program_id,
            client_program_id=assignment_id,
            sessions_created=len(session_ids),
        )
        return AssignmentResult(
            client_program_id=assignment_id,
            sessions_created=len(session_ids),
            fallback_dates=fallback_dates,
        )

    def complete_session(
        self,
        client_id: str,
        session_id: str,
        today: date | datetime,
        *,
        completed_at: datetime | None = None,
    ) -> RescheduleResult:
        """Mark a session completed and slide the client's overdue sessions forward.

        Completing a session twice does not trigger a second reschedule.

        Raises:
            SessionNotFoundError: If the session does not exist for this client
        """
        changed = self.sessions.mark_completed(client_id, session_id, completed_at or datetime.now(timezone.utc))
        if not changed:
            logger.info("[COMPLETE] Session already completed, skipping reschedule", client_id=client_id, session_id=session_id)
            return RescheduleResult()

        return reschedule_remaining(
            client_id,
            session_id,
            today,
            coach_id=self.programs.get_client_coach(client_id),
            store=self.sessions,
            rule_store=self.block_rules,
            lock_manager=self.lock_manager,
        )

    def move_session(
        self,
        client_id: str,
        session_id: str,
        new_date: date | datetime,
        *,
        force: bool = False,
    ) -> SessionUpdate:
        """Move one session to an explicit date.

        Args:
            client_id: Session owner
            session_id: Session to move
            new_date: Target day
            force: Allow a blocked target day

        Raises:
            SessionNotFoundError: If the session does not exist for this client
            SessionCompletedError: If the session is already completed
            DateConflictError: If another remaining session is on the target day
            BlockedDateError: If the target day is blocked and force is False
        """
        target = normalize_date(new_date)

        with self.lock_manager.acquire(client_id):
            row = self.sessions.get(client_id, session_id)
            if row.completed:
                raise SessionCompletedError(f"Session {session_id} is completed and cannot be moved")

            for other in self.sessions.fetch_remaining(client_id, exclude_session_id=session_id):
                if other.scheduled_date == target:
                    raise DateConflictError(session_id, target, other.session_id)

            if not force:
                rules = self.block_rules.list_rules(client_id=client_id, coach_id=self.programs.get_client_coach(client_id))
                if is_blocked(target, client_id, rules):
                    raise BlockedDateError(session_id, target)

            old_date = row.scheduled_date
            self.sessions.update_scheduled_date(session_id, target)

        logger.info(
            "[MOVE] Session moved by coach",
            client_id=client_id,
            session_id=session_id,
            old_date=old_date.isoformat(),
            new_date=target.isoformat(),
            forced=force,
        )
        return SessionUpdate(session_id=session_id, old_date=old_date, new_date=target)

    def add_block_rule(self, coach_id: str, rule: BlockRule, reason: str | None = None) -> BlockRule:
        return self.block_rules.add_rule(coach_id, rule, reason)

    def delete_block_rule(self, coach_id: str, rule_id: str) -> None:
        self.block_rules.delete_rule(rule_id, coach_id=coach_id)

    def list_block_rules(self, coach_id: str | None = None, client_id: str | None = None) -> list[BlockRule]:
        return self.block_rules.list_rules(client_id=client_id, coach_id=coach_id)
