"""Repository functions for scheduling.

Handles fetching and persisting sessions, block rules and program
assignments. Every public method opens its own database session so that
one failed write never rolls back another.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from loguru import logger
from sqlalchemy import or_, select

from coachcal.db.models import BlockedDate, ClientProgram, Program, UserWorkout, WorkoutTemplate
from coachcal.db.session import get_session
from coachcal.scheduling.errors import BlockRuleNotFoundError, ProgramNotFoundError, SessionNotFoundError
from coachcal.scheduling.types import BlockRule, RemainingSession, SessionDraft, TemplateEntry


class SessionStore:
    """Read/write access to client sessions (user_workouts)."""

    def fetch_remaining(self, client_id: str, exclude_session_id: str | None = None) -> list[RemainingSession]:
        """Get the client's uncompleted sessions ordered by scheduled_date.

        Args:
            client_id: Client whose sessions are fetched
            exclude_session_id: Session to leave out (typically the one just completed)
        """
        with get_session() as db:
            query = select(UserWorkout).where(
                UserWorkout.user_id == client_id,
                UserWorkout.completed.is_(False),
            )
            if exclude_session_id is not None:
                query = query.where(UserWorkout.id != exclude_session_id)
            query = query.order_by(UserWorkout.scheduled_date, UserWorkout.created_at)

            rows = db.execute(query).scalars().all()
            return [RemainingSession.from_row(row) for row in rows]

    def update_scheduled_date(self, session_id: str, new_date: date) -> None:
        """Overwrite one session's scheduled_date.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        with get_session() as db:
            row = db.get(UserWorkout, session_id)
            if row is None:
                raise SessionNotFoundError(f"Session {session_id} not found")
            row.scheduled_date = new_date
            db.flush()

    def get(self, client_id: str, session_id: str) -> UserWorkout:
        """Get one of the client's sessions.

        Raises:
            SessionNotFoundError: If the session does not exist for this client
        """
        with get_session() as db:
            row = db.execute(
                select(UserWorkout).where(UserWorkout.id == session_id, UserWorkout.user_id == client_id)
            ).scalar_one_or_none()
            if row is None:
                raise SessionNotFoundError(f"Session {session_id} not found for client {client_id}")
            db.expunge(row)
            return row

    def mark_completed(self, client_id: str, session_id: str, completed_at: datetime | None = None) -> bool:
        """Mark a session completed.

        Returns:
            True if the session changed state, False if it was already completed

        Raises:
            SessionNotFoundError: If the session does not exist for this client
        """
        with get_session() as db:
            row = db.execute(
                select(UserWorkout).where(UserWorkout.id == session_id, UserWorkout.user_id == client_id)
            ).scalar_one_or_none()
            if row is None:
                raise SessionNotFoundError(f"Session {session_id} not found for client {client_id}")
            if row.completed:
                return False
            row.completed = True
            row.completed_at = completed_at or datetime.now(timezone.utc)
            db.flush()
            return True


class BlockRuleStore:
    """Block rules (blocked_dates). Read-only for the schedulers."""

    def list_rules(self, client_id: str | None = None, coach_id: str | None = None) -> list[BlockRule]:
        """Get block rules.

        Global rules (client_id NULL) belong to the coach who created them,
        so they only apply to a client when the coach is known.

        Args:
            client_id: When set, only rules that apply to this client: its own
                rules, plus the coach's global rules when coach_id is set
            coach_id: When set, only rules owned by this coach
        """
        with get_session() as db:
            query = select(BlockedDate)
            if coach_id is not None:
                query = query.where(BlockedDate.coach_id == coach_id)
            if client_id is not None:
                if coach_id is not None:
                    query = query.where(or_(BlockedDate.client_id.is_(None), BlockedDate.client_id == client_id))
                else:
                    query = query.where(BlockedDate.client_id == client_id)
            query = query.order_by(BlockedDate.blocked_day_of_week, BlockedDate.blocked_date)

            rows = db.execute(query).scalars().all()
            return [BlockRule.from_row(row) for row in rows]

    def add_rule(self, coach_id: str, rule: BlockRule, reason: str | None = None) -> BlockRule:
        with get_session() as db:
            row = BlockedDate(
                coach_id=coach_id,
                blocked_date=rule.blocked_date,
                blocked_day_of_week=rule.blocked_weekday,
                client_id=rule.client_id,
                reason=reason,
            )
            db.add(row)
            db.flush()
            logger.info(
                "[BLOCKED_DATES] Rule added",
                coach_id=coach_id,
                rule_id=row.id,
                client_id=rule.client_id,
            )
            return BlockRule.from_row(row)

    def delete_rule(self, rule_id: str, coach_id: str | None = None) -> None:
        """Delete a block rule.

        Raises:
            BlockRuleNotFoundError: If no matching rule exists
        """
        with get_session() as db:
            row = db.get(BlockedDate, rule_id)
            if row is None or (coach_id is not None and row.coach_id != coach_id):
                raise BlockRuleNotFoundError(f"Block rule {rule_id} not found")
            db.delete(row)
            db.flush()
            logger.info("[BLOCKED_DATES] Rule deleted", rule_id=rule_id, coach_id=coach_id)


class ProgramStore:
    """Programs, their workout templates and client assignments."""

    def get_template_entries(self, program_id: str) -> list[TemplateEntry]:
        """Get a program's templates in (week_number, day_number) order.

        Raises:
            ProgramNotFoundError: If the program does not exist
        """
        with get_session() as db:
            if db.get(Program, program_id) is None:
                raise ProgramNotFoundError(f"Program {program_id} not found")
            rows = db.execute(
                select(WorkoutTemplate)
                .where(WorkoutTemplate.program_id == program_id)
                .order_by(WorkoutTemplate.week_number, WorkoutTemplate.day_number)
            ).scalars().all()
            return [TemplateEntry.from_row(row) for row in rows]

    def get_program_coach(self, program_id: str) -> str:
        """Get the coach who owns a program.

        Raises:
            ProgramNotFoundError: If the program does not exist
        """
        with get_session() as db:
            program = db.get(Program, program_id)
            if program is None:
                raise ProgramNotFoundError(f"Program {program_id} not found")
            return program.coach_id

    def get_client_coach(self, client_id: str) -> str | None:
        """Get the coach responsible for a client.

        Uses the client's most recent assignment: the coach who assigned it,
        else the owner of the assigned program. None if the client has no
        assignment.
        """
        with get_session() as db:
            row = db.execute(
                select(ClientProgram.assigned_by, Program.coach_id)
                .join(Program, Program.id == ClientProgram.program_id)
                .where(ClientProgram.user_id == client_id)
                .order_by(ClientProgram.created_at.desc())
                .limit(1)
            ).first()
            if row is None:
                return None
            assigned_by, owner_id = row
            return assigned_by or owner_id

    def create_assignment_with_sessions(
        self,
        client_id: str,
        program_id: str,
        start_date: date,
        drafts: list[SessionDraft],
        assigned_by: str | None = None,
    ) -> tuple[str, list[str]]:
        """Create the client_programs row and one session per draft in one transaction.

        Either both the assignment and all of its sessions are committed or
        nothing is.

        Returns:
            (client_program_id, session ids in draft order)
        """
        with get_session() as db:
            assignment = ClientProgram(
                user_id=client_id,
                program_id=program_id,
                start_date=start_date,
                assigned_by=assigned_by,
            )
            db.add(assignment)
            sessions = [
                UserWorkout(
                    user_id=client_id,
                    workout_template_id=draft.template_id,
                    scheduled_date=draft.scheduled_date,
                    completed=False,
                )
                for draft in drafts
            ]
            db.add_all(sessions)
            db.flush()
            return assignment.id, [row.id for row in sessions]
