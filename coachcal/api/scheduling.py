"""Scheduling API endpoints.

Thin HTTP layer over SchedulingService. Scheduling errors map to:
- 404: unknown program, session or block rule
- 409: date conflict, completed session, blocked date, busy schedule lock
- 422: no open date in strict placement
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from coachcal.api.schemas import (
    AssignProgramRequest,
    AssignProgramResponse,
    BlockRuleCreate,
    BlockRuleResponse,
    CompleteSessionRequest,
    MoveSessionRequest,
    RescheduleResponse,
    SessionUpdateResponse,
)
from coachcal.scheduling.errors import (
    BlockedDateError,
    BlockRuleNotFoundError,
    DateConflictError,
    NoAvailableDateError,
    ProgramNotFoundError,
    ScheduleLockedError,
    SchedulingError,
    SessionCompletedError,
    SessionNotFoundError,
)
from coachcal.scheduling.service import SchedulingService

router = APIRouter(prefix="/scheduling", tags=["scheduling"])

_ERROR_STATUS: dict[type[SchedulingError], int] = {
    ProgramNotFoundError: status.HTTP_404_NOT_FOUND,
    SessionNotFoundError: status.HTTP_404_NOT_FOUND,
    BlockRuleNotFoundError: status.HTTP_404_NOT_FOUND,
    DateConflictError: status.HTTP_409_CONFLICT,
    SessionCompletedError: status.HTTP_409_CONFLICT,
    BlockedDateError: status.HTTP_409_CONFLICT,
    ScheduleLockedError: status.HTTP_409_CONFLICT,
    NoAvailableDateError: 422,
}


def get_scheduling_service() -> SchedulingService:
    return SchedulingService()


def _to_http_error(error: SchedulingError) -> HTTPException:
    status_code = _ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST)
    logger.info(f"[SCHEDULING_API] {type(error).__name__} -> {status_code}")
    return HTTPException(status_code=status_code, detail=str(error))


@router.post("/clients/{client_id}/programs", response_model=AssignProgramResponse, status_code=status.HTTP_201_CREATED)
def assign_program(
    client_id: str,
    request: AssignProgramRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Assign a program and place its workouts on the client's calendar."""
    try:
        result = service.assign_program(
            client_id,
            request.program_id,
            request.start_date,
            assigned_by=request.assigned_by,
            strict=request.strict,
        )
    except SchedulingError as e:
        raise _to_http_error(e) from e

    return AssignProgramResponse(
        client_program_id=result.client_program_id,
        sessions_created=result.sessions_created,
        fallback_dates=result.fallback_dates,
    )


@router.post("/clients/{client_id}/sessions/{session_id}/complete", response_model=RescheduleResponse)
def complete_session(
    client_id: str,
    session_id: str,
    request: CompleteSessionRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Mark a session completed and reschedule the client's overdue sessions."""
    try:
        result = service.complete_session(client_id, session_id, request.today)
    except SchedulingError as e:
        raise _to_http_error(e) from e
    return RescheduleResponse.from_result(result)


@router.patch("/clients/{client_id}/sessions/{session_id}", response_model=SessionUpdateResponse)
def move_session(
    client_id: str,
    session_id: str,
    request: MoveSessionRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Move one session to an explicit date."""
    try:
        update = service.move_session(client_id, session_id, request.new_date, force=request.force)
    except SchedulingError as e:
        raise _to_http_error(e) from e
    return SessionUpdateResponse(session_id=update.session_id, old_date=update.old_date, new_date=update.new_date)


@router.get("/coaches/{coach_id}/blocked-dates", response_model=list[BlockRuleResponse])
def list_blocked_dates(
    coach_id: str,
    client_id: str | None = None,
    service: SchedulingService = Depends(get_scheduling_service),
):
    rules = service.list_block_rules(coach_id=coach_id, client_id=client_id)
    return [BlockRuleResponse.from_rule(rule) for rule in rules]


@router.post("/coaches/{coach_id}/blocked-dates", response_model=BlockRuleResponse, status_code=status.HTTP_201_CREATED)
def add_blocked_date(
    coach_id: str,
    request: BlockRuleCreate,
    service: SchedulingService = Depends(get_scheduling_service),
):
    rule = service.add_block_rule(coach_id, request.to_rule(), request.reason)
    return BlockRuleResponse.from_rule(rule)


@router.delete("/coaches/{coach_id}/blocked-dates/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blocked_date(
    coach_id: str,
    rule_id: str,
    service: SchedulingService = Depends(get_scheduling_service),
) -> None:
    try:
        service.delete_block_rule(coach_id, rule_id)
    except SchedulingError as e:
        raise _to_http_error(e) from e
