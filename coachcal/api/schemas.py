"""API contract schemas for scheduling endpoints."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field, model_validator

from coachcal.scheduling.types import BlockRule, RescheduleResult


class AssignProgramRequest(BaseModel):
    """Coach assigns a program to a client."""

    program_id: str = Field(description="Program to assign")
    start_date: date = Field(description="First day a workout may be placed on")
    assigned_by: str | None = Field(default=None, description="Coach performing the assignment")
    strict: bool = Field(default=False, description="Fail instead of placing workouts on blocked days")


class AssignProgramResponse(BaseModel):
    client_program_id: str
    sessions_created: int
    fallback_dates: list[date] = Field(description="Days placed without finding an open slot")


class CompleteSessionRequest(BaseModel):
    today: date = Field(description="Client's current local date")


class MoveSessionRequest(BaseModel):
    new_date: date = Field(description="Target day")
    force: bool = Field(default=False, description="Allow a blocked target day")


class SessionUpdateResponse(BaseModel):
    session_id: str
    old_date: date
    new_date: date


class RescheduleFailureResponse(BaseModel):
    session_id: str
    reason: str
    detail: str


class RescheduleResponse(BaseModel):
    """Summary the client shows after a reschedule pass."""

    moved: int
    status: str = Field(description="'noop', 'success' or 'partial'")
    updates: list[SessionUpdateResponse]
    failures: list[RescheduleFailureResponse]

    @classmethod
    def from_result(cls, result: RescheduleResult) -> RescheduleResponse:
        if result.is_noop:
            status = "noop"
        elif result.is_partial:
            status = "partial"
        else:
            status = "success"
        return cls(
            moved=result.moved,
            status=status,
            updates=[
                SessionUpdateResponse(session_id=u.session_id, old_date=u.old_date, new_date=u.new_date)
                for u in result.updates
            ],
            failures=[
                RescheduleFailureResponse(session_id=f.session_id, reason=f.reason, detail=f.detail)
                for f in result.failures
            ],
        )


class BlockRuleCreate(BaseModel):
    """A blocked date or a blocked recurring weekday (0 = Sunday)."""

    blocked_date: date | None = Field(default=None, description="Specific blocked day")
    blocked_day_of_week: int | None = Field(default=None, ge=0, le=6, description="Recurring blocked weekday, 0 = Sunday")
    client_id: str | None = Field(default=None, description="Client the block applies to, null for all clients")
    reason: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def validate_shape(self) -> BlockRuleCreate:
        if (self.blocked_date is None) == (self.blocked_day_of_week is None):
            raise ValueError("Set exactly one of blocked_date or blocked_day_of_week")
        return self

    def to_rule(self) -> BlockRule:
        return BlockRule(
            blocked_date=self.blocked_date,
            blocked_weekday=self.blocked_day_of_week,
            client_id=self.client_id,
        )


class BlockRuleResponse(BaseModel):
    id: str | None
    blocked_date: date | None
    blocked_day_of_week: int | None
    client_id: str | None

    @classmethod
    def from_rule(cls, rule: BlockRule) -> BlockRuleResponse:
        return cls(
            id=rule.rule_id,
            blocked_date=rule.blocked_date,
            blocked_day_of_week=rule.blocked_weekday,
            client_id=rule.client_id,
        )
