from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class Program(Base):
    """Multi-week training program authored by a coach."""

    __tablename__ = "programs"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    coach_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))


class WorkoutTemplate(Base):
    """One workout definition inside a program.

    (week_number, day_number) defines the order in which templates are
    placed on a client's calendar when the program is assigned.
    """

    __tablename__ = "workout_templates"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    program_id: Mapped[str] = mapped_column(String, ForeignKey("programs.id"), nullable=False, index=True)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")


class ClientProgram(Base):
    """Assignment of a program to a client, starting on a given date."""

    __tablename__ = "client_programs"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    program_id: Mapped[str] = mapped_column(String, ForeignKey("programs.id"), nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    assigned_by: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))


class UserWorkout(Base):
    """A scheduled occurrence of a workout template for one client.

    scheduled_date is the only field the schedulers mutate. Once completed
    is True the row is no longer considered for rescheduling.
    """

    __tablename__ = "user_workouts"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    workout_template_id: Mapped[str] = mapped_column(String, ForeignKey("workout_templates.id"), nullable=False)
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_user_workouts_user_completed_date", "user_id", "completed", "scheduled_date"),
    )


class BlockedDate(Base):
    """Coach-configured exclusion of a calendar date or a recurring weekday.

    Exactly one of blocked_date / blocked_day_of_week is set.
    blocked_day_of_week uses 0 = Sunday ... 6 = Saturday.
    client_id NULL means the block applies to every client of the coach.
    """

    __tablename__ = "blocked_dates"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    coach_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    blocked_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    blocked_day_of_week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    client_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
