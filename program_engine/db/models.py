from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import JSON, Boolean, Date, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Owner id used for template rows in the layered content tables, so the
# unique constraints hold for them too (NULLs never collide in SQL).
TEMPLATE_OWNER = ""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""


class ProgramRow(Base):
    """Program definition.

    Stores:
    - length and weekend policy used by all range math
    - duration type, focus slots and default task distribution
    - structure_version: optimistic concurrency token for structural saves
    """

    __tablename__ = "programs"

    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    length_days: Mapped[int] = mapped_column(Integer, nullable=False)
    include_weekends: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    duration_type: Mapped[str] = mapped_column(String, nullable=False, default="fixed")
    daily_focus_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    task_distribution: Mapped[str] = mapped_column(String, nullable=False, default="spread")
    structure_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)


class ModuleRow(Base):
    __tablename__ = "program_modules"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    program_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False, default="")
    # "order" is a reserved word in SQL
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    start_day_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    end_day_index: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (Index("idx_program_modules_program_position", "program_id", "position"),)


class WeekRow(Base):
    """Structural week with its template content.

    Template week content lives in ``content`` so it travels with the week
    when weeks are reordered.
    """

    __tablename__ = "program_weeks"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    program_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    module_id: Mapped[str] = mapped_column(String, nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    start_day_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    end_day_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    content: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (Index("idx_program_weeks_program_number", "program_id", "week_number"),)


class DayContentRow(Base):
    """Day content at one layer.

    layer is "template", "cohort" or "client"; owner_id is the cohort or
    enrollment id, or TEMPLATE_OWNER for template rows.
    """

    __tablename__ = "program_day_content"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_id: Mapped[str] = mapped_column(String, nullable=False)
    layer: Mapped[str] = mapped_column(String, nullable=False)
    owner_id: Mapped[str] = mapped_column(String, nullable=False, default=TEMPLATE_OWNER)
    day_index: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("program_id", "layer", "owner_id", "day_index", name="uq_day_content_layer_day"),
        Index("idx_day_content_owner", "layer", "owner_id"),
    )


class WeekOverrideRow(Base):
    __tablename__ = "program_week_overrides"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_id: Mapped[str] = mapped_column(String, nullable=False)
    layer: Mapped[str] = mapped_column(String, nullable=False)
    owner_id: Mapped[str] = mapped_column(String, nullable=False)
    week_id: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("program_id", "layer", "owner_id", "week_id", name="uq_week_override_layer_week"),
    )


class CohortRow(Base):
    __tablename__ = "program_cohorts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    program_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    enrollment_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_enrollment: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_enrollment: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class EnrollmentRow(Base):
    """Program enrollment.

    cycle_started_at holds ISO dates of evergreen cycle restarts, oldest first.
    """

    __tablename__ = "program_enrollments"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    program_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    cohort_id: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="upcoming")
    started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cycle_started_at: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (Index("idx_program_enrollments_user_status", "user_id", "status"),)
