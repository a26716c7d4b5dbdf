import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from progressbar.db.base import Base


class AttemptKind(str, enum.Enum):
    viewed = "viewed"
    attempted = "attempted"
    submitted = "submitted"
    finished = "finished"
    posted = "posted"


class CompletionState(str, enum.Enum):
    incomplete = "incomplete"
    complete = "complete"
    complete_pass = "complete_pass"
    complete_fail = "complete_fail"


class CourseModule(Base):
    __tablename__ = "course_modules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), index=True)
    module: Mapped[str] = mapped_column(String(50), index=True)
    name: Mapped[str] = mapped_column(String(255))

    section: Mapped[int] = mapped_column(Integer, default=0)
    position: Mapped[int] = mapped_column(Integer, default=0)

    visible: Mapped[bool] = mapped_column(Boolean, default=True)
    group_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("course_groups.id"), nullable=True)
    available_from: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completion_enabled: Mapped[bool] = mapped_column(Boolean, default=False)


class ActivityAttempt(Base):
    __tablename__ = "activity_attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_module_id: Mapped[int] = mapped_column(Integer, ForeignKey("course_modules.id"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)

    kind: Mapped[AttemptKind] = mapped_column(Enum(AttemptKind), index=True)
    grade: Mapped[float | None] = mapped_column(Float, nullable=True)
    passed: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class ActivityCompletion(Base):
    __tablename__ = "activity_completions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_module_id: Mapped[int] = mapped_column(Integer, ForeignKey("course_modules.id"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    state: Mapped[CompletionState] = mapped_column(Enum(CompletionState), default=CompletionState.incomplete)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    __table_args__ = (UniqueConstraint("course_module_id", "user_id", name="uq_completion_module_user"),)
