import enum

from sqlalchemy import Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from progressbar.db.base import Base
from progressbar.models.course import CourseRole


class Permission(str, enum.Enum):
    allow = "allow"
    prohibit = "prohibit"


class CapabilityOverride(Base):
    __tablename__ = "capability_overrides"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), index=True)
    block_instance_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("block_instances.id"), nullable=True)

    role: Mapped[CourseRole] = mapped_column(Enum(CourseRole))
    capability: Mapped[str] = mapped_column(String(100), index=True)
    permission: Mapped[Permission] = mapped_column(Enum(Permission))
