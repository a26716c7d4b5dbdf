from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from progressbar.db.base import Base


class BlockInstance(Base):
    __tablename__ = "block_instances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    block_name: Mapped[str] = mapped_column(String(40), index=True, default="progress")

    # Parent is either a course page or a user's dashboard.
    course_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("courses.id"), nullable=True, index=True)
    owner_user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    page_type_pattern: Mapped[str] = mapped_column(String(64), default="course-view-*")
    default_region: Mapped[str] = mapped_column(String(16), default="side-pre")
    default_weight: Mapped[int] = mapped_column(Integer, default=0)

    config_data: Mapped[str | None] = mapped_column(Text, nullable=True)


class BlockPosition(Base):
    __tablename__ = "block_positions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    block_instance_id: Mapped[int] = mapped_column(Integer, ForeignKey("block_instances.id"), index=True)
    page_type: Mapped[str] = mapped_column(String(64))
    region: Mapped[str] = mapped_column(String(16))
    weight: Mapped[int] = mapped_column(Integer, default=0)
    visible: Mapped[bool] = mapped_column(Boolean, default=True)
