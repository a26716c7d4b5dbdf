from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import and_, func, literal, select
from sqlalchemy.orm import Session

from progressbar.models.block import BlockInstance, BlockPosition
from progressbar.models.course import Course, Enrolment


BLOCK_NAME = "progress"


@dataclass
class PlacedBlock:
    """A progress block instance with its effective position on the course page."""

    id: int
    block_position_id: int | None
    region: str
    weight: int
    visible: bool
    config_data: str | None


def my_courses(db: Session, user_id: int) -> list[Course]:
    return list(
        db.scalars(
            select(Course)
            .join(Enrolment, Enrolment.course_id == Course.id)
            .where(Enrolment.user_id == user_id, Enrolment.active == True)  # noqa: E712
            .order_by(Course.sort_order, Course.id)
        ).all()
    )


def course_block_instances(db: Session, course_id: int) -> list[PlacedBlock]:
    """All progress blocks of a course, in page layout order (region, weight, id)."""
    region = func.coalesce(BlockPosition.region, BlockInstance.default_region).label("region")
    weight = func.coalesce(BlockPosition.weight, BlockInstance.default_weight).label("weight")
    visible = func.coalesce(BlockPosition.visible, literal(True)).label("visible")

    rows = db.execute(
        select(
            BlockInstance.id,
            BlockPosition.id.label("block_position_id"),
            region,
            weight,
            visible,
            BlockInstance.config_data,
        )
        .outerjoin(
            BlockPosition,
            and_(
                BlockPosition.block_instance_id == BlockInstance.id,
                BlockPosition.page_type.ilike("course-view-%"),
            ),
        )
        .where(BlockInstance.block_name == BLOCK_NAME, BlockInstance.course_id == course_id)
        .order_by(region, weight, BlockInstance.id)
    ).all()

    placed: dict[int, PlacedBlock] = {}
    for bid, pid, reg, wt, vis, config_data in rows:
        if bid in placed:
            continue
        placed[bid] = PlacedBlock(
            id=int(bid),
            block_position_id=int(pid) if pid is not None else None,
            region=str(reg),
            weight=int(wt),
            visible=bool(vis),
            config_data=config_data,
        )
    return list(placed.values())
