from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from progressbar.models.block import BlockInstance
from progressbar.models.course import CourseRole, Enrolment, GroupMember
from progressbar.models.user import User
from progressbar.services.attempts import AttemptService, progress_percentage
from progressbar.services.bar import progress_bar
from progressbar.services.block_config import decode_config
from progressbar.services.capabilities import CapabilityChecker
from progressbar.services.events import EventService


class OverviewService:
    """Teacher view: every student's bar for one block instance."""

    def __init__(self, db: Session, checker: CapabilityChecker | None = None):
        self.db = db
        self.checker = checker or CapabilityChecker(db)
        self.events = EventService(db, self.checker)
        self.attempts = AttemptService(db)

    def _students(self, course_id: int, group_id: int | None) -> list[User]:
        stmt = (
            select(User)
            .join(Enrolment, Enrolment.user_id == User.id)
            .where(
                Enrolment.course_id == course_id,
                Enrolment.active == True,  # noqa: E712
                Enrolment.role == CourseRole.student,
                User.deleted == False,  # noqa: E712
            )
            .order_by(User.lastname, User.firstname, User.id)
        )
        if group_id:
            stmt = stmt.join(GroupMember, GroupMember.user_id == User.id).where(GroupMember.group_id == group_id)
        return list(self.db.scalars(stmt).all())

    def build(self, instance: BlockInstance, *, group_id: int | None = None, now: datetime | None = None) -> dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        course_id = int(instance.course_id)
        config = decode_config(instance.config_data, block_id=instance.id)

        # The block's own group restriction narrows the list further.
        if config is not None and config.group and not group_id:
            group_id = config.group

        modules = self.events.modules_in_use(course_id)
        events = self.events.event_information(config, modules, course_id) or []
        students = self._students(course_id, group_id)
        attempts = self.attempts.attempts_for_users(events, [u.id for u in students])

        rows = []
        for u in students:
            visible = self.events.filter_visibility(events, u, course_id, now=now)
            user_attempts = attempts.get(u.id, {})
            rows.append(
                {
                    "user_id": u.id,
                    "fullname": u.fullname,
                    "last_access_at": u.last_access_at.isoformat() if u.last_access_at else None,
                    "progress": progress_percentage(visible, user_attempts),
                    "bar": progress_bar(config, visible, u.id, instance.id, user_attempts, now=now) if (config and visible) else "",
                }
            )

        return {
            "block_id": instance.id,
            "course_id": course_id,
            "title": (config.progress_title.strip() if config else "") or "",
            "group": group_id or None,
            "events": len(events),
            "rows": rows,
        }
