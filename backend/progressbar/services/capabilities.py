from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from progressbar.models.capability import CapabilityOverride, Permission
from progressbar.models.course import CourseRole, Enrolment, GroupMember
from progressbar.models.user import User


CAP_SHOWBAR = "block/progress:showbar"
CAP_OVERVIEW = "block/progress:overview"
CAP_BLOCK_EDIT = "moodle/block:edit"
CAP_ACCESS_ALL_GROUPS = "moodle/site:accessallgroups"
CAP_VIEW_HIDDEN_ACTIVITIES = "moodle/course:viewhiddenactivities"

_STAFF = frozenset({CourseRole.teacher, CourseRole.editingteacher, CourseRole.manager})

DEFAULT_CAPABILITIES: dict[str, frozenset[CourseRole]] = {
    CAP_SHOWBAR: frozenset({CourseRole.student}) | _STAFF,
    CAP_OVERVIEW: _STAFF,
    CAP_BLOCK_EDIT: frozenset({CourseRole.editingteacher, CourseRole.manager}),
    CAP_ACCESS_ALL_GROUPS: _STAFF,
    CAP_VIEW_HIDDEN_ACTIVITIES: _STAFF,
}


@dataclass(frozen=True)
class Context:
    """Where a capability is evaluated: a course, or one block inside it."""

    course_id: int | None
    block_instance_id: int | None = None

    @classmethod
    def course(cls, course_id: int | None) -> "Context":
        return cls(course_id=course_id)

    @classmethod
    def block(cls, course_id: int | None, block_instance_id: int) -> "Context":
        return cls(course_id=course_id, block_instance_id=block_instance_id)


class CapabilityChecker:
    """Request-scoped capability and group lookups.

    Results are memoised for the lifetime of the checker, which matches one
    page render.
    """

    def __init__(self, db: Session):
        self.db = db
        self._roles: dict[tuple[int, int], CourseRole | None] = {}
        self._overrides: dict[int, list[CapabilityOverride]] = {}
        self._groups: dict[int, set[int]] = {}

    def role_in_course(self, user_id: int, course_id: int) -> CourseRole | None:
        key = (user_id, course_id)
        if key not in self._roles:
            self._roles[key] = self.db.scalar(
                select(Enrolment.role).where(
                    Enrolment.user_id == user_id,
                    Enrolment.course_id == course_id,
                    Enrolment.active == True,  # noqa: E712
                )
            )
        return self._roles[key]

    def _course_overrides(self, course_id: int) -> list[CapabilityOverride]:
        if course_id not in self._overrides:
            self._overrides[course_id] = list(
                self.db.scalars(select(CapabilityOverride).where(CapabilityOverride.course_id == course_id)).all()
            )
        return self._overrides[course_id]

    def has_capability(self, user: User | None, capability: str, context: Context) -> bool:
        if user is None or user.is_guest or user.deleted:
            return False
        if user.is_site_admin:
            return True
        if context.course_id is None:
            return False

        role = self.role_in_course(user.id, context.course_id)
        if role is None:
            return False

        overrides = [
            o for o in self._course_overrides(context.course_id) if o.role == role and o.capability == capability
        ]
        # Block level overrides win over course level ones.
        if context.block_instance_id is not None:
            for o in overrides:
                if o.block_instance_id == context.block_instance_id:
                    return o.permission == Permission.allow
        for o in overrides:
            if o.block_instance_id is None:
                return o.permission == Permission.allow

        return role in DEFAULT_CAPABILITIES.get(capability, frozenset())

    def user_group_ids(self, user_id: int) -> set[int]:
        if user_id not in self._groups:
            self._groups[user_id] = set(
                self.db.scalars(select(GroupMember.group_id).where(GroupMember.user_id == user_id)).all()
            )
        return self._groups[user_id]

    def is_group_member(self, group_id: int, user_id: int) -> bool:
        return int(group_id) in self.user_group_ids(user_id)

    def excluded_by_group(self, group_id: int | None, user: User, context: Context) -> bool:
        """True when a group restriction hides content from the user."""
        if not group_id:
            return False
        if self.has_capability(user, CAP_ACCESS_ALL_GROUPS, context):
            return False
        return not self.is_group_member(group_id, user.id)
