from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from progressbar.models.activity import CourseModule
from progressbar.models.user import User
from progressbar.schemas.block import ProgressConfig
from progressbar.services.capabilities import (
    CAP_ACCESS_ALL_GROUPS,
    CAP_VIEW_HIDDEN_ACTIVITIES,
    CapabilityChecker,
    Context,
)


ACTION_ACTIVITY_COMPLETION = "activity_completion"


@dataclass(frozen=True)
class ModuleInfo:
    actions: tuple[str, ...]
    default_action: str
    uses_due_date: bool = False


MONITORABLE_MODULES: dict[str, ModuleInfo] = {
    "assign": ModuleInfo(actions=("submitted", "marked", "passed"), default_action="submitted", uses_due_date=True),
    "quiz": ModuleInfo(actions=("attempted", "finished", "graded", "passed"), default_action="finished", uses_due_date=True),
    "lesson": ModuleInfo(actions=("attempted", "graded"), default_action="attempted", uses_due_date=True),
    "forum": ModuleInfo(actions=("posted",), default_action="posted"),
    "resource": ModuleInfo(actions=("viewed",), default_action="viewed"),
    "page": ModuleInfo(actions=("viewed",), default_action="viewed"),
    "url": ModuleInfo(actions=("viewed",), default_action="viewed"),
}


@dataclass(frozen=True)
class Event:
    cmid: int
    module: str
    name: str
    action: str
    expected: datetime | None
    section: int
    position: int


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def allowed_actions(cm: CourseModule) -> tuple[str, ...]:
    info = MONITORABLE_MODULES.get(cm.module)
    if info is None:
        return ()
    if cm.completion_enabled:
        return info.actions + (ACTION_ACTIVITY_COMPLETION,)
    return info.actions


class EventService:
    def __init__(self, db: Session, checker: CapabilityChecker | None = None):
        self.db = db
        self.checker = checker or CapabilityChecker(db)
        self._course_modules: dict[int, list[CourseModule]] = {}

    def course_modules(self, course_id: int) -> list[CourseModule]:
        if course_id not in self._course_modules:
            self._course_modules[course_id] = list(
                self.db.scalars(
                    select(CourseModule)
                    .where(CourseModule.course_id == course_id)
                    .order_by(CourseModule.section, CourseModule.position, CourseModule.id)
                ).all()
            )
        return self._course_modules[course_id]

    def modules_in_use(self, course_id: int) -> dict[str, ModuleInfo]:
        """Monitorable module types that have at least one instance in the course."""
        present = {cm.module for cm in self.course_modules(course_id)}
        return {name: info for name, info in MONITORABLE_MODULES.items() if name in present}

    def event_information(
        self,
        config: ProgressConfig | None,
        modules: dict[str, ModuleInfo],
        course_id: int,
    ) -> list[Event] | None:
        """Resolve the tracked items of a configuration against the course.

        Returns None when there is no configuration at all, and an empty list
        when a configuration exists but tracks nothing that still exists.
        """
        if config is None:
            return None

        by_id = {cm.id: cm for cm in self.course_modules(course_id) if cm.module in modules}
        events: list[Event] = []
        seen: set[int] = set()
        for item in config.items:
            cm = by_id.get(item.cmid)
            if cm is None or cm.module != item.module or cm.id in seen:
                continue
            seen.add(cm.id)

            info = modules[cm.module]
            action = item.action if item.action in allowed_actions(cm) else info.default_action
            expected = item.expected
            if expected is None and info.uses_due_date:
                expected = cm.due_at

            events.append(
                Event(
                    cmid=cm.id,
                    module=cm.module,
                    name=cm.name,
                    action=action,
                    expected=as_utc(expected),
                    section=cm.section,
                    position=cm.position,
                )
            )

        if config.orderby == "orderbytime":
            events.sort(key=lambda e: (e.expected is None, e.expected or datetime.min.replace(tzinfo=timezone.utc), e.cmid))
        else:
            events.sort(key=lambda e: (e.section, e.position, e.cmid))
        return events

    def filter_visibility(
        self,
        events: list[Event],
        user: User,
        course_id: int,
        *,
        now: datetime | None = None,
    ) -> list[Event]:
        """Drop events the user cannot currently see."""
        now = as_utc(now) or datetime.now(timezone.utc)
        context = Context.course(course_id)
        by_id = {cm.id: cm for cm in self.course_modules(course_id)}
        view_hidden = self.checker.has_capability(user, CAP_VIEW_HIDDEN_ACTIVITIES, context)
        all_groups = self.checker.has_capability(user, CAP_ACCESS_ALL_GROUPS, context)

        visible: list[Event] = []
        for event in events:
            cm = by_id.get(event.cmid)
            if cm is None:
                continue
            if not cm.visible and not view_hidden:
                continue
            if cm.group_id and not all_groups and not self.checker.is_group_member(cm.group_id, user.id):
                continue
            available_from = as_utc(cm.available_from)
            if available_from is not None and available_from > now and not view_hidden:
                continue
            visible.append(event)
        return visible
