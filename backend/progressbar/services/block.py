from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from markupsafe import escape
from sqlalchemy.orm import Session

from progressbar.core.config import settings
from progressbar.core.security import is_guest
from progressbar.core.strings import get_string
from progressbar.models.block import BlockInstance
from progressbar.models.course import Course
from progressbar.models.user import User
from progressbar.schemas.block import ProgressConfig
from progressbar.services import html
from progressbar.services.attempts import AttemptService
from progressbar.services.bar import progress_bar
from progressbar.services.block_config import decode_config
from progressbar.services.capabilities import (
    CAP_BLOCK_EDIT,
    CAP_OVERVIEW,
    CAP_SHOWBAR,
    CapabilityChecker,
    Context,
)
from progressbar.services.dashboard import course_block_instances, my_courses
from progressbar.services.events import Event, EventService, ModuleInfo
from progressbar.services.plugin_config import course_name_to_show


PAGE_COURSE = "course-view"
PAGE_DASHBOARD = "my-index"
PAGE_SITE = "site-index"


@dataclass
class JsInitCall:
    function: str
    arguments: list[Any]
    module: dict[str, Any]


@dataclass
class PageRequirements:
    js_calls: list[JsInitCall] = field(default_factory=list)

    def js_init_call(self, function: str, arguments: list[Any], module: dict[str, Any]) -> None:
        self.js_calls.append(JsInitCall(function=function, arguments=arguments, module=module))


@dataclass
class BlockContent:
    text: str = ""
    footer: str = ""


class Page:
    """One page view: the viewer, the page type and everything cached for it."""

    def __init__(
        self,
        db: Session,
        user: User | None,
        *,
        page_type: str = PAGE_COURSE,
        course: Course | None = None,
        editing: bool = False,
        now: datetime | None = None,
    ):
        self.db = db
        self.user = user
        self.page_type = page_type
        self.course = course
        self.editing = bool(editing)
        self.now = now or datetime.now(timezone.utc)
        self.requires = PageRequirements()
        self.checker = CapabilityChecker(db)
        self.events = EventService(db, self.checker)
        self.attempts = AttemptService(db)
        self._blocks: dict[int, ProgressBlock] = {}

    @property
    def on_my_page(self) -> bool:
        return self.page_type in {PAGE_DASHBOARD, PAGE_SITE}

    def user_is_editing(self) -> bool:
        return self.editing

    def block(self, instance: BlockInstance) -> "ProgressBlock":
        if instance.id not in self._blocks:
            self._blocks[instance.id] = ProgressBlock(instance, self)
        return self._blocks[instance.id]


def js_module() -> dict[str, Any]:
    return {
        "name": "block_progress",
        "fullpath": settings.progress_js_module_path,
        "requires": [],
        "strings": [],
    }


class ProgressBlock:
    def __init__(self, instance: BlockInstance, page: Page):
        self.instance = instance
        self.page = page
        self.content: BlockContent | None = None
        self.config: ProgressConfig | None = decode_config(instance.config_data, block_id=instance.id)
        self.context = Context.block(instance.course_id, instance.id)
        self.init()
        self.specialization()

    def init(self) -> None:
        self.title = get_string("config_default_title")

    def specialization(self) -> None:
        if self.config is not None and self.config.progress_title.strip():
            self.title = self.config.progress_title.strip()

    def has_config(self) -> bool:
        return True

    def instance_allow_multiple(self) -> bool:
        return not self.page.on_my_page

    def instance_allow_config(self) -> bool:
        return not self.page.on_my_page

    @staticmethod
    def applicable_formats() -> dict[str, bool]:
        return {
            "course-view": True,
            "site": True,
            "mod": False,
            "my": True,
        }

    def get_content(self) -> BlockContent:
        if self.content is not None:
            return self.content
        self.content = BlockContent()

        user = self.page.user
        if is_guest(user):
            return self.content

        if self.page.on_my_page:
            rendered = self._dashboard_content(user)
        else:
            rendered = self._course_content(user)
        if rendered is None:
            return self.content

        module = js_module()
        self.page.requires.js_init_call("M.block_progress.setupScrolling", [], module)
        self.page.requires.js_init_call("M.block_progress.init", [rendered, [user.id]], module)
        return self.content

    def _bar(self, config: ProgressConfig, events: list[Event], user: User, instance_id: int) -> str:
        attempts = self.page.attempts.attempts(events, user.id)
        return progress_bar(config, events, user.id, instance_id, attempts, now=self.page.now)

    def _dashboard_content(self, user: User) -> list[int] | None:
        page = self.page
        courses = my_courses(page.db, user.id)

        if (page.user_is_editing() or user.is_site_admin) and not courses:
            self.content.text = get_string("no_courses")
            return None

        name_field = course_name_to_show(page.db)
        rendered: list[int] = []
        parts: list[str] = []
        for course in courses:
            modules = page.events.modules_in_use(course.id)
            if not course.visible or not modules:
                continue

            bars = self._course_bars(course, modules, user)
            if not bars:
                continue

            heading = html.tag("h3", getattr(course, name_field) or "")
            parts.append(str(html.link(html.url("/course/view.php", {"id": course.id}), heading)))
            for block_id, config, events in bars:
                if config.progress_title != "":
                    parts.append(str(html.tag("p", config.progress_title)))
                parts.append(self._bar(config, events, user, block_id))
                rendered.append(block_id)

        self.content.text = "".join(parts)
        if page.user_is_editing() and self.content.text == "":
            self.content.text = get_string("no_blocks")
        return rendered

    def _course_bars(
        self,
        course: Course,
        modules: dict[str, ModuleInfo],
        user: User,
    ) -> list[tuple[int, ProgressConfig, list[Event]]]:
        """Blocks of one course the viewer may see, with their visible events."""
        page = self.page
        course_context = Context.course(course.id)
        bars = []
        for placed in course_block_instances(page.db, course.id):
            config = decode_config(placed.config_data, block_id=placed.id)
            if config is None or not placed.visible:
                continue
            if not page.checker.has_capability(user, CAP_SHOWBAR, Context.block(course.id, placed.id)):
                continue
            if page.checker.excluded_by_group(config.group, user, course_context):
                continue
            events = page.events.event_information(config, modules, course.id)
            if not events:
                continue
            events = page.events.filter_visibility(events, user, course.id, now=page.now)
            if not events:
                continue
            bars.append((placed.id, config, events))
        return bars

    def _course_content(self, user: User) -> list[int] | None:
        page = self.page
        course_id = self.instance.course_id
        if course_id is None:
            return None
        checker = page.checker
        can_edit = checker.has_capability(user, CAP_BLOCK_EDIT, self.context)

        if self.config is not None and checker.excluded_by_group(self.config.group, user, self.context):
            return None

        modules = page.events.modules_in_use(course_id)
        if not modules:
            if can_edit:
                self.content.text += get_string("no_events_config_message")
            return None

        events = page.events.event_information(self.config, modules, course_id)
        if not events:
            if can_edit:
                text = get_string("no_events_message")
                if page.user_is_editing():
                    path = f"/blocks/{self.instance.id}/config"
                    text += str(html.single_button(path, {"courseid": course_id}, get_string("selectitemstobeadded")))
                    if events is not None:
                        text += str(
                            html.single_button(
                                f"{path}/turn-all-on",
                                {"courseid": course_id, "turnallon": 1},
                                get_string("addallcurrentitems"),
                                "post",
                            )
                        )
                self.content.text += text
            return None

        events = page.events.filter_visibility(events, user, course_id, now=page.now)
        if not events:
            if can_edit:
                self.content.text += get_string("no_visible_events_message")
            return None

        if checker.has_capability(user, CAP_SHOWBAR, self.context):
            self.content.text += self._bar(self.config, events, user, self.instance.id)

        if checker.has_capability(user, CAP_OVERVIEW, self.context):
            self.content.text += str(
                html.single_button(
                    f"/blocks/{self.instance.id}/overview",
                    {"courseid": course_id},
                    get_string("overview"),
                    css_class="overviewButton",
                )
            )
        return [self.instance.id]


def render_fragment(content: BlockContent, js_calls: list[JsInitCall]) -> str:
    """HTML fragment plus the page-on-load JS wiring."""
    lines = [content.text, content.footer]
    for call in js_calls:
        module = json.dumps(call.module, separators=(",", ":"))
        args = json.dumps(call.arguments, separators=(",", ":"))
        lines.append(
            f'<script>M.yui.add_module({{"block_progress":{module}}});'
            f"Y.use(\"block_progress\",function(Y){{{escape(call.function)}.apply(null,[Y].concat({args}));}});</script>"
        )
    return "".join(line for line in lines if line)
