from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from progressbar.core.strings import get_string
from progressbar.schemas.block import ProgressConfig
from progressbar.services.attempts import progress_percentage
from progressbar.services.events import Event, as_utc


TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
    keep_trailing_newline=False,
)

_STRINGS = {
    "now_indicator": get_string("now_indicator"),
    "progress": get_string("progress"),
    "time_expected": get_string("time_expected"),
}


def _cell_state(event: Event, completed: bool, now: datetime) -> str:
    if completed:
        return "completed"
    if event.expected is not None and event.expected < now:
        return "notCompleted"
    return "futureNotCompleted"


def _now_index(events: list[Event], config: ProgressConfig, now: datetime) -> int | None:
    """Position of the NOW marker: before the first item that is not yet due."""
    if not config.display_now or config.orderby != "orderbytime" or not events:
        return None
    for i, e in enumerate(events):
        if e.expected is None or e.expected >= now:
            return i
    return len(events)


def progress_bar(
    config: ProgressConfig,
    events: list[Event],
    user_id: int,
    instance_id: int,
    attempts: dict[int, bool],
    *,
    now: datetime | None = None,
) -> str:
    """Render the bar markup for one user and one block instance."""
    now = as_utc(now) or datetime.now(timezone.utc)
    cells = []
    for e in events:
        completed = bool(attempts.get(e.cmid))
        state = _cell_state(e, completed, now)
        cells.append(
            {
                "cmid": e.cmid,
                "module": e.module,
                "name": e.name,
                "state": state,
                "icon": "✔" if completed else ("✘" if state == "notCompleted" else ""),
                "action_label": get_string(f"action_{e.action}"),
                "expected": e.expected.strftime("%d %b %Y %H:%M") if e.expected else None,
                "status": get_string("completed") if completed else get_string("not_completed"),
            }
        )

    n = len(cells)
    now_index = _now_index(events, config, now)
    template = _env.get_template("progress_bar.html")
    return template.render(
        instance_id=int(instance_id),
        user_id=int(user_id),
        longbars=config.longbars,
        icons=config.progress_bar_icons,
        cells=cells,
        cell_width=round(100 / n, 2) if n else 100,
        now_index=now_index,
        now_offset=round(100 * now_index / n, 2) if (now_index is not None and n) else 0,
        show_percentage=config.show_percentage,
        percentage=progress_percentage(events, attempts),
        strings=_STRINGS,
    )
