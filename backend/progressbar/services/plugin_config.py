from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from progressbar.core.config import settings
from progressbar.models.setting import PluginSetting


PLUGIN = "block_progress"
DEFAULT_COURSENAMETOSHOW = "shortname"
COURSE_NAME_FIELDS = ("shortname", "fullname", "idnumber")


def get_config(db: Session, name: str, plugin: str = PLUGIN) -> str | None:
    return db.scalar(select(PluginSetting.value).where(PluginSetting.plugin == plugin, PluginSetting.name == name))


def set_config(db: Session, name: str, value: str | None, plugin: str = PLUGIN) -> None:
    row = db.scalar(select(PluginSetting).where(PluginSetting.plugin == plugin, PluginSetting.name == name))
    if row is None:
        db.add(PluginSetting(plugin=plugin, name=name, value=value))
    else:
        row.value = value


def course_name_to_show(db: Session) -> str:
    """Which course field headings use on the dashboard."""
    for candidate in (get_config(db, "coursenametoshow"), settings.progress_course_name_to_show):
        value = str(candidate or "").strip().lower()
        if value in COURSE_NAME_FIELDS:
            return value
    return DEFAULT_COURSENAMETOSHOW
