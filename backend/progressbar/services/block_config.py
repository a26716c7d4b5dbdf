from __future__ import annotations

import base64
import binascii
import json
import logging

from pydantic import ValidationError

from progressbar.models.activity import CourseModule
from progressbar.schemas.block import ProgressConfig, TrackedItem
from progressbar.services.events import MONITORABLE_MODULES

logger = logging.getLogger("progressbar.config")


def decode_config(config_data: str | None, *, block_id: int | None = None) -> ProgressConfig | None:
    """Decode stored instance configuration; anything unreadable means no configuration."""
    if not config_data:
        return None
    try:
        raw = base64.b64decode(config_data.encode("ascii"), validate=True)
        obj = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError):
        logger.warning("undecodable progress block config (block %s)", block_id)
        return None
    if not isinstance(obj, dict) or not obj:
        return None
    try:
        return ProgressConfig.model_validate(obj)
    except ValidationError:
        logger.warning("invalid progress block config (block %s)", block_id)
        return None


def encode_config(config: ProgressConfig) -> str:
    raw = config.model_dump_json(by_alias=True)
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def turn_all_on(config: ProgressConfig | None, course_modules: list[CourseModule]) -> ProgressConfig:
    """Track every monitorable module of the course, keeping existing choices."""
    config = config.model_copy(deep=True) if config is not None else ProgressConfig()
    tracked = {item.cmid for item in config.items}
    for cm in course_modules:
        info = MONITORABLE_MODULES.get(cm.module)
        if info is None or cm.id in tracked:
            continue
        config.items.append(TrackedItem(cmid=cm.id, module=cm.module, action=info.default_action))
        tracked.add(cm.id)
    return config
