from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class TrackedItem(BaseModel):
    cmid: int
    module: str
    action: str
    expected: datetime | None = None


class ProgressConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    progress_title: str = Field(default="", alias="progressTitle")
    group: int | None = 0
    orderby: Literal["orderbytime", "orderbycourse"] = "orderbytime"
    display_now: bool = Field(default=True, alias="displayNow")
    show_percentage: bool = Field(default=False, alias="showpercentage")
    progress_bar_icons: bool = Field(default=False, alias="progressBarIcons")
    longbars: Literal["squeeze", "scroll", "wrap"] = "squeeze"
    items: list[TrackedItem] = Field(default_factory=list)


class JsInitCall(BaseModel):
    function: str
    arguments: list[Any]
    module: dict[str, Any]


class BlockContentResponse(BaseModel):
    block_id: int
    title: str
    text: str
    footer: str
    js_calls: list[JsInitCall]


class BlockConfigResponse(BaseModel):
    block_id: int
    course_id: int | None
    config: ProgressConfig | None
