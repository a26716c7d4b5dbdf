from __future__ import annotations

from pydantic import BaseModel


class OverviewRow(BaseModel):
    user_id: int
    fullname: str
    last_access_at: str | None
    progress: int
    bar: str


class OverviewResponse(BaseModel):
    block_id: int
    course_id: int
    title: str
    group: int | None
    events: int
    rows: list[OverviewRow]
