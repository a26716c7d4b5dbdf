from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from progressbar.core.security import get_current_user, require_user
from progressbar.db.session import get_db
from progressbar.models.activity import CourseModule
from progressbar.models.block import BlockInstance
from progressbar.models.course import Course, CourseGroup
from progressbar.models.user import User
from progressbar.schemas.block import BlockConfigResponse, BlockContentResponse, ProgressConfig
from progressbar.schemas.overview import OverviewResponse
from progressbar.services.block import PAGE_COURSE, PAGE_DASHBOARD, Page, ProgressBlock, render_fragment
from progressbar.services.block_config import decode_config, encode_config, turn_all_on
from progressbar.services.capabilities import (
    CAP_BLOCK_EDIT,
    CAP_OVERVIEW,
    CapabilityChecker,
    Context,
)
from progressbar.services.dashboard import BLOCK_NAME
from progressbar.services.events import allowed_actions
from progressbar.services.overview import OverviewService

logger = logging.getLogger("progressbar")

router = APIRouter(prefix="/blocks", tags=["blocks"])


def _get_block(db: Session, block_id: int) -> BlockInstance:
    instance = db.scalar(
        select(BlockInstance).where(BlockInstance.id == block_id, BlockInstance.block_name == BLOCK_NAME)
    )
    if instance is None:
        raise HTTPException(status_code=404, detail="block not found")
    return instance


def _page_for(db: Session, instance: BlockInstance, user: User | None, editing: bool) -> Page:
    if instance.course_id is None:
        return Page(db, user, page_type=PAGE_DASHBOARD, editing=editing)
    course = db.scalar(select(Course).where(Course.id == instance.course_id))
    return Page(db, user, page_type=PAGE_COURSE, course=course, editing=editing)


def content_payload(block: ProgressBlock) -> dict:
    content = block.get_content()
    return {
        "block_id": block.instance.id,
        "title": block.title,
        "text": content.text,
        "footer": content.footer,
        "js_calls": [
            {"function": c.function, "arguments": c.arguments, "module": c.module}
            for c in block.page.requires.js_calls
        ],
    }


def _require_course_capability(
    db: Session, instance: BlockInstance, user: User, capability: str
) -> CapabilityChecker:
    if instance.course_id is None:
        raise HTTPException(status_code=400, detail="block is not placed in a course")
    checker = CapabilityChecker(db)
    if not checker.has_capability(user, capability, Context.block(instance.course_id, instance.id)):
        raise HTTPException(status_code=403, detail="forbidden")
    return checker


@router.get("/{block_id}/content", response_model=BlockContentResponse)
def block_content(
    block_id: int,
    editing: bool = Query(default=False),
    db: Session = Depends(get_db),
    user: User | None = Depends(get_current_user),
):
    instance = _get_block(db, block_id)
    page = _page_for(db, instance, user, editing)
    return content_payload(page.block(instance))


@router.get("/{block_id}/fragment", response_class=HTMLResponse)
def block_fragment(
    block_id: int,
    editing: bool = Query(default=False),
    db: Session = Depends(get_db),
    user: User | None = Depends(get_current_user),
):
    instance = _get_block(db, block_id)
    page = _page_for(db, instance, user, editing)
    content = page.block(instance).get_content()
    return HTMLResponse(render_fragment(content, page.requires.js_calls))


@router.get("/{block_id}/overview", response_model=OverviewResponse)
def block_overview(
    block_id: int,
    group: int | None = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    instance = _get_block(db, block_id)
    checker = _require_course_capability(db, instance, user, CAP_OVERVIEW)

    if group and checker.excluded_by_group(group, user, Context.course(instance.course_id)):
        raise HTTPException(status_code=403, detail="forbidden")

    return OverviewService(db, checker).build(instance, group_id=group)


@router.get("/{block_id}/config", response_model=BlockConfigResponse)
def get_block_config(
    block_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    instance = _get_block(db, block_id)
    _require_course_capability(db, instance, user, CAP_BLOCK_EDIT)
    return {
        "block_id": instance.id,
        "course_id": instance.course_id,
        "config": decode_config(instance.config_data, block_id=instance.id),
    }


@router.put("/{block_id}/config", response_model=BlockConfigResponse)
def update_block_config(
    block_id: int,
    payload: ProgressConfig,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    instance = _get_block(db, block_id)
    _require_course_capability(db, instance, user, CAP_BLOCK_EDIT)

    if payload.group:
        group = db.scalar(
            select(CourseGroup).where(CourseGroup.id == payload.group, CourseGroup.course_id == instance.course_id)
        )
        if group is None:
            raise HTTPException(status_code=400, detail="invalid group")

    cms = {
        cm.id: cm
        for cm in db.scalars(select(CourseModule).where(CourseModule.course_id == instance.course_id)).all()
    }
    for item in payload.items:
        cm = cms.get(item.cmid)
        if cm is None or cm.module != item.module:
            raise HTTPException(status_code=400, detail=f"invalid course module {item.cmid}")
        if item.action not in allowed_actions(cm):
            raise HTTPException(status_code=400, detail=f"invalid action {item.action!r} for {cm.module}")

    instance.config_data = encode_config(payload)
    db.commit()
    logger.info("progress block %s config updated by user %s (%d items)", instance.id, user.id, len(payload.items))
    return {"block_id": instance.id, "course_id": instance.course_id, "config": payload}


@router.post("/{block_id}/config/turn-all-on", response_model=BlockConfigResponse)
def turn_all_on_config(
    block_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    instance = _get_block(db, block_id)
    _require_course_capability(db, instance, user, CAP_BLOCK_EDIT)

    cms = list(
        db.scalars(
            select(CourseModule)
            .where(CourseModule.course_id == instance.course_id)
            .order_by(CourseModule.section, CourseModule.position, CourseModule.id)
        ).all()
    )
    config = turn_all_on(decode_config(instance.config_data, block_id=instance.id), cms)
    instance.config_data = encode_config(config)
    db.commit()
    logger.info("progress block %s now tracks all %d items", instance.id, len(config.items))
    return {"block_id": instance.id, "course_id": instance.course_id, "config": config}
