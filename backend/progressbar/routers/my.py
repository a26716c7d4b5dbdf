from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from progressbar.core.security import get_current_user, is_guest
from progressbar.db.session import get_db
from progressbar.models.block import BlockInstance
from progressbar.models.user import User
from progressbar.routers.blocks import content_payload
from progressbar.schemas.block import BlockContentResponse
from progressbar.services.block import PAGE_DASHBOARD, Page
from progressbar.services.dashboard import BLOCK_NAME

router = APIRouter(prefix="/my", tags=["my"])


def _dashboard_instance(db: Session, user: User | None) -> BlockInstance:
    instance = None
    if not is_guest(user):
        instance = db.scalar(
            select(BlockInstance)
            .where(
                BlockInstance.block_name == BLOCK_NAME,
                BlockInstance.course_id.is_(None),
                BlockInstance.owner_user_id == user.id,
            )
            .order_by(BlockInstance.id)
            .limit(1)
        )
    if instance is None:
        # Transient placement, never added to the session.
        instance = BlockInstance(
            id=0,
            block_name=BLOCK_NAME,
            course_id=None,
            owner_user_id=user.id if user is not None else None,
            page_type_pattern=PAGE_DASHBOARD,
            config_data=None,
        )
    return instance


@router.get("/progress", response_model=BlockContentResponse)
def my_progress(
    editing: bool = Query(default=False),
    db: Session = Depends(get_db),
    user: User | None = Depends(get_current_user),
):
    page = Page(db, user, page_type=PAGE_DASHBOARD, editing=editing)
    return content_payload(page.block(_dashboard_instance(db, user)))
