import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from progressbar.db.base import Base
from progressbar.db import session as session_module
from progressbar.main import create_app

# Import models so that they are registered in Base.metadata before create_all.
import progressbar.models  # noqa: F401
from progressbar.core.security import create_access_token
from progressbar.models.activity import ActivityAttempt, ActivityCompletion, AttemptKind, CompletionState, CourseModule
from progressbar.models.block import BlockInstance, BlockPosition
from progressbar.models.capability import CapabilityOverride, Permission
from progressbar.models.course import Course, CourseGroup, CourseRole, Enrolment, GroupMember
from progressbar.models.user import User
from progressbar.schemas.block import ProgressConfig, TrackedItem
from progressbar.services.block_config import encode_config
from progressbar.services.events import MONITORABLE_MODULES


# Configure test DB (SQLite in-memory) at import time so all code reading
# progressbar.db.session.SessionLocal gets the patched version.
_engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
session_module.engine = _engine
session_module.SessionLocal = session_module.sessionmaker(autocommit=False, autoflush=False, bind=_engine)


NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def track(*cms: CourseModule, actions: dict[int, str] | None = None, **options) -> ProgressConfig:
    """Config tracking the given modules with their default actions."""
    actions = actions or {}
    items = [
        TrackedItem(cmid=cm.id, module=cm.module, action=actions.get(cm.id, MONITORABLE_MODULES[cm.module].default_action))
        for cm in cms
    ]
    return ProgressConfig(items=items, **options)


class Seed:
    def __init__(self, db):
        self.db = db
        self._n = 0

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def user(self, username: str | None = None, **kw) -> User:
        self._n += 1
        username = username or f"user{self._n}"
        kw.setdefault("firstname", username.capitalize())
        kw.setdefault("lastname", "Test")
        return self._save(User(username=username, **kw))

    def course(self, shortname: str, **kw) -> Course:
        kw.setdefault("fullname", f"{shortname} full name")
        return self._save(Course(shortname=shortname, **kw))

    def enrol(self, user: User, course: Course, role: CourseRole = CourseRole.student, active: bool = True) -> Enrolment:
        return self._save(Enrolment(user_id=user.id, course_id=course.id, role=role, active=active))

    def group(self, course: Course, name: str, members: list[User] = ()) -> CourseGroup:
        g = self._save(CourseGroup(course_id=course.id, name=name))
        for u in members:
            self.db.add(GroupMember(group_id=g.id, user_id=u.id))
        self.db.commit()
        return g

    def cm(self, course: Course, module: str, name: str | None = None, **kw) -> CourseModule:
        self._n += 1
        kw.setdefault("position", self._n)
        return self._save(CourseModule(course_id=course.id, module=module, name=name or f"{module} {self._n}", **kw))

    def block(self, course: Course | None, config: ProgressConfig | None = None, **kw) -> BlockInstance:
        kw.setdefault("page_type_pattern", "course-view-*" if course is not None else "my-index")
        return self._save(
            BlockInstance(
                block_name="progress",
                course_id=course.id if course is not None else None,
                config_data=encode_config(config) if config is not None else None,
                **kw,
            )
        )

    def position(self, block: BlockInstance, page_type: str = "course-view-topics", **kw) -> BlockPosition:
        kw.setdefault("region", "side-pre")
        return self._save(BlockPosition(block_instance_id=block.id, page_type=page_type, **kw))

    def attempt(self, user: User, cm: CourseModule, kind: AttemptKind, **kw) -> ActivityAttempt:
        return self._save(ActivityAttempt(user_id=user.id, course_module_id=cm.id, kind=kind, **kw))

    def completion(self, user: User, cm: CourseModule, state: CompletionState) -> ActivityCompletion:
        return self._save(ActivityCompletion(user_id=user.id, course_module_id=cm.id, state=state))

    def override(
        self,
        course: Course,
        role: CourseRole,
        capability: str,
        permission: Permission,
        block: BlockInstance | None = None,
    ) -> CapabilityOverride:
        return self._save(
            CapabilityOverride(
                course_id=course.id,
                block_instance_id=block.id if block is not None else None,
                role=role,
                capability=capability,
                permission=permission,
            )
        )


@pytest.fixture()
def _schema():
    Base.metadata.create_all(bind=_engine)
    yield
    Base.metadata.drop_all(bind=_engine)


@pytest.fixture()
def db(_schema):
    with session_module.SessionLocal() as session:
        yield session


@pytest.fixture()
def seed(db):
    return Seed(db)


@pytest.fixture()
def client(_schema):
    app = create_app()

    def _get_db_override():
        db = session_module.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[session_module.get_db] = _get_db_override
    return TestClient(app)


@pytest.fixture()
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture()
def past():
    return NOW - timedelta(days=3)


@pytest.fixture()
def future():
    return NOW + timedelta(days=3)
