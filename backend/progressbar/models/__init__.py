from progressbar.models.user import User
from progressbar.models.course import Course, CourseGroup, CourseRole, Enrolment, GroupMember
from progressbar.models.activity import ActivityAttempt, ActivityCompletion, AttemptKind, CompletionState, CourseModule
from progressbar.models.block import BlockInstance, BlockPosition
from progressbar.models.capability import CapabilityOverride, Permission
from progressbar.models.setting import PluginSetting

__all__ = [
    "User",
    "Course",
    "CourseGroup",
    "CourseRole",
    "Enrolment",
    "GroupMember",
    "ActivityAttempt",
    "ActivityCompletion",
    "AttemptKind",
    "CompletionState",
    "CourseModule",
    "BlockInstance",
    "BlockPosition",
    "CapabilityOverride",
    "Permission",
    "PluginSetting",
]
