"""create progress block schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


COURSE_ROLE = sa.Enum("student", "teacher", "editingteacher", "manager", name="courserole")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("firstname", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("lastname", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("is_guest", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_site_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_access_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("fullname", sa.String(length=254), nullable=False),
        sa.Column("shortname", sa.String(length=255), nullable=False),
        sa.Column("idnumber", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_courses_shortname", "courses", ["shortname"], unique=False)

    op.create_table(
        "enrolments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("role", COURSE_ROLE, nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("user_id", "course_id", name="uq_enrolment_user_course"),
    )
    op.create_index("ix_enrolments_user_id", "enrolments", ["user_id"], unique=False)
    op.create_index("ix_enrolments_course_id", "enrolments", ["course_id"], unique=False)

    op.create_table(
        "course_groups",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("name", sa.String(length=254), nullable=False),
    )
    op.create_index("ix_course_groups_course_id", "course_groups", ["course_id"], unique=False)

    op.create_table(
        "group_members",
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("course_groups.id"), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), primary_key=True),
    )

    op.create_table(
        "course_modules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("module", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("section", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("course_groups.id"), nullable=True),
        sa.Column("available_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completion_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_course_modules_course_id", "course_modules", ["course_id"], unique=False)
    op.create_index("ix_course_modules_module", "course_modules", ["module"], unique=False)

    op.create_table(
        "activity_attempts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("course_module_id", sa.Integer(), sa.ForeignKey("course_modules.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "kind",
            sa.Enum("viewed", "attempted", "submitted", "finished", "posted", name="attemptkind"),
            nullable=False,
        ),
        sa.Column("grade", sa.Float(), nullable=True),
        sa.Column("passed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_activity_attempts_course_module_id", "activity_attempts", ["course_module_id"], unique=False)
    op.create_index("ix_activity_attempts_user_id", "activity_attempts", ["user_id"], unique=False)
    op.create_index("ix_activity_attempts_kind", "activity_attempts", ["kind"], unique=False)

    op.create_table(
        "activity_completions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("course_module_id", sa.Integer(), sa.ForeignKey("course_modules.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "state",
            sa.Enum("incomplete", "complete", "complete_pass", "complete_fail", name="completionstate"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("course_module_id", "user_id", name="uq_completion_module_user"),
    )

    op.create_table(
        "block_instances",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("block_name", sa.String(length=40), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=True),
        sa.Column("owner_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("page_type_pattern", sa.String(length=64), nullable=False),
        sa.Column("default_region", sa.String(length=16), nullable=False),
        sa.Column("default_weight", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("config_data", sa.Text(), nullable=True),
    )
    op.create_index("ix_block_instances_block_name", "block_instances", ["block_name"], unique=False)
    op.create_index("ix_block_instances_course_id", "block_instances", ["course_id"], unique=False)
    op.create_index("ix_block_instances_owner_user_id", "block_instances", ["owner_user_id"], unique=False)

    op.create_table(
        "block_positions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("block_instance_id", sa.Integer(), sa.ForeignKey("block_instances.id"), nullable=False),
        sa.Column("page_type", sa.String(length=64), nullable=False),
        sa.Column("region", sa.String(length=16), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("visible", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_block_positions_block_instance_id", "block_positions", ["block_instance_id"], unique=False)

    op.create_table(
        "capability_overrides",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("block_instance_id", sa.Integer(), sa.ForeignKey("block_instances.id"), nullable=True),
        sa.Column("role", COURSE_ROLE, nullable=False),
        sa.Column("capability", sa.String(length=100), nullable=False),
        sa.Column("permission", sa.Enum("allow", "prohibit", name="permission"), nullable=False),
    )
    op.create_index("ix_capability_overrides_course_id", "capability_overrides", ["course_id"], unique=False)
    op.create_index("ix_capability_overrides_capability", "capability_overrides", ["capability"], unique=False)

    op.create_table(
        "plugin_settings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("plugin", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.UniqueConstraint("plugin", "name", name="uq_plugin_setting"),
    )
    op.create_index("ix_plugin_settings_plugin", "plugin_settings", ["plugin"], unique=False)


def downgrade() -> None:
    op.drop_table("plugin_settings")
    op.drop_table("capability_overrides")
    op.drop_table("block_positions")
    op.drop_table("block_instances")
    op.drop_table("activity_completions")
    op.drop_table("activity_attempts")
    op.drop_table("course_modules")
    op.drop_table("group_members")
    op.drop_table("course_groups")
    op.drop_table("enrolments")
    op.drop_table("courses")
    op.drop_table("users")
    for enum_name in ("permission", "completionstate", "attemptkind", "courserole"):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
