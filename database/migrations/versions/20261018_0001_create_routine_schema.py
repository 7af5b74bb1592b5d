"""create routine schema

Revision ID: 20261018_0001
Revises: None
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = sa.Enum("admin", "scheduler", "faculty", "viewer", name="user_role")
class_type_enum = sa.Enum("lecture", "practical", "tutorial", name="class_type")
recurrence_type_enum = sa.Enum("weekly", "alternate", "custom", name="recurrence_type")
week_pattern_enum = sa.Enum("odd", "even", name="week_pattern")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("short_name", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("available_days", sa.JSON(), nullable=False),
        sa.Column("unavailable_slots", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teachers_short_name", "teachers", ["short_name"], unique=True)

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("building", sa.String(length=200), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="48"),
        sa.Column("is_lab", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rooms_name", "rooms", ["name"], unique=True)

    op.create_table(
        "time_slot_definitions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False, nullable=False),
        sa.Column("label", sa.String(length=50), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_break", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("applicable_days", sa.JSON(), nullable=False),
        sa.Column("program_id", sa.String(length=36), nullable=True),
        sa.Column("semester", sa.Integer(), nullable=True),
        sa.Column("section", sa.String(length=20), nullable=True),
    )
    op.create_index("ix_time_slot_definitions_sort_order", "time_slot_definitions", ["sort_order"])
    op.create_index("ix_time_slot_definitions_program_id", "time_slot_definitions", ["program_id"])

    op.create_table(
        "routine_slots",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("program_id", sa.String(length=36), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("section", sa.String(length=20), nullable=False),
        sa.Column("academic_year_id", sa.String(length=36), nullable=False),
        sa.Column("day_index", sa.Integer(), nullable=False),
        sa.Column("slot_index", sa.Integer(), nullable=False),
        sa.Column("class_type", class_type_enum, nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_ids", sa.JSON(), nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("lab_group_id", sa.String(length=36), nullable=True),
        sa.Column("span_id", sa.String(length=36), nullable=True),
        sa.Column("span_position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_spanned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("recurrence_type", recurrence_type_enum, nullable=False, server_default="weekly"),
        sa.Column("recurrence_pattern", week_pattern_enum, nullable=True),
        sa.Column("recurrence_weeks", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deactivated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deactivated_by_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_routine_slots_subject_id", "routine_slots", ["subject_id"])
    op.create_index("ix_routine_slots_span_id", "routine_slots", ["span_id"])
    op.create_index(
        "ix_routine_slots_section_position",
        "routine_slots",
        ["academic_year_id", "program_id", "semester", "section", "day_index", "slot_index"],
    )
    op.create_index(
        "ix_routine_slots_day_position",
        "routine_slots",
        ["academic_year_id", "day_index", "slot_index", "is_active"],
    )
    op.create_index("ix_routine_slots_room_position", "routine_slots", ["room_id", "day_index", "slot_index"])

    op.create_table(
        "schedule_locks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("academic_year_id", sa.String(length=36), nullable=False),
        sa.Column("day_index", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("academic_year_id", "day_index", name="uq_schedule_locks_scope"),
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("academic_year_id", sa.String(length=36), nullable=True),
        sa.Column("day_index", sa.Integer(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index("ix_activity_logs_schedule_day", "activity_logs", ["academic_year_id", "day_index"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_schedule_day", table_name="activity_logs")
    op.drop_index("ix_activity_logs_action", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_table("schedule_locks")
    op.drop_index("ix_routine_slots_room_position", table_name="routine_slots")
    op.drop_index("ix_routine_slots_day_position", table_name="routine_slots")
    op.drop_index("ix_routine_slots_section_position", table_name="routine_slots")
    op.drop_index("ix_routine_slots_span_id", table_name="routine_slots")
    op.drop_index("ix_routine_slots_subject_id", table_name="routine_slots")
    op.drop_table("routine_slots")
    op.drop_index("ix_time_slot_definitions_program_id", table_name="time_slot_definitions")
    op.drop_index("ix_time_slot_definitions_sort_order", table_name="time_slot_definitions")
    op.drop_table("time_slot_definitions")
    op.drop_index("ix_rooms_name", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_teachers_short_name", table_name="teachers")
    op.drop_table("teachers")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    bind = op.get_bind()
    for enum in (week_pattern_enum, recurrence_type_enum, class_type_enum, user_role_enum):
        enum.drop(bind, checkfirst=True)
