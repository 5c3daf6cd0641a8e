"""Create weekly report schema

Revision ID: 4a1c2e7b9d10
Revises:
Create Date: 2026-10-18 09:12:44.201553

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "4a1c2e7b9d10"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade():
    """Create organization, user, report, task and evaluation tables."""
    # --- Organization ---
    op.create_table(
        "office",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "type IN ('HEAD_OFFICE', 'FACTORY_OFFICE')", name="CK_office_type"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "position",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("is_management", sa.Boolean(), nullable=False),
        sa.Column("can_view_hierarchy", sa.Boolean(), nullable=False),
        sa.Column("is_reportable", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "department",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("office_id", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["office_id"], ["office.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("office_id", "name", name="UQ_department_office_name"),
    )
    op.create_index("ix_department_office_id", "department", ["office_id"])
    op.create_table(
        "job_position",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("job_name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("position_id", sa.Integer(), nullable=False),
        sa.Column("department_id", sa.Integer(), nullable=False),
        sa.Column("office_id", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["department_id"], ["department.id"]),
        sa.ForeignKeyConstraint(["office_id"], ["office.id"]),
        sa.ForeignKeyConstraint(["position_id"], ["position.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "position_id",
            "job_name",
            "department_id",
            name="UQ_job_position_position_job_department",
        ),
    )
    for column in ("code", "position_id", "department_id", "office_id"):
        op.create_index(f"ix_job_position_{column}", "job_position", [column])

    # --- Users ---
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("employee_code", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("password_hash", sa.String(length=256), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("card_id", sa.String(length=30), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("job_position_id", sa.Integer(), nullable=False),
        sa.Column("office_id", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["job_position_id"], ["job_position.id"]),
        sa.ForeignKeyConstraint(["office_id"], ["office.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("card_id"),
    )
    op.create_index("ix_user_employee_code", "user", ["employee_code"], unique=True)
    op.create_index("ix_user_job_position_id", "user", ["job_position_id"])
    op.create_index("ix_user_office_id", "user", ["office_id"])

    # --- Reports ---
    op.create_table(
        "report",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("is_locked", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("week_number BETWEEN 1 AND 53", name="CK_report_week_number"),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "week_number", "year", "user_id", name="UQ_report_week_year_user"
        ),
    )
    op.create_index("ix_report_year", "report", ["year"])
    op.create_index("ix_report_user_id", "report", ["user_id"])

    op.create_table(
        "report_task",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("report_id", sa.Integer(), nullable=False),
        sa.Column("task_name", sa.String(length=500), nullable=False),
        sa.Column("monday", sa.Boolean(), nullable=False),
        sa.Column("tuesday", sa.Boolean(), nullable=False),
        sa.Column("wednesday", sa.Boolean(), nullable=False),
        sa.Column("thursday", sa.Boolean(), nullable=False),
        sa.Column("friday", sa.Boolean(), nullable=False),
        sa.Column("saturday", sa.Boolean(), nullable=False),
        sa.Column("sunday", sa.Boolean(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("reason_not_done", sa.String(length=1000), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["report_id"], ["report.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_report_task_report_id", "report_task", ["report_id"])

    op.create_table(
        "task_evaluation",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=False),
        sa.Column("evaluator_id", sa.Integer(), nullable=False),
        sa.Column("original_is_completed", sa.Boolean(), nullable=False),
        sa.Column("original_reason_not_done", sa.String(length=1000), nullable=True),
        sa.Column("evaluated_is_completed", sa.Boolean(), nullable=False),
        sa.Column("evaluated_reason_not_done", sa.String(length=1000), nullable=True),
        sa.Column("evaluator_comment", sa.String(length=1000), nullable=True),
        sa.Column("evaluation_type", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "evaluation_type IN ('REVIEW', 'APPROVAL', 'REJECTION')",
            name="CK_task_evaluation_type",
        ),
        sa.ForeignKeyConstraint(["evaluator_id"], ["user.id"]),
        sa.ForeignKeyConstraint(["task_id"], ["report_task.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "task_id", "evaluator_id", name="UQ_task_evaluation_task_evaluator"
        ),
    )
    op.create_index("ix_task_evaluation_task_id", "task_evaluation", ["task_id"])
    op.create_index(
        "ix_task_evaluation_evaluator_id", "task_evaluation", ["evaluator_id"]
    )


def downgrade():
    """Drop all tables created in upgrade()."""
    op.drop_table("task_evaluation")
    op.drop_table("report_task")
    op.drop_table("report")
    op.drop_table("user")
    op.drop_table("job_position")
    op.drop_table("department")
    op.drop_table("position")
    op.drop_table("office")
