"""talent pool: users, batches, queue, candidates, screenings, vacancies, notifications

Revision ID: 20261019_talent_pool_initial
Revises: None
"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_talent_pool_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.current_timestamp()),
    ]


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # idempotent: only missing tables are created
    if not insp.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("name", sa.String(120)),
            sa.Column("email", sa.String(255), nullable=False, unique=True),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("role", sa.String(50)),
            *_timestamps(),
        )

    if not insp.has_table("talent_pool_batches"):
        op.create_table(
            "talent_pool_batches",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("batch_name", sa.String(255)),
            sa.Column("uploaded_by_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
            sa.Column("source_type", sa.String(20), nullable=False, server_default="MANUAL_UPLOAD"),
            sa.Column("source_url", sa.String(512)),
            sa.Column("total_files", sa.Integer, nullable=False, server_default="0"),
            sa.Column("processed_files", sa.Integer, nullable=False, server_default="0"),
            sa.Column("failed_files", sa.Integer, nullable=False, server_default="0"),
            sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
            *_timestamps(),
            sa.CheckConstraint("processed_files + failed_files <= total_files", name="ck_batch_progress"),
        )
        op.create_index("ix_talent_pool_batches_uploaded_by_id", "talent_pool_batches", ["uploaded_by_id"])
        op.create_index("ix_talent_pool_batches_status", "talent_pool_batches", ["status"])

    if not insp.has_table("talent_pool_queue"):
        op.create_table(
            "talent_pool_queue",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("batch_id", sa.String(36), sa.ForeignKey("talent_pool_batches.id"), nullable=False),
            sa.Column("file_url", sa.String(1024), nullable=False),
            sa.Column("file_name", sa.String(255), nullable=False),
            sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
            sa.Column("error_msg", sa.Text),
            sa.Column("dispatch_id", sa.String(36)),
            sa.Column("claimed_at", sa.DateTime),
            sa.Column("processed_at", sa.DateTime),
            sa.Column("created_at", sa.DateTime, nullable=False),
            sa.Column("seq", sa.Integer, nullable=False, server_default="0"),
        )
        op.create_index("ix_talent_pool_queue_batch_id", "talent_pool_queue", ["batch_id"])
        op.create_index("ix_talent_pool_queue_status", "talent_pool_queue", ["status"])
        op.create_index("ix_talent_pool_queue_dispatch_id", "talent_pool_queue", ["dispatch_id"])

    if not insp.has_table("talent_pool_candidates"):
        op.create_table(
            "talent_pool_candidates",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("batch_id", sa.String(36), sa.ForeignKey("talent_pool_batches.id"), nullable=False),
            sa.Column("full_name", sa.String(255), nullable=False),
            sa.Column("email", sa.String(254)),
            sa.Column("phone", sa.String(40)),
            sa.Column("city", sa.String(120)),
            sa.Column("linkedin", sa.String(512)),
            sa.Column("education", sa.JSON),
            sa.Column("work_experience", sa.JSON),
            sa.Column("skills", sa.JSON),
            sa.Column("certifications", sa.JSON),
            sa.Column("organization_experience", sa.JSON),
            sa.Column("cv_file_url", sa.String(1024), nullable=False),
            sa.Column("cv_file_name", sa.String(255), nullable=False),
            sa.Column("hr_status", sa.String(20), nullable=False, server_default="PENDING"),
            sa.Column("hr_notes", sa.Text),
            sa.Column("processed_to_step", sa.String(120)),
            *_timestamps(),
        )
        op.create_index("ix_talent_pool_candidates_batch_id", "talent_pool_candidates", ["batch_id"])
        op.create_index("ix_talent_pool_candidates_email", "talent_pool_candidates", ["email"], unique=True)
        op.create_index("ix_talent_pool_candidates_hr_status", "talent_pool_candidates", ["hr_status"])

    if not insp.has_table("talent_pool_screenings"):
        op.create_table(
            "talent_pool_screenings",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("candidate_id", sa.String(36), sa.ForeignKey("talent_pool_candidates.id"), nullable=False),
            sa.Column("job_vacancy_id", sa.String(64), nullable=False),
            sa.Column("fit_score", sa.Float, nullable=False),
            sa.Column("ai_match_status", sa.String(20), nullable=False),
            sa.Column("ai_insight", sa.Text),
            sa.Column("ai_interview", sa.Text),
            sa.Column("ai_core_value", sa.Text),
            *_timestamps(),
            sa.UniqueConstraint("candidate_id", "job_vacancy_id", name="uq_screening_candidate_job"),
        )
        op.create_index("ix_talent_pool_screenings_candidate_id", "talent_pool_screenings", ["candidate_id"])
        op.create_index("ix_talent_pool_screenings_job_vacancy_id", "talent_pool_screenings", ["job_vacancy_id"])

    if not insp.has_table("job_vacancies"):
        op.create_table(
            "job_vacancies",
            sa.Column("id", sa.String(64), primary_key=True),
            sa.Column("title", sa.String(200), nullable=False),
            sa.Column("division", sa.String(120)),
            sa.Column("department", sa.String(120)),
            sa.Column("description", sa.Text),
            sa.Column("required_skills", sa.JSON),
            sa.Column("status", sa.String(20), server_default="OPEN"),
            *_timestamps(),
        )
        op.create_index("ix_job_vacancies_status", "job_vacancies", ["status"])

    if not insp.has_table("notifications"):
        op.create_table(
            "notifications",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
            sa.Column("batch_id", sa.String(36), sa.ForeignKey("talent_pool_batches.id"), unique=True),
            sa.Column("type", sa.String(50)),
            sa.Column("title", sa.String(255)),
            sa.Column("message", sa.Text),
            sa.Column("data", sa.JSON),
            sa.Column("sent_to", sa.String(255)),
            sa.Column("provider_message_id", sa.String(255)),
            sa.Column("sent_at", sa.DateTime),
            sa.Column("read_at", sa.DateTime),
            *_timestamps(),
        )
        op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    # drop only what exists
    for name in ("notifications", "job_vacancies", "talent_pool_screenings", "talent_pool_candidates",
                 "talent_pool_queue", "talent_pool_batches", "users"):
        if insp.has_table(name):
            op.drop_table(name)
