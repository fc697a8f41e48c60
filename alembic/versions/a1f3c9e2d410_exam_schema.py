"""exam schema: subjects, questions, test results

Revision ID: a1f3c9e2d410
Revises:
Create Date: 2026-10-19 13:52:04.118230

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1f3c9e2d410"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "subjects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.UniqueConstraint("name", name="uq_subjects_name"),
    )

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("option1", sa.Text(), nullable=False),
        sa.Column("option2", sa.Text(), nullable=False),
        sa.Column("option3", sa.Text(), nullable=False),
        sa.Column("option4", sa.Text(), nullable=False),
        sa.Column("answer", sa.String(length=1), nullable=False),
        sa.Column(
            "subject_id",
            sa.Integer(),
            sa.ForeignKey("subjects.id", name="fk_questions_subject_id_subjects"),
            nullable=False,
        ),
        sa.Column("degree", sa.String(length=16), nullable=False),
    )
    op.create_index("ix_questions_subject_id", "questions", ["subject_id"])
    op.create_index("ix_questions_degree", "questions", ["degree"])

    op.create_table(
        "test_results",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("degree", sa.String(length=16), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        sa.Column("answered_questions", sa.Integer(), nullable=False),
        sa.Column("unanswered_questions", sa.Integer(), nullable=False),
        sa.Column("score", sa.Numeric(5, 2), nullable=False),
        sa.Column("correct_answers", sa.Integer(), nullable=False),
        sa.Column("incorrect_answers", sa.Integer(), nullable=False),
        sa.Column("time_taken", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_test_results_user_id", "test_results", ["user_id"])
    op.create_index("ix_test_results_created_at", "test_results", ["created_at"])

    op.create_table(
        "test_questions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "test_result_id",
            sa.Integer(),
            sa.ForeignKey("test_results.id", name="fk_test_questions_test_result_id_test_results"),
            nullable=False,
        ),
        sa.Column(
            "question_id",
            sa.Integer(),
            sa.ForeignKey("questions.id", name="fk_test_questions_question_id_questions"),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "test_result_id", "question_id", name="uq_test_questions_test_result_id"
        ),
    )
    op.create_index("ix_test_questions_test_result_id", "test_questions", ["test_result_id"])

    op.create_table(
        "test_answers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "test_result_id",
            sa.Integer(),
            sa.ForeignKey("test_results.id", name="fk_test_answers_test_result_id_test_results"),
            nullable=False,
        ),
        sa.Column(
            "question_id",
            sa.Integer(),
            sa.ForeignKey("questions.id", name="fk_test_answers_question_id_questions"),
            nullable=False,
        ),
        sa.Column("selected_answer", sa.String(length=8), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("time_taken", sa.Integer(), nullable=False),
        sa.UniqueConstraint("test_result_id", "question_id", name="uq_test_answers_test_result_id"),
    )
    op.create_index("ix_test_answers_test_result_id", "test_answers", ["test_result_id"])


def downgrade() -> None:
    op.drop_index("ix_test_answers_test_result_id", table_name="test_answers")
    op.drop_table("test_answers")
    op.drop_index("ix_test_questions_test_result_id", table_name="test_questions")
    op.drop_table("test_questions")
    op.drop_index("ix_test_results_created_at", table_name="test_results")
    op.drop_index("ix_test_results_user_id", table_name="test_results")
    op.drop_table("test_results")
    op.drop_index("ix_questions_degree", table_name="questions")
    op.drop_index("ix_questions_subject_id", table_name="questions")
    op.drop_table("questions")
    op.drop_table("subjects")
