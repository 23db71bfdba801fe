"""initial schema: users, videos, quizzes, sessions, datesheets, suggestions

Revision ID: 7c1f0a9d2e41
Revises:
Create Date: 2026-10-19 10:12:31.402117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "7c1f0a9d2e41"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_subject", "users", ["subject"], unique=True)

    op.create_table(
        "videos",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("youtube_id", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("channel", sa.String(length=255), nullable=False),
        sa.Column("duration_ms", sa.BigInteger(), nullable=True),
        sa.Column("views", sa.BigInteger(), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
    )
    op.create_index("ix_videos_youtube_id", "videos", ["youtube_id"], unique=True)

    op.create_table(
        "quizzes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("created_by_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("video_id", sa.Integer(), sa.ForeignKey("videos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("spec_type", sa.String(length=32), nullable=False),
        sa.Column("spec_value", sa.Integer(), nullable=False),
        sa.Column("meta_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("num_questions", sa.Integer(), nullable=False),
        sa.Column("choices_count", sa.Integer(), nullable=False, server_default="4"),
        sa.Column("difficulty", sa.String(length=16), nullable=False, server_default="medium"),
        sa.Column("model", sa.String(length=128), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_quizzes_id", "quizzes", ["id"])
    op.create_index("ix_quizzes_created_by_user_id", "quizzes", ["created_by_user_id"])
    op.create_index("ix_quizzes_video_id", "quizzes", ["video_id"])

    op.create_table(
        "quiz_questions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("options_json", sa.Text(), nullable=False),
        sa.Column("correct_index", sa.Integer(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.UniqueConstraint("quiz_id", "position", name="uq_quiz_questions_quiz_position"),
    )
    op.create_index("ix_quiz_questions_id", "quiz_questions", ["id"])
    op.create_index("ix_quiz_questions_quiz_id", "quiz_questions", ["quiz_id"])

    op.create_table(
        "quiz_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="in_progress"),
        sa.Column("started_at_ms", sa.BigInteger(), nullable=False),
        sa.Column("finished_at_ms", sa.BigInteger(), nullable=True),
    )
    op.create_index("ix_quiz_sessions_id", "quiz_sessions", ["id"])
    op.create_index("ix_quiz_sessions_quiz_id", "quiz_sessions", ["quiz_id"])
    op.create_index("ix_quiz_sessions_user_id", "quiz_sessions", ["user_id"])

    op.create_table(
        "quiz_answers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("quiz_sessions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("selected_index", sa.Integer(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_quiz_answers_id", "quiz_answers", ["id"])
    op.create_index("idx_quiz_answers_session", "quiz_answers", ["session_id"])
    op.create_index("idx_quiz_answers_question", "quiz_answers", ["question_id"])

    op.create_table(
        "datesheets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("source_type", sa.String(length=16), nullable=False),
        sa.Column("file_url", sa.Text(), nullable=True),
        sa.Column("items_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_datesheets_id", "datesheets", ["id"])
    op.create_index("ix_datesheets_user_id", "datesheets", ["user_id"])

    op.create_table(
        "video_suggestions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("youtube_id", sa.String(length=32), nullable=False),
        sa.Column("suggestions_json", sa.Text(), nullable=False),
    )
    op.create_index("ix_video_suggestions_youtube_id", "video_suggestions", ["youtube_id"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_video_suggestions_youtube_id", table_name="video_suggestions")
    op.drop_table("video_suggestions")

    op.drop_index("ix_datesheets_user_id", table_name="datesheets")
    op.drop_index("ix_datesheets_id", table_name="datesheets")
    op.drop_table("datesheets")

    op.drop_index("idx_quiz_answers_question", table_name="quiz_answers")
    op.drop_index("idx_quiz_answers_session", table_name="quiz_answers")
    op.drop_index("ix_quiz_answers_id", table_name="quiz_answers")
    op.drop_table("quiz_answers")

    op.drop_index("ix_quiz_sessions_user_id", table_name="quiz_sessions")
    op.drop_index("ix_quiz_sessions_quiz_id", table_name="quiz_sessions")
    op.drop_index("ix_quiz_sessions_id", table_name="quiz_sessions")
    op.drop_table("quiz_sessions")

    op.drop_index("ix_quiz_questions_quiz_id", table_name="quiz_questions")
    op.drop_index("ix_quiz_questions_id", table_name="quiz_questions")
    op.drop_table("quiz_questions")

    op.drop_index("ix_quizzes_video_id", table_name="quizzes")
    op.drop_index("ix_quizzes_created_by_user_id", table_name="quizzes")
    op.drop_index("ix_quizzes_id", table_name="quizzes")
    op.drop_table("quizzes")

    op.drop_index("ix_videos_youtube_id", table_name="videos")
    op.drop_table("videos")

    op.drop_index("ix_users_subject", table_name="users")
    op.drop_table("users")
