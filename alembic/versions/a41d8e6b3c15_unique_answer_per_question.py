"""one answer per (session, question)

Revision ID: a41d8e6b3c15
Revises: 7c1f0a9d2e41
Create Date: 2026-10-21 09:40:12.118503

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "a41d8e6b3c15"
down_revision: Union[str, None] = "7c1f0a9d2e41"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # keep the earliest answer where concurrent submits already doubled up
    op.execute(
        """
        DELETE FROM quiz_answers a
        USING quiz_answers b
        WHERE a.session_id = b.session_id
          AND a.question_id = b.question_id
          AND a.id > b.id
        """
    )
    op.create_unique_constraint(
        "uq_quiz_answer_session_question",
        "quiz_answers",
        ["session_id", "question_id"],
    )


def downgrade() -> None:
    op.drop_constraint("uq_quiz_answer_session_question", "quiz_answers", type_="unique")
