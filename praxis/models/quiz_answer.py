from __future__ import annotations

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, UniqueConstraint

from praxis.db.base_class import Base


class QuizAnswer(Base):
    __tablename__ = "quiz_answers"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("quiz_sessions.id", ondelete="CASCADE"), nullable=False)
    question_id = Column(Integer, ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False)

    selected_index = Column(Integer, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("session_id", "question_id", name="uq_quiz_answer_session_question"),
        Index("idx_quiz_answers_session", "session_id"),
        Index("idx_quiz_answers_question", "question_id"),
    )
