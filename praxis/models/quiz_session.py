from __future__ import annotations

from sqlalchemy import BigInteger, Column, ForeignKey, Integer, String

from praxis.db.base_class import Base


class QuizSession(Base):
    __tablename__ = "quiz_sessions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # status: in_progress | completed
    status = Column(String(16), nullable=False, default="in_progress")

    started_at_ms = Column(BigInteger, nullable=False)
    finished_at_ms = Column(BigInteger, nullable=True)
