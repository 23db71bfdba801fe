from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from praxis.db.base_class import Base


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    created_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(Integer, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)

    # context spec: last_minutes | last_chapter
    spec_type = Column(String(32), nullable=False)
    spec_value = Column(Integer, nullable=False)

    meta_json = Column(Text, nullable=False, default="{}")  # {"title","description","channel"}

    num_questions = Column(Integer, nullable=False)
    choices_count = Column(Integer, nullable=False, default=4)
    difficulty = Column(String(16), nullable=False, default="medium")  # easy|medium|hard
    model = Column(String(128), nullable=False)

    status = Column(String(16), nullable=False, default="active")  # draft|active|archived

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    questions = relationship(
        "QuizQuestion",
        back_populates="quiz",
        order_by="QuizQuestion.position",
        cascade="all, delete-orphan",
    )
