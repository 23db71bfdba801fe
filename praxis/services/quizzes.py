from __future__ import annotations

import json
import logging
import time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from praxis.core.config import settings
from praxis.models.quiz import Quiz
from praxis.models.quiz_answer import QuizAnswer
from praxis.models.quiz_question import QuizQuestion
from praxis.models.quiz_session import QuizSession
from praxis.services.llm import openai_client
from praxis.services.llm.prompts import QUIZ_SYSTEM_TEMPLATE
from praxis.services.users import upsert_video
from praxis.services.youtube import build_video_url

logger = logging.getLogger(__name__)

MIN_QUESTIONS = 3
MAX_QUESTIONS = 10
MAX_EXCERPT_CHARS = 8000

Difficulty = Literal["easy", "medium", "hard"]

# wire scope -> stored scope
_SPEC_TYPES = {"minutes": "last_minutes", "chapter": "last_chapter"}


class InvalidSession(Exception):
    pass


class QuestionNotFound(Exception):
    pass


def _now_ms() -> int:
    return int(time.time() * 1000)


# ----------------------------
# LLM output contract
# ----------------------------

class GeneratedQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str
    options: list[str] = Field(min_length=4, max_length=4)
    correct_index: int = Field(alias="correctIndex", ge=0, le=3)
    explanation: str


class GeneratedQuiz(BaseModel):
    questions: list[GeneratedQuestion] = Field(min_length=MIN_QUESTIONS, max_length=MAX_QUESTIONS)


def generate_questions(
    *,
    youtube_id: str,
    transcript_context: str,
    context_spec: dict[str, Any],
    num_questions: int,
    choices_count: int,
    difficulty: str,
    meta: dict[str, Any],
    model: str,
) -> list[GeneratedQuestion]:
    system = QUIZ_SYSTEM_TEMPLATE.format(
        num_questions=num_questions,
        choices_count=choices_count,
        difficulty=difficulty,
    )
    prompt = json.dumps(
        {
            "contextSpec": context_spec,
            "transcriptExcerpt": (transcript_context or "")[:MAX_EXCERPT_CHARS],
            "difficulty": difficulty,
            "choicesCount": choices_count,
            "numQuestions": num_questions,
            "meta": {
                "title": meta.get("title") or youtube_id,
                "channel": meta.get("channel") or "Unknown",
                "description": meta.get("description") or "",
            },
        },
        ensure_ascii=False,
    )

    generated = openai_client.generate_object(
        model=model,
        schema=GeneratedQuiz,
        system=system,
        prompt=prompt,
        temperature=0.3,
    )
    return generated.questions


# ----------------------------
# Session state machine
# ----------------------------

def _get_session(db: Session, session_id: int, user_id: int) -> QuizSession:
    session = db.query(QuizSession).filter(QuizSession.id == session_id).first()
    if not session or session.user_id != user_id:
        raise InvalidSession(f"Invalid session {session_id}")
    return session


def _questions(db: Session, quiz_id: int) -> list[QuizQuestion]:
    return (
        db.query(QuizQuestion)
        .filter(QuizQuestion.quiz_id == quiz_id)
        .order_by(QuizQuestion.position.asc())
        .all()
    )


def _answers_by_question(db: Session, session_id: int) -> dict[int, QuizAnswer]:
    rows = db.query(QuizAnswer).filter(QuizAnswer.session_id == session_id).all()
    return {a.question_id: a for a in rows}


def _options(q: QuizQuestion) -> list[str]:
    try:
        opts = json.loads(q.options_json or "[]")
    except json.JSONDecodeError:
        return []
    return [str(o) for o in opts] if isinstance(opts, list) else []


def create_quiz_with_questions(
    db: Session,
    *,
    user_id: int,
    video_id: int,
    spec_type: str,
    spec_value: int,
    meta: dict[str, Any],
    num_questions: int,
    choices_count: int,
    difficulty: str,
    model: str,
    questions: list[GeneratedQuestion],
) -> Quiz:
    quiz = Quiz(
        created_by_user_id=user_id,
        video_id=video_id,
        spec_type=spec_type,
        spec_value=spec_value,
        meta_json=json.dumps(meta, ensure_ascii=False),
        num_questions=num_questions,
        choices_count=choices_count,
        difficulty=difficulty,
        model=model,
        status="active",
    )
    for i, q in enumerate(questions):
        quiz.questions.append(
            QuizQuestion(
                position=i,
                prompt=q.prompt,
                options_json=json.dumps(q.options, ensure_ascii=False),
                correct_index=q.correct_index,
                explanation=q.explanation,
            )
        )

    # quiz + questions land in one commit
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    return quiz


def create_session(db: Session, *, quiz_id: int, user_id: int) -> QuizSession:
    session = QuizSession(quiz_id=quiz_id, user_id=user_id, status="in_progress", started_at_ms=_now_ms())
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def generate_quiz(
    db: Session,
    *,
    user_id: int,
    youtube_id: str,
    transcript_context: str,
    context_spec: dict[str, Any],
    num_questions: int = 5,
    choices_count: int = 4,
    difficulty: Difficulty = "medium",
    meta: dict[str, Any] | None = None,
    model: str | None = None,
) -> dict[str, Any]:
    """
    Generate questions over the transcript excerpt, persist the quiz with
    its questions, and open a session for `user_id`.

    Returns {"quiz_id", "session_id", "total"}.
    """
    if not (transcript_context or "").strip():
        raise ValueError("Transcript excerpt required")
    if not (MIN_QUESTIONS <= num_questions <= MAX_QUESTIONS):
        raise ValueError(f"num_questions must be in [{MIN_QUESTIONS}, {MAX_QUESTIONS}]")

    spec_type = _SPEC_TYPES.get(context_spec.get("type"))
    if spec_type is None:
        raise ValueError(f"Unknown context spec type: {context_spec.get('type')!r}")

    meta = meta or {}
    model = model or settings.quiz_model

    questions = generate_questions(
        youtube_id=youtube_id,
        transcript_context=transcript_context,
        context_spec=context_spec,
        num_questions=num_questions,
        choices_count=choices_count,
        difficulty=difficulty,
        meta=meta,
        model=model,
    )

    video = upsert_video(
        db,
        youtube_id=youtube_id,
        title=meta.get("title") or youtube_id,
        url=build_video_url(youtube_id),
        channel=meta.get("channel") or "Unknown",
    )

    quiz = create_quiz_with_questions(
        db,
        user_id=user_id,
        video_id=video.id,
        spec_type=spec_type,
        spec_value=int(context_spec["value"]),
        meta={
            "title": meta.get("title") or "",
            "description": meta.get("description"),
            "channel": meta.get("channel"),
        },
        num_questions=num_questions,
        choices_count=choices_count,
        difficulty=difficulty,
        model=model,
        questions=questions,
    )
    session = create_session(db, quiz_id=quiz.id, user_id=user_id)

    logger.info("quiz %s generated for video %s (%d questions, session %s)", quiz.id, youtube_id, len(questions), session.id)
    return {"quiz_id": quiz.id, "session_id": session.id, "total": len(questions)}


def get_next_question(db: Session, *, user_id: int, session_id: int, quiz_id: int) -> dict[str, Any] | None:
    """
    Lowest-position question this session has not answered, or None once
    every question has an answer.
    """
    session = _get_session(db, session_id, user_id)
    if session.quiz_id != quiz_id:
        raise InvalidSession(f"Session {session_id} does not belong to quiz {quiz_id}")

    questions = _questions(db, quiz_id)
    answered = _answers_by_question(db, session_id)

    for index, q in enumerate(questions):
        if q.id in answered:
            continue
        return {
            "question_id": q.id,
            "prompt": q.prompt,
            "options": _options(q),
            "index": index,
            "total": len(questions),
        }
    return None


def submit_answer(
    db: Session,
    *,
    user_id: int,
    session_id: int,
    question_id: int,
    selected_index: int,
) -> dict[str, Any]:
    """
    Record one answer. Re-submitting for an already answered question only
    acknowledges with the current progress.
    """
    session = _get_session(db, session_id, user_id)

    question = db.query(QuizQuestion).filter(QuizQuestion.id == question_id).first()
    if not question or question.quiz_id != session.quiz_id:
        raise QuestionNotFound(f"Question {question_id} not found in quiz {session.quiz_id}")

    total = db.query(QuizQuestion).filter(QuizQuestion.quiz_id == session.quiz_id).count()

    existing = _answers_by_question(db, session_id)
    if question_id in existing:
        return {"acknowledged": True, "progress": {"answered": len(existing), "total": total}}

    db.add(
        QuizAnswer(
            session_id=session_id,
            question_id=question_id,
            selected_index=selected_index,
            is_correct=selected_index == question.correct_index,
        )
    )
    try:
        db.commit()
    except IntegrityError:
        # a concurrent request recorded this answer first
        db.rollback()
        logger.info("duplicate answer ignored: session=%s question=%s", session_id, question_id)

    answered = db.query(QuizAnswer).filter(QuizAnswer.session_id == session_id).count()
    return {"acknowledged": True, "progress": {"answered": answered, "total": total}}


def finish_session(db: Session, *, user_id: int, session_id: int) -> None:
    session = _get_session(db, session_id, user_id)
    session.status = "completed"
    session.finished_at_ms = _now_ms()
    db.commit()


def get_session_results(db: Session, *, user_id: int, session_id: int) -> dict[str, Any]:
    """
    Per-question review. Unanswered questions report selected_index=-1 and
    is_correct=False.
    """
    session = _get_session(db, session_id, user_id)

    questions = _questions(db, session.quiz_id)
    answers = _answers_by_question(db, session_id)

    correct = 0
    details: list[dict[str, Any]] = []
    for q in questions:
        a = answers.get(q.id)
        selected_index = a.selected_index if a else -1
        is_correct = bool(a.is_correct) if a else False
        if is_correct:
            correct += 1
        details.append(
            {
                "question_id": q.id,
                "prompt": q.prompt,
                "options": _options(q),
                "selected_index": selected_index,
                "correct_index": q.correct_index,
                "is_correct": is_correct,
                "explanation": q.explanation,
            }
        )

    return {"total": len(questions), "correct": correct, "details": details}


def get_session_view(db: Session, *, user_id: int, session_id: int) -> dict[str, Any]:
    """Results with the answer key stripped, for resuming a quiz."""
    results = get_session_results(db, user_id=user_id, session_id=session_id)
    questions = [
        {
            "question_id": d["question_id"],
            "prompt": d["prompt"],
            "options": d["options"],
            "selected_index": d["selected_index"],
        }
        for d in results["details"]
    ]
    answered = sum(1 for q in questions if q["selected_index"] >= 0)
    return {"questions": questions, "answered": answered, "total": results["total"]}
