import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field, StringConstraints
from sqlalchemy.orm import Session

from praxis.api.schemas import CamelModel, VideoMeta
from praxis.core.auth import get_current_user_id
from praxis.core.config import settings
from praxis.db.session import get_db
from praxis.services.quizzes import (
    MAX_QUESTIONS,
    MIN_QUESTIONS,
    finish_session,
    generate_quiz,
    get_next_question,
    get_session_results,
    get_session_view,
    submit_answer,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quiz", tags=["quiz"])


# ----------------------------
# Wire models
# ----------------------------

class ContextSpec(CamelModel):
    type: Literal["minutes", "chapter"]
    value: int = Field(gt=0)


class GenerateQuizRequest(CamelModel):
    youtube_id: str
    model: str = settings.quiz_model
    transcript_context: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    context_spec: ContextSpec
    num_questions: int = Field(default=5, ge=MIN_QUESTIONS, le=MAX_QUESTIONS)
    choices_count: Literal[4] = 4
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    meta: VideoMeta = Field(default_factory=VideoMeta)


class GenerateQuizResponse(CamelModel):
    quiz_id: int
    session_id: int
    total: int


class NextQuestionRequest(CamelModel):
    session_id: int
    quiz_id: int


class QuestionView(CamelModel):
    question_id: int
    prompt: str
    options: list[str]
    index: int
    total: int


class AnswerRequest(CamelModel):
    session_id: int
    question_id: int
    selected_index: int = Field(ge=0, le=3)


class Progress(CamelModel):
    answered: int
    total: int


class AnswerResponse(CamelModel):
    acknowledged: bool
    progress: Progress


class FinishRequest(CamelModel):
    session_id: int


class ResultDetail(CamelModel):
    question_id: int
    prompt: str
    options: list[str]
    selected_index: int
    correct_index: int
    is_correct: bool
    explanation: str | None = None


class ResultsResponse(CamelModel):
    total: int
    correct: int
    details: list[ResultDetail]


class SessionQuestion(CamelModel):
    question_id: int
    prompt: str
    options: list[str]
    selected_index: int


class SessionResponse(CamelModel):
    questions: list[SessionQuestion]
    answered: int
    total: int


# ----------------------------
# Routes
# ----------------------------

@router.post("/generate", response_model=GenerateQuizResponse)
def quiz_generate(
    req: GenerateQuizRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> GenerateQuizResponse:
    try:
        out = generate_quiz(
            db,
            user_id=user_id,
            youtube_id=req.youtube_id,
            transcript_context=req.transcript_context,
            context_spec=req.context_spec.model_dump(),
            num_questions=req.num_questions,
            choices_count=req.choices_count,
            difficulty=req.difficulty,
            meta=req.meta.model_dump(exclude_none=True),
            model=req.model,
        )
    except Exception:
        logger.exception("[quiz/generate] failed for %s", req.youtube_id)
        raise HTTPException(status_code=500, detail="Internal error")
    return GenerateQuizResponse(**out)


@router.post("/next", response_model=QuestionView | None)
def quiz_next(
    req: NextQuestionRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> QuestionView | None:
    try:
        q = get_next_question(db, user_id=user_id, session_id=req.session_id, quiz_id=req.quiz_id)
    except Exception:
        logger.exception("[quiz/next] session=%s", req.session_id)
        raise HTTPException(status_code=500, detail="Internal error")
    return QuestionView(**q) if q else None


@router.post("/answer", response_model=AnswerResponse)
def quiz_answer(
    req: AnswerRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> AnswerResponse:
    try:
        out = submit_answer(
            db,
            user_id=user_id,
            session_id=req.session_id,
            question_id=req.question_id,
            selected_index=req.selected_index,
        )
    except Exception:
        logger.exception("[quiz/answer] session=%s question=%s", req.session_id, req.question_id)
        raise HTTPException(status_code=500, detail="Internal error")
    return AnswerResponse(**out)


@router.post("/finish", response_model=ResultsResponse)
def quiz_finish(
    req: FinishRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ResultsResponse:
    try:
        finish_session(db, user_id=user_id, session_id=req.session_id)
        out = get_session_results(db, user_id=user_id, session_id=req.session_id)
    except Exception:
        logger.exception("[quiz/finish] session=%s", req.session_id)
        raise HTTPException(status_code=500, detail="Internal error")
    return ResultsResponse(**out)


@router.get("/session", response_model=SessionResponse)
def quiz_session(
    session_id: int = Query(alias="sessionId"),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> SessionResponse:
    try:
        out = get_session_view(db, user_id=user_id, session_id=session_id)
    except Exception:
        logger.exception("[quiz/session] session=%s", session_id)
        raise HTTPException(status_code=500, detail="Internal error")
    return SessionResponse(**out)
