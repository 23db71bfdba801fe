import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field
from sqlalchemy.orm import Session

from praxis.api.schemas import CamelModel
from praxis.core.auth import Identity, get_current_user_id, get_identity
from praxis.db.session import get_db
from praxis.services.datesheets import (
    create_datesheet,
    list_datesheets,
    list_upcoming,
    parse_datesheet,
    remove_exam,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/datesheets", tags=["datesheets"])


class ExamItem(CamelModel):
    subject: str
    exam_date: str
    syllabus: list[str] = Field(default_factory=list)


class ParseRequest(CamelModel):
    file_url: str | None = None
    image_url: str | None = None
    file_urls: list[str] = Field(default_factory=list)
    image_urls: list[str] = Field(default_factory=list)


class ParsedDatesheet(CamelModel):
    title: str = ""
    items: list[ExamItem]


class ParseResponse(CamelModel):
    parsed: ParsedDatesheet


class CreateDatesheetRequest(CamelModel):
    title: str
    source_type: Literal["upload", "manual"]
    file_url: str | None = None
    items: list[ExamItem]
    notes: str | None = None


class CreateDatesheetResponse(CamelModel):
    id: int


class DatesheetSummary(CamelModel):
    id: int
    created_at: str | None = None
    title: str
    source_type: str
    file_url: str | None = None
    items_count: int
    first_exam_date: str | None = None
    last_exam_date: str | None = None


class UpcomingExam(CamelModel):
    datesheet_id: int
    title: str
    subject: str
    exam_date: str
    syllabus: list[str]


class RemoveExamRequest(CamelModel):
    subject: str
    exam_date: str


@router.post("/parse", response_model=ParseResponse)
def parse(req: ParseRequest, identity: Identity = Depends(get_identity)) -> ParseResponse:
    urls = [*req.file_urls, *req.image_urls]
    if req.file_url:
        urls.append(req.file_url)
    if req.image_url:
        urls.append(req.image_url)
    if not urls:
        raise HTTPException(status_code=400, detail="Missing fileUrl(s) or imageUrl(s)")

    try:
        out = parse_datesheet(urls, allowed_subjects=identity.subjects)
    except Exception:
        logger.exception("[datesheets/parse] failed for %s", identity.subject)
        raise HTTPException(status_code=500, detail="Failed to parse")
    return ParseResponse(parsed=ParsedDatesheet(**out))


@router.post("", response_model=CreateDatesheetResponse)
def create(
    req: CreateDatesheetRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> CreateDatesheetResponse:
    try:
        sheet = create_datesheet(
            db,
            user_id=user_id,
            title=req.title,
            source_type=req.source_type,
            file_url=req.file_url,
            items=[it.model_dump() for it in req.items],
            notes=req.notes,
        )
    except Exception:
        logger.exception("[datesheets/create] user=%s", user_id)
        raise HTTPException(status_code=500, detail="Internal error")
    return CreateDatesheetResponse(id=sheet.id)


@router.get("", response_model=list[DatesheetSummary])
def list_all(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)) -> list[DatesheetSummary]:
    return [DatesheetSummary(**d) for d in list_datesheets(db, user_id=user_id)]


@router.get("/upcoming", response_model=list[UpcomingExam])
def upcoming(
    limit: int = Query(default=5, ge=0, le=100),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> list[UpcomingExam]:
    return [UpcomingExam(**x) for x in list_upcoming(db, user_id=user_id, limit=limit)]


@router.post("/{datesheet_id}/remove-exam")
def remove(
    datesheet_id: int,
    req: RemoveExamRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        remove_exam(db, user_id=user_id, datesheet_id=datesheet_id, subject=req.subject, exam_date=req.exam_date)
    except Exception:
        logger.exception("[datesheets/remove-exam] datesheet=%s user=%s", datesheet_id, user_id)
        raise HTTPException(status_code=500, detail="Internal error")
    return {"ok": True}
