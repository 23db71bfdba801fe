from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, create_model
from sqlalchemy.orm import Session

from praxis.core.config import settings
from praxis.models.datesheet import Datesheet
from praxis.services.llm import openai_client
from praxis.services.llm.prompts import (
    DATESHEET_ALLOWED_TEMPLATE,
    DATESHEET_RULES,
    DATESHEET_STYLE,
    DATESHEET_SYSTEM,
)

logger = logging.getLogger(__name__)

SOURCE_TYPES = ("upload", "manual")


class DatesheetNotFound(Exception):
    pass


class Forbidden(Exception):
    pass


# ----------------------------
# LLM parsing
# ----------------------------

def _item_model(allowed_subjects: list[str]) -> type[BaseModel]:
    # subject is constrained to the allowed values when there are any
    subject_type: Any = str
    if allowed_subjects:
        subject_type = Literal[tuple(allowed_subjects)]

    return create_model(
        "ParsedDatesheetItem",
        __config__=ConfigDict(populate_by_name=True),
        subject=(subject_type, ...),
        exam_date=(str, Field(alias="examDate")),
        syllabus=(list[str], Field(default_factory=list)),
    )


def _datesheet_model(allowed_subjects: list[str]) -> type[BaseModel]:
    item = _item_model(allowed_subjects)
    return create_model(
        "ParsedDatesheet",
        title=(str, ""),
        items=(list[item], Field(min_length=1)),
    )


def _unique_subjects(subjects: list[str]) -> list[str]:
    out: list[str] = []
    for s in subjects:
        s = s.strip() if isinstance(s, str) else ""
        if s and s not in out:
            out.append(s)
    return out


def attachment_part(url: str) -> dict[str, Any]:
    """PDFs go as file parts, everything else as an image."""
    path = urlparse(url).path.lower()
    if path.endswith(".pdf"):
        filename = path.rsplit("/", 1)[-1] or "datesheet.pdf"
        return {"type": "file", "file": {"filename": filename, "file_data": url}}
    return {"type": "image_url", "image_url": {"url": url}}


def build_parse_prompt(allowed_subjects: list[str]) -> str:
    parts = list(DATESHEET_RULES)
    if allowed_subjects:
        parts.append(DATESHEET_ALLOWED_TEMPLATE.format(allowed=json.dumps(allowed_subjects, ensure_ascii=False)))
    parts.append(DATESHEET_STYLE)
    return " ".join(parts)


def parse_datesheet(urls: list[str], allowed_subjects: list[str] | None = None) -> dict[str, Any]:
    """
    Extract {"title", "items": [{"subject", "exam_date", "syllabus"}]} from
    datesheet/syllabus documents at `urls`.
    """
    urls = [u for u in urls if u]
    if not urls:
        raise ValueError("Missing fileUrl(s) or imageUrl(s)")

    allowed = _unique_subjects(allowed_subjects or [])
    content: list[dict[str, Any]] = [{"type": "text", "text": build_parse_prompt(allowed)}]
    content.extend(attachment_part(u) for u in urls)

    parsed = openai_client.generate_object(
        model=settings.datesheet_model,
        schema=_datesheet_model(allowed),
        system=DATESHEET_SYSTEM,
        prompt=[{"role": "user", "content": content}],
        temperature=0.2,
    )
    logger.info("parsed %d datesheet items from %d attachments", len(parsed.items), len(urls))
    return {
        "title": parsed.title,
        "items": [{"subject": it.subject, "exam_date": it.exam_date, "syllabus": list(it.syllabus)} for it in parsed.items],
    }


# ----------------------------
# Persistence
# ----------------------------

def _load_items(sheet: Datesheet) -> list[dict[str, Any]]:
    try:
        items = json.loads(sheet.items_json or "[]")
    except json.JSONDecodeError:
        return []
    return items if isinstance(items, list) else []


def normalize_items(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Trim strings and drop empty syllabus bullets."""
    return [
        {
            "subject": (it.get("subject") or "").strip(),
            "exam_date": (it.get("exam_date") or "").strip(),
            "syllabus": [s.strip() for s in (it.get("syllabus") or []) if s and s.strip()],
        }
        for it in items
    ]


def create_datesheet(
    db: Session,
    *,
    user_id: int,
    title: str,
    source_type: str,
    items: list[dict[str, Any]],
    file_url: str | None = None,
    notes: str | None = None,
) -> Datesheet:
    if source_type not in SOURCE_TYPES:
        raise ValueError(f"source_type must be one of {SOURCE_TYPES}")

    sheet = Datesheet(
        user_id=user_id,
        title=(title or "").strip(),
        source_type=source_type,
        file_url=file_url,
        items_json=json.dumps(normalize_items(items), ensure_ascii=False),
        notes=notes.strip() if notes else None,
    )
    db.add(sheet)
    db.commit()
    db.refresh(sheet)
    return sheet


def list_datesheets(db: Session, *, user_id: int) -> list[dict[str, Any]]:
    rows = (
        db.query(Datesheet)
        .filter(Datesheet.user_id == user_id)
        .order_by(Datesheet.created_at.desc(), Datesheet.id.desc())
        .all()
    )

    out = []
    for d in rows:
        items = _load_items(d)
        dates = sorted(it.get("exam_date") for it in items if it.get("exam_date"))
        out.append(
            {
                "id": d.id,
                "created_at": d.created_at.isoformat() if d.created_at else None,
                "title": d.title,
                "source_type": d.source_type,
                "file_url": d.file_url,
                "items_count": len(items),
                "first_exam_date": dates[0] if dates else None,
                "last_exam_date": dates[-1] if dates else None,
            }
        )
    return out


def list_upcoming(db: Session, *, user_id: int, limit: int, today: str | None = None) -> list[dict[str, Any]]:
    """
    Exam items dated today or later across all of the user's datesheets,
    soonest first.
    """
    today = today or date.today().isoformat()
    rows = (
        db.query(Datesheet)
        .filter(Datesheet.user_id == user_id)
        .order_by(Datesheet.created_at.desc(), Datesheet.id.desc())
        .all()
    )

    flattened = []
    for d in rows:
        items = _load_items(d)
        first_subject = ((items[0].get("subject") if items else "") or "").strip()
        raw_title = (d.title or "").strip()
        # a title that merely repeats the first subject is noise
        title = raw_title if raw_title and raw_title != first_subject else ""
        for it in items:
            flattened.append(
                {
                    "datesheet_id": d.id,
                    "title": title,
                    "subject": it.get("subject") or "",
                    "exam_date": it.get("exam_date") or "",
                    "syllabus": [s for s in (it.get("syllabus") or []) if s],
                }
            )

    upcoming = [x for x in flattened if x["exam_date"] >= today]
    upcoming.sort(key=lambda x: x["exam_date"])
    return upcoming[: max(0, limit)]


def remove_exam(db: Session, *, user_id: int, datesheet_id: int, subject: str, exam_date: str) -> None:
    sheet = db.query(Datesheet).filter(Datesheet.id == datesheet_id).first()
    if not sheet:
        raise DatesheetNotFound(f"Datesheet {datesheet_id} not found")
    if sheet.user_id != user_id:
        raise Forbidden("Forbidden")

    target_subject = subject.strip()
    target_date = exam_date.strip()
    items = _load_items(sheet)
    kept = [
        it
        for it in items
        if not ((it.get("subject") or "").strip() == target_subject and (it.get("exam_date") or "").strip() == target_date)
    ]
    if len(kept) != len(items):
        sheet.items_json = json.dumps(kept, ensure_ascii=False)
        db.commit()
