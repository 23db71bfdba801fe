import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.orm import Session

from praxis.api.chapters import router as chapters_router
from praxis.api.chat import router as chat_router
from praxis.api.datesheets import router as datesheets_router
from praxis.api.quiz import router as quiz_router
from praxis.api.search import router as search_router
from praxis.api.suggestions import router as suggestions_router
from praxis.api.videos import router as videos_router
from praxis.core.auth import NotAuthenticated
from praxis.core.config import settings
from praxis.db.session import get_db

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Praxis API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chapters_router)
app.include_router(quiz_router)
app.include_router(chat_router)
app.include_router(search_router)
app.include_router(suggestions_router)
app.include_router(videos_router)
app.include_router(datesheets_router)


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("invalid request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": "Invalid body"})


@app.exception_handler(NotAuthenticated)
async def not_authenticated_handler(request: Request, exc: NotAuthenticated) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": "Unauthorized"})


class HealthResponse(BaseModel):
    ok: bool
    service: str
    version: str
    db_ok: bool


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    db_ok = False
    gen = get_db()
    try:
        db: Session = next(gen)
        db.execute(text("SELECT 1"))
        db_ok = True
    except Exception:
        logger.exception("health check: database unreachable")
    finally:
        gen.close()

    return HealthResponse(ok=True, service="api", version=app.version, db_ok=db_ok)
