"""
Point d'entrée principal de l'API de présence par QR code.
Démarrage : uvicorn qrattend.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import qrattend.models  # noqa: F401 — enregistre tous les modèles dans Base.metadata avant les routers
from qrattend.config import settings
from qrattend.database import init_db
from qrattend.exceptions import (
    AttendanceError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ResourceExhaustedError,
    StorageUnavailableError,
)
from qrattend.routers import scans, sessions, students
from qrattend.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Ordre significatif : la première classe correspondante l'emporte
ERROR_STATUS = (
    (NotFoundError, 404),
    (ForbiddenError, 403),
    (ConflictError, 409),
    (ResourceExhaustedError, 503),
    (StorageUnavailableError, 503),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie : crée les tables si demandé, démarre et arrête le scheduler."""
    if settings.DB_AUTO_CREATE:
        init_db()
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="QR Attendance API",
    description="API de présence en classe par QR code : sessions, scans, absences",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-Student-Id", "X-Teacher-Id"],
)


app.include_router(sessions.router)
app.include_router(scans.router)
app.include_router(students.router)


@app.exception_handler(AttendanceError)
async def attendance_error_handler(request: Request, exc: AttendanceError) -> JSONResponse:
    """Traduit les erreurs métier en codes HTTP."""
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 400)
    if status_code >= 500:
        logger.warning("%s sur %s : %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "QR Attendance API", "version": "0.1.0"}
