# app/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.config import settings
from app.errors import AppError, InternalError
from app.routers import auth, consultants, expenses, health, logo, profile, projects, setup

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "auth", "description": "Inscription et session."},
    {"name": "projects", "description": "Projets, affectation des consultants, archivage."},
    {"name": "expenses", "description": "Notes de frais, trajets et validation."},
    {"name": "consultants", "description": "Gestion des consultants (managers)."},
    {"name": "profile", "description": "Profil et avatar de l'utilisateur connecté."},
]

app = FastAPI(
    title="Expense Tracker API",
    debug=settings.DEBUG,
    version="1.0.0",
    description="API interne : projets de conseil, notes de frais et validation par les managers.",
    openapi_tags=openapi_tags,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,   # important si tu utilises "*"
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["Content-Length"],
    max_age=600,
)


# ===== Erreurs : corps uniforme {"error": "..."} =====

@app.exception_handler(AppError)
async def _app_error(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(HTTPException)
async def _http_error(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def _unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    err = InternalError("Internal server error")
    return JSONResponse(status_code=err.status_code, content={"error": err.message})


app.include_router(health.router)
app.include_router(auth.router,        tags=["auth"])
app.include_router(projects.router,    tags=["projects"])
app.include_router(expenses.router,    tags=["expenses"])
app.include_router(consultants.router, tags=["consultants"])
app.include_router(profile.router,     tags=["profile"])
app.include_router(logo.router,        tags=["profile"])
app.include_router(setup.router,       tags=["auth"])
