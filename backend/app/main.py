import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_v1_router
from app.core.config import settings
from app.services.builder.exceptions import (
    FormNotFoundError,
    FormNotPublishedError,
    NotAuthenticatedError,
    PersistenceError,
    SubmissionRejectedError,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
if settings.TRUSTED_HOSTS != ["*"]:
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.TRUSTED_HOSTS)

app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
def health_check():
    return {"status": "healthy"}


# --- Exception handlers ---


@app.exception_handler(NotAuthenticatedError)
async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
    return JSONResponse(
        status_code=401,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(FormNotFoundError)
async def form_not_found_handler(request: Request, exc: FormNotFoundError):
    return JSONResponse(status_code=404, content={"detail": "Form not found"})


@app.exception_handler(FormNotPublishedError)
async def form_not_published_handler(request: Request, exc: FormNotPublishedError):
    return JSONResponse(status_code=409, content={"detail": "Form is not published"})


@app.exception_handler(SubmissionRejectedError)
async def submission_rejected_handler(request: Request, exc: SubmissionRejectedError):
    return JSONResponse(status_code=422, content={"detail": exc.errors})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})
