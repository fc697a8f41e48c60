import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from errors import AppError, ErrorKind, error_messages

# Routers
from routers.admin import router as admin_router
from routers.health import router as health_router
from routers.questions import router as questions_router
from routers.tests import router as tests_router

logger = logging.getLogger("gpat-exams")
logging.basicConfig(level=config.LOG_LEVEL)

app = FastAPI(title="GPAT Exams – Test API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "x-api-key", "x-admin-token", "x-user-id"],
)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.TRANSACTION_FAILURE: 500,
    ErrorKind.INTERNAL: 500,
}


def _fail(status: int, message: str, kind: ErrorKind, errors=None) -> JSONResponse:
    body = {"success": False, "message": message, "error": {"kind": kind.value}}
    if errors:
        body["error"]["errors"] = errors
    return JSONResponse(status_code=status, content=body)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    status = STATUS_BY_KIND.get(exc.kind, 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc.__cause__)
    return _fail(status, exc.message, exc.kind, exc.errors)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = error_messages(exc.errors())
    return _fail(400, ", ".join(errors) or "Invalid request", ErrorKind.VALIDATION, errors)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    kind = ErrorKind.NOT_FOUND if exc.status_code == 404 else ErrorKind.INTERNAL
    if exc.status_code == 400:
        kind = ErrorKind.VALIDATION
    return _fail(exc.status_code, str(exc.detail), kind)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return _fail(500, "Internal server error", ErrorKind.INTERNAL)


@app.get("/")
def health_root():
    return {"success": True}


app.include_router(questions_router)  # /questions/...
app.include_router(tests_router)  # /tests/...
app.include_router(admin_router)  # /admin/...
app.include_router(health_router)  # /health/...
