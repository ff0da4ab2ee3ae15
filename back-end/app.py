from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from controllers.courseController import router as course_router
from controllers.authController import router as auth_router
from controllers.enrollmentController import router as enrollment_router
from controllers.ruleController import router as rule_router
from dependencies import ENROLLMENT_STORE, get_stores
from helpers.exceptions import EnrollmentError, StoreUnavailableError
from helpers.messages import get_error_message, pick_language
import logging

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    if ENROLLMENT_STORE == "mongo":
        from database import on_startup as init_db, on_shutdown as db_shutdown
        await init_db()
        yield
        await db_shutdown()
    else:
        stores = get_stores()
        await stores.refresh_token_store.cleanup_expired()
        yield

app = FastAPI(
    title="Course Registration System API",
    description="Enrollment and drop rules for a university course registration system",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(auth_router, prefix="/api/v1", tags=["Authentication"])
app.include_router(course_router, prefix="/api/v1", tags=["Courses"])
app.include_router(enrollment_router, prefix="/api/v1", tags=["Enrollments"])
app.include_router(rule_router, prefix="/api/v1", tags=["Rules"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # For development only - allow all origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def error_response(request: Request, status_code: int, error_code: str, fallback: str, details: dict | None = None):
    language = pick_language(request.headers.get("accept-language"))
    return JSONResponse(
        status_code=status_code,
        content={
            "message": get_error_message(error_code, language, fallback),
            "error_code": error_code,
            "details": details or {}
        }
    )

@app.exception_handler(EnrollmentError)
async def enrollment_error_handler(request: Request, exc: EnrollmentError):
    logger.info(f"{request.method} {request.url.path} rejected with {exc.error_code}: {exc.message}")
    return error_response(request, exc.status_code, exc.error_code, exc.message, exc.details)

@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    response = error_response(
        request, exc.status_code, exc.error_code, exc.message,
        {"operation": exc.operation, "retryable": exc.retryable}
    )
    response.headers["Retry-After"] = "1"
    return response

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}")
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Internal server error")

@app.get("/health")
async def health():
    return {"status": "ok", "store": ENROLLMENT_STORE}
