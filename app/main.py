# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the ExamPrep API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import ExamPrepException, examprep_exception_handler
from app.routers import (
    admin_audit,
    admin_dashboard,
    admin_imports,
    admin_questions,
    admin_reviews,
    admin_subjects,
    admin_topics,
    admin_users,
    analytics,
    catalog,
    cron,
    health,
    me,
    notifications,
    sessions,
    tasks,
)
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs startup configuration and shutdown.
    """
    logger.info(f"Starting ExamPrep API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set; AI question review is disabled")

    yield

    logger.info("Shutting down ExamPrep API")


# Create FastAPI application
app = FastAPI(
    title="ExamPrep API",
    description="""
## Exam Preparation API

Backend for WAEC, JAMB, NECO and GCE practice.

### Students

- Browse subjects and topics
- Practice, test and timed sessions with server-side question selection
- Stats, per-topic progress and analytics
- Notifications and daily reminders

### Admin Portal

- Subject, topic and question management with audit logging
- CSV import with validation and import reports
- AI-generated hints, solutions and explanations with approval workflow
- User management and dashboard alerts
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Verify JWT tokens and read the current profile"},
        {"name": "Catalogue", "description": "Active subjects and topics"},
        {"name": "Sessions", "description": "Practice and test sessions"},
        {"name": "Analytics", "description": "Student stats, progress and analytics"},
        {"name": "Notifications", "description": "In-app notifications"},
        {"name": "Admin: Subjects", "description": "Subject management"},
        {"name": "Admin: Topics", "description": "Topic management and ordering"},
        {"name": "Admin: Questions", "description": "Question management, preview and images"},
        {"name": "Admin: Import", "description": "CSV import and import reports"},
        {"name": "Admin: Reviews", "description": "AI question review"},
        {"name": "Admin: Users", "description": "Account management"},
        {"name": "Admin: Audit", "description": "Admin action history"},
        {"name": "Admin: Dashboard", "description": "Dashboard stats and alerts"},
        {"name": "Tasks", "description": "Track background task progress"},
        {"name": "Cron", "description": "Scheduler-triggered jobs"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(ExamPrepException)
async def handle_examprep_exception(request: Request, exc: ExamPrepException):
    """Handle custom ExamPrep exceptions."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return await examprep_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

API_PREFIX = "/api/v1"

app.include_router(auth_routes.router, prefix=API_PREFIX, tags=["Auth"])
app.include_router(health.router, prefix=API_PREFIX, tags=["Health"])
app.include_router(catalog.router, prefix=API_PREFIX, tags=["Catalogue"])
app.include_router(sessions.router, prefix=f"{API_PREFIX}/sessions", tags=["Sessions"])
app.include_router(me.router, prefix=f"{API_PREFIX}/me", tags=["Me"])
app.include_router(analytics.router, prefix=f"{API_PREFIX}/analytics", tags=["Analytics"])
app.include_router(notifications.router, prefix=f"{API_PREFIX}/notifications", tags=["Notifications"])
app.include_router(tasks.router, prefix=f"{API_PREFIX}/tasks", tags=["Tasks"])
app.include_router(cron.router, prefix=f"{API_PREFIX}/cron", tags=["Cron"])

# Admin portal
app.include_router(admin_subjects.router, prefix=f"{API_PREFIX}/admin/subjects", tags=["Admin: Subjects"])
app.include_router(admin_topics.router, prefix=f"{API_PREFIX}/admin/topics", tags=["Admin: Topics"])
app.include_router(admin_questions.router, prefix=f"{API_PREFIX}/admin/questions", tags=["Admin: Questions"])
app.include_router(admin_imports.router, prefix=f"{API_PREFIX}/admin/import", tags=["Admin: Import"])
app.include_router(admin_reviews.router, prefix=f"{API_PREFIX}/admin/reviews", tags=["Admin: Reviews"])
app.include_router(admin_users.router, prefix=f"{API_PREFIX}/admin/users", tags=["Admin: Users"])
app.include_router(admin_audit.router, prefix=f"{API_PREFIX}/admin/audit", tags=["Admin: Audit"])
app.include_router(admin_dashboard.router, prefix=f"{API_PREFIX}/admin/dashboard", tags=["Admin: Dashboard"])


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "ExamPrep API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
