# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - tasks.py: Background task status endpoints
# - catalog.py: Public subject and topic catalogue
# - sessions.py: Practice session endpoints
# - analytics.py: Student stats, progress and analytics
# - notifications.py: In-app notifications
# - cron.py: Scheduler-triggered jobs
# - admin_*.py: Admin portal (subjects, topics, questions, imports,
#   reviews, users, audit log, dashboard)
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import tasks
from . import catalog
from . import sessions
from . import analytics
from . import notifications
from . import cron
from . import admin_subjects
from . import admin_topics
from . import admin_questions
from . import admin_imports
from . import admin_reviews
from . import admin_users
from . import admin_audit
from . import admin_dashboard

__all__ = [
    "health",
    "tasks",
    "catalog",
    "sessions",
    "analytics",
    "notifications",
    "cron",
    "admin_subjects",
    "admin_topics",
    "admin_questions",
    "admin_imports",
    "admin_reviews",
    "admin_users",
    "admin_audit",
    "admin_dashboard",
]
