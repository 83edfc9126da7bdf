# =============================================================================
# core/services/user_service.py - User Management
# =============================================================================
# Admin operations on accounts:
# - List/search public.users profiles
# - Create confirmed accounts through the Supabase auth admin API
# - Role and status changes (admin only), soft delete, password reset
# =============================================================================

import logging
import re
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.auth.models import StaffUser, UserRole, UserStatus
from app.config import settings
from app.dependencies import RequestMeta
from app.exceptions import (
    BadRequestError,
    ConflictError,
    ExamPrepException,
    ForbiddenError,
    UserNotFoundError,
)
from core.models.audit import AuditAction, AuditEntity
from core.models.user import AdminUserCreate, AdminUserUpdate
from core.services.audit_service import AuditService
from lib.supabase_client import SupabaseClient
from lib.utils import build_pagination, paginate_range

logger = logging.getLogger(__name__)

USER_SORT_COLUMNS = ("created_at", "full_name", "email", "last_active_date")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 6

RECENT_SESSION_COUNT = 10

HISTORY_ACTIONS = (
    AuditAction.ROLE_CHANGE.value,
    AuditAction.STATUS_CHANGE.value,
    AuditAction.CREATE.value,
)


class UserService:
    """Service for admin user management."""

    @staticmethod
    def list_users(
        search: str | None = None,
        role: str | None = None,
        status: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        client = SupabaseClient.get_client()
        query = client.table("users").select("*", count="exact")

        if search and search.strip():
            term = search.strip()
            query = query.or_(f"email.ilike.%{term}%,full_name.ilike.%{term}%")
        if role:
            query = query.eq("role", role)
        if status:
            query = query.eq("status", status)

        sort_column = sort_by if sort_by in USER_SORT_COLUMNS else "created_at"
        start, end = paginate_range(page, limit)
        response = query.order(sort_column, desc=sort_order != "asc").range(start, end).execute()

        return {
            "users": response.data or [],
            "pagination": build_pagination(response.count or 0, page, limit),
        }

    @staticmethod
    def create_user(
        payload: AdminUserCreate,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Create a confirmed account with a profile row.

        Raises:
            BadRequestError: Invalid email or short password
            ConflictError: Email already registered
        """
        email = payload.email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise BadRequestError("Invalid email format", code="INVALID_EMAIL")
        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise BadRequestError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                code="WEAK_PASSWORD",
            )

        client = SupabaseClient.get_client()
        existing = client.table("users").select("id").eq("email", email).limit(1).execute()
        if existing.data:
            raise ConflictError("A user with this email already exists", code="USER_EXISTS")

        try:
            auth_response = client.auth.admin.create_user({
                "email": email,
                "password": payload.password,
                "email_confirm": True,
                "user_metadata": {"full_name": payload.full_name},
            })
        except Exception as e:
            logger.error(f"Auth user creation failed for {email}: {e}")
            message = str(e)
            if "already" in message.lower():
                raise ConflictError("A user with this email already exists", code="USER_EXISTS")
            raise ExamPrepException(message=message, code="AUTH_ERROR", status_code=500)

        auth_user = getattr(auth_response, "user", None)
        if auth_user is None:
            raise ExamPrepException(message="Failed to create user", code="AUTH_ERROR", status_code=500)

        profile = {
            "id": str(auth_user.id),
            "email": email,
            "full_name": payload.full_name,
            "role": payload.role.value,
            "status": UserStatus.ACTIVE.value,
        }
        response = client.table("users").upsert(profile, on_conflict="id").execute()
        user = response.data[0] if response.data else profile
        logger.info(f"Created user {auth_user.id} ({email}) with role {payload.role.value}")

        AuditService.log_action(
            admin.id, AuditAction.CREATE, AuditEntity.USER, auth_user.id,
            {"email": email, "full_name": payload.full_name, "role": payload.role.value}, meta,
        )
        return user

    @staticmethod
    def get_user_detail(user_id: str | UUID) -> dict[str, Any]:
        """
        Profile, stats from completed sessions, recent sessions and role history.
        """
        user = SupabaseClient.fetch_by_id("users", user_id)
        if not user:
            raise UserNotFoundError(str(user_id))

        client = SupabaseClient.get_client()
        completed = (
            client.table("sessions")
            .select("id, correct_answers, questions_answered, time_spent_seconds")
            .eq("user_id", str(user_id))
            .eq("status", "completed")
            .execute()
        ).data or []

        answered = sum(s.get("questions_answered") or 0 for s in completed)
        correct = sum(s.get("correct_answers") or 0 for s in completed)
        study_seconds = sum(s.get("time_spent_seconds") or 0 for s in completed)

        recent = (
            client.table("sessions")
            .select("id, subject_id, mode, status, score_percentage, questions_answered, started_at, completed_at")
            .eq("user_id", str(user_id))
            .order("started_at", desc=True)
            .limit(RECENT_SESSION_COUNT)
            .execute()
        ).data or []

        history = AuditService.entries_for_entity(
            AuditEntity.USER, user_id, actions=list(HISTORY_ACTIONS), limit=50
        )

        return {
            "user": user,
            "stats": {
                "totalSessions": len(completed),
                "totalQuestionsAnswered": answered,
                "totalCorrectAnswers": correct,
                "averageAccuracy": round(correct / answered * 100) if answered else 0,
                "streakCount": user.get("streak_count") or 0,
                "totalStudyTimeMinutes": max(user.get("total_study_time_minutes") or 0, study_seconds // 60),
            },
            "recentActivity": recent,
            "roleHistory": history,
        }

    @staticmethod
    def update_user(
        user_id: str | UUID,
        payload: AdminUserUpdate,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Update profile fields, role or status.

        Raises:
            ForbiddenError: A tutor changing a role
            BadRequestError: An admin demoting themselves
        """
        current = SupabaseClient.fetch_by_id("users", user_id)
        if not current:
            raise UserNotFoundError(str(user_id))

        fields = payload.model_dump(exclude_unset=True)
        role = fields.get("role")
        status = fields.get("status")
        role_changed = role is not None and UserRole(role).value != current.get("role")
        status_changed = status is not None and UserStatus(status).value != current.get("status")

        if role_changed:
            if not admin.is_admin:
                raise ForbiddenError("Only admins can change user roles", code="ADMIN_ONLY")
            if str(user_id) == str(admin.id) and UserRole(role) != UserRole.ADMIN:
                raise BadRequestError("You cannot demote yourself", code="SELF_DEMOTION")

        update: dict[str, Any] = {}
        if "full_name" in fields:
            update["full_name"] = (fields["full_name"] or "").strip() or None
        if role is not None:
            update["role"] = UserRole(role).value
        if status is not None:
            update["status"] = UserStatus(status).value
        if not update:
            raise BadRequestError("No valid update fields provided", code="NO_CHANGES")
        update["updated_at"] = datetime.now(timezone.utc).isoformat()

        client = SupabaseClient.get_client()
        response = client.table("users").update(update).eq("id", str(user_id)).execute()
        updated = response.data[0] if response.data else {**current, **update}
        logger.info(f"Updated user {user_id}: {[k for k in update if k != 'updated_at']}")

        if role_changed:
            AuditService.log_action(
                admin.id, AuditAction.ROLE_CHANGE, AuditEntity.USER, user_id,
                {"previous_role": current.get("role"), "new_role": update["role"], "user_email": current.get("email")},
                meta,
            )
        if status_changed:
            AuditService.log_action(
                admin.id, AuditAction.STATUS_CHANGE, AuditEntity.USER, user_id,
                {"previous_status": current.get("status"), "new_status": update["status"], "user_email": current.get("email")},
                meta,
            )
        if not role_changed and not status_changed:
            AuditService.log_action(
                admin.id, AuditAction.UPDATE, AuditEntity.USER, user_id,
                {"updated_fields": [k for k in update if k != "updated_at"], "user_email": current.get("email")},
                meta,
            )
        return updated

    @staticmethod
    def delete_user(
        user_id: str | UUID,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Soft delete: the account is suspended, not removed.

        Raises:
            BadRequestError: Deleting yourself
            ForbiddenError: Deleting an admin
        """
        if str(user_id) == str(admin.id):
            raise BadRequestError("You cannot delete your own account", code="SELF_DELETE")

        current = SupabaseClient.fetch_by_id("users", user_id, columns="id, email, full_name, role, status")
        if not current:
            raise UserNotFoundError(str(user_id))
        if current.get("role") == UserRole.ADMIN.value:
            raise ForbiddenError("Cannot delete admin users", code="ADMIN_PROTECTED")

        client = SupabaseClient.get_client()
        (
            client.table("users")
            .update({
                "status": UserStatus.SUSPENDED.value,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            })
            .eq("id", str(user_id))
            .execute()
        )
        logger.info(f"Suspended user {user_id} ({current.get('email')})")

        AuditService.log_action(
            admin.id, AuditAction.DELETE, AuditEntity.USER, user_id,
            {
                "user_email": current.get("email"),
                "user_name": current.get("full_name"),
                "previous_status": current.get("status"),
                "soft_delete": True,
            },
            meta,
        )
        return {"message": "User deactivated successfully", "userId": str(user_id)}

    @staticmethod
    def reset_password(
        user_id: str | UUID,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """Send a password reset email redirecting to {APP_URL}/reset-password."""
        user = SupabaseClient.fetch_by_id("users", user_id, columns="id, email, full_name, status")
        if not user:
            raise UserNotFoundError(str(user_id))
        if user.get("status") in (UserStatus.SUSPENDED.value, UserStatus.DELETED.value):
            raise BadRequestError("Cannot reset password for inactive user", code="USER_INACTIVE")

        redirect_to = f"{settings.APP_URL.rstrip('/')}/reset-password"
        client = SupabaseClient.get_client()
        try:
            client.auth.reset_password_for_email(user["email"], {"redirect_to": redirect_to})
        except Exception as e:
            logger.error(f"Password reset failed for {user['email']}: {e}")
            raise ExamPrepException(
                message="Failed to send password reset email",
                code="AUTH_ERROR",
                status_code=500,
            )

        AuditService.log_action(
            admin.id, AuditAction.UPDATE, AuditEntity.USER, user_id,
            {"action_type": "password_reset_triggered", "user_email": user["email"], "user_name": user.get("full_name")},
            meta,
        )
        return {"message": "Password reset email sent successfully", "email": user["email"]}
