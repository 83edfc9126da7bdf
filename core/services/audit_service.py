# =============================================================================
# core/services/audit_service.py - Admin Audit Log
# =============================================================================
# Records admin actions in admin_audit_logs and serves the audit viewer.
#
# Writing an entry is best-effort: a failed insert is logged and the
# action that triggered it still succeeds.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.dependencies import RequestMeta
from core.models.audit import AuditAction, AuditEntity
from lib.supabase_client import SupabaseClient
from lib.utils import build_pagination, paginate_range

logger = logging.getLogger(__name__)


class AuditService:
    """Service for writing and reading admin audit entries."""

    @staticmethod
    def log_action(
        admin_id: UUID | str,
        action: AuditAction | str,
        entity_type: AuditEntity | str,
        entity_id: UUID | str | None = None,
        details: dict[str, Any] | None = None,
        meta: RequestMeta | None = None,
    ) -> None:
        """
        Insert one audit entry. Never raises.

        Args:
            admin_id: Acting admin or tutor
            action: What was done (CREATE, BULK_PUBLISH, ...)
            entity_type: Kind of entity acted on
            entity_id: Entity id, if the action targets one entity
            details: Free-form JSON context (before/after, counts)
            meta: Caller IP and user agent
        """
        action_value = action.value if isinstance(action, AuditAction) else action
        entity_value = entity_type.value if isinstance(entity_type, AuditEntity) else entity_type

        row = {
            "admin_id": str(admin_id),
            "action": action_value,
            "entity_type": entity_value,
            "entity_id": str(entity_id) if entity_id else None,
            "details": details,
            "ip_address": meta.ip_address if meta else None,
            "user_agent": meta.user_agent if meta else None,
        }

        try:
            client = SupabaseClient.get_client()
            client.table("admin_audit_logs").insert(row).execute()
            logger.debug(f"Audit {action_value} {entity_value} {entity_id} by {admin_id}")
        except Exception as e:
            logger.error(f"Failed to log admin action {action_value}: {e}")

    @staticmethod
    def list_logs(
        page: int = 1,
        limit: int = 50,
        admin_id: str | None = None,
        action: str | None = None,
        entity_type: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, Any]:
        """
        Page through audit entries, newest first.

        Returns:
            {"logs": [...], "pagination": {...}} where each log carries
            an "admin" block with full_name and email when known
        """
        client = SupabaseClient.get_client()
        start, end = paginate_range(page, limit)

        query = (
            client.table("admin_audit_logs")
            .select("*, users!admin_id(id, full_name, email)", count="exact")
            .order("created_at", desc=True)
        )
        if admin_id:
            query = query.eq("admin_id", admin_id)
        if action:
            query = query.eq("action", action)
        if entity_type:
            query = query.eq("entity_type", entity_type)
        if start_date:
            query = query.gte("created_at", start_date)
        if end_date:
            query = query.lte("created_at", end_date)

        response = query.range(start, end).execute()

        logs = [_flatten_admin(row) for row in response.data or []]
        return {
            "logs": logs,
            "pagination": build_pagination(response.count or 0, page, limit),
        }

    @staticmethod
    def entries_for_entity(
        entity_type: AuditEntity | str,
        entity_id: UUID | str,
        actions: list[str] | None = None,
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        """Most recent entries about one entity, optionally limited to some actions."""
        client = SupabaseClient.get_client()
        entity_value = entity_type.value if isinstance(entity_type, AuditEntity) else entity_type

        query = (
            client.table("admin_audit_logs")
            .select("id, admin_id, action, details, created_at")
            .eq("entity_type", entity_value)
            .eq("entity_id", str(entity_id))
        )
        if actions:
            query = query.in_("action", actions)

        response = query.order("created_at", desc=True).limit(limit).execute()
        return response.data or []


def _flatten_admin(row: dict[str, Any]) -> dict[str, Any]:
    """Replace the embedded users relation with an "admin" block."""
    log = {k: v for k, v in row.items() if k != "users"}
    admin = row.get("users")
    if isinstance(admin, list):
        admin = admin[0] if admin else None
    log["admin"] = (
        {"full_name": admin.get("full_name"), "email": admin.get("email")}
        if admin else None
    )
    return log
