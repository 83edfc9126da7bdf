# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides the lookups shared by most services:
# - Single-row fetches by primary key (PGRST116 -> None)
# - Exact row counts with equality filters
# - Grouped counts and display_order sequencing
# - User profile lookups for role checks
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   question = SupabaseClient.fetch_by_id("questions", question_id)
# =============================================================================

from __future__ import annotations

import logging
from collections import Counter
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST error code returned by .single() when no row matches
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Carries a code and a suggestion so callers can surface
    how to fix the problem, not just what failed.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        subject = SupabaseClient.fetch_by_id("subjects", subject_id)
        total = SupabaseClient.count_rows("questions", topic_id=topic_id)
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Authorisation is enforced by the API's role dependencies instead.

        Returns:
            Client: Supabase client instance

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    @staticmethod
    def is_not_found(error: Exception) -> bool:
        """True when a PostgREST error means "no rows matched"."""
        return NO_ROWS_CODE in str(error)

    # -------------------------------------------------------------------------
    # Generic Lookups
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_by_id(
        cls,
        table: str,
        row_id: str | UUID,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """
        Fetch a single row by primary key.

        Args:
            table: Table name
            row_id: Row UUID
            columns: PostgREST select expression

        Returns:
            Row dict, or None if no row has this id

        Raises:
            SupabaseClientError: If query fails for any other reason
        """
        client = cls.get_client()
        row_id_str = cls._normalize_uuid(row_id)

        try:
            response = (
                client.table(table)
                .select(columns)
                .eq("id", row_id_str)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if cls.is_not_found(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch {table} row: {e}",
                code="FETCH_FAILED",
                suggestion=f"Check that the {table} table is reachable",
                details={"table": table, "id": row_id_str}
            )

    @classmethod
    def count_rows(cls, table: str, **filters: Any) -> int:
        """
        Count rows matching equality filters.

        Args:
            table: Table name
            **filters: column=value pairs applied with .eq()

        Returns:
            Exact row count
        """
        client = cls.get_client()
        query = client.table(table).select("id", count="exact")
        for column, value in filters.items():
            query = query.eq(column, cls._normalize_uuid(value))

        try:
            response = query.limit(1).execute()
            return response.count or 0
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to count {table} rows: {e}",
                code="COUNT_FAILED",
                details={"table": table, "filters": {k: str(v) for k, v in filters.items()}}
            )

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_user_profile(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch the public.users row used for role checks.

        Returns:
            Dict with id, email, full_name, role, status; None if missing
        """
        return cls.fetch_by_id("users", user_id, columns="id, email, full_name, role, status")

    @classmethod
    def count_by(cls, table: str, column: str) -> Counter:
        """
        Count rows of a table grouped by one column.

        Example:
            per_subject = SupabaseClient.count_by("topics", "subject_id")
        """
        client = cls.get_client()
        rows = client.table(table).select(column).execute().data or []
        return Counter(row[column] for row in rows if row.get(column))

    @classmethod
    def next_display_order(cls, table: str, **filters: Any) -> int:
        """One more than the highest display_order among matching rows."""
        client = cls.get_client()
        query = client.table(table).select("display_order")
        for column, value in filters.items():
            query = query.eq(column, cls._normalize_uuid(value))
        response = query.order("display_order", desc=True).limit(1).execute()
        current = response.data[0].get("display_order") if response.data else None
        return (current or 0) + 1
