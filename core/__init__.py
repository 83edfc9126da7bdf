# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the business logic behind the API:
# - models/: Pydantic schemas for request validation
# - services/: Catalogue, questions, sessions, imports, reviews, users
#
# Services raise app.exceptions errors and talk to Supabase through
# lib.supabase_client; routers stay thin.
# =============================================================================
