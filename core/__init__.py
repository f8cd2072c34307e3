# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: Pydantic schemas for tasks, members, documents, analysis, chat
# - services/: The analysis pipeline and Supabase-backed family data
# - demo_data.py: Canned demo analysis and the demo family
#
# Code in this package should NOT import from FastAPI routers.
# This keeps the logic testable and reusable.
# =============================================================================
