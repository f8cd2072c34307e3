# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the CareSync API:
# - test_models.py: Pydantic model validation and task status rules
# - test_document_analyst.py / test_chat_assistant.py: Model-facing agents
# - test_analysis_service.py: The upload pipeline
# - test_api.py: HTTP endpoints through httpx's ASGI transport
# - test_board.py: Client-side task board
#
# Run tests with: pytest
# =============================================================================
