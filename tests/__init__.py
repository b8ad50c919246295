# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Auto-Advertisement API:
# - test_models.py: Unit tests for Pydantic model validation
# - test_lifecycle.py: Status transitions and lifecycle patches
# - test_product_service.py / test_generation.py: Service behavior
# - test_document_store.py / test_storage_and_generator.py: Backends
# - test_events.py: Websocket fan-out
# - test_api.py: Integration tests for API endpoints
#
# Run tests with: poetry run pytest
# =============================================================================
