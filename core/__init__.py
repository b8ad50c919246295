# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the business logic behind the API:
# - models/: Pydantic schemas for documents and request bodies
# - services/: Product lifecycle, CRUD, generation and storage services
# - context.py: The AppContext wiring the services to their backends
#
# Services receive their collaborators explicitly, which keeps the logic
# testable with in-memory fakes.
# =============================================================================
