# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
# =============================================================================

from typing import Annotated

from fastapi import Depends
from starlette.requests import HTTPConnection

from core.context import AppContext


def get_context(connection: HTTPConnection) -> AppContext:
    """
    Get the application context created at startup.

    Works for both HTTP requests and websockets. Tests override this
    dependency with a context built from fakes.
    """
    return connection.app.state.context


# Type alias for dependency injection
ContextDep = Annotated[AppContext, Depends(get_context)]
