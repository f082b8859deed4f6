"""Request dependencies shared by the route modules."""

from fastapi import Request

from nfcdesk.core.errors import EngineNotReadyError
from nfcdesk.services.access_engine import AccessEngine


def get_engine(request: Request) -> AccessEngine:
    """AccessEngine created by the lifespan. Overridden in tests."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise EngineNotReadyError()
    return engine
