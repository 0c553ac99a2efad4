from fastapi import Request

from aurix.context import AppContext


def get_context(request: Request) -> AppContext:
    """Dependency returning the context started by the app lifespan."""
    return request.app.state.context
