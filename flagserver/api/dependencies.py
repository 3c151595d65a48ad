"""
FastAPI dependencies.
"""
from fastapi import Request

from flagserver.features.protocol import FlagProvider


def get_flag_provider(request: Request) -> FlagProvider:
    """
    Dependency returning the flag provider bound to the application.

    The provider is constructed and initialized by the entry point and
    attached to app.state by create_app().

    Usage:
        @router.get("/")
        def handler(provider: FlagProvider = Depends(get_flag_provider)):
            return provider.is_enabled("user-metadata")
    """
    return request.app.state.flag_provider
