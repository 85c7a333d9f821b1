from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from irclogs.api.middleware.exception_handlers import AskNotConfiguredError
from irclogs.api.services.admission import AskSessionManager
from irclogs.core.channels import ChannelTree
from irclogs.core.constants import Settings, get_settings


def get_app_settings() -> Settings:
    """Provide application settings via dependency injection.

    Usage in routes:
        @router.get("/example")
        async def example(settings: AppSettings):
            return {"debug": settings.debug}
    """
    return get_settings()


def get_channel_tree(request: Request) -> ChannelTree:
    """Get the channel tree discovered at startup."""
    return request.app.state.channels


def get_ask_manager(request: Request) -> AskSessionManager:
    """Get the ask session manager, or fail when ask is not configured."""
    manager = getattr(request.app.state, "ask_manager", None)
    if manager is None:
        raise AskNotConfiguredError()
    return manager


# Type aliases for cleaner route signatures
Channels = Annotated[ChannelTree, Depends(get_channel_tree)]
AskManager = Annotated[AskSessionManager, Depends(get_ask_manager)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
