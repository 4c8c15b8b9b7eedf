"""Dependency-injection container.

This module defines a dependency-injection (DI) container that wires together
the application's components from configuration. The shared HTTP session is
created once at startup and handed to the search client explicitly, so tests
can swap any component for a fake.
"""

from dependency_injector import containers, providers

from ketera_bot.bot.command_router import CommandRouter
from ketera_bot.bot.response_formatter import ResponseFormatter
from ketera_bot.bot.utils import create_session
from ketera_bot.config import config
from ketera_bot.services.search_client import UpstreamSearchClient


class Container(containers.DeclarativeContainer):
    """DI container for the application.

    This container holds the wiring for all the application's components.
    """

    settings = providers.Object(config)

    # Services
    http_session = providers.Factory(create_session, search_config=settings.provided.search)
    search_client = providers.Factory(
        UpstreamSearchClient.from_session, search_config=settings.provided.search
    )

    # Bot components
    command_router = providers.Singleton(CommandRouter)
    response_formatter = providers.Singleton(
        ResponseFormatter,
        description_limit=settings.provided.format.description_limit,
        max_message_length=settings.provided.format.max_message_length,
        docs_rs_url=settings.provided.search.docs_rs_url,
    )
