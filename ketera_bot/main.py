"""Application entry point.

Main module that initializes and runs the Telegram bot application. Sets up
logging, builds the shared components through the DI container, registers
handlers, and runs in webhook mode (when a public domain is configured) or
long-polling mode.
"""

import logging

from telegram import BotCommand
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from .bot.handlers import (
    FORMATTER_KEY,
    HTTP_SESSION_KEY,
    ROUTER_KEY,
    SEARCH_CLIENT_KEY,
    docs_section_callback,
    error_handler,
    lookup_command,
    start,
    unknown_command,
)
from .bot.messages import COMMAND_DESCRIPTIONS
from .bot.response_formatter import CALLBACK_PREFIX
from .config import setup_logging
from .core.container import Container

logger = logging.getLogger(__name__)


async def initialize_resources(application: Application, container: Container) -> None:
    """Create the shared HTTP session and components once per process.

    Args:
        application: Telegram application being started.
        container: DI container building the components.
    """
    session = container.http_session()
    application.bot_data[HTTP_SESSION_KEY] = session
    application.bot_data[SEARCH_CLIENT_KEY] = container.search_client(session=session)
    application.bot_data[ROUTER_KEY] = container.command_router()
    application.bot_data[FORMATTER_KEY] = container.response_formatter()

    await application.bot.set_my_commands(
        [BotCommand(name, description) for name, description in COMMAND_DESCRIPTIONS.items()]
    )
    logger.info("Shared HTTP session and bot components initialized")


async def cleanup_resources(application: Application) -> None:
    """Close the shared HTTP session."""
    session = application.bot_data.pop(HTTP_SESSION_KEY, None)
    if session is not None:
        await session.close()
        logger.info("HTTP session closed")


def build_application(container: Container) -> Application:
    """Build the Telegram application with all handlers registered.

    Args:
        container: DI container building the components.

    Returns:
        Configured, not yet running, Application.

    Raises:
        RuntimeError: If BOT_TOKEN environment variable is not set.
    """
    settings = container.settings()
    if not settings.bot.bot_token:
        raise RuntimeError("Set BOT_TOKEN environment variable")

    async def post_init(application: Application) -> None:
        await initialize_resources(application, container)

    app = (
        Application.builder()
        .token(settings.bot.bot_token)
        .concurrent_updates(True)
        .post_init(post_init)
        .post_shutdown(cleanup_resources)
        .build()
    )

    app.add_handler(CommandHandler(["start", "help"], start))
    app.add_handler(CommandHandler(["crate", "docs"], lookup_command))
    app.add_handler(CallbackQueryHandler(docs_section_callback, pattern=f"^{CALLBACK_PREFIX}"))
    app.add_handler(MessageHandler(filters.COMMAND & filters.ChatType.PRIVATE, unknown_command))
    app.add_error_handler(error_handler)

    return app


def main() -> None:
    """Main application entry point.

    Configures logging, builds the application and starts the bot in either
    webhook mode (production) or polling mode (development).
    """
    container = Container()
    settings = container.settings()
    setup_logging(settings.logging)

    app = build_application(container)

    if settings.bot.use_webhook:
        path = f"/{settings.bot.bot_token}"
        webhook_url = f"https://{settings.bot.webhook_domain}{path}"
        logger.info("Starting webhook on %s:%d", settings.bot.listen_host, settings.bot.port)
        app.run_webhook(
            listen=settings.bot.listen_host,
            port=settings.bot.port,
            url_path=path,
            webhook_url=webhook_url,
        )
    else:
        logger.info("No webhook domain configured; using long-polling")
        app.run_polling()


if __name__ == "__main__":
    main()
