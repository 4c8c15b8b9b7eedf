"""Telegram bot handlers.

Thin handlers that delegate to the command router, the upstream search
client and the response formatter. The components are created once at
startup and reached through `context.bot_data`, so every chat shares the
same stateless instances.
"""

import logging

from telegram import LinkPreviewOptions, Update
from telegram.constants import ChatAction, ParseMode
from telegram.error import BadRequest
from telegram.ext import ContextTypes

from ..models import CrateSummary, DocEntry, Found, RejectedInput, UpstreamError
from .command_router import CommandRouter
from .messages import HELP_MESSAGE, SECTION_EXPIRED
from .response_formatter import ResponseFormatter

logger = logging.getLogger(__name__)

ROUTER_KEY = "command_router"
SEARCH_CLIENT_KEY = "search_client"
FORMATTER_KEY = "response_formatter"
HTTP_SESSION_KEY = "http_session"
DOCS_KEY = "docs"
MAX_REMEMBERED_DOCS = 50

NO_PREVIEW = LinkPreviewOptions(is_disabled=True)


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start and /help commands.

    Args:
        update: Telegram update object containing message data.
        context: Bot context for accessing application instance.
    """
    message = update.effective_message
    if message:
        await message.reply_text(
            HELP_MESSAGE, parse_mode=ParseMode.HTML, link_preview_options=NO_PREVIEW
        )


async def lookup_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /crate and /docs commands.

    Routes the message text, runs the upstream search and replies with the
    rendered outcome. Rejected input gets usage guidance instead.

    Args:
        update: Telegram update object containing message data.
        context: Bot context for accessing application instance.
    """
    message = update.effective_message
    if message is None:
        return

    router: CommandRouter = context.bot_data[ROUTER_KEY]
    formatter: ResponseFormatter = context.bot_data[FORMATTER_KEY]

    routed = router.route(message.text)
    if isinstance(routed, RejectedInput):
        await message.reply_text(
            formatter.render_rejection(routed),
            parse_mode=ParseMode.HTML,
            link_preview_options=NO_PREVIEW,
        )
        return

    await context.bot.send_chat_action(chat_id=message.chat_id, action=ChatAction.TYPING)

    outcome = await context.bot_data[SEARCH_CLIENT_KEY].search(routed)
    if isinstance(outcome, UpstreamError):
        logger.warning(
            "Upstream %s during %s lookup %r: %s",
            outcome.reason.value,
            outcome.verb.value,
            outcome.query,
            outcome.detail,
        )

    reply_markup = None
    if isinstance(outcome, Found):
        if isinstance(outcome.result, CrateSummary):
            reply_markup = formatter.crate_keyboard(outcome.result)
        else:
            reply_markup = formatter.docs_keyboard(outcome.result)

    sent = await message.reply_text(
        formatter.render(outcome),
        parse_mode=ParseMode.HTML,
        reply_markup=reply_markup,
        link_preview_options=NO_PREVIEW,
    )

    if isinstance(outcome, Found) and isinstance(outcome.result, DocEntry):
        if outcome.result.sections and context.chat_data is not None:
            remember_doc_entry(context.chat_data, sent.message_id, outcome.result)


async def unknown_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Reply with help for slash commands the bot does not know."""
    message = update.effective_message
    if message is None:
        return

    routed = context.bot_data[ROUTER_KEY].route(message.text)
    if isinstance(routed, RejectedInput):
        formatter: ResponseFormatter = context.bot_data[FORMATTER_KEY]
        await message.reply_text(
            formatter.render_rejection(routed),
            parse_mode=ParseMode.HTML,
            link_preview_options=NO_PREVIEW,
        )


async def docs_section_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show the documentation section chosen from the inline keyboard.

    Args:
        update: Telegram update carrying the callback query.
        context: Bot context with the per-chat docs entries.
    """
    query = update.callback_query
    if query is None:
        return

    formatter: ResponseFormatter = context.bot_data[FORMATTER_KEY]
    index = formatter.parse_section_callback(query.data)
    entry = None
    if index is not None and query.message is not None and context.chat_data is not None:
        entry = context.chat_data.get(DOCS_KEY, {}).get(query.message.message_id)

    text = formatter.render_doc_section(entry, index) if entry is not None else None
    if text is None:
        await query.answer(SECTION_EXPIRED)
        return

    await query.answer()
    logger.info("Docs section %d of %s", index, entry.item_path)
    try:
        await query.edit_message_text(
            text,
            parse_mode=ParseMode.HTML,
            reply_markup=formatter.docs_keyboard(entry),
            link_preview_options=NO_PREVIEW,
        )
    except BadRequest as e:
        # Pressing the button of the section already shown
        if "not modified" not in str(e).lower():
            raise


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log errors raised by handlers or the transport."""
    logger.error("Error while handling update %s", update, exc_info=context.error)


def remember_doc_entry(chat_data: dict, message_id: int, entry: DocEntry) -> None:
    """Keep a docs result for its section buttons, evicting the oldest.

    Args:
        chat_data: Per-chat storage provided by python-telegram-bot.
        message_id: ID of the message carrying the keyboard.
        entry: Documentation entry shown in that message.
    """
    entries: dict[int, DocEntry] = chat_data.setdefault(DOCS_KEY, {})
    entries[message_id] = entry
    while len(entries) > MAX_REMEMBERED_DOCS:
        entries.pop(next(iter(entries)))
