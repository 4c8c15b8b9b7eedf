"""Response formatting for bot messages.

Renders search outcomes, input rejections and documentation sections into
Telegram HTML messages, and builds the inline keyboards attached to them.
Every method is pure: the same input and clock reading always yield the
same text, and no message exceeds the configured maximum length.
"""

import logging
import re
from collections.abc import Callable
from datetime import UTC, datetime

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from ..models import (
    CrateSummary,
    DocEntry,
    Found,
    NotFound,
    RejectedInput,
    RejectReason,
    SearchOutcome,
    Verb,
)
from .messages import (
    ANONYMOUS_OWNER,
    CATEGORIES_BLOCK,
    CRATE_HEADER_LINE,
    CRATE_MORE_OWNERS,
    CRATE_OWNERS_SUFFIX,
    CRATE_SIZE_SUFFIX,
    CRATE_USAGE,
    CREATED_LINE,
    DATE_FORMAT,
    DEFINITION_BLOCK,
    DEPENDENCIES_LINE,
    DEPRECATED_MARK,
    DOC_HEADER_LINE,
    DOC_LINK_LINE,
    DOCS_BUTTON,
    DOCS_USAGE,
    DOWNLOADS_LINE,
    ELLIPSIS,
    HELP_MESSAGE,
    HOME_BUTTON,
    KEYWORDS_BLOCK,
    LICENSE_LINE,
    NO_DESCRIPTION,
    NO_LICENSE_LINE,
    NOT_FOUND_MESSAGE,
    REPO_BUTTON,
    REPOSITORY_LINE,
    SECTION_HEADING,
    STABILITY_LINE,
    TOTAL_DOWNLOADS_LINE,
    UPDATED_LINE,
    UPSTREAM_ERROR_MESSAGE,
)
from .utils import escape_html, humanize_count, humanize_elapsed, truncate_text

logger = logging.getLogger(__name__)

CALLBACK_PREFIX = "docs:"
BLOCK_SEPARATOR = "\n\n"
QUERY_ECHO_LIMIT = 100
DEFINITION_LIMIT = 1000
SUMMARY_LIMIT = 1500
BUTTON_LABEL_LIMIT = 40
MAX_SECTION_BUTTONS = 20

_TAG_RE = re.compile(r"<[^>]+>")
_PARTIAL_ENTITY_RE = re.compile(r"&[#a-zA-Z0-9]*$")


class ResponseFormatter:
    """Formats bot responses for crate info, docs entries and errors."""

    def __init__(
        self,
        description_limit: int = 300,
        max_message_length: int = 4096,
        docs_rs_url: str = "https://docs.rs",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize response formatter.

        Args:
            description_limit: Maximum characters of a crate description.
            max_message_length: Hard cap on any rendered message.
            docs_rs_url: docs.rs root used when a crate declares no docs URL.
            clock: Returns the current time for relative dates.
        """
        self.description_limit = description_limit
        self.max_message_length = max_message_length
        self.docs_rs_url = docs_rs_url.rstrip("/")
        self.clock = clock or (lambda: datetime.now(UTC))

    def render(self, outcome: SearchOutcome) -> str:
        """Render a search outcome as a chat message.

        Args:
            outcome: Result of UpstreamSearchClient.search.

        Returns:
            Message text, never longer than max_message_length.
        """
        if isinstance(outcome, Found):
            if isinstance(outcome.result, CrateSummary):
                return self.render_crate(outcome.result)
            return self.render_doc(outcome.result)

        if isinstance(outcome, NotFound):
            query = escape_html(truncate_text(outcome.query, QUERY_ECHO_LIMIT))
            return self._assemble([NOT_FOUND_MESSAGE.format(query=query)])

        # UpstreamError: the reason stays in the logs
        return UPSTREAM_ERROR_MESSAGE

    def render_rejection(self, rejected: RejectedInput) -> str:
        """Render usage guidance for input that could not be dispatched."""
        if rejected.reason is RejectReason.MISSING_QUERY:
            return DOCS_USAGE if rejected.verb is Verb.DOCS else CRATE_USAGE
        return HELP_MESSAGE

    def render_crate(self, crate: CrateSummary) -> str:
        """Format crate information.

        Args:
            crate: Crate metadata from crates.io.

        Returns:
            Multi-line HTML message.
        """
        header = CRATE_HEADER_LINE.format(
            name=escape_html(crate.name), version=escape_html(crate.version)
        )
        if crate.crate_size:
            header += CRATE_SIZE_SUFFIX.format(size=humanize_count(crate.crate_size))
        if crate.owners:
            header += CRATE_OWNERS_SUFFIX.format(owners=self._format_owners(crate))
        header += "\n"
        header += (
            LICENSE_LINE.format(license=escape_html(crate.license))
            if crate.license
            else NO_LICENSE_LINE
        )

        description = (
            escape_html(truncate_text(crate.description, self.description_limit))
            if crate.description
            else NO_DESCRIPTION
        )

        blocks = [header, description]
        if crate.keywords:
            blocks.append(KEYWORDS_BLOCK.format(keywords=escape_html(", ".join(crate.keywords))))
        if crate.categories:
            blocks.append(
                CATEGORIES_BLOCK.format(categories=escape_html("\n".join(crate.categories)))
            )

        total = humanize_count(crate.downloads)
        stats = [
            DOWNLOADS_LINE.format(recent=humanize_count(crate.recent_downloads), total=total)
            if crate.recent_downloads is not None
            else TOTAL_DOWNLOADS_LINE.format(total=total)
        ]
        if crate.dependency_count is not None:
            stats.append(
                DEPENDENCIES_LINE.format(
                    dependencies=crate.dependency_count, dev=crate.dev_dependency_count or 0
                )
            )
        if crate.repository:
            stats.append(REPOSITORY_LINE.format(url=escape_html(crate.repository)))
        now = self.clock()
        if crate.updated_at:
            stats.append(self._dated_line(UPDATED_LINE, crate.updated_at, now))
        if crate.created_at:
            stats.append(self._dated_line(CREATED_LINE, crate.created_at, now))
        blocks.append("\n".join(stats))

        return self._assemble(blocks)

    def render_doc(self, entry: DocEntry) -> str:
        """Format a documentation entry.

        Args:
            entry: Resolved documentation page.

        Returns:
            HTML message with header, declaration, summary and link.
        """
        blocks = [self._doc_header(entry)]
        if entry.summary:
            blocks.append(self._escaped_excerpt(entry.summary, SUMMARY_LIMIT))
        blocks.append(DOC_LINK_LINE.format(url=escape_html(entry.canonical_url)))
        return self._assemble(blocks)

    def render_doc_section(self, entry: DocEntry, index: int) -> str | None:
        """Format one documentation section page.

        Args:
            entry: Documentation entry the section belongs to.
            index: Position of the section in entry.sections.

        Returns:
            HTML message, or None if the index is out of range.
        """
        if not 0 <= index < len(entry.sections):
            return None

        section = entry.sections[index]
        header = self._doc_header(entry)
        heading = SECTION_HEADING.format(heading=escape_html(section.heading))
        link = DOC_LINK_LINE.format(url=escape_html(entry.canonical_url))

        fixed = len(header) + len(heading) + len(link) + 3 * len(BLOCK_SEPARATOR)
        body = self._escaped_excerpt(section.body, max(self.max_message_length - fixed, 0))
        return self._assemble([header, heading, body, link])

    def crate_keyboard(self, crate: CrateSummary) -> InlineKeyboardMarkup:
        """Build Home/Docs/Repo URL buttons for a crate message."""
        row = []
        if crate.homepage:
            row.append(InlineKeyboardButton(HOME_BUTTON, url=crate.homepage))
        row.append(
            InlineKeyboardButton(
                DOCS_BUTTON, url=crate.documentation or f"{self.docs_rs_url}/{crate.name}"
            )
        )
        if crate.repository:
            row.append(InlineKeyboardButton(REPO_BUTTON, url=crate.repository))
        return InlineKeyboardMarkup([row])

    def docs_keyboard(self, entry: DocEntry) -> InlineKeyboardMarkup | None:
        """Build one callback button per documentation section."""
        if not entry.sections:
            return None
        return InlineKeyboardMarkup(
            [
                [
                    InlineKeyboardButton(
                        truncate_text(section.heading, BUTTON_LABEL_LIMIT),
                        callback_data=f"{CALLBACK_PREFIX}{i}",
                    )
                ]
                for i, section in enumerate(entry.sections[:MAX_SECTION_BUTTONS])
            ]
        )

    @staticmethod
    def parse_section_callback(data: str | None) -> int | None:
        """Extract the section index from callback data, None if foreign."""
        if not data or not data.startswith(CALLBACK_PREFIX):
            return None
        try:
            return int(data[len(CALLBACK_PREFIX):])
        except ValueError:
            return None

    def _doc_header(self, entry: DocEntry) -> str:
        header = DOC_HEADER_LINE.format(
            path=escape_html(entry.item_path), kind=escape_html(entry.item_kind.value)
        )
        if entry.deprecated:
            header += DEPRECATED_MARK
        if entry.stability_note:
            header += "\n" + STABILITY_LINE.format(note=escape_html(entry.stability_note))
        if entry.definition:
            definition = self._escaped_excerpt(entry.definition, DEFINITION_LIMIT)
            header += "\n" + DEFINITION_BLOCK.format(definition=definition)
        return header

    @staticmethod
    def _dated_line(template: str, moment: datetime, now: datetime) -> str:
        return template.format(
            date=moment.strftime(DATE_FORMAT).strip(), elapsed=humanize_elapsed(moment, now)
        )

    def _format_owners(self, crate: CrateSummary) -> str:
        primary, others = crate.owners[0], crate.owners[1:]
        display = primary.name or primary.login
        name = escape_html(display) if display else ANONYMOUS_OWNER
        owners = f'<a href="{escape_html(primary.url)}">{name}</a>' if primary.url else name
        if others:
            owners += CRATE_MORE_OWNERS.format(count=len(others))
        return owners

    @classmethod
    def _escaped_excerpt(cls, text: str, limit: int) -> str:
        """Escape text and cut it to `limit` characters without splitting entities."""
        return cls._cut_escaped(escape_html(text), limit)

    def _assemble(self, blocks: list[str]) -> str:
        """Join blocks, dropping trailing ones until the message fits."""
        blocks = [block for block in blocks if block]
        text = BLOCK_SEPARATOR.join(blocks)
        if len(text) <= self.max_message_length:
            return text

        logger.debug("Message of %d chars exceeds limit, trimming", len(text))
        marker = "\n" + ELLIPSIS
        while len(blocks) > 1:
            blocks.pop()
            text = BLOCK_SEPARATOR.join(blocks) + marker
            if len(text) <= self.max_message_length:
                return text

        # A single oversized block: fall back to plain text
        plain = _TAG_RE.sub("", blocks[0]) if blocks else ""
        return self._cut_escaped(plain, self.max_message_length)

    @staticmethod
    def _cut_escaped(escaped: str, limit: int) -> str:
        if len(escaped) <= limit:
            return escaped
        cut = _PARTIAL_ENTITY_RE.sub("", escaped[: max(limit - len(ELLIPSIS), 0)])
        return cut.rstrip() + ELLIPSIS
