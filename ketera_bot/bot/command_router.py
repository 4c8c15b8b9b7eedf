"""Command parsing for incoming chat messages.

Maps raw message text such as `/crate serde` or `/docs@KeteraBot std::mem`
to a Command, or to a RejectedInput describing why it cannot be dispatched.
Parsing only; nothing here touches the network.
"""

from __future__ import annotations

import logging
from typing import Final

from ..models import Command, RejectedInput, RejectReason, Verb

logger = logging.getLogger(__name__)


class CommandRouter:
    """Splits a message into verb and argument and validates both."""

    PREFIX: Final[str] = "/"

    def route(self, raw_text: str | None) -> Command | RejectedInput:
        """Parse chat text into a dispatchable command.

        Args:
            raw_text: Message text as received from Telegram.

        Returns:
            Command for a known verb with a non-empty argument, otherwise
            RejectedInput with UNKNOWN_COMMAND or MISSING_QUERY.
        """
        parts = (raw_text or "").split(maxsplit=1)
        head = parts[0] if parts else ""
        argument = parts[1].strip() if len(parts) > 1 else ""

        verb = self.parse_verb(head)
        if verb is None:
            logger.debug("Unknown command %r", head)
            return RejectedInput(reason=RejectReason.UNKNOWN_COMMAND, raw_verb=head)

        if not argument:
            return RejectedInput(reason=RejectReason.MISSING_QUERY, verb=verb, raw_verb=head)

        return Command(verb=verb, argument=argument)

    def parse_verb(self, token: str) -> Verb | None:
        """Match `/crate`, `/DOCS`, `/docs@SomeBot` and the like to a Verb."""
        if not token.startswith(self.PREFIX):
            return None

        name = token[len(self.PREFIX):].split("@", 1)[0].lower()
        try:
            return Verb(name)
        except ValueError:
            return None
