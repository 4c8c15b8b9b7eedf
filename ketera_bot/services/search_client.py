"""Upstream search entry point used by the bot handlers.

Dispatches a parsed command to the crates.io or docs client, bounds the whole
lookup by a deadline and converts every failure into an UpstreamError
outcome. Callers always get a SearchOutcome back; only cancellation
propagates.
"""

import asyncio
import logging
import time

import aiohttp

from ..config import SearchConfig
from ..models import (
    Command,
    CrateSummary,
    DocEntry,
    Found,
    NotFound,
    SearchOutcome,
    UpstreamError,
    UpstreamFailure,
    Verb,
)
from .crates_io import CratesIoClient
from .docs_rs import DocsRsClient
from .errors import UpstreamRequestError

logger = logging.getLogger(__name__)


class UpstreamSearchClient:
    """Runs crate and docs lookups with a fixed deadline and no retries.

    Holds only the two stateless upstream clients, so a single instance is
    shared by every concurrent chat.
    """

    def __init__(self, crates: CratesIoClient, docs: DocsRsClient, timeout: float = 10.0):
        """Initialize search client.

        Args:
            crates: crates.io client.
            docs: docs.rs client.
            timeout: Deadline in seconds for one search call.
        """
        self.crates = crates
        self.docs = docs
        self.timeout = timeout

    @classmethod
    def from_session(
        cls, session: aiohttp.ClientSession, search_config: SearchConfig
    ) -> "UpstreamSearchClient":
        """Build the client and its upstream clients around a shared session."""
        return cls(
            crates=CratesIoClient(session, base_url=search_config.crates_api_url),
            docs=DocsRsClient(
                session,
                docs_rs_url=search_config.docs_rs_url,
                std_docs_url=search_config.std_docs_url,
            ),
            timeout=search_config.timeout,
        )

    async def search(self, command: Command) -> SearchOutcome:
        """Look up a command's argument upstream.

        Args:
            command: Parsed chat command.

        Returns:
            Found with the result, NotFound, or UpstreamError with the
            classified reason and an operator-facing detail.
        """
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(self._dispatch(command), timeout=self.timeout)
        except asyncio.TimeoutError:
            return self._failure(
                command, UpstreamFailure.TIMEOUT, f"No answer within {self.timeout:g}s"
            )
        except UpstreamRequestError as e:
            return self._failure(command, e.failure, str(e))
        except aiohttp.ClientError as e:
            return self._failure(command, UpstreamFailure.HTTP_FAILURE, repr(e))
        except ValueError as e:
            return self._failure(command, UpstreamFailure.MALFORMED_RESPONSE, repr(e))

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result is None:
            logger.info(
                "%s lookup %r: no match (%dms)", command.verb.value, command.argument, elapsed_ms
            )
            return NotFound(verb=command.verb, query=command.argument)

        logger.info(
            "%s lookup %r: found (%dms)", command.verb.value, command.argument, elapsed_ms
        )
        return Found(result=result)

    async def _dispatch(self, command: Command) -> CrateSummary | DocEntry | None:
        if command.verb is Verb.CRATE:
            return await self.crates.lookup(command.argument)
        elif command.verb is Verb.DOCS:
            return await self.docs.lookup(command.argument)
        raise ValueError(f"Unsupported verb: {command.verb!r}")

    @staticmethod
    def _failure(command: Command, reason: UpstreamFailure, detail: str) -> UpstreamError:
        return UpstreamError(
            verb=command.verb, query=command.argument, reason=reason, detail=detail
        )
