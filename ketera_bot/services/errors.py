"""Exceptions raised by the upstream HTTP clients.

The clients raise these; UpstreamSearchClient converts them into
UpstreamError outcomes so nothing escapes to the Telegram handlers.
"""

from ..models import UpstreamFailure


class UpstreamRequestError(Exception):
    """Base exception for upstream lookups."""

    failure = UpstreamFailure.HTTP_FAILURE


class UpstreamHTTPError(UpstreamRequestError):
    """Upstream answered with an unexpected HTTP status."""

    def __init__(self, url: str, status: int):
        super().__init__(f"HTTP {status} from {url}")
        self.url = url
        self.status = status


class MalformedResponseError(UpstreamRequestError):
    """Upstream payload could not be decoded into the expected shape."""

    failure = UpstreamFailure.MALFORMED_RESPONSE
