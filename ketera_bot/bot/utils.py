"""Bot utility functions.

Text helpers shared by the formatter (HTML escaping, truncation, humanized
counts and relative dates) and HTTP session creation for the upstream clients.
"""

import html
from datetime import UTC, datetime

import aiohttp

from ..config import SearchConfig
from .messages import ELLIPSIS


def escape_html(text: str) -> str:
    """Escape text for Telegram's HTML parse mode.

    Telegram only needs `&`, `<` and `>` escaped; quotes are escaped too so
    the result is also safe inside `href` attributes.
    """
    return html.escape(text, quote=True)


def truncate_text(text: str, limit: int) -> str:
    """Cut text to at most `limit` characters, ending with an ellipsis.

    Args:
        text: Text to shorten.
        limit: Maximum length of the result, ellipsis included.

    Returns:
        Original text if short enough, otherwise a prefix plus the marker.
    """
    if len(text) <= limit:
        return text
    return text[: max(limit - len(ELLIPSIS), 0)].rstrip() + ELLIPSIS


def humanize_count(number: int) -> str:
    """Format large counts as `1.2k`, `3.4M`, `1.0G`.

    Args:
        number: Non-negative count.

    Returns:
        Short human-readable string.
    """
    if number >= 1_000_000_000:
        return f"{number / 1e9:.1f}G"
    elif number >= 1_000_000:
        return f"{number / 1e6:.1f}M"
    elif number > 1_000:
        return f"{number / 1e3:.1f}k"
    return str(number)


ELAPSED_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
)


def humanize_elapsed(moment: datetime, now: datetime) -> str:
    """Describe how long ago `moment` was, e.g. `2 years ago`, `an hour ago`.

    Naive datetimes are taken as UTC. Moments in the future count as now.

    Args:
        moment: Past point in time.
        now: Reference time.

    Returns:
        Short English phrase.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    seconds = max((now - moment).total_seconds(), 0)
    for unit, size in ELAPSED_UNITS:
        count = int(seconds // size)
        if count == 1:
            article = "an" if unit == "hour" else "a"
            return f"{article} {unit} ago"
        if count > 1:
            return f"{count} {unit}s ago"
    return "just now"


def create_session(search_config: SearchConfig) -> aiohttp.ClientSession:
    """Create the shared aiohttp session for crates.io and docs.rs.

    Sets up connection limits, a total timeout matching the search deadline,
    and the identifying User-Agent crates.io requires.

    Args:
        search_config: Upstream search settings.

    Returns:
        aiohttp.ClientSession: Configured HTTP session for making requests.
    """
    connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)
    timeout = aiohttp.ClientTimeout(total=search_config.timeout)
    headers = {
        "User-Agent": search_config.user_agent,
        "Accept": "application/json, text/html;q=0.9",
    }
    return aiohttp.ClientSession(connector=connector, timeout=timeout, headers=headers)
