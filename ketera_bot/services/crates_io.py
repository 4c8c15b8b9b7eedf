"""crates.io API client for crate metadata lookups.

Queries the public crates.io JSON API for the best search match of a query,
then enriches it with the crate detail, owner and dependency endpoints.
Returns plain CrateSummary models; HTTP and payload problems are raised as
upstream errors for the search client to classify.
"""

import asyncio
import logging
from typing import Any

import aiohttp
from pydantic import ValidationError

from ..models import CrateOwner, CrateSummary
from .errors import MalformedResponseError, UpstreamHTTPError

logger = logging.getLogger(__name__)


class CratesIoClient:
    """Read-only client for the crates.io API.

    Holds no state besides the shared HTTP session, so one instance serves
    all concurrent chats.
    """

    def __init__(self, session: aiohttp.ClientSession, base_url: str = "https://crates.io/api/v1"):
        """Initialize crates.io client.

        Args:
            session: Shared HTTP session created at startup.
            base_url: API root without trailing slash.
        """
        self.session = session
        self.base_url = base_url.rstrip("/")

    async def lookup(self, query: str) -> CrateSummary | None:
        """Find the best matching crate for a query.

        Args:
            query: Crate name or free-text search query.

        Returns:
            CrateSummary of the top hit, None when nothing matches.

        Raises:
            UpstreamHTTPError: On unexpected HTTP status.
            MalformedResponseError: On undecodable or incomplete payloads.
        """
        top = await self.search_top(query)
        if top is None:
            return None

        name = top.get("name")
        if not isinstance(name, str) or not name:
            raise MalformedResponseError("Search hit without crate name")

        results = await asyncio.gather(
            self._get_json(f"{self.base_url}/crates/{name}"),
            self._get_json(f"{self.base_url}/crates/{name}/owner_user"),
            self.dependencies(name, pick_version(top)),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        detail, owners, dependencies = results
        if detail is None or owners is None:
            logger.info("Crate %s vanished between search and detail lookup", name)
            return None

        return build_crate_summary(detail, owners, dependencies)

    async def search_top(self, query: str) -> dict[str, Any] | None:
        """Return the first crate of a crates.io search, or None."""
        data = await self._get_json(
            f"{self.base_url}/crates",
            params={"q": query, "per_page": "1"},
        )
        if data is None:
            return None

        crates = data.get("crates")
        if not isinstance(crates, list):
            raise MalformedResponseError("Search response without 'crates' list")
        if not crates:
            logger.debug("No crates.io results for %r", query)
            return None

        top = crates[0]
        if not isinstance(top, dict):
            raise MalformedResponseError("Search hit is not an object")
        return top

    async def dependencies(self, name: str, version: str | None) -> dict[str, Any] | None:
        """Return the dependency list of one crate version, None if unknown."""
        if not version:
            return None
        return await self._get_json(f"{self.base_url}/crates/{name}/{version}/dependencies")

    async def _get_json(
        self, url: str, params: dict[str, str] | None = None
    ) -> dict[str, Any] | None:
        """GET a JSON object, mapping 404 to None."""
        async with self.session.get(url, params=params) as response:
            if response.status == 404:
                return None
            if response.status != 200:
                raise UpstreamHTTPError(url, response.status)
            try:
                data = await response.json()
            except (aiohttp.ContentTypeError, ValueError) as e:
                raise MalformedResponseError(f"Invalid JSON from {url}: {e}") from e

        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected JSON object from {url}")
        return data


def pick_version(info: dict[str, Any]) -> str | None:
    """Version shown for a crate: latest stable, else newest, else max."""
    return (
        info.get("max_stable_version")
        or info.get("newest_version")
        or info.get("max_version")
    )


def build_crate_summary(
    detail: dict[str, Any],
    owners: dict[str, Any],
    dependencies: dict[str, Any] | None = None,
) -> CrateSummary:
    """Assemble a CrateSummary from crate detail, owner and dependency payloads.

    Args:
        detail: Body of `GET /crates/<name>`.
        owners: Body of `GET /crates/<name>/owner_user`.
        dependencies: Body of `GET /crates/<name>/<version>/dependencies`,
            None when the version has no dependency listing.

    Returns:
        Immutable crate summary.

    Raises:
        MalformedResponseError: If required fields are missing or invalid.
    """
    try:
        info = detail["crate"]
        version = pick_version(info)
        if not version:
            raise KeyError("max_version")
        newest = next(
            (v for v in detail.get("versions") or [] if v.get("num") == version),
            {},
        )
        dependency_count = dev_dependency_count = None
        if dependencies is not None:
            listed = dependencies["dependencies"]
            dependency_count = len(listed)
            dev_dependency_count = sum(1 for d in listed if d.get("kind") == "dev")
        return CrateSummary(
            name=info["name"],
            version=version,
            description=(info.get("description") or "").strip(),
            downloads=info.get("downloads") or 0,
            recent_downloads=info.get("recent_downloads"),
            repository=info.get("repository"),
            homepage=info.get("homepage"),
            documentation=info.get("documentation"),
            license=newest.get("license"),
            crate_size=newest.get("crate_size"),
            dependency_count=dependency_count,
            dev_dependency_count=dev_dependency_count,
            keywords=tuple(k["keyword"] for k in detail.get("keywords") or []),
            categories=tuple(c["category"] for c in detail.get("categories") or []),
            owners=tuple(
                CrateOwner(login=u["login"], name=u.get("name"), url=u.get("url"))
                for u in owners.get("users") or []
            ),
            created_at=info.get("created_at"),
            updated_at=info.get("updated_at"),
        )
    except (KeyError, TypeError, AttributeError, ValidationError) as e:
        raise MalformedResponseError(f"Unexpected crate payload: {e!r}") from e
