"""Documentation lookups on docs.rs and doc.rust-lang.org.

Resolves a `crate::module::Item` path to a rustdoc page. The crate's
documentation root comes from the docs.rs redirect (or the stable standard
library docs for `std`, `core` and friends); the item itself is found by
fetching every page the path could map to concurrently and keeping the first
hit in priority order. Pages are parsed with BeautifulSoup.
"""

import asyncio
import logging
from typing import NamedTuple
from urllib.parse import urljoin

import aiohttp
from bs4 import BeautifulSoup, Tag

from ..models import DocEntry, DocItemKind, DocSection
from .errors import UpstreamHTTPError

logger = logging.getLogger(__name__)

STD_CRATES = frozenset({"alloc", "core", "proc_macro", "std", "test"})

# Page prefixes for items that live directly in a module
ITEM_PAGE_KINDS: tuple[tuple[str, DocItemKind], ...] = (
    ("fn", DocItemKind.FUNCTION),
    ("struct", DocItemKind.STRUCT),
    ("trait", DocItemKind.TRAIT),
    ("enum", DocItemKind.ENUM),
    ("macro", DocItemKind.MACRO),
    ("constant", DocItemKind.CONSTANT),
    ("type", DocItemKind.TYPE),
)

# Parent pages that can carry a method anchor
METHOD_PARENT_KINDS: tuple[tuple[str, DocItemKind, tuple[str, ...]], ...] = (
    ("struct", DocItemKind.METHOD, ("method",)),
    ("enum", DocItemKind.METHOD, ("method",)),
    ("trait", DocItemKind.TRAIT_METHOD, ("tymethod", "method")),
)

MODULE_TABLES = {
    "modules": "Modules",
    "macros": "Macros",
    "structs": "Structs",
    "enums": "Enums",
    "traits": "Traits",
    "functions": "Functions",
    "types": "Type Aliases",
    "constants": "Constants",
    "attributes": "Attribute Macros",
    "derives": "Derive Macros",
}

DEFINITION_SELECTORS = ("pre.item-decl", ".item-decl pre", "pre.rust")
DOCBLOCK_SELECTORS = (
    "details.top-doc > .docblock",
    "#main-content > .docblock",
    "#main > .docblock",
    "div.docblock:not(.type-decl)",
)
ITEM_INFO_SELECTORS = ("#main-content > .item-info", "#main > .item-info")
MAX_TABLE_ITEMS = 30


class DocCandidate(NamedTuple):
    """One page an item path may resolve to."""

    kind: DocItemKind
    page: str
    anchors: tuple[str, ...] = ()


class DocsRsClient:
    """Read-only client for rustdoc documentation hosts."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        docs_rs_url: str = "https://docs.rs",
        std_docs_url: str = "https://doc.rust-lang.org/stable",
    ):
        """Initialize docs client.

        Args:
            session: Shared HTTP session created at startup.
            docs_rs_url: docs.rs root without trailing slash.
            std_docs_url: Standard library docs root without trailing slash.
        """
        self.session = session
        self.docs_rs_url = docs_rs_url.rstrip("/")
        self.std_docs_url = std_docs_url.rstrip("/")

    async def lookup(self, path: str) -> DocEntry | None:
        """Resolve an item path to its documentation entry.

        Args:
            path: `::`-separated item path starting with the crate name.

        Returns:
            DocEntry for the first matching page, None when nothing matches.

        Raises:
            UpstreamHTTPError: On server errors from the documentation host.
        """
        segments = split_item_path(path)
        if not segments:
            return None

        crate_name = segments[0]
        root = await self.resolve_root(crate_name)
        if root is None:
            logger.debug("No documentation root for crate %s", crate_name)
            return None

        candidates = build_candidates(segments)
        pages = list(dict.fromkeys(c.page for c in candidates))
        bodies = await asyncio.gather(
            *(self._fetch_page(root + page) for page in pages), return_exceptions=True
        )
        for body in bodies:
            if isinstance(body, BaseException):
                raise body
        html_by_page = dict(zip(pages, bodies))

        for candidate in candidates:
            html = html_by_page[candidate.page]
            if html is None:
                continue
            entry = parse_doc_page(html, candidate, segments, root + candidate.page)
            if entry is not None:
                return entry

        return None

    async def resolve_root(self, crate_name: str) -> str | None:
        """Find the versioned documentation root of a crate.

        Args:
            crate_name: Crate as typed by the user.

        Returns:
            Root URL ending with a slash, or None if docs.rs does not know it.
        """
        if crate_name in STD_CRATES:
            return f"{self.std_docs_url}/{crate_name}/"

        url = f"{self.docs_rs_url}/{crate_name}"
        async with self.session.get(url, allow_redirects=False) as response:
            if 300 <= response.status < 400:
                location = response.headers.get("Location")
                if not location:
                    return None
                root = urljoin(url, location)
                return root if root.endswith("/") else root + "/"
            if response.status >= 500:
                raise UpstreamHTTPError(url, response.status)
            return None

    async def _fetch_page(self, url: str) -> str | None:
        """GET a documentation page, None for any client error."""
        async with self.session.get(url) as response:
            if response.status >= 500:
                raise UpstreamHTTPError(url, response.status)
            if response.status != 200:
                return None
            return await response.text()


def split_item_path(path: str) -> list[str]:
    """Split `a::b::C` into segments, empty list for malformed paths."""
    segments = [segment.strip() for segment in path.strip().split("::")]
    if not segments or any(not segment or "/" in segment for segment in segments):
        return []
    return segments


def build_candidates(segments: list[str]) -> list[DocCandidate]:
    """List every page an item path may live on.

    Args:
        segments: Path segments, the first being the crate.

    Returns:
        Candidates in priority order.
    """
    candidates = [
        DocCandidate(DocItemKind.MODULE, _module_prefix(segments[1:]) + "index.html")
    ]
    if len(segments) < 2:
        return candidates

    name = segments[-1]
    module = _module_prefix(segments[1:-1])
    candidates.extend(
        DocCandidate(kind, f"{module}{prefix}.{name}.html") for prefix, kind in ITEM_PAGE_KINDS
    )

    if len(segments) >= 3:
        parent = segments[-2]
        parent_module = _module_prefix(segments[1:-2])
        candidates.extend(
            DocCandidate(
                kind,
                f"{parent_module}{prefix}.{parent}.html",
                tuple(f"{anchor}.{name}" for anchor in anchors),
            )
            for prefix, kind, anchors in METHOD_PARENT_KINDS
        )

    return candidates


def _module_prefix(modules: list[str]) -> str:
    return "".join(f"{module}/" for module in modules)


def parse_doc_page(
    html: str, candidate: DocCandidate, segments: list[str], url: str
) -> DocEntry | None:
    """Parse a rustdoc page into a DocEntry.

    Args:
        html: Page body.
        candidate: Candidate the page was fetched for.
        segments: Requested path segments.
        url: Page URL.

    Returns:
        DocEntry, or None when a method anchor is missing from the page.
    """
    soup = BeautifulSoup(html, "lxml")
    item_path = "::".join(segments)

    if candidate.anchors:
        return _parse_method(soup, candidate, segments, url)

    definition = None
    if candidate.kind is not DocItemKind.MODULE:
        found = _first_match(soup, DEFINITION_SELECTORS)
        definition = found.get_text().strip() if found is not None else None

    docblock = _first_match(soup, DOCBLOCK_SELECTORS)
    summary, sections = split_docblock(docblock)
    if candidate.kind is DocItemKind.MODULE:
        sections.extend(parse_module_tables(soup))

    deprecated, stability_note = _item_info(_first_match(soup, ITEM_INFO_SELECTORS))

    return DocEntry(
        crate_name=segments[0],
        item_path=item_path,
        item_kind=candidate.kind,
        canonical_url=url,
        definition=definition,
        summary=summary,
        sections=tuple(sections),
        deprecated=deprecated,
        stability_note=stability_note,
    )


def _parse_method(
    soup: BeautifulSoup, candidate: DocCandidate, segments: list[str], url: str
) -> DocEntry | None:
    anchor_id = next((a for a in candidate.anchors if soup.find(id=a)), None)
    if anchor_id is None:
        return None

    anchor = soup.find(id=anchor_id)
    header = anchor.select_one(".code-header") or anchor.find("code") or anchor
    definition = header.get_text(" ", strip=True)

    toggle = _method_toggle(anchor)
    if toggle is not None:
        info = toggle.select_one(".item-info")
        docblock = toggle.select_one(".docblock")
    else:
        # Undocumented method, or the older layout with the heading, an optional
        # item-info and an optional docblock as siblings
        info = None
        following = anchor.find_next_sibling()
        if following is not None and "item-info" in (following.get("class") or []):
            info = following
            following = following.find_next_sibling()
        docblock = None
        if following is not None and "docblock" in (following.get("class") or []):
            docblock = following

    summary, sections = split_docblock(docblock)
    deprecated, stability_note = _item_info(info)

    return DocEntry(
        crate_name=segments[0],
        item_path="::".join(segments),
        item_kind=candidate.kind,
        canonical_url=f"{url}#{anchor_id}",
        definition=definition,
        summary=summary,
        sections=tuple(sections),
        deprecated=deprecated,
        stability_note=stability_note,
    )


def _method_toggle(anchor: Tag) -> Tag | None:
    """Return the `details.method-toggle` whose summary holds the anchor.

    Undocumented methods sit directly in the impl block, so the nearest
    `details` is the whole impl and must not be used.
    """
    summary = anchor.find_parent("summary")
    if summary is None:
        return None
    toggle = summary.parent
    if toggle is None or toggle.name != "details":
        return None
    if "method-toggle" not in (toggle.get("class") or []):
        return None
    return toggle


def split_docblock(docblock: Tag | None) -> tuple[str, list[DocSection]]:
    """Split a docblock into its leading summary and titled sections.

    Args:
        docblock: The `.docblock` element, or None.

    Returns:
        Summary text and the list of sections in page order.
    """
    if docblock is None:
        return "", []

    summary: list[str] = []
    sections: list[DocSection] = []
    heading: str | None = None
    buffer: list[str] = []

    for child in docblock.find_all(recursive=False):
        if child.name in ("h1", "h2", "h3", "h4"):
            if heading is None:
                summary = buffer
            else:
                sections.append(DocSection(heading=heading, body="\n".join(buffer)))
            heading = child.get_text(" ", strip=True)
            buffer = []
            continue

        text = _paragraph_text(child)
        if text:
            buffer.append(text)

    if heading is None:
        summary = buffer
    else:
        sections.append(DocSection(heading=heading, body="\n".join(buffer)))

    return "\n".join(summary), sections


def parse_module_tables(soup: BeautifulSoup) -> list[DocSection]:
    """Turn a module page's item tables into one section per table."""
    sections: list[DocSection] = []
    for table_id, heading in MODULE_TABLES.items():
        header = soup.find(id=table_id)
        if header is None:
            continue
        table = header.find_next_sibling()
        if table is None:
            continue

        lines = []
        for link in table.select(".item-name a, dt a, td a"):
            name = link.get_text(strip=True)
            if name and name not in lines:
                lines.append(name)

        if not lines:
            continue
        shown = lines[:MAX_TABLE_ITEMS]
        if len(lines) > MAX_TABLE_ITEMS:
            shown.append(f"... and {len(lines) - MAX_TABLE_ITEMS} more")
        sections.append(DocSection(heading=heading, body="\n".join(shown)))

    return sections


def _paragraph_text(element: Tag) -> str:
    if element.name == "pre" or element.select_one("pre"):
        pre = element if element.name == "pre" else element.select_one("pre")
        return pre.get_text().rstrip()
    if element.name in ("ul", "ol"):
        return "\n".join(
            "• " + " ".join(item.get_text(" ").split()) for item in element.find_all("li")
        )
    if element.name in ("p", "blockquote", "div"):
        return " ".join(element.get_text(" ").split())
    return ""


def _item_info(info: Tag | None) -> tuple[bool, str | None]:
    if info is None:
        return False, None
    deprecated = info.select_one(".stab.deprecated") is not None
    note = info.select_one(".stab.portability, .stab.unstable")
    return deprecated, " ".join(note.get_text(" ").split()) if note else None


def _first_match(soup: BeautifulSoup, selectors: tuple[str, ...]) -> Tag | None:
    for selector in selectors:
        found = soup.select_one(selector)
        if found is not None:
            return found
    return None
