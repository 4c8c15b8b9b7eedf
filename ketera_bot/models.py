"""Data models for the crate lookup bot.

Defines Pydantic models for all data structures used throughout the
application: parsed chat commands, crate metadata from crates.io,
documentation entries from docs.rs, and the search outcomes handed from the
upstream client to the formatter. Nothing here outlives a single request.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Verb(str, Enum):
    """Supported chat commands."""

    CRATE = "crate"
    DOCS = "docs"


class RejectReason(str, Enum):
    """Why a chat message was not turned into a command."""

    UNKNOWN_COMMAND = "unknown_command"
    MISSING_QUERY = "missing_query"


class UpstreamFailure(str, Enum):
    """Classified upstream problems reported as UpstreamError."""

    TIMEOUT = "timeout"
    HTTP_FAILURE = "http_failure"
    MALFORMED_RESPONSE = "malformed_response"


class DocItemKind(str, Enum):
    """Kinds of rustdoc pages the docs lookup can resolve."""

    MODULE = "module"
    FUNCTION = "function"
    STRUCT = "struct"
    ENUM = "enum"
    TRAIT = "trait"
    MACRO = "macro"
    CONSTANT = "constant"
    TYPE = "type"
    METHOD = "method"
    TRAIT_METHOD = "trait method"


class Command(BaseModel):
    """Parsed chat command.

    Attributes:
        verb: Which lookup to run.
        argument: Trimmed query text, never empty.
    """

    model_config = ConfigDict(frozen=True)

    verb: Verb
    argument: str

    @field_validator("argument")
    @classmethod
    def _argument_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("argument must not be empty")
        return value


class RejectedInput(BaseModel):
    """Chat text that could not be dispatched.

    Attributes:
        reason: Machine-readable rejection reason.
        verb: Recognised verb for MISSING_QUERY, None for unknown commands.
        raw_verb: First token of the message as typed by the user.
    """

    model_config = ConfigDict(frozen=True)

    reason: RejectReason
    verb: Verb | None = None
    raw_verb: str = ""


class CrateOwner(BaseModel):
    """crates.io user owning a crate."""

    model_config = ConfigDict(frozen=True)

    login: str
    name: str | None = None
    url: str | None = None


class CrateSummary(BaseModel):
    """Crate metadata assembled from the crates.io API.

    Attributes:
        name: Crate name.
        version: Newest published version.
        description: Crate description, may be empty.
        downloads: All-time download count.
        recent_downloads: Downloads over the last 90 days.
        repository: Source repository URL.
        homepage: Homepage URL.
        documentation: Documentation URL declared by the crate.
        license: SPDX license expression of the newest version.
        crate_size: Size in bytes of the newest version's tarball.
        dependency_count: Dependencies of the newest version, dev ones included.
        dev_dependency_count: Dev-dependencies of the newest version.
        keywords: Crate keywords.
        categories: Crate category slugs.
        owners: Users owning the crate.
        created_at: When the crate was first published.
        updated_at: When the crate was last updated.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    description: str = ""
    downloads: int = 0
    recent_downloads: int | None = None
    repository: str | None = None
    homepage: str | None = None
    documentation: str | None = None
    license: str | None = None
    crate_size: int | None = None
    dependency_count: int | None = None
    dev_dependency_count: int | None = None
    keywords: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    owners: tuple[CrateOwner, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DocSection(BaseModel):
    """Titled part of a documentation page, shown on demand."""

    model_config = ConfigDict(frozen=True)

    heading: str
    body: str


class DocEntry(BaseModel):
    """Resolved documentation page for an item path.

    Attributes:
        crate_name: Crate the item belongs to.
        item_path: Full `::`-separated path as resolved.
        item_kind: Kind of page that matched.
        canonical_url: URL of the page (with anchor for methods).
        definition: Item declaration, None for modules.
        summary: Leading paragraphs of the item's documentation.
        sections: Remaining documentation split by heading.
        deprecated: Whether the item is marked deprecated.
        stability_note: Portability/stability banner text, if any.
    """

    model_config = ConfigDict(frozen=True)

    crate_name: str
    item_path: str
    item_kind: DocItemKind
    canonical_url: str
    definition: str | None = None
    summary: str = ""
    sections: tuple[DocSection, ...] = ()
    deprecated: bool = False
    stability_note: str | None = None


class Found(BaseModel):
    """Successful lookup."""

    model_config = ConfigDict(frozen=True)

    result: CrateSummary | DocEntry


class NotFound(BaseModel):
    """Lookup completed without a match."""

    model_config = ConfigDict(frozen=True)

    verb: Verb
    query: str


class UpstreamError(BaseModel):
    """Lookup failed because an upstream service misbehaved.

    Attributes:
        verb: Lookup that was attempted.
        query: Query that was attempted.
        reason: Classified failure.
        detail: Operator-facing description, never shown to users.
    """

    model_config = ConfigDict(frozen=True)

    verb: Verb
    query: str
    reason: UpstreamFailure
    detail: str = Field(default="", repr=False)


SearchOutcome = Found | NotFound | UpstreamError
