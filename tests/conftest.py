"""Global test configuration and fixtures.

Provides shared fixtures for all test levels: test environment variables,
a fake aiohttp session serving canned responses, and sample crates.io and
rustdoc payloads. Nothing here touches the network.
"""

import os
from datetime import UTC, datetime
from typing import Any

import pytest

from ketera_bot.models import CrateOwner, CrateSummary, DocEntry, DocItemKind, DocSection

# Test constants
TEST_BOT_TOKEN = os.getenv("TEST_BOT_TOKEN", "test_bot_token_placeholder")
CRATES_API = "https://crates.io/api/v1"
STD_DOCS = "https://doc.rust-lang.org/stable"


@pytest.fixture(autouse=True)
def test_environment(monkeypatch):
    """Setup test environment variables for all tests."""
    monkeypatch.setenv("BOT_TOKEN", TEST_BOT_TOKEN)
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    for key in (
        "WEBHOOK_DOMAIN",
        "PORT",
        "BOT_LISTEN_HOST",
        "SEARCH_TIMEOUT",
        "HTTP_USER_AGENT",
        "DESCRIPTION_LIMIT",
        "MAX_MESSAGE_LENGTH",
        "LOG_CONFIG",
    ):
        monkeypatch.delenv(key, raising=False)


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse used as a context manager."""

    def __init__(
        self,
        status: int = 200,
        payload: Any = None,
        text: str = "",
        headers: dict[str, str] | None = None,
    ):
        self.status = status
        self._payload = payload
        self._text = text
        self.headers = headers or {}

    async def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info: object) -> bool:
        return False


class FakeSession:
    """Routes GET requests by URL to canned FakeResponses, 404 otherwise."""

    def __init__(self, routes: dict[str, FakeResponse] | None = None):
        self.routes = routes or {}
        self.calls: list[tuple[str, dict | None, dict]] = []

    def get(self, url: str, params: dict | None = None, **kwargs: Any) -> FakeResponse:
        self.calls.append((url, params, kwargs))
        return self.routes.get(url, FakeResponse(status=404))

    @property
    def requested_urls(self) -> list[str]:
        return [url for url, _, _ in self.calls]


@pytest.fixture
def fake_response() -> type[FakeResponse]:
    """Factory for canned aiohttp responses."""
    return FakeResponse


@pytest.fixture
def fake_session() -> type[FakeSession]:
    """Factory for aiohttp sessions serving a dict of canned routes."""
    return FakeSession


@pytest.fixture
def serde_search_payload() -> dict:
    """crates.io search response with serde as the top hit."""
    return {
        "crates": [
            {
                "name": "serde",
                "max_version": "1.0.130",
                "newest_version": "1.0.130",
                "description": "A generic serialization/deserialization framework",
                "downloads": 100000000,
                "exact_match": True,
            }
        ],
        "meta": {"total": 4321},
    }


@pytest.fixture
def serde_detail_payload() -> dict:
    """crates.io crate detail response for serde."""
    return {
        "crate": {
            "id": "serde",
            "name": "serde",
            "max_version": "1.0.130",
            "max_stable_version": "1.0.130",
            "newest_version": "1.0.130",
            "description": "A serialization framework",
            "downloads": 100000000,
            "recent_downloads": 12345678,
            "homepage": "https://serde.rs",
            "documentation": "https://docs.rs/serde",
            "repository": "https://github.com/serde-rs/serde",
            "created_at": "2014-12-05T20:20:39.487502+00:00",
            "updated_at": "2021-08-23T01:41:21.234592+00:00",
        },
        "versions": [
            {"num": "1.0.130", "crate_size": 75641, "license": "MIT OR Apache-2.0"},
            {"num": "1.0.129", "crate_size": 75102, "license": "MIT OR Apache-2.0"},
        ],
        "keywords": [{"id": "serde", "keyword": "serde"}, {"id": "no_std", "keyword": "no_std"}],
        "categories": [{"id": "encoding", "category": "Encoding", "slug": "encoding"}],
    }


@pytest.fixture
def serde_owners_payload() -> dict:
    """crates.io owner_user response for serde."""
    return {
        "users": [
            {"id": 3618, "login": "dtolnay", "name": "David Tolnay", "url": "https://github.com/dtolnay"},
            {"id": 105, "login": "erickt", "name": "Erick Tryzelaar", "url": "https://github.com/erickt"},
        ]
    }


@pytest.fixture
def serde_dependencies_payload() -> dict:
    """crates.io dependencies response for serde 1.0.130."""
    return {
        "dependencies": [
            {"crate_id": "serde_derive", "req": "=1.0.130", "kind": "normal", "optional": True},
            {"crate_id": "serde_derive", "req": "^1.0", "kind": "dev", "optional": False},
            {"crate_id": "serde_json", "req": "^1.0", "kind": "dev", "optional": False},
        ]
    }


@pytest.fixture
def serde_routes(
    serde_search_payload, serde_detail_payload, serde_owners_payload, serde_dependencies_payload
) -> dict[str, FakeResponse]:
    """All crates.io routes needed for a successful serde lookup."""
    return {
        f"{CRATES_API}/crates": FakeResponse(payload=serde_search_payload),
        f"{CRATES_API}/crates/serde": FakeResponse(payload=serde_detail_payload),
        f"{CRATES_API}/crates/serde/owner_user": FakeResponse(payload=serde_owners_payload),
        f"{CRATES_API}/crates/serde/1.0.130/dependencies": FakeResponse(
            payload=serde_dependencies_payload
        ),
    }


@pytest.fixture
def sample_crate() -> CrateSummary:
    """Fully populated CrateSummary for serde."""
    return CrateSummary(
        name="serde",
        version="1.0.130",
        description="A serialization framework",
        downloads=100000000,
        recent_downloads=12345678,
        repository="https://github.com/serde-rs/serde",
        homepage="https://serde.rs",
        documentation="https://docs.rs/serde",
        license="MIT OR Apache-2.0",
        crate_size=75641,
        keywords=("serde", "no_std"),
        categories=("Encoding",),
        owners=(
            CrateOwner(login="dtolnay", name="David Tolnay", url="https://github.com/dtolnay"),
            CrateOwner(login="erickt", name="Erick Tryzelaar", url="https://github.com/erickt"),
        ),
        created_at=datetime(2014, 12, 5, 20, 20, tzinfo=UTC),
        updated_at=datetime(2021, 8, 23, 1, 41, tzinfo=UTC),
    )


@pytest.fixture
def sample_doc_entry() -> DocEntry:
    """DocEntry for std::mem::swap with two sections."""
    return DocEntry(
        crate_name="std",
        item_path="std::mem::swap",
        item_kind=DocItemKind.FUNCTION,
        canonical_url=f"{STD_DOCS}/std/mem/fn.swap.html",
        definition="pub const fn swap<T>(x: &mut T, y: &mut T)",
        summary="Swaps the values at two mutable locations, without deinitializing either one.",
        sections=(
            DocSection(heading="Examples", body="let mut x = 5;\nlet mut y = 42;\nmem::swap(&mut x, &mut y);"),
            DocSection(heading="Safety", body="Both references must be valid."),
        ),
    )


@pytest.fixture
def struct_page() -> str:
    """rustdoc page for Vec with a documented, an undocumented and a deprecated method."""
    return """
<html><body>
<section id="main-content" class="content">
  <div class="main-heading"><h1>Struct <a href="#">Vec</a></h1></div>
  <pre class="rust item-decl"><code>pub struct Vec&lt;T, A = Global&gt; { /* private fields */ }</code></pre>
  <div class="item-info"><div class="stab portability">Available on <strong>crate feature alloc</strong> only.</div></div>
  <details class="toggle top-doc" open>
    <summary class="hideme"><span>Expand description</span></summary>
    <div class="docblock">
      <p>A contiguous growable array type, written as <code>Vec&lt;T&gt;</code>.</p>
      <h2 id="examples">Examples</h2>
      <div class="example-wrap"><pre class="rust rust-example-rendered"><code>let mut vec = Vec::new();
vec.push(1);</code></pre></div>
      <h2 id="capacity">Capacity and reallocation</h2>
      <p>The capacity of a vector is the amount of space allocated.</p>
      <ul><li>first point</li><li>second point</li></ul>
    </div>
  </details>
  <div id="implementations-list">
    <details class="toggle implementors-toggle" open>
      <summary>
        <section id="impl-Vec%3CT%3E" class="impl"><h3 class="code-header">impl&lt;T&gt; Vec&lt;T&gt;</h3></section>
      </summary>
      <div class="impl-items">
        <details class="toggle method-toggle" open>
          <summary>
            <section id="method.len" class="method"><h4 class="code-header">pub fn len(&amp;self) -&gt; usize</h4></section>
          </summary>
          <div class="docblock"><p>Returns the number of elements in the vector.</p>
            <h1>Examples</h1><p>Call it.</p></div>
        </details>
        <section id="method.as_ptr_range" class="method"><h4 class="code-header">pub fn as_ptr_range(&amp;self)</h4></section>
        <details class="toggle method-toggle" open>
          <summary>
            <section id="method.drain_filter" class="method"><h4 class="code-header">pub fn drain_filter(&amp;mut self)</h4></section>
          </summary>
          <div class="item-info"><div class="stab deprecated">Deprecated since 1.70</div><div class="stab unstable">Experimental API</div></div>
          <div class="docblock"><p>Removes matching elements.</p></div>
        </details>
      </div>
    </details>
  </div>
</section>
</body></html>
"""


@pytest.fixture
def module_page() -> str:
    """rustdoc index page for std::mem listing structs and functions."""
    return """
<html><body>
<section id="main-content" class="content">
  <div class="main-heading"><h1>Module <a href="#">std</a>::<a href="#">mem</a></h1></div>
  <details class="toggle top-doc" open>
    <summary class="hideme"><span>Expand description</span></summary>
    <div class="docblock"><p>Basic functions for dealing with memory.</p></div>
  </details>
  <h2 id="structs" class="section-header">Structs</h2>
  <ul class="item-table">
    <li><div class="item-name"><a class="struct" href="struct.Discriminant.html">Discriminant</a></div><div class="desc docblock-short">Opaque type.</div></li>
    <li><div class="item-name"><a class="struct" href="struct.ManuallyDrop.html">ManuallyDrop</a></div><div class="desc docblock-short">A wrapper.</div></li>
  </ul>
  <h2 id="functions" class="section-header">Functions</h2>
  <dl class="item-table">
    <dt><a class="fn" href="fn.swap.html">swap</a></dt><dd>Swaps the values.</dd>
    <dt><a class="fn" href="fn.take.html">take</a></dt><dd>Replaces with default.</dd>
  </dl>
</section>
</body></html>
"""
