"""Telegram bot message templates and constants.

Contains all user-facing message templates, usage texts and button labels.
Templates are Telegram HTML; placeholders are filled with escaped values.
"""

# Bot commands and descriptions
COMMAND_DESCRIPTIONS = {
    "help": "show help message",
    "crate": "show the information of a crate",
    "docs": "show the documentation of a crate item",
}

HELP_MESSAGE = (
    "I look up Rust crates and their documentation.\n\n"
    "/crate <code>[crate-name]</code>: show the information of a crate\n"
    "/docs <code>[path]</code>: show the documentation of a crate item\n"
    "/help: show this message"
)

CRATE_USAGE = (
    "<code>/crate [crate-name]</code>\n"
    "Show information of a crate.\n\n"
    "<code>[crate-name]</code>: the name of a crate"
)

DOCS_USAGE = (
    "<code>/docs [path]</code>\n"
    "Show online documentation with specified path in a crate.\n\n"
    "<code>[path]</code>: the path to the item, e.g. <code>std::mem::swap</code>"
)

# Outcome messages
NOT_FOUND_MESSAGE = "🔍 No results for <code>{query}</code>."
UPSTREAM_ERROR_MESSAGE = "⚠️ The service is unavailable right now, try again later."

# Crate information
CRATE_HEADER_LINE = "<b>{name}</b> <i>{version}</i>"
CRATE_SIZE_SUFFIX = " ({size}B)"
CRATE_OWNERS_SUFFIX = " by {owners}"
CRATE_MORE_OWNERS = " and {count} others"
ANONYMOUS_OWNER = "&lt;anonymous&gt;"
LICENSE_LINE = "{license} License"
NO_LICENSE_LINE = "No License"
NO_DESCRIPTION = "<i>No description</i>"
KEYWORDS_BLOCK = "<b>Keywords</b>\n<i>{keywords}</i>"
CATEGORIES_BLOCK = "<b>Categories</b>\n<i>{categories}</i>"
DOWNLOADS_LINE = "⬇️ {recent} downloads recently ({total} total)"
TOTAL_DOWNLOADS_LINE = "⬇️ {total} downloads"
REPOSITORY_LINE = '📂 <a href="{url}">{url}</a>'
DEPENDENCIES_LINE = "📊 {dependencies} dependencies ({dev} for dev)"
UPDATED_LINE = "🕒 updated at {date} ({elapsed})"
CREATED_LINE = "🕒 created at {date} ({elapsed})"
DATE_FORMAT = "%Y-%m-%d %Z"

# Documentation
DOC_HEADER_LINE = "<b>{path}</b> <i>{kind}</i>"
DEPRECATED_MARK = " <b>Deprecated</b>"
STABILITY_LINE = "<i>{note}</i>"
DEFINITION_BLOCK = '<pre><code class="language-rust">{definition}</code></pre>'
DOC_LINK_LINE = '📚 <a href="{url}">{url}</a>'
SECTION_HEADING = "<b>{heading}</b>"

# Callback answers
SECTION_EXPIRED = "This result is no longer available, run /docs again."

# Inline keyboard labels
HOME_BUTTON = "🏠 Home"
DOCS_BUTTON = "📚 Docs"
REPO_BUTTON = "📂 Repo"

# Truncation marker
ELLIPSIS = "…"
