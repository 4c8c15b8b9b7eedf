"""Ketera Bot Application Package.

A Telegram bot that looks up Rust crates on crates.io and item documentation
on docs.rs, then renders the results back into chat messages.

The application follows a modular architecture with separate concerns for:
- Command parsing and Telegram handlers
- Upstream HTTP clients for crates.io and docs.rs
- Result formatting into bounded-length HTML messages
"""

__version__ = "0.3.0"
