"""Upstream services package.

Contains the HTTP clients that query crates.io and the rustdoc documentation
hosts, plus the search client that turns their results into outcomes.
"""
