"""Telegram bot implementation package.

Contains all Telegram bot specific functionality including command routing,
message handlers, response formatting and message templates.
"""
