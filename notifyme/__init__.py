"""Notify-Me: relay messages from web pages to Telegram chats."""

__version__ = "0.1.0"
