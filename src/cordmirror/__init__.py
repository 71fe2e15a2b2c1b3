"""Client-side entity cache and event dispatch for a chat-service API."""

__version__ = "0.1.0"
