"""Translate OpenAI chat-completion requests into Gemini (Antigravity) requests."""

__version__ = "0.1.0"
