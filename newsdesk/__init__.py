"""newsdesk: fetch AI news articles, rewrite them with Gemini and fact-check the rewrite."""

__version__ = "0.1.0"
