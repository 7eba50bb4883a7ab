"""Content persistence: repository interface and in-memory/JSON store."""

from newsdesk.data_management.content_store import ContentStore
from newsdesk.data_management.repository import ContentRepository

__all__ = ["ContentStore", "ContentRepository"]
