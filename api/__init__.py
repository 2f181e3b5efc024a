"""API routes module for Code Review Chat."""

from .review import router as review_router
from .pr import router as pr_router
from .files import router as files_router
from .credentials import router as credentials_router
from .conversations import router as conversations_router

__all__ = ["review_router", "pr_router", "files_router", "credentials_router", "conversations_router"]
