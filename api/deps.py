"""Dependency injection providers for the API layer.

This module provides a single source of truth for shared services like
the credential store, PR fetcher and review service. All modules
should use these providers instead of creating their own instances.
"""

from config import CREDENTIALS_PATH
from services.chat_state import ConversationStore
from services.credential_store import CredentialStore
from services.file_processor import FileProcessor
from services.github_client import PRFetcher
from services.review_service import ReviewService

# Singleton instances
_credential_store: CredentialStore | None = None
_pr_fetcher: PRFetcher | None = None
_conversations: ConversationStore | None = None
_file_processor: FileProcessor | None = None
_review_service: ReviewService | None = None
_initialized: bool = False


def initialize_all(credentials_path: str = CREDENTIALS_PATH):
    """Initialize all stores and services. Called once at app startup."""
    global _credential_store, _pr_fetcher, _conversations, _file_processor, _review_service, _initialized

    if _initialized:
        return

    _credential_store = CredentialStore(credentials_path)
    _pr_fetcher = PRFetcher()
    _conversations = ConversationStore()
    _file_processor = FileProcessor()
    _review_service = ReviewService(
        credential_store=_credential_store,
        pr_fetcher=_pr_fetcher,
        conversations=_conversations,
    )

    _initialized = True
    print("[DEPS] All services initialized")


def reset():
    """Drop all singletons so the next initialize_all() starts fresh."""
    global _credential_store, _pr_fetcher, _conversations, _file_processor, _review_service, _initialized
    _credential_store = None
    _pr_fetcher = None
    _conversations = None
    _file_processor = None
    _review_service = None
    _initialized = False


def _require(instance, name: str):
    if not _initialized or instance is None:
        raise RuntimeError(f"Dependencies not initialized ({name}). Call initialize_all() first.")
    return instance


def get_credential_store() -> CredentialStore:
    """Get the singleton CredentialStore instance."""
    return _require(_credential_store, "credential store")


def get_pr_fetcher() -> PRFetcher:
    """Get the singleton PRFetcher instance."""
    return _require(_pr_fetcher, "PR fetcher")


def get_conversations() -> ConversationStore:
    """Get the singleton ConversationStore instance."""
    return _require(_conversations, "conversations")


def get_file_processor() -> FileProcessor:
    """Get the singleton FileProcessor instance."""
    return _require(_file_processor, "file processor")


def get_review_service() -> ReviewService:
    """Get the singleton ReviewService instance."""
    return _require(_review_service, "review service")


def is_initialized() -> bool:
    """Check if dependencies have been initialized."""
    return _initialized
