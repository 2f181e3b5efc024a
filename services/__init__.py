"""Services module for Code Review Chat."""

from .anthropic_client import AnthropicClient
from .file_processor import FileProcessor
from .review_service import ReviewService

__all__ = ["AnthropicClient", "FileProcessor", "ReviewService"]
