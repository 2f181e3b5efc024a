"""Error taxonomy for review requests.

Every error carries the HTTP status it maps to. The app registers a single
handler that renders any ReviewError as ``{"message": ...}``.
"""

from typing import Optional

from fastapi import status


class ReviewError(Exception):
    """Base class for errors surfaced to the caller."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(ReviewError):
    """Missing input, or an oversized or unsupported file."""

    def __init__(self, message: str):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class UnauthorizedError(ReviewError):
    """No provider credential could be resolved."""

    def __init__(self, message: str = "Missing API key. Add your Anthropic API key in the credentials dialog."):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED)


class InvalidURLError(ReviewError):
    """A pull request link that does not look like /<owner>/<repo>/pull/<number>."""

    def __init__(self, url: str):
        super().__init__(
            f"Invalid GitHub PR URL: {url}. Expected https://github.com/<owner>/<repo>/pull/<number>",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
        self.url = url


class ProviderError(ReviewError):
    """Non-success response from GitHub or the LLM provider."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        if status is not None:
            message = f"{message} ({status})"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)
        self.status = status
        self.body = body


class StreamInterrupted(ReviewError):
    """The provider stream ended abnormally after output had started."""


class ConversationBusyError(ReviewError):
    """A conversation already has a response in flight."""

    def __init__(self, conversation_id: str):
        super().__init__(
            f"Conversation {conversation_id} is already receiving a response",
            status_code=status.HTTP_409_CONFLICT,
        )


class NotFoundError(ReviewError):
    def __init__(self, message: str):
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)
