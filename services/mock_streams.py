"""Mock review streams for deterministic testing.

When MOCK_LLM=1 environment variable is set, the review relay reads from
these generators instead of calling the Anthropic API.
"""

import os
import asyncio
from typing import AsyncGenerator, List

from services.errors import ProviderError


def is_mock_mode() -> bool:
    """Check if mock mode is enabled via environment variable."""
    return os.getenv("MOCK_LLM", "").lower() in ("1", "true", "yes")


MOCK_REVIEW_CHUNKS = [
    "## Summary\n\n",
    "The code is **readable** ",
    "and mostly correct.\n\n",
    "## Issues\n\n",
    "1. **Bug**: the loop ",
    "skips the last element.\n",
    "2. **Security**: user input ",
    "is interpolated into a SQL string.\n\n",
    "## Suggestion\n\n",
    "```python\n",
    "cursor.execute(\"SELECT * FROM users WHERE id = ?\", (user_id,))\n",
    "```\n",
]


async def mock_review_stream(
    chunks: List[str] = MOCK_REVIEW_CHUNKS,
    delay_ms: int = 20
) -> AsyncGenerator[str, None]:
    """Yield a canned review one text delta at a time.

    Args:
        chunks: Text deltas to emit, in order
        delay_ms: Delay between deltas in milliseconds
    """
    for chunk in chunks:
        yield chunk
        await asyncio.sleep(delay_ms / 1000)


async def mock_error_stream(
    error_message: str = "Mock error for testing",
    chunks_before_error: int = 2,
    delay_ms: int = 10
) -> AsyncGenerator[str, None]:
    """Emit a few deltas, then fail the way a dropped provider stream does."""
    for chunk in MOCK_REVIEW_CHUNKS[:chunks_before_error]:
        yield chunk
        await asyncio.sleep(delay_ms / 1000)
    raise ProviderError(error_message)
