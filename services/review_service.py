"""Review orchestration and stream relay.

Turns one review request into a composed prompt, opens the provider stream
and relays its text deltas to the caller as Server-Sent Events.
"""

import asyncio
import json
import os
from dataclasses import dataclass, field
from typing import AsyncGenerator, AsyncIterator, Callable, Dict, List, Optional, Tuple, Any

from config import DEFAULT_MODEL, REVIEW_TIMEOUT_SECONDS
from services.anthropic_client import AnthropicClient
from services.chat_state import ChatSession, ConversationStore
from services.credential_store import CredentialStore, Credentials
from services.errors import (
    ReviewError, ValidationError, UnauthorizedError, ProviderError,
    StreamInterrupted, ConversationBusyError, NotFoundError,
)
from services.github_client import PRFetcher, format_pr_summary, diff_files
from services.mock_streams import is_mock_mode, mock_review_stream
from services.prompt_composer import compose_messages, has_user_text, to_provider_format


def sse(event: Dict[str, Any]) -> str:
    """Format one Server-Sent Event."""
    return f"data: {json.dumps(event)}\n\n"


@dataclass
class ReviewConfig:
    """Everything one review call needs, assembled once per request.

    The API key is already resolved: request value over stored value over
    the ANTHROPIC_API_KEY environment variable.
    """
    api_key: str
    messages: List[Dict[str, str]] = field(default_factory=list)
    model: str = DEFAULT_MODEL
    files: List[Dict[str, str]] = field(default_factory=list)
    pr_url: Optional[str] = None
    repo_token: Optional[str] = None
    conversation_id: Optional[str] = None


@dataclass
class ReviewStream:
    """An opened provider stream whose first delta has already arrived."""
    chunks: AsyncIterator[str]
    first: Optional[str]
    deadline: float
    session: Optional[ChatSession] = None
    message_id: Optional[str] = None
    # Per-request client, closed once the stream ends
    client: Optional[AnthropicClient] = None


async def _next_chunk(chunks: AsyncIterator[str]) -> str:
    return await chunks.__anext__()


class ReviewService:
    """Validate review requests, compose prompts and relay provider output."""

    def __init__(
        self,
        credential_store: CredentialStore,
        pr_fetcher: PRFetcher,
        conversations: ConversationStore,
        client_factory: Callable[[str], AnthropicClient] = AnthropicClient,
        timeout: float = REVIEW_TIMEOUT_SECONDS,
    ):
        self.credential_store = credential_store
        self.pr_fetcher = pr_fetcher
        self.conversations = conversations
        self.client_factory = client_factory
        self.timeout = timeout
        self._clients: Dict[str, AnthropicClient] = {}
        self._credentials = credential_store.get()
        credential_store.subscribe(self._on_credentials_changed)

    def _on_credentials_changed(self, credentials: Credentials) -> None:
        if credentials.repo_token != self._credentials.repo_token:
            print("[REVIEW] Repository token changed, clearing PR cache")
            self.pr_fetcher.cache.clear()
        if credentials.provider_key != self._credentials.provider_key:
            self._clients.pop(self._credentials.provider_key or "", None)
        self._credentials = credentials

    # ==================== Request configuration ====================

    def resolve_api_key(self, supplied: Optional[str]) -> str:
        api_key = (
            (supplied or "").strip()
            or self.credential_store.get().provider_key
            or os.getenv("ANTHROPIC_API_KEY")
        )
        if not api_key:
            raise UnauthorizedError()
        return api_key

    def resolve_repo_token(self, supplied: Optional[str]) -> Optional[str]:
        return (
            (supplied or "").strip()
            or self.credential_store.get().repo_token
            or os.getenv("GITHUB_TOKEN")
            or None
        )

    def build_config(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        files: Optional[List[Dict[str, str]]] = None,
        pr_url: Optional[str] = None,
        api_key: Optional[str] = None,
        repo_token: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> ReviewConfig:
        """
        Resolve credentials and check there is something to review.

        Raises:
            UnauthorizedError: no API key anywhere (checked first)
            ValidationError: no message text, no files and no PR URL
        """
        resolved_key = self.resolve_api_key(api_key)
        pr_url = (pr_url or "").strip() or None
        files = files or []

        if not has_user_text(messages) and not files and not pr_url:
            raise ValidationError("No input provided (message, files, or GitHub PR URL).")

        return ReviewConfig(
            api_key=resolved_key,
            messages=messages,
            model=model or DEFAULT_MODEL,
            files=files,
            pr_url=pr_url,
            repo_token=self.resolve_repo_token(repo_token),
            conversation_id=conversation_id,
        )

    # ==================== Prompt ====================

    async def compose(self, config: ReviewConfig, history: List[Dict[str, str]]) -> List[Dict[str, str]]:
        """Fetch the PR if one was given and build the full message list."""
        files = list(config.files)
        pr_summary = None
        if config.pr_url:
            pr = await self.pr_fetcher.fetch(config.pr_url, token=config.repo_token)
            files.extend(diff_files(pr))
            pr_summary = format_pr_summary(pr)
        return compose_messages(history, files=files, pr_url=config.pr_url, pr_summary=pr_summary)

    def _client_for(self, api_key: str) -> Tuple[AnthropicClient, bool]:
        """Return (client, owned) for ``api_key``.

        Clients for the stored key and the ANTHROPIC_API_KEY default are kept
        across requests. Any other key gets a fresh client that the caller owns
        and must close.
        """
        if api_key not in (self._credentials.provider_key, os.getenv("ANTHROPIC_API_KEY")):
            return self.client_factory(api_key), True
        if api_key not in self._clients:
            self._clients[api_key] = self.client_factory(api_key)
        return self._clients[api_key], False

    def _provider_stream(
        self, config: ReviewConfig, composed: List[Dict[str, str]],
    ) -> Tuple[AsyncIterator[str], Optional[AnthropicClient]]:
        """Open the provider stream. Also returns the client to close afterwards, if any."""
        if is_mock_mode():
            return mock_review_stream(), None
        request = to_provider_format(composed)
        client, owned = self._client_for(config.api_key)
        chunks = client.stream_text(request["messages"], model=config.model, system_prompt=request["system"])
        return chunks, (client if owned else None)

    @staticmethod
    async def _release(client: Optional[AnthropicClient]) -> None:
        if client is not None:
            await client.close()

    # ==================== Streaming ====================

    def _start_turn(self, config: ReviewConfig):
        """Record the turn on the conversation, if there is one.

        Returns (session, placeholder id, history used for the prompt).
        """
        if not config.conversation_id:
            return None, None, config.messages

        session = self.conversations.get_conversation(config.conversation_id)
        if session is None:
            raise NotFoundError(f"Conversation {config.conversation_id} not found")

        user_text = next(
            (m["content"] for m in reversed(config.messages) if m["role"] == "user"),
            "",
        )
        message_id = session.submit(user_text)
        if message_id is None:
            raise ConversationBusyError(session.id)
        # The placeholder is the last message and carries no text yet
        history = session.history()[:-1]
        return session, message_id, history

    async def open_stream(self, config: ReviewConfig) -> ReviewStream:
        """
        Compose the prompt, call the provider and wait for its first delta.

        Failures here happen before any output exists, so they propagate as
        ReviewError and become a JSON error response.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        session, message_id, history = self._start_turn(config)

        print(f"[REVIEW] Starting review: model={config.model} files={len(config.files)} pr={config.pr_url or '-'}")
        owned = None
        try:
            composed = await asyncio.wait_for(self.compose(config, history), self.timeout)
            chunks, owned = self._provider_stream(config, composed)
            try:
                first = await asyncio.wait_for(_next_chunk(chunks), max(deadline - loop.time(), 0))
            except StopAsyncIteration:
                first = None
        except asyncio.TimeoutError:
            error = ProviderError(f"Review timed out after {self.timeout:.0f}s")
            self._fail(session, error.message)
            await self._release(owned)
            raise error
        except ReviewError as e:
            self._fail(session, e.message)
            await self._release(owned)
            raise
        except Exception as e:
            print(f"[REVIEW] Unexpected error opening stream: {e}")
            self._fail(session, str(e))
            await self._release(owned)
            raise ProviderError(str(e))

        return ReviewStream(
            chunks=chunks, first=first, deadline=deadline,
            session=session, message_id=message_id, client=owned,
        )

    @staticmethod
    def _fail(session: Optional[ChatSession], error: str) -> None:
        if session is not None:
            session.fail(error)

    async def relay(self, stream: ReviewStream) -> AsyncGenerator[str, None]:
        """
        Forward provider deltas as SSE events, in arrival order, without buffering.

        A failure after output has started is reported as an ``error`` event
        and the stream ends; text already sent stays with the caller.
        """
        loop = asyncio.get_running_loop()
        session = stream.session
        finished = False

        if stream.message_id:
            yield sse({"type": "message_id", "id": stream.message_id})

        try:
            if stream.first is not None:
                if session is not None:
                    session.append_chunk(stream.message_id, stream.first)
                yield sse({"type": "text", "content": stream.first})

                while True:
                    remaining = stream.deadline - loop.time()
                    if remaining <= 0:
                        raise asyncio.TimeoutError()
                    try:
                        chunk = await asyncio.wait_for(_next_chunk(stream.chunks), remaining)
                    except StopAsyncIteration:
                        break
                    if not isinstance(chunk, str):
                        print(f"[STREAM] Skipping unrenderable chunk: {chunk!r}")
                        continue
                    if session is not None:
                        session.append_chunk(stream.message_id, chunk)
                    yield sse({"type": "text", "content": chunk})

            if session is not None:
                session.complete()
            finished = True
            yield sse({"type": "done"})

        except asyncio.TimeoutError:
            message = f"Review timed out after {self.timeout:.0f}s"
            print(f"[STREAM] {message}")
            self._fail(session, message)
            finished = True
            yield sse({"type": "error", "content": message})
        except ReviewError as e:
            print(f"[STREAM] Stream interrupted: {e.message}")
            self._fail(session, e.message)
            finished = True
            yield sse({"type": "error", "content": e.message})
        except Exception as e:
            error = StreamInterrupted(f"Stream interrupted: {e}")
            print(f"[STREAM] {error.message}")
            self._fail(session, error.message)
            finished = True
            yield sse({"type": "error", "content": error.message})
        finally:
            if not finished:
                # Caller went away mid-stream
                self._fail(session, "Stream interrupted: client disconnected")
            aclose = getattr(stream.chunks, "aclose", None)
            if aclose is not None:
                await aclose()
            await self._release(stream.client)
