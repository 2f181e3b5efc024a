"""Code review streaming endpoint using Server-Sent Events."""

from typing import List, Optional
from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from api.deps import get_review_service
from services.anthropic_client import AnthropicClient

router = APIRouter(prefix="/api/review", tags=["review"])


class Message(BaseModel):
    """A message in the conversation."""
    role: str
    content: str = ""


class ReviewFile(BaseModel):
    """A file submitted for review."""
    name: str
    content: str
    language: Optional[str] = None


class ReviewRequest(BaseModel):
    """Request body for the review endpoint."""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    messages: List[Message] = Field(default_factory=list)
    model: Optional[str] = None
    files: List[ReviewFile] = Field(default_factory=list)
    github_pr_url: Optional[str] = Field(default=None, alias="githubPrUrl")
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    github_token: Optional[str] = Field(default=None, alias="githubToken")
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


@router.post("")
async def review(request: ReviewRequest):
    """
    Stream a code review using Server-Sent Events.

    Events are formatted as:
    - type: 'message_id' - ID of the assistant message (conversation mode only)
    - type: 'text' - Review text delta
    - type: 'error' - Error after streaming started; the stream ends
    - type: 'done' - Stream complete

    Errors before the first delta return JSON ``{"message": ...}`` with
    400, 401, 404, 409 or 500.
    """
    service = get_review_service()

    config = service.build_config(
        messages=[m.model_dump() for m in request.messages],
        model=request.model,
        files=[{"name": f.name, "content": f.content} for f in request.files],
        pr_url=request.github_pr_url,
        api_key=request.api_key,
        repo_token=request.github_token,
        conversation_id=request.conversation_id,
    )
    stream = await service.open_stream(config)

    return StreamingResponse(
        service.relay(stream),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        }
    )


@router.get("/models")
async def get_models():
    """Get available models and their configurations."""
    return {"models": AnthropicClient.get_available_models()}
