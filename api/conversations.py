"""Conversation management endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from api.deps import get_conversations
from services.errors import NotFoundError

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


class CreateConversationRequest(BaseModel):
    """Request to create a new conversation."""
    title: str = "New Review"


@router.post("")
async def create_conversation(request: CreateConversationRequest):
    """Create a new conversation."""
    session = get_conversations().create_conversation(title=request.title)
    return session.to_dict()


@router.get("")
async def list_conversations():
    """List all conversations, newest first."""
    return {"conversations": get_conversations().list_conversations()}


@router.get("/streaming")
async def get_all_streaming_conversations():
    """Get status of all conversations with a response in flight."""
    return get_conversations().get_all_streaming()


@router.get("/{conversation_id}")
async def get_conversation(conversation_id: str):
    """Get a conversation with its messages."""
    session = get_conversations().get_conversation(conversation_id)
    if session is None:
        raise NotFoundError(f"Conversation {conversation_id} not found")
    return session.to_dict()


@router.post("/{conversation_id}/acknowledge")
async def acknowledge_error(conversation_id: str):
    """Return an errored conversation to idle once the error has been shown."""
    session = get_conversations().get_conversation(conversation_id)
    if session is None:
        raise NotFoundError(f"Conversation {conversation_id} not found")
    session.acknowledge_error()
    return session.to_dict()


@router.delete("/{conversation_id}")
async def delete_conversation(conversation_id: str):
    """Delete a conversation."""
    if not get_conversations().delete_conversation(conversation_id):
        raise NotFoundError(f"Conversation {conversation_id} not found")
    return {"success": True}
