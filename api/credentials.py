"""Credential management endpoints."""

from typing import Optional
from fastapi import APIRouter
from pydantic import BaseModel

from api.deps import get_credential_store

router = APIRouter(prefix="/api/credentials", tags=["credentials"])


class CredentialsUpdate(BaseModel):
    """New credential values. Omitted fields are kept, empty strings clear."""
    provider_key: Optional[str] = None
    repo_token: Optional[str] = None


@router.get("")
async def get_credentials():
    """Which credentials are stored (masked, never the raw secrets)."""
    return get_credential_store().get().masked()


@router.put("")
async def update_credentials(update: CredentialsUpdate):
    """Save the provider key and/or GitHub token."""
    credentials = get_credential_store().set(
        provider_key=update.provider_key,
        repo_token=update.repo_token,
    )
    print("[CREDENTIALS] Credentials updated")
    return {"success": True, "credentials": credentials.masked()}


@router.delete("")
async def clear_credentials():
    """Forget both stored credentials."""
    get_credential_store().clear()
    print("[CREDENTIALS] Credentials cleared")
    return {"success": True}
