"""GitHub pull request endpoints."""

from typing import Optional
from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict, Field

from api.deps import get_pr_fetcher, get_review_service
from services.github_client import format_pr_summary, diff_files, parse_pr_url

router = APIRouter(prefix="/api/pr", tags=["pull-requests"])


class FetchPRRequest(BaseModel):
    """Request to fetch a pull request."""
    model_config = ConfigDict(populate_by_name=True)

    url: str
    github_token: Optional[str] = Field(default=None, alias="githubToken")
    refresh: bool = False


@router.post("")
async def fetch_pull_request(request: FetchPRRequest):
    """
    Fetch a pull request, its per-file diffs and a Markdown summary.

    Repeated calls for the same URL are served from the cache unless
    ``refresh`` is set.
    """
    fetcher = get_pr_fetcher()
    token = get_review_service().resolve_repo_token(request.github_token)

    pr = await fetcher.fetch(request.url, token=token, refresh=request.refresh)
    return {
        "pr": pr.to_dict(),
        "summary": format_pr_summary(pr),
        "diffs": diff_files(pr),
    }


@router.delete("")
async def invalidate_pull_request(url: str = Query(...)):
    """Drop the cached entry for a PR URL (the URL field was edited)."""
    parse_pr_url(url)
    removed = get_pr_fetcher().cache.invalidate(url)
    return {"success": True, "invalidated": removed}
