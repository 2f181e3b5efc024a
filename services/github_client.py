"""GitHub pull request fetching, caching and formatting."""

import re
from collections import OrderedDict
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import httpx

from config import GITHUB_API_URL, GITHUB_TIMEOUT_SECONDS, GITHUB_FILES_PER_PAGE, PR_CACHE_SIZE
from services.errors import InvalidURLError, ProviderError

NO_DESCRIPTION = "No description provided."
NO_PATCH = "[Patch not available - file may be binary or too large]"

STATUS_GLYPHS = {
    "added": "🟢",
    "modified": "🟡",
    "removed": "🔴",
    "renamed": "🔵",
}
DEFAULT_GLYPH = "⚪"

REVIEW_FOCUS = [
    "Code quality and best practices",
    "Potential bugs or logic errors",
    "Security vulnerabilities",
    "Performance implications",
    "Test coverage",
    "Documentation and readability",
]


@dataclass(frozen=True)
class PRSummaryFile:
    """One changed file of a pull request."""
    name: str
    status: str
    additions: int
    deletions: int
    patch: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PRSummaryFile":
        return cls(
            name=data.get("filename", ""),
            status=data.get("status", "modified"),
            additions=data.get("additions", 0),
            deletions=data.get("deletions", 0),
            patch=data.get("patch") or NO_PATCH,
        )

    @property
    def has_patch(self) -> bool:
        return self.patch != NO_PATCH


@dataclass(frozen=True)
class PRContent:
    """Pull request metadata plus the per-file changes."""
    url: str
    title: str
    description: str
    author: str
    additions: int
    deletions: int
    changed_files: int
    files: List[PRSummaryFile] = field(default_factory=list)

    @classmethod
    def from_api(cls, url: str, pr: Dict[str, Any], files: List[Dict[str, Any]]) -> "PRContent":
        return cls(
            url=url,
            title=pr.get("title", ""),
            description=pr.get("body") or NO_DESCRIPTION,
            author=(pr.get("user") or {}).get("login", "unknown"),
            additions=pr.get("additions", 0),
            deletions=pr.get("deletions", 0),
            changed_files=pr.get("changed_files", len(files)),
            files=[PRSummaryFile.from_api(f) for f in files],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_pr_url(url: str) -> Tuple[str, str, int]:
    """Split a pull request URL into (owner, repo, number).

    Raises:
        InvalidURLError: if the path is not /<owner>/<repo>/pull/<number>
    """
    parsed = urlparse((url or "").strip())
    parts = [p for p in parsed.path.split("/") if p]
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidURLError(url)
    if len(parts) < 4 or parts[2] != "pull" or not re.fullmatch(r"[0-9]+", parts[3]):
        raise InvalidURLError(url)
    return parts[0], parts[1], int(parts[3])


def format_file_diff(file: PRSummaryFile) -> str:
    """Render one changed file as a synthetic unified-diff block."""
    lines = [
        f"diff --git a/{file.name} b/{file.name}",
        f"--- a/{file.name}",
        f"+++ b/{file.name}",
        f"# Status: {file.status} (+{file.additions} -{file.deletions})",
    ]
    if file.has_patch:
        lines.append(file.patch)
    else:
        lines.append(f"# {NO_PATCH}")
    return "\n".join(lines)


def format_pr_summary(pr: PRContent) -> str:
    """Markdown overview of a pull request, used as the opening review prompt."""
    file_lines = [
        f"- {STATUS_GLYPHS.get(f.status, DEFAULT_GLYPH)} `{f.name}` (+{f.additions} -{f.deletions})"
        for f in pr.files
    ]
    focus_lines = [f"- {item}" for item in REVIEW_FOCUS]

    return "\n".join([
        f"# Pull Request Review: {pr.title}",
        "",
        f"**Author:** @{pr.author}",
        f"**URL:** {pr.url}",
        f"**Changes:** +{pr.additions} -{pr.deletions} across {pr.changed_files} file(s)",
        "",
        "## Description",
        pr.description,
        "",
        "## Files Changed",
        *file_lines,
        "",
        "## Review Focus",
        "Please review this pull request, focusing on:",
        *focus_lines,
    ])


def diff_files(pr: PRContent) -> List[Dict[str, str]]:
    """Derived review files, one synthetic diff per changed file."""
    return [
        {"name": f"{f.name}.diff", "content": format_file_diff(f), "language": "diff"}
        for f in pr.files
    ]


class PRCache:
    """Bounded per-URL cache of fetched pull requests. Oldest entry is evicted first."""

    def __init__(self, max_entries: int = PR_CACHE_SIZE):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, PRContent]" = OrderedDict()

    @staticmethod
    def _key(url: str) -> str:
        return url.strip()

    def get(self, url: str) -> Optional[PRContent]:
        return self._entries.get(self._key(url))

    def put(self, pr: PRContent) -> None:
        key = self._key(pr.url)
        self._entries[key] = pr
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def invalidate(self, url: str) -> bool:
        return self._entries.pop(self._key(url), None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class GitHubClient:
    """Minimal async client for the pull request endpoints of the GitHub REST API."""

    def __init__(
        self,
        base_url: str = GITHUB_API_URL,
        timeout: float = GITHUB_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    @staticmethod
    def _headers(token: Optional[str]) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _get(self, client: httpx.AsyncClient, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await client.get(endpoint, params=params)
        except httpx.HTTPError as e:
            raise ProviderError(f"GitHub request failed for {endpoint}: {e}")
        if response.status_code >= 400:
            print(f"[PR] GitHub returned {response.status_code} for {endpoint}")
            raise ProviderError("GitHub API error", status=response.status_code, body=response.text)
        return response.json()

    async def get_pull_request(self, owner: str, repo: str, number: int, token: Optional[str] = None) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
        """Fetch PR metadata and the full changed-file listing."""
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(token),
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            endpoint = f"/repos/{owner}/{repo}/pulls/{number}"
            pr = await self._get(client, endpoint)

            files: List[Dict[str, Any]] = []
            page = 1
            while True:
                batch = await self._get(
                    client,
                    f"{endpoint}/files",
                    params={"per_page": GITHUB_FILES_PER_PAGE, "page": page},
                )
                files.extend(batch)
                if len(batch) < GITHUB_FILES_PER_PAGE:
                    break
                page += 1
                # GitHub stops listing after 3000 files
                if page > 3000 // GITHUB_FILES_PER_PAGE:
                    break

        return pr, files


class PRFetcher:
    """Resolve a PR URL to PRContent, going through the cache first."""

    def __init__(self, client: Optional[GitHubClient] = None, cache: Optional[PRCache] = None):
        self.client = client or GitHubClient()
        self.cache = cache if cache is not None else PRCache()

    async def fetch(self, url: str, token: Optional[str] = None, refresh: bool = False) -> PRContent:
        owner, repo, number = parse_pr_url(url)
        url = url.strip()

        if refresh:
            self.cache.invalidate(url)
        else:
            cached = self.cache.get(url)
            if cached is not None:
                return cached

        print(f"[PR] Fetching {owner}/{repo}#{number}")
        pr_data, files = await self.client.get_pull_request(owner, repo, number, token)
        pr = PRContent.from_api(url, pr_data, files)
        self.cache.put(pr)
        print(f"[PR] Fetched {owner}/{repo}#{number}: {len(pr.files)} file(s)")
        return pr
