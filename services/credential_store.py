"""File-backed credential store with change notification.

Holds the LLM provider key and the optional GitHub token. Subscribers are
called synchronously after every change; there is no locking and the last
writer wins.
"""

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Callable, Dict, List, Optional

from config import CREDENTIALS_PATH


@dataclass(frozen=True)
class Credentials:
    """Provider key and repository token, either may be absent."""
    provider_key: Optional[str] = None
    repo_token: Optional[str] = None

    def masked(self) -> Dict[str, Optional[str]]:
        """Presence view safe to send to the browser."""
        return {
            "provider_key": _mask(self.provider_key),
            "repo_token": _mask(self.repo_token),
        }


def _mask(secret: Optional[str]) -> Optional[str]:
    if not secret:
        return None
    return f"...{secret[-4:]}" if len(secret) > 8 else "****"


Subscriber = Callable[[Credentials], None]


class CredentialStore:
    """Persist credentials as JSON and notify subscribers on change."""

    def __init__(self, path: str = CREDENTIALS_PATH):
        self.path = Path(path)
        self._subscribers: List[Subscriber] = []
        self._credentials = self._load()

    def _load(self) -> Credentials:
        if self.path.exists():
            try:
                with open(self.path, "r") as f:
                    data = json.load(f)
                return Credentials(
                    provider_key=data.get("provider_key") or None,
                    repo_token=data.get("repo_token") or None,
                )
            except (json.JSONDecodeError, IOError) as e:
                print(f"[CREDENTIALS] Ignoring unreadable credentials file {self.path}: {e}")
        return Credentials()

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(asdict(self._credentials), f, indent=2)

    def get(self) -> Credentials:
        return self._credentials

    def set(self, provider_key: Optional[str] = None, repo_token: Optional[str] = None) -> Credentials:
        """Update credentials.

        ``None`` leaves a field unchanged, an empty string clears it.
        """
        current = self._credentials
        if provider_key is not None:
            current = Credentials(provider_key=provider_key or None, repo_token=current.repo_token)
        if repo_token is not None:
            current = Credentials(provider_key=current.provider_key, repo_token=repo_token or None)
        return self._replace(current)

    def clear(self) -> Credentials:
        return self._replace(Credentials())

    def _replace(self, credentials: Credentials) -> Credentials:
        self._credentials = credentials
        self._save()
        for callback in list(self._subscribers):
            callback(credentials)
        return credentials

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe
