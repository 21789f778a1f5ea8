"""
Cookie Session Manager - Save and restore per-domain cookies.

Sessions are JSON files named after the sanitized domain. The replayer
saves one after every completed replay of a recording with a target site.
"""

import logging
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flow_recorder.exceptions.storage import StorageError
from flow_recorder.interfaces.session import ISessionPersistence

logger = logging.getLogger(__name__)


class SavedSession(BaseModel):
    """On-disk shape of a saved session. Times are epoch milliseconds."""

    model_config = ConfigDict(populate_by_name=True)

    domain: str
    cookies: List[Dict[str, Any]] = Field(default_factory=list)
    saved_at: int = Field(alias="savedAt")
    expires_at: Optional[int] = Field(default=None, alias="expiresAt")

    def is_expired(self, now_ms: Optional[int] = None) -> bool:
        now_ms = now_ms if now_ms is not None else _now_ms()
        return bool(self.expires_at) and self.expires_at < now_ms


def sanitize_domain(domain: str) -> str:
    """File-name-safe form of a domain."""
    return re.sub(r"[^a-zA-Z0-9.-]", "_", domain)


def cookie_matches(cookie_domain: str, domain: str) -> bool:
    """True if a cookie set for ``cookie_domain`` belongs to ``domain`` or its subdomains."""
    cookie_domain = cookie_domain.lstrip(".").lower()
    domain = domain.lstrip(".").lower()
    return (
        cookie_domain == domain
        or cookie_domain.endswith("." + domain)
        or domain.endswith("." + cookie_domain)
    )


def _now_ms() -> int:
    return int(time.time() * 1000)


class CookieSessionManager(ISessionPersistence):
    """
    ISessionPersistence over a Playwright BrowserContext.

    Example:
        >>> manager = CookieSessionManager(browser.context, "./sessions")
        >>> await manager.save_session("www.example.com")
        >>> await manager.restore_session("www.example.com")
        True
    """

    def __init__(self, context: Any, sessions_dir: Union[str, Path] = "./sessions"):
        """
        Initialize the manager.

        Args:
            context: Playwright BrowserContext (cookies()/add_cookies())
            sessions_dir: Directory for session files, created if missing
        """
        self._context = context
        self.sessions_dir = Path(sessions_dir)
        self.sessions_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, domain: str) -> Path:
        return self.sessions_dir / f"{sanitize_domain(domain)}.json"

    async def save_session(self, domain: str) -> None:
        cookies = [c for c in await self._context.cookies() if cookie_matches(c.get("domain", ""), domain)]
        expiries = [int(c["expires"] * 1000) for c in cookies if (c.get("expires") or -1) > 0]

        session = SavedSession(
            domain=domain,
            cookies=cookies,
            saved_at=_now_ms(),
            expires_at=min(expiries) if expiries else None,
        )
        path = self.path_for(domain)
        try:
            path.write_text(session.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to save session: {e}", path=str(path))
        logger.info(f"Saved session for {domain} ({len(cookies)} cookies)")

    async def restore_session(self, domain: str) -> bool:
        session = self.load(domain)
        if session is None:
            logger.info(f"No saved session found for {domain}")
            return False
        if session.is_expired():
            logger.info(f"Session for {domain} has expired")
            return False

        now_s = time.time()
        restored = 0
        for cookie in session.cookies:
            expires = cookie.get("expires") or -1
            if 0 < expires < now_s:
                continue
            try:
                await self._context.add_cookies([cookie])
                restored += 1
            except Exception as e:
                logger.warning(f"Error restoring cookie {cookie.get('name')}: {e}")

        logger.info(f"Restored {restored} cookies for {domain}")
        return restored > 0

    def load(self, domain: str) -> Optional[SavedSession]:
        """Read a saved session; None if missing or unreadable."""
        path = self.path_for(domain)
        if not path.exists():
            return None
        try:
            return SavedSession.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable session file {path}: {e}")
            return None

    def has_valid_session(self, domain: str) -> bool:
        session = self.load(domain)
        return session is not None and not session.is_expired()

    def delete_session(self, domain: str) -> bool:
        """Delete a saved session. Returns False if none existed."""
        path = self.path_for(domain)
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"Deleted session for {domain}")
        return True
