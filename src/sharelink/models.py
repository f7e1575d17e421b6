from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


@dataclass(frozen=True)
class RedirectHop:
    url: str
    status: int
    location: Optional[str] = None
    method: str = "HEAD"
    # "http" when the next hop came from a Location header, "meta-refresh" from HTML.
    via: str = "http"

    @property
    def is_redirect(self) -> bool:
        if self.via == "meta-refresh":
            return self.location is not None
        return self.status in REDIRECT_STATUSES and bool(self.location)


@dataclass(frozen=True)
class Resolution:
    hops: Tuple[RedirectHop, ...]
    user_agent: str

    @property
    def terminal(self) -> RedirectHop:
        return self.hops[-1]

    @property
    def final_url(self) -> str:
        return self.terminal.url

    @property
    def status(self) -> int:
        return self.terminal.status

    @property
    def redirects(self) -> int:
        return len(self.hops) - 1

    @property
    def is_error_status(self) -> bool:
        return self.status >= 400
