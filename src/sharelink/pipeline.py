from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from . import log, user_agents
from .config import AppConfig
from .models import Resolution
from .platforms import UNVALIDATED, Platform, validate
from .resolve import resolve
from .url_canon import canonicalize


@dataclass(frozen=True)
class ShareLinkResult:
    input_url: str
    platform: Platform
    resolution: Resolution
    canonical_url: str


def resolve_share_link(
    url: str,
    cfg: Optional[AppConfig] = None,
    *,
    user_agent: Optional[str] = None,
    session=None,
    rng: Optional[random.Random] = None,
) -> ShareLinkResult:
    """Validate, resolve and canonicalize one share link.

    Validation happens before any request is made. Each call draws its own
    user agent unless one is passed in.
    """

    cfg = cfg or AppConfig()
    platform = validate(url, cfg.validate)
    start = url.strip()
    ua = user_agent or user_agents.select(rng)
    log.info(f"platform={platform.name} user_agent={ua}")

    resolution = resolve(
        start,
        ua,
        cfg.max_hops,
        timeout_s=cfg.timeout_s,
        prefer_head=cfg.prefer_head,
        meta_refresh=cfg.meta_refresh,
        headers=platform.request_headers,
        proxy=cfg.proxy,
        session=session,
    )

    final_host = urlsplit(resolution.final_url).hostname or ""
    if platform is not UNVALIDATED and not platform.owns_host(final_host):
        log.warn(f"{platform.name} link resolved to foreign host {final_host}; only listed parameters were stripped")

    canonical = canonicalize(resolution.final_url, platform)
    return ShareLinkResult(
        input_url=start,
        platform=platform,
        resolution=resolution,
        canonical_url=canonical,
    )
