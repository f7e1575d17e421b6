from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Pattern, Tuple
from urllib.parse import SplitResult, urlsplit

from .errors import InputParseError, ValidationError


@dataclass(frozen=True)
class LinkShape:
    """A host family plus the path shape a platform uses for shareable links."""

    domains: Tuple[str, ...]
    path: Pattern[str]

    def matches(self, host: str, path: str) -> bool:
        return host_in(host, self.domains) and bool(self.path.search(path or "/"))


@dataclass(frozen=True)
class Platform:
    name: str
    shapes: Tuple[LinkShape, ...] = ()
    tracking_params: FrozenSet[str] = frozenset()
    # Sent in addition to User-Agent on every hop of a resolution for this platform.
    request_headers: Tuple[Tuple[str, str], ...] = field(default=())

    @property
    def domains(self) -> Tuple[str, ...]:
        out = []
        for s in self.shapes:
            for d in s.domains:
                if d not in out:
                    out.append(d)
        return tuple(out)

    def matches(self, parts: SplitResult) -> bool:
        host = parts.hostname or ""
        return any(s.matches(host, parts.path) for s in self.shapes)

    def owns_host(self, host: str) -> bool:
        return host_in(host, self.domains)


def host_in(host: str, domains: Tuple[str, ...]) -> bool:
    host = (host or "").lower().rstrip(".")
    return any(host == d or host.endswith("." + d) for d in domains)


def _re(p: str) -> Pattern[str]:
    return re.compile(p)


_TOKEN = r"[A-Za-z0-9_-]+"

REDDIT = Platform(
    name="reddit",
    shapes=(
        # /r/<sub>/s/<token>, /u/<user>/s/<token>, /s/<token>
        LinkShape(("reddit.com",), _re(rf"(?:^|/)s/{_TOKEN}/?$")),
        LinkShape(("reddit.com",), _re(r"^/r/[^/]+/comments/[a-z0-9]+(?:/|$)")),
        LinkShape(("redd.it",), _re(r"^/[a-z0-9]+/?$")),
    ),
    tracking_params=frozenset(
        {
            "context",
            "share_id",
            "ref",
            "ref_source",
            "ref_campaign",
            "rdt",
            "rdt_cid",
            "correlation_id",
            "post_fullname",
            "_branch_match_id",
            "_branch_referrer",
        }
    ),
)

FACEBOOK = Platform(
    name="facebook",
    shapes=(
        LinkShape(("facebook.com", "fb.com"), _re(rf"^/share/(?:[a-z]/)?{_TOKEN}/?$")),
        LinkShape(("facebook.com", "fb.com"), _re(r"^/[^/]+/posts/[^/]+/?$")),
        LinkShape(("facebook.com", "fb.com"), _re(r"^/groups/[^/]+/(?:permalink|posts)/\d+/?$")),
        LinkShape(("facebook.com", "fb.com"), _re(r"^/reel/\d+/?$")),
        LinkShape(("facebook.com", "fb.com"), _re(r"^/(?:permalink|story|photo)\.php$")),
        LinkShape(("fb.me", "fb.watch"), _re(rf"^/{_TOKEN}/?$")),
    ),
    tracking_params=frozenset(
        {
            "rdid",
            "share_url",
            "mibextid",
            "sfnsn",
            "ref",
            "fref",
            "hc_ref",
            "refsrc",
            "paipv",
            "eav",
            "__tn__",
            "__cft__[0]",
            "__xts__[0]",
            "comment_tracking",
            "notif_id",
            "notif_t",
        }
    ),
    # Without these Facebook answers share links with a login wall instead of a redirect.
    request_headers=(
        ("Accept", "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"),
        ("Cache-Control", "max-age=0"),
        ("Sec-Fetch-Mode", "navigate"),
    ),
)

INSTAGRAM = Platform(
    name="instagram",
    shapes=(
        LinkShape(("instagram.com",), _re(rf"^/(?:p|reel|reels|tv)/{_TOKEN}/?$")),
        LinkShape(("instagram.com",), _re(rf"^/share/(?:[a-z]+/)?{_TOKEN}/?$")),
        LinkShape(("instagram.com",), _re(r"^/stories/[^/]+/\d+/?$")),
        LinkShape(("instagr.am",), _re(rf"^/(?:p|reel)/{_TOKEN}/?$")),
    ),
    tracking_params=frozenset({"igsh", "igshid", "ig_rid"}),
)

LINKEDIN = Platform(
    name="linkedin",
    shapes=(
        LinkShape(("lnkd.in",), _re(rf"^/{_TOKEN}/?$")),
        LinkShape(("linkedin.com",), _re(r"^/posts/[^/]+/?$")),
        LinkShape(("linkedin.com",), _re(r"^/feed/update/urn:li:[A-Za-z]+:\d+/?$")),
        LinkShape(("linkedin.com",), _re(r"^/pulse/[^/]+/?$")),
    ),
    tracking_params=frozenset(
        {
            "rcm",
            "trk",
            "trkInfo",
            "trackingId",
            "refId",
            "eBP",
            "lipi",
            "midToken",
            "midSig",
            "trkEmail",
            "eid",
            "originalSubdomain",
            "alternateChannel",
        }
    ),
)

# Escape hatch for links outside the supported set: generic stripping only.
UNVALIDATED = Platform(name="unvalidated")

PLATFORMS: Tuple[Platform, ...] = (REDDIT, FACEBOOK, INSTAGRAM, LINKEDIN)


def parse_input(url: str) -> SplitResult:
    """Parse a caller-supplied URL; only absolute http(s) URLs with a host pass."""
    raw = (url or "").strip()
    if not raw:
        raise InputParseError("empty URL")
    try:
        parts = urlsplit(raw)
        # .port raises ValueError for garbage like "host:abc"
        parts.port
    except ValueError as e:
        raise InputParseError(f"cannot parse URL {raw!r}: {e}") from e

    if parts.scheme not in ("http", "https"):
        raise InputParseError(f"unsupported scheme {parts.scheme or '(none)'!r} in {raw!r}; expected http or https")
    if not parts.hostname:
        raise InputParseError(f"missing host in {raw!r}")
    if any(c.isspace() for c in raw):
        raise InputParseError(f"whitespace inside URL {raw!r}")
    return parts


def classify(parts: SplitResult) -> Optional[Platform]:
    for p in PLATFORMS:
        if p.matches(parts):
            return p
    return None


def validate(url: str, enabled: bool = True) -> Platform:
    """Return the platform a share URL belongs to.

    Raises InputParseError for anything that is not an absolute http(s) URL.
    With validation enabled an unrecognized shape raises ValidationError;
    with it disabled every parseable URL maps to UNVALIDATED.
    """

    parts = parse_input(url)
    if not enabled:
        return UNVALIDATED

    platform = classify(parts)
    if platform is None:
        host = parts.hostname or ""
        known = [p.name for p in PLATFORMS if p.owns_host(host)]
        if known:
            msg = f"{host}{parts.path or '/'} is not a recognized {known[0]} share link shape"
        else:
            supported = ", ".join(p.name for p in PLATFORMS)
            msg = f"unrecognized host {host!r} (supported: {supported})"
        raise ValidationError(msg + "; pass --no-validate to only strip generic tracking parameters")
    return platform
