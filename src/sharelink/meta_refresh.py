from __future__ import annotations

import re
from typing import Optional

from selectolax.parser import HTMLParser


# Only the document head matters; never pull more than this from a body.
MAX_SCAN_BYTES = 64 * 1024

# "0;url=https://x", "5; URL = 'https://x'", "0,https://x"
_CONTENT_RE = re.compile(
    r"""^\s*\d*(?:\.\d*)?\s*[;,]?\s*(?:url\s*=\s*)?(?P<q>['"]?)(?P<url>.*?)(?P=q)\s*$""",
    re.IGNORECASE | re.DOTALL,
)


def parse_refresh_content(content: str) -> Optional[str]:
    m = _CONTENT_RE.match(content or "")
    if not m:
        return None
    url = m.group("url").strip()
    return url or None


def extract_meta_refresh(html: str) -> Optional[str]:
    """Return the target of the first <meta http-equiv="refresh"> tag, if any.

    The target is returned as written (possibly relative); callers resolve it
    against the page URL.
    """

    if not html:
        return None

    tree = HTMLParser(html)
    for node in tree.css("meta"):
        attrs = {k.lower(): (v or "") for k, v in (node.attributes or {}).items()}
        if attrs.get("http-equiv", "").strip().lower() != "refresh":
            continue
        target = parse_refresh_content(attrs.get("content", ""))
        if target:
            return target
    return None


def read_html_head(resp, limit: int = MAX_SCAN_BYTES) -> str:
    """Read at most `limit` bytes of a streamed response body as text."""
    buf = b""
    for chunk in resp.iter_content(chunk_size=8192):
        if not chunk:
            continue
        buf += chunk
        if len(buf) >= limit:
            buf = buf[:limit]
            break
    encoding = getattr(resp, "encoding", None) or "utf-8"
    try:
        return buf.decode(encoding, errors="replace")
    except LookupError:
        return buf.decode("utf-8", errors="replace")
