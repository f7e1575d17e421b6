from __future__ import annotations

from http import cookiejar
from typing import Dict, Iterable, List, Optional, Set, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

import requests
from requests.cookies import RequestsCookieJar
from requests.structures import CaseInsensitiveDict
from requests.utils import requote_uri

from . import log
from .errors import InvalidRedirect, NetworkFailure, RedirectLoop, TooManyRedirects
from .meta_refresh import extract_meta_refresh, read_html_head
from .models import REDIRECT_STATUSES, RedirectHop, Resolution


DEFAULT_MAX_HOPS = 20
DEFAULT_TIMEOUT_S = 10.0

# Servers that refuse HEAD answer with one of these; the hop is re-issued as GET.
HEAD_UNSUPPORTED = frozenset({405, 501})

_DEFAULT_PORTS = {"http": 80, "https": 443}


class _RejectAllCookies(cookiejar.DefaultCookiePolicy):
    def set_ok(self, cookie, request):
        return False

    def return_ok(self, cookie, request):
        return False


def new_session(proxy: str = "") -> requests.Session:
    """A session that sends nothing but what each request passes explicitly.

    No default headers, no cookies kept between hops, no .netrc credentials
    or proxies picked up from the environment.
    """

    s = requests.Session()
    s.trust_env = False
    s.headers = CaseInsensitiveDict()
    s.cookies = RequestsCookieJar(policy=_RejectAllCookies())
    if proxy:
        s.proxies = {"http": proxy, "https": proxy}
    return s


def visit_key(url: str) -> str:
    """Normalized form used for loop detection."""
    p = urlsplit(url)
    scheme = p.scheme.lower()
    host = (p.hostname or "").rstrip(".")
    if ":" in host:
        host = f"[{host}]"
    port = p.port
    netloc = host if port in (None, _DEFAULT_PORTS.get(scheme)) else f"{host}:{port}"
    if p.username is not None:
        userinfo = p.username + (f":{p.password}" if p.password is not None else "")
        netloc = f"{userinfo}@{netloc}"
    return urlunsplit((scheme, netloc, p.path or "/", p.query, ""))


def _decode_location(location: str) -> str:
    # http.client hands header values over as latin-1; servers send UTF-8.
    try:
        return location.encode("latin1").decode("utf8")
    except UnicodeError:
        return location


def _next_url(current: str, location: str, index: int, hops: List[RedirectHop]) -> str:
    try:
        nxt = requote_uri(urljoin(current, _decode_location(location).strip()))
        p = urlsplit(nxt)
        p.port
    except ValueError as e:
        raise InvalidRedirect(f"unparseable redirect target {location!r}", url=current, hop_index=index, hops=tuple(hops)) from e
    if p.scheme not in ("http", "https") or not p.hostname:
        raise InvalidRedirect(f"redirect target {nxt!r} is not an http(s) URL", url=current, hop_index=index, hops=tuple(hops))
    return nxt


def _is_html(resp) -> bool:
    ctype = (resp.headers.get("content-type") or "").lower()
    return "html" in ctype


def _send(session, method: str, url: str, headers: Dict[str, str], timeout: Tuple[float, float]):
    return session.request(
        method,
        url,
        headers=headers,
        allow_redirects=False,
        timeout=timeout,
        stream=True,
    )


def _fetch_hop(
    session,
    url: str,
    headers: Dict[str, str],
    timeout: Tuple[float, float],
    prefer_head: bool,
    meta_refresh: bool,
) -> RedirectHop:
    method = "HEAD" if prefer_head else "GET"
    resp = _send(session, method, url, headers, timeout)
    try:
        if method == "HEAD" and resp.status_code in HEAD_UNSUPPORTED:
            log.info(f"HEAD not supported by {url} ({resp.status_code}); using GET")
            resp.close()
            method = "GET"
            resp = _send(session, method, url, headers, timeout)

        status = resp.status_code
        location = resp.headers.get("location")
        if status in REDIRECT_STATUSES and location:
            return RedirectHop(url=url, status=status, location=location, method=method)

        if meta_refresh and 200 <= status < 300 and _is_html(resp):
            if method == "HEAD":
                resp.close()
                method = "GET"
                resp = _send(session, method, url, headers, timeout)
                status = resp.status_code
                location = resp.headers.get("location")
                if status in REDIRECT_STATUSES and location:
                    return RedirectHop(url=url, status=status, location=location, method=method)
            if 200 <= status < 300:
                target = extract_meta_refresh(read_html_head(resp))
                if target:
                    return RedirectHop(url=url, status=status, location=target, method=method, via="meta-refresh")

        return RedirectHop(url=url, status=status, location=location, method=method)
    finally:
        resp.close()


def resolve(
    url: str,
    user_agent: str,
    max_hops: int = DEFAULT_MAX_HOPS,
    *,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    prefer_head: bool = True,
    meta_refresh: bool = False,
    headers: Iterable[Tuple[str, str]] = (),
    proxy: str = "",
    session: Optional[requests.Session] = None,
) -> Resolution:
    """Follow the redirect chain starting at `url` one hop at a time.

    Every hop is requested with `user_agent` (plus `headers`) only. The first
    non-redirect response is terminal and returned as data, whatever its
    status. Raises RedirectLoop, TooManyRedirects (more than `max_hops`
    redirects), InvalidRedirect or NetworkFailure; nothing is retried.
    """

    own_session = session is None
    if own_session:
        session = new_session(proxy)

    req_headers = {"User-Agent": user_agent}
    req_headers.update(dict(headers))
    # (connect, read): read covers the wait for response headers
    timeout = (float(timeout_s), float(timeout_s))

    hops: List[RedirectHop] = []
    visited: Set[str] = {visit_key(url)}
    current = url

    try:
        while True:
            index = len(hops)
            try:
                hop = _fetch_hop(session, current, req_headers, timeout, prefer_head, meta_refresh)
            except requests.exceptions.RequestException as e:
                raise NetworkFailure(
                    f"{type(e).__name__}: {e}", url=current, hop_index=index, hops=tuple(hops)
                ) from e
            hops.append(hop)

            if not hop.is_redirect:
                log.info(f"hop {index}: {hop.method} {current} -> {hop.status} (terminal)")
                return Resolution(hops=tuple(hops), user_agent=user_agent)

            nxt = _next_url(current, hop.location or "", index, hops)
            log.info(f"hop {index}: {hop.method} {current} -> {hop.status} {hop.via} -> {nxt}")

            if visit_key(nxt) in visited:
                raise RedirectLoop(f"redirect back to already visited {nxt}", url=current, hop_index=index, hops=tuple(hops))
            if len(hops) > max_hops:
                raise TooManyRedirects(f"more than {max_hops} redirects", url=current, hop_index=index, hops=tuple(hops))

            visited.add(visit_key(nxt))
            current = nxt
    finally:
        if own_session:
            session.close()
