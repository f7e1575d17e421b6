from __future__ import annotations

from typing import FrozenSet, List
from urllib.parse import unquote_plus

from .platforms import Platform


# Stripped from every URL regardless of platform.
GENERIC_PARAMS = frozenset(
    {
        # Generic marketing
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "utm_id",
        "utm_name",
        "utm_source_platform",
        "utm_creative_format",
        "utm_marketing_tactic",
        # Ad click ids
        "gclid",
        "gclsrc",
        "dclid",
        "gbraid",
        "wbraid",
        "fbclid",
        "msclkid",
        "twclid",
        "yclid",
        # Mail / CRM
        "mc_cid",
        "mc_eid",
        "_hsenc",
        "_hsmi",
        # Instagram share sheet ids also show up on third-party links
        "igsh",
        "igshid",
    }
)


def tracking_params_for(platform: Platform) -> FrozenSet[str]:
    return GENERIC_PARAMS | platform.tracking_params


def _param_name(segment: str) -> str:
    return unquote_plus(segment.split("=", 1)[0])


def canonicalize(url: str, platform: Platform) -> str:
    """Strip tracking query parameters from a resolved URL.

    - Scheme, host, path and fragment are returned untouched
    - A pair is dropped when its decoded name is in the generic set or the
      platform's set
    - Remaining pairs keep their original order and original encoding
    - No trailing "?" when nothing remains
    """

    if not url:
        return ""

    drop = tracking_params_for(platform)

    head, hash_sep, fragment = url.partition("#")
    base, _, query = head.partition("?")

    kept: List[str] = []
    for seg in query.split("&"):
        if not seg:
            continue
        if _param_name(seg) in drop:
            continue
        kept.append(seg)

    out = base
    if kept:
        out += "?" + "&".join(kept)
    return out + hash_sep + fragment
