"""Affiliate helper utilities for outbound product links."""
from __future__ import annotations

from urllib.parse import parse_qsl, quote, urlencode, urlparse, urlunparse

from .config import DEFAULT_ASSOCIATE_TAG

AMAZON_PRODUCT_URL = "https://www.amazon.in/dp/{product_id}"

_REL = "sponsored nofollow noopener"


def affiliate_rel() -> str:
    """Return the rel attribute applied to affiliate anchors."""

    return _REL


def _apply_query_param(url: str, **params: str) -> str:
    parsed = urlparse(url)
    query = dict(parse_qsl(parsed.query, keep_blank_values=True))
    query.update({key: value for key, value in params.items() if value})
    new_query = urlencode(query)
    return urlunparse(
        (
            parsed.scheme,
            parsed.netloc,
            parsed.path,
            parsed.params,
            new_query,
            parsed.fragment,
        )
    )


def ensure_amazon_tag(url: str, tag: str | None = None) -> str:
    """Ensure an Amazon URL carries the associate tag."""

    return _apply_query_param(url, tag=(tag or "").strip() or DEFAULT_ASSOCIATE_TAG)


def amazon_affiliate_url(product_id: str, tag: str | None = None) -> str:
    """Return the tagged product URL for an Amazon ASIN."""

    base = AMAZON_PRODUCT_URL.format(product_id=quote(str(product_id).strip(), safe=""))
    return ensure_amazon_tag(base, tag)
