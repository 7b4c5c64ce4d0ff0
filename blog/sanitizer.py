import html
import re
from functools import partial

import bleach
from bleach.linkifier import LinkifyFilter
from django.utils.html import strip_tags

ALLOWED_TAGS = set(bleach.sanitizer.ALLOWED_TAGS) | {
    "p",
    "br",
    "h1",
    "h2",
    "h3",
    "pre",
    "hr",
    "img",
    "figure",
}
ALLOWED_ATTRIBUTES = {
    "a": ["href", "name", "target"],
    "img": ["src", "alt", "width", "height"],
}
URL_SCHEMES = ["http", "https", "mailto"]
LINK_REL = "noopener noreferrer"

ENTITY_RE = re.compile(r"&[^\s;]+;")


def _set_link_rel(attrs, new=False):
    # Only anchors the author wrote; bare URLs in prose stay text
    if new:
        return None
    attrs[(None, "rel")] = LINK_REL
    return attrs


def sanitize_html(raw):
    """
    Return a safe subset of raw HTML.

    Entities are decoded first so that escaped markup is sanitized rather
    than smuggled through and decoded later by a browser.
    """
    if not raw:
        return ""
    decoded = html.unescape(str(raw))
    cleaner = bleach.Cleaner(
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=URL_SCHEMES,
        strip=True,
        filters=[partial(LinkifyFilter, callbacks=[_set_link_rel], skip_tags=["pre", "code"], parse_email=False)],
    )
    return cleaner.clean(decoded)


def plain_text(value):
    """Visible text of an HTML fragment: tags and entities removed, trimmed."""
    if not value:
        return ""
    return ENTITY_RE.sub("", strip_tags(str(value))).strip()


def plain_text_length(value):
    return len(plain_text(value))
