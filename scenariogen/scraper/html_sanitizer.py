"""
Regex-based HTML sanitizer.
Strips styling, script and metadata noise from scraped HTML before it is sent
to the LLM. Pure text transforms, no DOM parsing.
"""
import re
from typing import Iterable


# Elements removed together with their content
NOISE_TAGS = ("script", "style", "link", "meta", "svg", "noscript", "template", "iframe")

# Attributes removed from every remaining element
NOISE_ATTRIBUTES = ("style",)

# Void elements never have a closing tag
VOID_TAGS = {"link", "meta", "img", "input", "br", "hr", "source", "base", "col", "embed", "wbr"}

COMMENT_RE = re.compile(r'<!--.*?-->', re.DOTALL)
EVENT_HANDLER_RE = re.compile(r'\s+on[a-z]+\s*=\s*(?:"[^"]*"|\'[^\']*\'|[^\s>]+)', re.IGNORECASE)
DATA_URI_RE = re.compile(r'\s+(src|href)\s*=\s*(["\'])data:[^"\']{200,}\2', re.IGNORECASE)
WHITESPACE_RE = re.compile(r'\s+')
BETWEEN_TAGS_RE = re.compile(r'>\s+<')


def _attribute_re(name: str) -> re.Pattern:
    return re.compile(
        r'\s+' + re.escape(name) + r'\s*=\s*(?:"[^"]*"|\'[^\']*\'|[^\s>]+)',
        re.IGNORECASE,
    )


def strip_tags(html: str, tags: Iterable[str] = NOISE_TAGS) -> str:
    """Remove elements (and everything inside them) for the given tag names."""
    for tag in tags:
        t = re.escape(tag)
        if tag not in VOID_TAGS:
            # Paired form, non-greedy so siblings survive
            html = re.sub(rf'<{t}(?=[\s/>])[^>]*(?<!/)>.*?</{t}\s*>', '', html, flags=re.IGNORECASE | re.DOTALL)
        # Self-closing, void, or orphaned open/close tags
        html = re.sub(rf'<{t}(?=[\s/>])[^>]*/?>', '', html, flags=re.IGNORECASE)
        html = re.sub(rf'</{t}\s*>', '', html, flags=re.IGNORECASE)
    return html


def strip_comments(html: str) -> str:
    return COMMENT_RE.sub('', html)


def strip_attributes(html: str, names: Iterable[str] = NOISE_ATTRIBUTES) -> str:
    """Drop named attributes, inline event handlers and large data: URIs."""
    for name in names:
        html = _attribute_re(name).sub('', html)
    html = EVENT_HANDLER_RE.sub('', html)
    html = DATA_URI_RE.sub('', html)
    return html


def collapse_whitespace(html: str) -> str:
    html = BETWEEN_TAGS_RE.sub('><', html)
    return WHITESPACE_RE.sub(' ', html).strip()


def truncate_html(html: str, max_chars: int) -> str:
    """Cut to max_chars, backing up to the last complete tag when possible."""
    if max_chars <= 0 or len(html) <= max_chars:
        return html

    cut = html[:max_chars]
    last_open = cut.rfind('<')
    last_close = cut.rfind('>')
    if last_open > last_close:
        # Cut landed inside a tag
        cut = cut[:last_open]
    return cut


def sanitize_html(html: str, max_chars: int = 0) -> str:
    """
    Full cleanup pass.

    Args:
        html: Raw body HTML
        max_chars: Truncate the result to this size (0 disables)

    Returns:
        Sanitized HTML string
    """
    if not html:
        return ""

    html = strip_comments(html)
    html = strip_tags(html)
    html = strip_attributes(html)
    html = collapse_whitespace(html)
    return truncate_html(html, max_chars)
