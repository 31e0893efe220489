"""
Attribute-based relevance heuristics.
Ranks the elements of sanitized HTML by how useful they are for automating a
test scenario, so oversized pages can be shrunk before they reach the LLM.
"""
import re
from dataclasses import dataclass, field
from html import escape, unescape
from typing import List, Dict, Any, Set
from Levenshtein import distance as levenshtein_distance

from scenariogen.scraper.html_sanitizer import truncate_html


INTERACTIVE_TAGS = {'input', 'button', 'a', 'select', 'textarea', 'form', 'label', 'option'}
CONTENT_TAGS = {'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'p', 'span', 'div', 'li', 'img', 'nav', 'header'}
INTERACTIVE_ROLES = {
    'button', 'link', 'textbox', 'searchbox', 'combobox', 'checkbox', 'radio',
    'tab', 'menuitem', 'option', 'switch', 'listbox',
}
VOID_TAGS = {'input', 'img', 'br', 'hr', 'source', 'col', 'embed', 'wbr', 'area'}

# Attributes worth keeping when an element is rendered back to HTML
IMPORTANT_ATTRIBUTES = (
    'id', 'name', 'class', 'type', 'value', 'placeholder', 'role', 'href',
    'aria-label', 'title', 'alt', 'for', 'data-testid', 'data-test', 'data-cy',
)
TEST_HOOK_ATTRIBUTES = ('data-testid', 'data-test', 'data-cy')

# Below this the ranked rendering is padded with the start of the page
MIN_FILTERED_CHARS = 200

STOP_WORDS = {
    'the', 'and', 'for', 'with', 'then', 'that', 'this', 'into', 'from', 'page',
    'test', 'user', 'should', 'will', 'can', 'are', 'was', 'has', 'have', 'its',
    'them', 'there', 'when', 'after', 'before', 'on', 'in', 'to', 'of', 'a', 'an',
}

START_TAG_RE = re.compile(
    r'<([a-zA-Z][\w-]*)((?:\s+[^\s=>/]+(?:\s*=\s*(?:"[^"]*"|\'[^\']*\'|[^\s>]+))?)*)\s*/?>([^<]*)'
)
ATTR_RE = re.compile(r'([^\s=>/]+)(?:\s*=\s*(?:"([^"]*)"|\'([^\']*)\'|([^\s>]+)))?')
QUOTED_RE = re.compile(r'["“”]([^"“”]+)["“”]')
WORD_RE = re.compile(r'[a-z0-9]+')


@dataclass
class TagInfo:
    """Start tag found in HTML, with the text right after it."""
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    text: str = ''
    offset: int = 0


def parse_start_tags(html: str) -> List[TagInfo]:
    """Find every start tag with its attributes and trailing text."""
    tags = []
    for m in START_TAG_RE.finditer(html or ''):
        attrs = {}
        for am in ATTR_RE.finditer(m.group(2) or ''):
            name = am.group(1).lower()
            value = next((g for g in am.group(2, 3, 4) if g is not None), '')
            attrs[name] = value
        tags.append(TagInfo(
            tag=m.group(1).lower(),
            attrs=attrs,
            text=(m.group(3) or '').strip(),
            offset=m.start(),
        ))
    return tags


def looks_dynamic(s: str) -> bool:
    """Check if string looks like a generated ID (long digit runs or UUIDs)."""
    if not s:
        return False
    return bool(re.search(r'\d{4,}|[0-9a-f]{8}-[0-9a-f]{4}', s.lower()))


def fuzzy_match(text1: str, text2: str, threshold: int = 2) -> bool:
    """Check if two strings are similar using Levenshtein distance."""
    if not text1 or not text2:
        return False

    text1 = text1.lower().strip()
    text2 = text2.lower().strip()

    if text1 == text2:
        return True

    # Substring match, ignoring fragments too short to mean anything
    shorter, longer = sorted((text1, text2), key=len)
    if len(shorter) >= 3 and shorter in longer:
        return True

    # Only compare similar-length strings by edit distance
    if abs(len(text1) - len(text2)) > threshold or len(shorter) < 4:
        return False
    return levenshtein_distance(text1, text2) <= threshold


def scenario_keywords(scenario: str) -> List[str]:
    """
    Keywords of a scenario: quoted phrases whole, then remaining words.

    'search for "AI in healthcare"' -> ['ai in healthcare', 'search', 'healthcare']
    """
    scenario = scenario or ''
    keywords = []

    for phrase in QUOTED_RE.findall(scenario):
        phrase = phrase.strip().lower()
        if phrase and phrase not in keywords:
            keywords.append(phrase)

    for word in WORD_RE.findall(scenario.lower()):
        if len(word) < 3 or word in STOP_WORDS or word in keywords:
            continue
        keywords.append(word)

    return keywords


def _haystack_words(info: TagInfo) -> Set[str]:
    words = set(WORD_RE.findall(info.text.lower()))
    for name in IMPORTANT_ATTRIBUTES:
        value = info.attrs.get(name)
        if value:
            words.update(WORD_RE.findall(value.lower()))
    return words


def keyword_hits(info: TagInfo, keywords: List[str]) -> int:
    """Number of keywords that match the element's text or attribute values."""
    if not keywords:
        return 0

    words = _haystack_words(info)
    joined = ' '.join([info.text.lower()] + [
        (info.attrs.get(name) or '').lower() for name in IMPORTANT_ATTRIBUTES
    ])

    hits = 0
    for kw in keywords:
        if ' ' in kw:
            if kw in joined:
                hits += 1
        elif any(fuzzy_match(kw, w) for w in words):
            hits += 1
    return hits


def score_element(info: TagInfo, keywords: List[str]) -> float:
    """
    Score an element's relevance in [0.0, 1.0].

    Scoring rules:
    - Base: interactive tag or role (+0.3), content tag (+0.05)
    - Identifiers: test hook (+0.2), stable id (+0.15), name (+0.1),
      aria-label (+0.1), placeholder (+0.05)
    - Keywords: up to +0.4 by share of scenario keywords matched
    - Dynamic id penalty (-0.15)
    """
    score = 0.0
    attrs = info.attrs

    role = (attrs.get('role') or '').lower()
    if info.tag in INTERACTIVE_TAGS or role in INTERACTIVE_ROLES:
        score += 0.3
    elif info.tag in CONTENT_TAGS:
        score += 0.05

    if any(attrs.get(a) for a in TEST_HOOK_ATTRIBUTES):
        score += 0.2

    el_id = attrs.get('id')
    if el_id:
        if looks_dynamic(el_id):
            score -= 0.15
        else:
            score += 0.15

    if attrs.get('name'):
        score += 0.1
    if attrs.get('aria-label'):
        score += 0.1
    if attrs.get('placeholder'):
        score += 0.05

    if keywords:
        score += 0.4 * keyword_hits(info, keywords) / len(keywords)

    return max(0.0, min(1.0, score))


def summarize_relevant_elements(html: str, scenario: str, limit: int = 60,
                                min_score: float = 0.2) -> List[Dict[str, Any]]:
    """
    Rank the elements of an HTML string for a scenario.

    Returns:
        Up to `limit` dicts (tag, attributes, text, score, offset), best first
    """
    keywords = scenario_keywords(scenario)
    ranked = []

    for info in parse_start_tags(html):
        score = score_element(info, keywords)
        if score < min_score:
            continue
        ranked.append({
            "tag": info.tag,
            "attributes": {k: v for k, v in info.attrs.items() if k in IMPORTANT_ATTRIBUTES},
            "text": info.text[:100],
            "score": round(score, 3),
            "offset": info.offset,
        })

    ranked.sort(key=lambda x: (-x['score'], x['offset']))
    return ranked[:limit]


def render_element(element: Dict[str, Any]) -> str:
    """Render a summarized element back to a compact HTML tag."""
    tag = element['tag']
    parts = [tag]
    for name, value in element.get('attributes', {}).items():
        parts.append(f'{name}="{escape(unescape(value), quote=True)}"' if value != '' else name)
    opening = '<' + ' '.join(parts) + '>'
    if tag in VOID_TAGS:
        return opening
    return f"{opening}{element.get('text', '')}</{tag}>"


def filter_relevant_html(html: str, scenario: str, max_chars: int) -> str:
    """
    Shrink HTML to the elements that matter for the scenario.

    HTML that already fits in max_chars is returned unchanged. Otherwise the
    best-ranked elements are rendered back in document order until the
    budget is used up. When almost nothing ranks (a long article with no
    controls), the rest of the budget is filled with the start of the page
    so the result is never empty.
    """
    if not html or max_chars <= 0 or len(html) <= max_chars:
        return html or ''

    ranked = summarize_relevant_elements(html, scenario, limit=1000)

    chosen = []
    used = 0
    for element in ranked:
        rendered = render_element(element)
        if used + len(rendered) > max_chars:
            continue
        chosen.append((element['offset'], rendered))
        used += len(rendered)

    chosen.sort(key=lambda x: x[0])
    filtered = ''.join(r for _, r in chosen)
    if used < MIN_FILTERED_CHARS and used < max_chars:
        filtered += truncate_html(html, max_chars - used)
    return filtered
