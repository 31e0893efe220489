"""
LLM-powered element extractor.
Picks the HTML elements (with their identifiers) a test scenario needs and
returns them as a JSON element map.
"""
import json
import logging
from typing import Optional
from pydantic import ValidationError

from scenariogen.llm.client import LLMClient, strip_code_fences
from scenariogen.utils.errors import ScrapeError
from scenariogen.utils.schema import ElementMap, ExtractionResult

logger = logging.getLogger(__name__)


EXAMPLE_OUTPUT = """{
  "tags": [
    {
      "test_step": "type \\"AI in healthcare\\" into the search box",
      "tag": "input",
      "id": "search",
      "class": "form-control",
      "required": true,
      "role": "searchbox",
      "value": null,
      "text": null,
      "name": "search_query",
      "placeholder": "Search"
    },
    {
      "test_step": "click the search button",
      "tag": "button",
      "id": "search-button",
      "class": "btn btn-primary",
      "required": true,
      "role": "button",
      "value": null,
      "text": "Search",
      "name": null,
      "placeholder": null
    }
  ]
}"""


SYSTEM_PROMPT = (
    "You are an expert QA automation engineer. You read HTML and pick out the "
    "elements a browser-automation test needs. Output ONLY valid JSON."
)


def build_extraction_prompt(html: str, scenario: str) -> str:
    """Prompt asking for the elements and identifiers needed by the scenario."""
    return f"""Extract the HTML tags (<input>, <button>, <a>, <form>, <label>, <textarea>, <select>, <div>, <span>, <p>, <img>, <h1>-<h6> ...) with their identifiers (id, data-testid, class, role, value, placeholder, text, name) needed to automate the test scenario below with Playwright.

Rules:
1. Only return the tags and identifiers the test actually needs.
2. Return the tags in the order they appear in the HTML.
3. Describe for each tag the test step it is used in ("test_step").
4. Mark every returned tag with "required": true.
5. Use null for identifiers the element does not have.
6. Return ONLY valid JSON with a top-level "tags" array, no explanations.

Test scenario: {scenario.strip()}

HTML:
{html.strip()}

Example output:
{EXAMPLE_OUTPUT}"""


def parse_element_map(text: str) -> Optional[ElementMap]:
    """
    Parse an LLM response into an ElementMap.

    Accepts either {"tags": [...]} or a bare list of tags. Returns None when
    the response is not valid JSON of that shape.
    """
    content = strip_code_fences(text)
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning("Element map is not valid JSON (%s)", e)
        return None

    if isinstance(data, list):
        data = {"tags": data}

    try:
        return ElementMap.model_validate(data)
    except ValidationError as e:
        logger.warning("Element map has unexpected shape: %s", e.errors()[:3])
        return None


def extract_elements(html: str, scenario: str, client: LLMClient,
                     max_tokens: Optional[int] = None) -> ExtractionResult:
    """
    Ask the LLM which elements the scenario needs.

    Malformed responses are kept as raw text so the generation stage can still
    use them.

    Args:
        html: Sanitized page HTML
        scenario: Natural language test scenario
        client: LLM client
        max_tokens: Override the client's max_tokens

    Returns:
        ExtractionResult with the raw response and the parsed map when valid
    """
    if not html or not html.strip():
        raise ScrapeError("No HTML captured from the page, nothing to extract")

    prompt = build_extraction_prompt(html, scenario)
    raw = client.complete(prompt, system=SYSTEM_PROMPT, max_tokens=max_tokens)

    element_map = parse_element_map(raw)
    if element_map is None:
        logger.warning("Forwarding unparsed element description (%d chars)", len(raw))
        return ExtractionResult(raw_text=raw, parsed=False)

    logger.info("Extracted %d elements", len(element_map.tags))
    return ExtractionResult(raw_text=raw, element_map=element_map, parsed=True)
