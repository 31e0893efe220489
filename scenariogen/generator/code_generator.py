"""
LLM-powered test code generator.
Turns an element map and a scenario into Playwright test source and writes it
to disk.
"""
import ast
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

from scenariogen.config.settings import LANGUAGE_EXTENSIONS, LANGUAGES
from scenariogen.llm.client import LLMClient, strip_code_fences
from scenariogen.utils.errors import ConfigError, GenerationError

logger = logging.getLogger(__name__)


PYTHON_EXAMPLE = '''from playwright.sync_api import sync_playwright


def test_login_to_example():
    with sync_playwright() as p:
        browser = p.chromium.launch()
        page = browser.new_page()
        page.goto("https://example.com/login")

        page.fill("#email", "user@example.com")
        page.fill("input[name='password']", "secret")
        page.click("button[type='submit']")

        assert "dashboard" in page.url
        browser.close()
'''

JAVASCRIPT_EXAMPLE = '''import { chromium } from 'playwright';

export const test = async () => {
  const browser = await chromium.launch();
  const page = await browser.newPage();
  await page.goto('https://example.com/login');

  await page.fill('#email', 'user@example.com');
  await page.fill('input[name="password"]', 'secret');
  await page.click('button[type="submit"]');

  await browser.close();
};
'''

LANGUAGE_RULES = {
    "python": [
        "Return valid Python using playwright.sync_api.",
        "Write a single pytest test function named {test_name} that takes no arguments.",
        "Launch the browser inside the test and close it at the end.",
        "Use assertions for the expected outcome of the scenario.",
    ],
    "javascript": [
        "Return valid Playwright JavaScript (ES module).",
        "Export an async function named test.",
        "Launch the browser inside the function and close it at the end.",
    ],
}

SYSTEM_PROMPT = (
    "You are an expert test automation engineer who writes Playwright tests. "
    "You answer with source code only."
)


def slugify(text: str, max_len: int = 40) -> str:
    slug = re.sub(r'[^a-z0-9]+', '_', (text or '').lower()).strip('_')
    return slug[:max_len].rstrip('_') or 'scenario'


def default_output_path(language: str = "python") -> str:
    return f"generated/test_generated{LANGUAGE_EXTENSIONS.get(language, '.py')}"


def build_generation_prompt(elements: Union[Dict[str, Any], str], scenario: str,
                            url: str, language: str = "python") -> str:
    """Prompt asking for runnable test code for the scenario and elements."""
    if language not in LANGUAGES:
        raise ConfigError(f"Unsupported language {language!r}")

    test_name = f"test_{slugify(scenario)}"
    elements_text = elements if isinstance(elements, str) else json.dumps(elements, indent=2)
    example = PYTHON_EXAMPLE if language == "python" else JAVASCRIPT_EXAMPLE

    rules = [
        "Only return the code, nothing else.",
        "Do not add any text before or after the code.",
        "Include every import the code needs.",
        "Prefer the identifiers from the testing data for selectors (id, data-testid, name, placeholder, role, text).",
        f"Navigate to {url} first.",
    ] + [r.format(test_name=test_name) for r in LANGUAGE_RULES[language]]
    rules_text = "\n".join(f"{i}. {r}" for i, r in enumerate(rules, 1))

    return f"""Generate a Playwright test based on the testing scenario and testing data below. Strictly follow the rules.

Testing scenario: {scenario.strip()}
Target URL: {url}
Testing data:
{elements_text}

Rules:
{rules_text}

Example output:
{example}"""


def check_python_syntax(code: str) -> Optional[str]:
    """Return a syntax error description, or None when the code parses."""
    try:
        ast.parse(code)
    except SyntaxError as e:
        return f"line {e.lineno}: {e.msg}"
    return None


def generate_code(elements: Union[Dict[str, Any], str], scenario: str, url: str,
                  client: LLMClient, language: str = "python",
                  max_tokens: Optional[int] = None) -> str:
    """
    Ask the LLM for test source.

    Returns:
        Code with any Markdown fence removed
    """
    prompt = build_generation_prompt(elements, scenario, url, language)
    raw = client.complete(prompt, system=SYSTEM_PROMPT, max_tokens=max_tokens)

    code = strip_code_fences(raw)
    if not code:
        raise GenerationError("LLM returned no code")

    if language == "python":
        problem = check_python_syntax(code)
        if problem:
            logger.warning("Generated Python does not parse (%s), writing it anyway", problem)

    logger.info("Generated %d lines of %s", code.count("\n") + 1, language)
    return code


def write_code(code: str, output_path: Union[str, Path]) -> Path:
    """Write generated code, creating parent directories."""
    path = Path(output_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if not code.endswith("\n"):
            code += "\n"
        path.write_text(code, encoding="utf-8")
    except OSError as e:
        raise GenerationError(f"Could not write {path}: {e}") from e

    logger.info("Saved generated code to %s", path)
    return path
