"""
Unit tests for test code generation (LLM mocked).
"""
import logging

import pytest

from scenariogen.generator.code_generator import (
    build_generation_prompt, check_python_syntax, default_output_path,
    generate_code, slugify, write_code,
)
from scenariogen.utils.errors import ConfigError, GenerationError


PY_CODE = '''from playwright.sync_api import sync_playwright


def test_search_for_ai_in_healthcare():
    with sync_playwright() as p:
        browser = p.chromium.launch()
        page = browser.new_page()
        page.goto("https://www.youtube.com/")
        page.fill("#search", "AI in healthcare")
        page.click("#search-button")
        browser.close()'''


def test_slugify():
    assert slugify('search for "AI in healthcare"') == "search_for_ai_in_healthcare"
    assert slugify("!!!") == "scenario"


def test_default_output_path():
    assert default_output_path("python") == "generated/test_generated.py"
    assert default_output_path("javascript") == "generated/test_generated.js"


def test_python_prompt_names_test_function():
    prompt = build_generation_prompt({"tags": []}, 'search for "AI in healthcare"',
                                     "https://www.youtube.com/", "python")
    assert "test_search_for_ai_in_healthcare" in prompt
    assert "playwright.sync_api" in prompt
    assert "https://www.youtube.com/" in prompt
    assert '"tags": []' in prompt


def test_javascript_prompt_exports_test():
    prompt = build_generation_prompt("raw element notes", "login", "https://example.com", "javascript")
    assert "Export an async function named test" in prompt
    assert "raw element notes" in prompt


def test_prompt_rejects_unknown_language():
    with pytest.raises(ConfigError):
        build_generation_prompt({}, "login", "https://example.com", "ruby")


def test_check_python_syntax():
    assert check_python_syntax(PY_CODE) is None
    assert check_python_syntax("def broken(:\n    pass").startswith("line 1")


def test_generate_code_strips_fence(fake_client_factory):
    client = fake_client_factory(["```python\n" + PY_CODE + "\n```"])
    code = generate_code({"tags": []}, "search", "https://www.youtube.com/", client)
    assert code == PY_CODE
    assert "Testing data" in client.prompts[0]


def test_generate_code_warns_on_bad_python(fake_client_factory, caplog):
    client = fake_client_factory(["def broken(:\n    pass"])
    with caplog.at_level(logging.WARNING):
        code = generate_code({"tags": []}, "search", "https://example.com", client)
    assert code.startswith("def broken")
    assert "does not parse" in caplog.text


def test_generate_code_empty_fence_raises(fake_client_factory):
    client = fake_client_factory(["```\n```"])
    with pytest.raises(GenerationError):
        generate_code({"tags": []}, "search", "https://example.com", client)


def test_write_code_creates_dirs(tmp_path):
    target = tmp_path / "nested" / "dir" / "test_gen.py"
    path = write_code("print('hi')", target)
    assert path == target
    assert target.read_text(encoding="utf-8") == "print('hi')\n"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
