"""
Main orchestrator for the generation pipeline.
Scrape -> sanitize -> extract elements -> generate code -> write (-> run).
"""
import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from scenariogen.config.settings import LANGUAGES, Settings
from scenariogen.extractor.element_extractor import extract_elements
from scenariogen.generator.code_generator import default_output_path, generate_code, write_code
from scenariogen.llm.client import LLMClient, create_client
from scenariogen.runner.runner import run_generated_test
from scenariogen.scraper.html_sanitizer import sanitize_html
from scenariogen.scraper.page_scraper import PageScraper
from scenariogen.scraper.relevance import filter_relevant_html
from scenariogen.utils.errors import ConfigError, ScenarioGenError
from scenariogen.utils.logging_setup import setup_logging
from scenariogen.utils.schema import GenerationResult

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates scraper, extractor, generator and runner."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[LLMClient] = None,
                 scraper: Optional[PageScraper] = None, verbose: bool = True):
        self.settings = settings or Settings.from_env()
        self._client = client
        self.scraper = scraper or PageScraper(self.settings)
        self.verbose = verbose

    @property
    def client(self) -> LLMClient:
        # Created lazily so a missing API key surfaces inside run()
        if self._client is None:
            self._client = create_client(self.settings)
        return self._client

    def _progress(self, msg: str):
        if self.verbose:
            print(msg)

    def _write_artifact(self, name: str, content: str, artifacts_dir: Optional[str] = None):
        try:
            out_dir = Path(artifacts_dir or self.settings.artifacts_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            (out_dir / name).write_text(content, encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save artifact %s: %s", name, e)

    def run(self, url: str, scenario: str, output_path: Optional[str] = None,
            language: Optional[str] = None, run_tests: bool = False,
            html: Optional[str] = None, artifacts_dir: Optional[str] = None) -> GenerationResult:
        """
        Run the whole pipeline once.

        Every failure is caught here, logged, and reported on the result;
        nothing is retried.

        Args:
            url: Target page
            scenario: Natural language test scenario
            output_path: Where to write the generated test
            language: "python" or "javascript"
            run_tests: Execute the generated test afterwards
            html: Pre-captured HTML, skips the browser when given
            artifacts_dir: Overrides settings.artifacts_dir for this run

        Returns:
            GenerationResult with code, paths, timings and any error
        """
        language = language or self.settings.language
        result = GenerationResult(url=url, scenario=scenario, language=language)
        stage = "config"
        t0 = time.time()

        try:
            if language not in LANGUAGES:
                raise ConfigError(f"Unsupported language {language!r}, expected one of {LANGUAGES}")
            output_path = output_path or self.settings.output_path or default_output_path(language)
            stage = "scrape"

            # Step 1: Scrape
            if html is None:
                self._progress(f"[1/4] Scraping {url}...")
                html = self.scraper.scrape(url)
            else:
                self._progress("[1/4] Using provided HTML")
            result.timings_ms["scrape"] = (time.time() - t0) * 1000

            cleaned = sanitize_html(html)
            cleaned = filter_relevant_html(cleaned, scenario, self.settings.max_html_chars)
            result.html_chars = len(cleaned)
            self._write_artifact("page.html", cleaned, artifacts_dir)
            logger.info("HTML reduced from %d to %d chars", len(html or ""), len(cleaned))

            # Step 2: Extract elements
            stage = "extract"
            self._progress(f"[2/4] Extracting elements for: {scenario}")
            t1 = time.time()
            extraction = extract_elements(cleaned, scenario, self.client, max_tokens=self.settings.max_tokens)
            result.elements = extraction.payload()
            result.timings_ms["extract"] = (time.time() - t1) * 1000
            self._write_artifact(
                "elements.json",
                json.dumps(result.elements, indent=2) if extraction.parsed else extraction.raw_text,
                artifacts_dir,
            )

            # Step 3: Generate code
            stage = "generate"
            self._progress(f"[3/4] Generating {language} test code...")
            t2 = time.time()
            code = generate_code(result.elements, scenario, url, self.client,
                                 language=language, max_tokens=self.settings.code_max_tokens)
            result.code = code
            result.timings_ms["generate"] = (time.time() - t2) * 1000

            # Step 4: Write
            stage = "write"
            path = write_code(code, output_path)
            result.output_path = str(path)
            self._progress(f"[4/4] Saved test to {path}")
            result.ok = True

            if run_tests:
                stage = "run"
                self._progress(f"Running {path}...")
                result.run = run_generated_test(path, language)

        except ScenarioGenError as e:
            logger.error("Pipeline failed during %s: %s", stage, e)
            result.error = f"{stage}: {e}"
            result.ok = False
        except Exception as e:
            logger.exception("Unexpected error during %s", stage)
            result.error = f"{stage}: {type(e).__name__}: {e}"
            result.ok = False

        result.timings_ms["total"] = (time.time() - t0) * 1000
        self._write_artifact("result.json", result.model_dump_json(indent=2), artifacts_dir)
        return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a Playwright test from a page and a scenario")
    parser.add_argument("--url", required=True, help="Target website URL")
    parser.add_argument("--scenario", required=True, help="Natural language test scenario")
    parser.add_argument("--output", "-o", default=None, help="Output file for the generated test")
    parser.add_argument("--language", choices=["python", "javascript"], default=None,
                        help="Language of the generated test")
    parser.add_argument("--html-file", default=None, help="Use saved HTML instead of launching a browser")
    parser.add_argument("--headless", action="store_true", default=None, help="Run the browser headless")
    parser.add_argument("--run", action="store_true", help="Run the generated test afterwards")
    parser.add_argument("--artifacts-dir", default=None, help="Directory for intermediate artifacts")
    parser.add_argument("--provider", choices=["groq", "anthropic"], default=None, help="LLM provider")
    parser.add_argument("--model", default=None, help="LLM model name")
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
    return parser


def main(argv: Optional[list] = None) -> int:
    """CLI entry point for orchestrator."""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env(
            llm_provider=args.provider,
            llm_model=args.model,
            headless=args.headless,
            artifacts_dir=args.artifacts_dir,
            log_level=args.log_level,
        )
    except ScenarioGenError as e:
        print(f"Configuration error: {e}")
        return 1

    setup_logging(settings.log_level)

    html = None
    if args.html_file:
        try:
            with open(args.html_file, 'r', encoding='utf-8') as f:
                html = f.read()
        except OSError as e:
            logger.error("Could not read HTML file %s: %s", args.html_file, e)
            print(f"Generation failed: could not read {args.html_file}: {e}")
            return 1

    orchestrator = Orchestrator(settings)
    result = orchestrator.run(
        args.url,
        args.scenario,
        output_path=args.output,
        language=args.language,
        run_tests=args.run,
        html=html,
    )

    print(f"\n{'=' * 60}")
    if not result.ok:
        print(f"Generation failed: {result.error}")
        return 1

    print(f"Generated {result.language} test: {result.output_path}")
    print(f"Total time: {result.timings_ms.get('total', 0):.0f}ms")
    if result.run is not None:
        status = "passed" if result.run.ok else f"failed (exit code {result.run.returncode})"
        print(f"Generated test {status}")
        if not result.run.ok:
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
