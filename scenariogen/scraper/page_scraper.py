"""
Playwright-based page scraper.
Opens a page, strips styling/script/meta nodes in the browser and returns the
remaining body HTML.
"""
import logging
import sys
from typing import Optional
from playwright.sync_api import sync_playwright, Error as PlaywrightError

from scenariogen.config.settings import Settings
from scenariogen.utils.errors import ScrapeError

logger = logging.getLogger(__name__)


# Runs inside the page: drop inline styles and noise nodes, return body HTML
BODY_HTML_JS = r'''() => {
    document.querySelectorAll('*').forEach(el => el.removeAttribute('style'));

    const noise = document.body.querySelectorAll(
        'link, script, style, svg, meta, noscript, template, iframe'
    );
    noise.forEach(el => el.remove());

    return document.body.innerHTML;
}'''


def scrape_body_html(url: str, headless: bool = False, timeout_ms: int = 30000,
                     wait_until: str = "domcontentloaded") -> str:
    """
    Load a URL and capture its cleaned body HTML.

    One browser and one page are opened and always closed, whether the
    navigation succeeded or not.

    Args:
        url: Page to load
        headless: Run the browser without a window
        timeout_ms: Navigation timeout
        wait_until: Playwright load state to wait for

    Returns:
        body innerHTML after cleanup
    """
    logger.info("Scraping %s (headless=%s)", url, headless)

    with sync_playwright() as p:
        browser = None
        page = None
        try:
            browser = p.chromium.launch(headless=headless)
            page = browser.new_page()
            page.goto(url, wait_until=wait_until, timeout=timeout_ms)
            body_html = page.evaluate(BODY_HTML_JS)
        except PlaywrightError as e:
            raise ScrapeError(f"Failed to scrape {url}: {e}") from e
        finally:
            try:
                if page is not None:
                    page.close()
            finally:
                if browser is not None:
                    browser.close()

    logger.debug("Captured %d chars of body HTML", len(body_html or ""))
    return body_html or ""


class PageScraper:
    """Scraper bound to a Settings object."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def scrape(self, url: str) -> str:
        return scrape_body_html(
            url,
            headless=self.settings.headless,
            timeout_ms=self.settings.navigation_timeout_ms,
            wait_until=self.settings.wait_until,
        )


def main(argv: Optional[list] = None):
    args = argv if argv is not None else sys.argv[1:]
    if len(args) < 2:
        print("Usage: python -m scenariogen.scraper.page_scraper <url> <output.html>")
        sys.exit(1)

    url, output = args[0], args[1]
    html = scrape_body_html(url, headless=True)
    with open(output, 'w', encoding='utf-8') as f:
        f.write(html)
    print(f"Saved {len(html) / 1024:.1f} KB of HTML to {output}")


if __name__ == "__main__":
    main()
